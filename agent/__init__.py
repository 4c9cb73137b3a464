"""Agent client, tolerant reply extraction, prompts and models."""
