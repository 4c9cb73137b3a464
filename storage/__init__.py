"""Key-value view-state storage and the HR repository built on it."""
