"""FastAPI surface: agent proxy, flow sessions and HR dashboard."""
