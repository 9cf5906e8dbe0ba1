"""Core FastAPI server for the universe hierarchy service."""
