"""FastAPI backend for the Care Worklist."""
