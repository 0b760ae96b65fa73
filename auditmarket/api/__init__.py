"""HTTP API layer (FastAPI)."""
