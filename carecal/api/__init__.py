"""carecal HTTP API (FastAPI)."""
