"""carecal infrastructure adapters."""
