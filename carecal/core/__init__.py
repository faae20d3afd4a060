"""carecal core: exceptions and logging."""
