"""Infrastructure adapters for the order workflow engine."""
