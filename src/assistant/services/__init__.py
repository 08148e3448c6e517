"""External service clients."""
