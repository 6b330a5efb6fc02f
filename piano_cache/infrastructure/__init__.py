"""Infrastructure layer: cache stores and monitoring."""
