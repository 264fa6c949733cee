"""Chain backends."""
