"""External service clients used by the operator."""
