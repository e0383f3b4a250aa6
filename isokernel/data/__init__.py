"""Dataset loading and normalization."""
