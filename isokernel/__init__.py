"""Isolation Kernel similarity and clustering comparison toolkit."""

__version__ = "0.1.0"
