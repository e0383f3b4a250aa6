"""Clustering metrics and stability analysis."""
