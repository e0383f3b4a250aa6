"""Clustering of Euclidean and Isolation Kernel views."""
