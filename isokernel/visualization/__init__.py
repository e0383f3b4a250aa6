"""Heatmaps, clustermaps and cluster scatter plots."""
