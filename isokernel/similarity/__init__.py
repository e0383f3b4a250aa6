"""Similarity measures: Isolation Kernel and the Euclidean baseline."""

from .base_similarity import BaseSimilarity
from .isolation_kernel import (
    InvalidArgumentError,
    IsolationKernelSimilarity,
    build_features,
    build_similarity,
    similarity_from_features,
)
from .alternative_similarity import EuclideanSimilarity

__all__ = [
    'BaseSimilarity',
    'EuclideanSimilarity',
    'InvalidArgumentError',
    'IsolationKernelSimilarity',
    'build_features',
    'build_similarity',
    'similarity_from_features',
]
