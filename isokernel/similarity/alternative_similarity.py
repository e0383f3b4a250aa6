from __future__ import annotations
import numpy as np
from sklearn.metrics import pairwise_distances

from isokernel.similarity.base_similarity import BaseSimilarity


class EuclideanSimilarity(BaseSimilarity):
    """Euclidean baseline: k-means on raw features, k-medoids on distances."""

    def compute(self, X: np.ndarray) -> np.ndarray:
        # Convert distance to similarity
        D = pairwise_distances(X, metric="euclidean")
        S = 1 / (1 + D)
        return S

    def distance(self, X: np.ndarray) -> np.ndarray:
        return pairwise_distances(X, metric="euclidean")
