from __future__ import annotations
from abc import ABC, abstractmethod
import numpy as np


class BaseSimilarity(ABC):
    """
    Abstract base class for all similarity methods.
    Ensures a consistent API across different similarity implementations,
    so that every view can be clustered both with k-means (on features)
    and with k-medoids (on a precomputed distance matrix).
    """

    @abstractmethod
    def compute(self, X: np.ndarray) -> np.ndarray:
        """
        Computes a similarity matrix for the given feature matrix.

        Parameters
        ----------
        X : np.ndarray
            Feature matrix (n_items × n_features)

        Returns
        -------
        np.ndarray
            Similarity matrix (n_items × n_items)
        """
        pass

    def features(self, X: np.ndarray):
        """
        Representation that vector-space methods (k-means) operate on.
        Defaults to the input matrix itself.
        """
        return X

    def distance(self, X: np.ndarray) -> np.ndarray:
        """
        Distance matrix derived from the similarity: 1 - S, zero diagonal.

        Parameters
        ----------
        X : np.ndarray
            Feature matrix (n_items × n_features)

        Returns
        -------
        np.ndarray
            Distance matrix (n_items × n_items)
        """
        D = 1.0 - self.compute(X)
        np.fill_diagonal(D, 0.0)
        return D
