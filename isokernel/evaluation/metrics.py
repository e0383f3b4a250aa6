from __future__ import annotations
import numpy as np
from typing import Dict

from sklearn.metrics import (
    silhouette_score,
    calinski_harabasz_score,
    davies_bouldin_score,
    adjusted_mutual_info_score,
    adjusted_rand_score,
    normalized_mutual_info_score,
)


class ClusteringEvaluator:
    """
    Computes clustering quality metrics and agreement scores.
    """

    # ------------------------------------------------------------------
    # Basic clustering metrics
    # ------------------------------------------------------------------

    @staticmethod
    def compute_basic_metrics(
        X,
        labels: np.ndarray,
        metric: str = "euclidean",
    ) -> Dict[str, float]:
        """
        Computes silhouette, Calinski-Harabasz, and Davies-Bouldin scores.

        Parameters
        ----------
        X : np.ndarray or sparse matrix
            Feature matrix (samples × features), or a distance matrix when
            ``metric="precomputed"``.
        labels : np.ndarray
            Cluster labels.
        metric : str
            Distance used by the silhouette. With "precomputed" the
            centroid-based scores are undefined and reported as NaN.

        Returns
        -------
        dict
            Dictionary of metrics.
        """
        metrics = {
            "silhouette": np.nan,
            "calinski_harabasz": np.nan,
            "davies_bouldin": np.nan,
        }

        n_labels = len(np.unique(labels))
        if n_labels < 2 or n_labels >= len(labels):
            return metrics

        metrics["silhouette"] = float(silhouette_score(X, labels, metric=metric))

        if metric != "precomputed":
            dense = X.toarray() if hasattr(X, "toarray") else np.asarray(X)
            metrics["calinski_harabasz"] = float(calinski_harabasz_score(dense, labels))
            metrics["davies_bouldin"] = float(davies_bouldin_score(dense, labels))

        return metrics

    # ------------------------------------------------------------------
    # Agreement metrics
    # ------------------------------------------------------------------

    @staticmethod
    def compare_clusterings(
        labels_a: np.ndarray,
        labels_b: np.ndarray
    ) -> Dict[str, float]:
        """
        Computes AMI, ARI and NMI between two clusterings.

        Parameters
        ----------
        labels_a : np.ndarray
        labels_b : np.ndarray

        Returns
        -------
        dict
            Dictionary with AMI, ARI and NMI.
        """
        return {
            "AMI": float(adjusted_mutual_info_score(labels_a, labels_b)),
            "ARI": float(adjusted_rand_score(labels_a, labels_b)),
            "NMI": float(normalized_mutual_info_score(labels_a, labels_b)),
        }
