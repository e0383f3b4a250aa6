from __future__ import annotations
import logging
import numpy as np
from typing import Dict, List, Optional, Literal
import warnings

from isokernel.similarity.isolation_kernel import build_features, similarity_from_features
from isokernel.clustering.kernel_clustering import KernelClustering
from isokernel.evaluation.metrics import ClusteringEvaluator


logger = logging.getLogger(__name__)

DEFAULT_PSI_RANGE = [2, 4, 8, 16, 32, 64]


class PsiOptimizer:
    """
    Finds the number of cells per partition (psi) that gives the best
    Isolation Kernel clustering, by maximizing AMI against known labels or
    the silhouette score on the kernel distance.

    Small psi gives coarse cells and a smooth kernel; large psi isolates
    individual points and approaches a nearest-neighbour similarity.
    """

    def __init__(
        self,
        method: Literal["kmeans", "kmedoids"] = "kmeans",
        metric: Literal["ami", "silhouette"] = "ami",
        t: int = 200,
        n_clusters: int = 3,
        random_state: int = 0,
    ):
        """
        Parameters
        ----------
        method : {"kmeans", "kmedoids"}
            Clustering algorithm to use.
        metric : {"ami", "silhouette"}
            Optimization metric:
            - "ami": agreement with ground-truth labels
            - "silhouette": silhouette on the 1 - similarity distance
        t : int
            Number of partitions per kernel.
        n_clusters : int
            Number of clusters.
        random_state : int
            Random seed for reproducibility.
        """
        if metric not in ("ami", "silhouette"):
            raise ValueError(f"Unknown metric: {metric}")

        self.method = method
        self.metric = metric
        self.t = t
        self.n_clusters = n_clusters
        self.random_state = random_state

    # ------------------------------------------------------------------
    # Grid Search
    # ------------------------------------------------------------------

    def grid_search(
        self,
        X: np.ndarray,
        psi_range: Optional[List[int]] = None,
        labels_true: Optional[np.ndarray] = None,
        verbose: bool = True,
    ) -> Dict:
        """
        Performs grid search over psi values to find the optimal one.

        Parameters
        ----------
        X : np.ndarray
            Feature matrix (n_samples × n_features).
        psi_range : list of int, optional
            Values to test. Default: [2, 4, 8, 16, 32, 64]
        labels_true : np.ndarray, optional
            Required if metric is "ami".
        verbose : bool
            Whether to log progress.

        Returns
        -------
        dict
            {
                "optimal_psi": int,
                "optimal_score": float,
                "results": list of dicts with all tested psi values,
                "optimal_labels": np.ndarray,
            }
        """
        if psi_range is None:
            psi_range = DEFAULT_PSI_RANGE

        if self.metric == "ami" and labels_true is None:
            raise ValueError("labels_true required for AMI optimization")

        n_samples = X.shape[0]
        candidates = [psi for psi in psi_range if psi <= n_samples]
        skipped = sorted(set(psi_range) - set(candidates))
        if skipped:
            warnings.warn(
                f"Skipping psi values larger than the sample size ({n_samples}): {skipped}"
            )
        if not candidates:
            raise ValueError(f"No psi value in {list(psi_range)} fits {n_samples} samples")

        results = []
        best_score = -np.inf
        best_psi = candidates[0]
        best_labels = None

        for psi in candidates:
            F = build_features(
                X, psi=psi, t=self.t, random_state=self.random_state
            )
            D = 1.0 - similarity_from_features(F, self.t)
            np.fill_diagonal(D, 0.0)

            clusterer = KernelClustering(
                method=self.method,
                n_clusters=self.n_clusters,
                random_state=self.random_state,
            )
            labels = clusterer.cluster(F if self.method == "kmeans" else D)

            n_clusters = len(np.unique(labels))

            silhouette = ClusteringEvaluator.compute_basic_metrics(
                D, labels, metric="precomputed"
            )["silhouette"]

            ami = np.nan
            if labels_true is not None:
                ami = ClusteringEvaluator.compare_clusterings(labels_true, labels)["AMI"]

            score = ami if self.metric == "ami" else silhouette
            if np.isnan(score):
                score = -np.inf

            results.append({
                "psi": psi,
                "n_clusters": n_clusters,
                "silhouette": silhouette,
                "ami": ami,
                "score": score,
            })

            if best_labels is None:
                best_labels = labels

            # Update best
            if score > best_score:
                best_score = score
                best_psi = psi
                best_labels = labels

            if verbose:
                logger.info(
                    "psi=%d: n_clusters=%d, silhouette=%.3f, ami=%.3f",
                    psi, n_clusters, silhouette, ami,
                )

        if np.isneginf(best_score):
            warnings.warn(
                f"No psi value produced a finite {self.metric} score; "
                f"falling back to psi={best_psi}"
            )
            best_score = np.nan

        if verbose:
            logger.info("Optimal psi: %d (score=%.3f)", best_psi, best_score)

        return {
            "optimal_psi": best_psi,
            "optimal_score": best_score,
            "results": results,
            "optimal_labels": best_labels,
        }

    # ------------------------------------------------------------------
    # Convenience methods
    # ------------------------------------------------------------------

    def optimize(self, X: np.ndarray, **kwargs) -> int:
        """
        Convenience method that returns only the optimal psi value.

        Parameters
        ----------
        X : np.ndarray
            Feature matrix.
        **kwargs
            Additional arguments passed to grid_search.

        Returns
        -------
        int
            Optimal psi.
        """
        result = self.grid_search(X, **kwargs)
        return result["optimal_psi"]
