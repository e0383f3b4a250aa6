from __future__ import annotations
import logging
import numpy as np
from typing import Dict, List, Optional, Sequence

from isokernel.similarity.isolation_kernel import build_features, similarity_from_features
from isokernel.clustering.kernel_clustering import KernelClustering
from isokernel.evaluation.metrics import ClusteringEvaluator


logger = logging.getLogger(__name__)


class SeedStabilityAnalyzer:
    """
    Measures how much Isolation Kernel clusterings depend on the random
    partitions, by repeating the kernel construction and clustering over a
    list of seeds.
    """

    def __init__(
        self,
        psi: int = 16,
        t: int = 200,
        n_clusters: int = 3,
        methods: Sequence[str] = ("kmeans", "kmedoids"),
        sparse: bool = True,
    ):
        """
        Parameters
        ----------
        psi : int
            Cells per partition.
        t : int
            Number of partitions.
        n_clusters : int
            Number of clusters.
        methods : sequence of str
            Clustering algorithms to evaluate.
        sparse : bool
            Storage format of the feature matrix.
        """
        self.psi = psi
        self.t = t
        self.n_clusters = n_clusters
        self.methods = list(methods)
        self.sparse = sparse

    # ------------------------------------------------------------------
    # Stability analysis
    # ------------------------------------------------------------------

    def analyze(
        self,
        X: np.ndarray,
        labels_true: np.ndarray,
        seeds: Optional[List[int]] = None,
        verbose: bool = True,
    ) -> Dict:
        """
        For every seed:
        1. Build the kernel feature matrix and similarity
        2. Cluster with every method
        3. Score against the ground truth (AMI)

        Parameters
        ----------
        X : np.ndarray
            Feature matrix.
        labels_true : np.ndarray
            Ground-truth labels.
        seeds : list of int, optional
            Seeds to test. Default: 0..9
        verbose : bool
            Whether to log a summary per method.

        Returns
        -------
        dict
            {
                "seeds": list of int,
                "ami_scores": {method: np.ndarray over seeds},
                "summary": {method: {"mean": float, "std": float}},
                "mean_similarity": np.ndarray,
            }
        """
        if seeds is None:
            seeds = list(range(10))

        ami_scores = {method: [] for method in self.methods}
        similarity_sum = np.zeros((X.shape[0], X.shape[0]))

        for seed in seeds:
            F = build_features(
                X, psi=self.psi, t=self.t, sparse=self.sparse, random_state=seed
            )
            S = similarity_from_features(F, self.t)
            similarity_sum += S

            D = 1.0 - S
            np.fill_diagonal(D, 0.0)

            for method in self.methods:
                clusterer = KernelClustering(
                    method=method,
                    n_clusters=self.n_clusters,
                    random_state=seed,
                )
                labels = clusterer.cluster(F if method == "kmeans" else D)
                ami = ClusteringEvaluator.compare_clusterings(labels_true, labels)["AMI"]
                ami_scores[method].append(ami)

        ami_scores = {m: np.array(v) for m, v in ami_scores.items()}
        summary = {
            m: {"mean": float(np.mean(v)), "std": float(np.std(v))}
            for m, v in ami_scores.items()
        }

        if verbose:
            for m, stats in summary.items():
                logger.info(
                    "%s over %d seeds: AMI %.3f ± %.3f",
                    m, len(seeds), stats["mean"], stats["std"],
                )

        return {
            "seeds": list(seeds),
            "ami_scores": ami_scores,
            "summary": summary,
            "mean_similarity": similarity_sum / len(seeds),
        }

    # ------------------------------------------------------------------
    # Analysis helpers
    # ------------------------------------------------------------------

    @staticmethod
    def within_between(similarity: np.ndarray, labels: np.ndarray) -> Dict[str, float]:
        """
        Mean similarity between distinct points of the same group and
        between points of different groups.

        Parameters
        ----------
        similarity : np.ndarray
            Similarity matrix (n × n).
        labels : np.ndarray
            Group labels.

        Returns
        -------
        dict
            {"within": float, "between": float}
        """
        labels = np.asarray(labels)
        same = labels[:, None] == labels[None, :]
        off_diagonal = ~np.eye(len(labels), dtype=bool)

        within = similarity[same & off_diagonal]
        between = similarity[~same]

        return {
            "within": float(within.mean()) if within.size else np.nan,
            "between": float(between.mean()) if between.size else np.nan,
        }
