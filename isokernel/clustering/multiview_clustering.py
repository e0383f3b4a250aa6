from __future__ import annotations
import logging
import numpy as np
from typing import Dict, Optional, Sequence, Tuple

from isokernel.similarity.alternative_similarity import EuclideanSimilarity
from isokernel.similarity.isolation_kernel import (
    IsolationKernelSimilarity,
    similarity_from_features,
)
from isokernel.clustering.kernel_clustering import KernelClustering
from isokernel.evaluation.metrics import ClusteringEvaluator


logger = logging.getLogger(__name__)

View = Tuple[object, np.ndarray]


class MultiViewClustering:
    """
    Clusters the same samples under several similarity views (Euclidean and
    Isolation Kernel) with several algorithms (k-means, k-medoids), then
    compares the resulting clusterings with each other and with the ground
    truth.
    """

    def __init__(
        self,
        psi: int = 16,
        t: int = 200,
        sparse: bool = True,
        n_clusters: int = 3,
        methods: Sequence[str] = ("kmeans", "kmedoids"),
        random_state: int = 0,
        n_init: int = 10,
    ):
        """
        Parameters
        ----------
        psi : int
            Cells per Isolation Kernel partition.
        t : int
            Number of Isolation Kernel partitions.
        sparse : bool
            Whether the Isolation Kernel feature matrix is stored sparse.
        n_clusters : int
            Number of clusters for every algorithm.
        methods : sequence of str
            Algorithms to run on every view ("kmeans", "kmedoids").
        random_state : int
            Random seed shared by the kernel and the clustering algorithms.
        n_init : int
            Restarts per clustering run.
        """
        self.psi = psi
        self.t = t
        self.sparse = sparse
        self.n_clusters = n_clusters
        self.methods = list(methods)
        self.random_state = random_state
        self.n_init = n_init

        self.similarity_: Optional[np.ndarray] = None

    # ------------------------------------------------------------------
    # Compute all similarity views
    # ------------------------------------------------------------------

    def compute_views(self, X: np.ndarray) -> Dict[str, View]:
        """
        Computes the representation and distance matrix of every view.

        The Isolation Kernel feature matrix is built once and its similarity
        derived from it, so k-means and k-medoids see the same partitions.

        Returns
        -------
        dict
            Mapping view_name → (features, distance_matrix)
        """
        euclidean = EuclideanSimilarity()

        ik = IsolationKernelSimilarity(
            psi=self.psi,
            t=self.t,
            sparse=self.sparse,
            random_state=self.random_state,
        )
        F = ik.features(X)
        S = similarity_from_features(F, self.t)
        self.similarity_ = S

        D_ik = 1.0 - S
        np.fill_diagonal(D_ik, 0.0)

        return {
            "euclidean": (euclidean.features(X), euclidean.distance(X)),
            "isolation": (F, D_ik),
        }

    # ------------------------------------------------------------------
    # Cluster each view
    # ------------------------------------------------------------------

    def cluster_views(self, views: Dict[str, View]) -> Dict[str, np.ndarray]:
        """
        Runs every configured algorithm on every view.

        Returns
        -------
        dict
            Mapping "<view>_<method>" → cluster_labels
        """
        results = {}

        for name, (features, distance) in views.items():
            for method in self.methods:
                clusterer = KernelClustering(
                    method=method,
                    n_clusters=self.n_clusters,
                    random_state=self.random_state,
                    n_init=self.n_init,
                )
                data = features if method == "kmeans" else distance
                results[f"{name}_{method}"] = clusterer.cluster(data)

                logger.debug("Clustered view '%s' with %s", name, method)

        return results

    # ------------------------------------------------------------------
    # Compare clusterings
    # ------------------------------------------------------------------

    def compare_views(
        self,
        clusterings: Dict[str, np.ndarray]
    ) -> Dict[str, Dict[str, Dict[str, float]]]:
        """
        Computes AMI/ARI/NMI between all pairs of clusterings.

        Returns
        -------
        dict
            Nested dict: viewA → viewB → metrics
        """
        views = list(clusterings.keys())
        results = {}

        for i, v1 in enumerate(views):
            results[v1] = {}
            for j, v2 in enumerate(views):
                if i == j:
                    results[v1][v2] = {"AMI": 1.0, "ARI": 1.0, "NMI": 1.0}
                else:
                    results[v1][v2] = ClusteringEvaluator.compare_clusterings(
                        clusterings[v1],
                        clusterings[v2]
                    )

        return results

    @staticmethod
    def score_against_truth(
        clusterings: Dict[str, np.ndarray],
        labels_true: np.ndarray,
    ) -> Dict[str, Dict[str, float]]:
        """
        Agreement of every clustering with the ground-truth labels.

        Returns
        -------
        dict
            Mapping clustering_name → {"AMI", "ARI", "NMI"}
        """
        return {
            name: ClusteringEvaluator.compare_clusterings(labels_true, labels)
            for name, labels in clusterings.items()
        }

    # ------------------------------------------------------------------
    # Full pipeline
    # ------------------------------------------------------------------

    def run(self, X: np.ndarray, labels_true: Optional[np.ndarray] = None) -> Dict:
        """
        Runs the full multi-view clustering pipeline.

        Returns
        -------
        dict
            {
                "views": ...,
                "similarity": ...,
                "clusterings": ...,
                "comparisons": ...,
                "truth_scores": ... (if labels_true is given)
            }
        """
        views = self.compute_views(X)
        clusterings = self.cluster_views(views)
        comparisons = self.compare_views(clusterings)

        result = {
            "views": views,
            "similarity": self.similarity_,
            "clusterings": clusterings,
            "comparisons": comparisons,
        }

        if labels_true is not None:
            truth_scores = self.score_against_truth(clusterings, labels_true)
            result["truth_scores"] = truth_scores

            for name, scores in truth_scores.items():
                logger.info("%-20s AMI=%.3f ARI=%.3f", name, scores["AMI"], scores["ARI"])

        return result
