from __future__ import annotations
import numpy as np
from typing import List, Literal, Tuple

from sklearn.cluster import KMeans
from sklearn.utils import check_random_state


class KernelClustering:
    """
    Clusters samples from a feature matrix or a precomputed distance matrix.
    Supports:
    - k-means on a (dense or sparse) feature matrix (sklearn)
    - k-medoids on a square distance matrix
    """

    def __init__(
        self,
        method: Literal["kmeans", "kmedoids"] = "kmeans",
        n_clusters: int = 3,
        random_state: int = 0,
        n_init: int = 10,
        max_iter: int = 300,
    ):
        """
        Parameters
        ----------
        method : {"kmeans", "kmedoids"}
            Clustering algorithm to use.
        n_clusters : int
            Number of clusters.
        random_state : int
            Random seed.
        n_init : int
            Number of restarts; the lowest-cost solution is kept.
        max_iter : int
            Maximum iterations per restart.
        """
        if method not in ("kmeans", "kmedoids"):
            raise ValueError(f"Unknown method: {method}")

        self.method = method
        self.n_clusters = n_clusters
        self.random_state = random_state
        self.n_init = n_init
        self.max_iter = max_iter

        self.medoid_indices_: List[int] = []
        self.inertia_: float = np.nan

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def cluster(self, X) -> np.ndarray:
        """
        Clusters the samples.

        Parameters
        ----------
        X : np.ndarray or sparse matrix
            Feature matrix (n_samples × n_features) for k-means, or
            symmetric distance matrix (n_samples × n_samples) for k-medoids.

        Returns
        -------
        np.ndarray
            Cluster labels for each sample.
        """
        if not 1 <= self.n_clusters <= X.shape[0]:
            raise ValueError(
                f"n_clusters={self.n_clusters} invalid for {X.shape[0]} samples"
            )

        if self.method == "kmeans":
            return self._cluster_kmeans(X)
        else:
            return self._cluster_kmedoids(X)

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    def _cluster_kmeans(self, X) -> np.ndarray:
        """
        k-means via sklearn; accepts CSR input directly.
        """
        model = KMeans(
            n_clusters=self.n_clusters,
            n_init=self.n_init,
            max_iter=self.max_iter,
            random_state=self.random_state,
        )
        labels = model.fit_predict(X)
        self.inertia_ = float(model.inertia_)
        return labels

    def _cluster_kmedoids(self, D) -> np.ndarray:
        """
        k-medoids with k-medoids++ seeding and alternating assign/update
        steps, best of ``n_init`` restarts.
        """
        D = np.asarray(D, dtype=float)
        if D.ndim != 2 or D.shape[0] != D.shape[1]:
            raise ValueError(
                f"k-medoids needs a square distance matrix, got shape {D.shape}"
            )

        rng = check_random_state(self.random_state)

        best_labels = None
        best_inertia = np.inf

        for _ in range(max(1, self.n_init)):
            medoids, labels, inertia = _kmedoids_alternate(
                D, self.n_clusters, rng, self.max_iter
            )
            if inertia < best_inertia:
                best_inertia = inertia
                best_labels = labels
                self.medoid_indices_ = medoids

        self.inertia_ = best_inertia
        return best_labels


# ----------------------------------------------------------------------
# k-medoids
# ----------------------------------------------------------------------

def _kmedoids_plusplus(D: np.ndarray, k: int, rng: np.random.RandomState) -> List[int]:
    n = D.shape[0]
    medoids = [int(rng.randint(n))]
    dmin = D[:, medoids[0]].copy()

    while len(medoids) < k:
        probs = dmin ** 2
        probs[medoids] = 0.0
        total = probs.sum()

        if total <= 0.0:
            # All remaining points coincide with a medoid
            candidates = np.setdiff1d(np.arange(n), medoids)
            cand = int(rng.choice(candidates))
        else:
            cand = int(rng.choice(n, p=probs / total))

        medoids.append(cand)
        dmin = np.minimum(dmin, D[:, cand])

    return medoids


def _kmedoids_alternate(
    D: np.ndarray,
    k: int,
    rng: np.random.RandomState,
    max_iter: int,
) -> Tuple[List[int], np.ndarray, float]:
    medoids = _kmedoids_plusplus(D, k, rng)

    for _ in range(max_iter):
        dist_to_m = D[:, medoids]
        labels = dist_to_m.argmin(axis=1)

        new_medoids = list(medoids)
        for c in range(k):
            idx = np.flatnonzero(labels == c)
            if idx.size == 0:
                # Reseed an empty cluster with the point farthest from its medoid
                nearest = dist_to_m.min(axis=1)
                for cand in np.argsort(-nearest):
                    if int(cand) not in new_medoids:
                        new_medoids[c] = int(cand)
                        break
                continue

            costs = D[np.ix_(idx, idx)].sum(axis=1)
            new_medoids[c] = int(idx[np.argmin(costs)])

        if new_medoids == medoids:
            break
        medoids = new_medoids

    dist_to_m = D[:, medoids]
    labels = dist_to_m.argmin(axis=1)
    inertia = float(dist_to_m.min(axis=1).sum())
    return medoids, labels.astype(int), inertia
