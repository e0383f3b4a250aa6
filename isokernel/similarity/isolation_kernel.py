"""
Isolation Kernel feature construction.

Each of ``t`` random partitions samples ``psi`` reference points; every data
point is mapped to the cell of its nearest sampled point. Concatenating the
one-hot cell indicators gives a binary feature vector with exactly ``t``
nonzeros, and the normalized inner product of two such vectors is the
fraction of partitions in which the points share a cell.
"""

from __future__ import annotations
import logging
from typing import Optional, Union

import numpy as np
from scipy import sparse as sp
from sklearn.metrics import pairwise_distances
from sklearn.utils import check_random_state

from isokernel.similarity.base_similarity import BaseSimilarity


logger = logging.getLogger(__name__)

RandomStateLike = Union[None, int, np.random.RandomState]


class InvalidArgumentError(ValueError):
    """Raised when the kernel is called with an inconsistent configuration."""


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------

def _as_matrix(values, name: str) -> np.ndarray:
    X = np.asarray(values, dtype=float)
    if X.ndim != 2:
        raise InvalidArgumentError(f"{name} must be 2-D, got shape {X.shape}")
    if X.shape[0] == 0:
        raise InvalidArgumentError(f"{name} has no rows")
    return X


def _check_arguments(X: np.ndarray, R: np.ndarray, psi: int, t: int) -> None:
    if X.shape[1] != R.shape[1]:
        raise InvalidArgumentError(
            f"data has {X.shape[1]} columns but reference_data has {R.shape[1]}"
        )
    if psi <= 0:
        raise InvalidArgumentError(f"psi must be positive, got {psi}")
    if psi > R.shape[0]:
        raise InvalidArgumentError(
            f"psi={psi} exceeds the reference size {R.shape[0]}"
        )
    if t <= 0:
        raise InvalidArgumentError(f"t must be positive, got {t}")


# ----------------------------------------------------------------------
# Building blocks
# ----------------------------------------------------------------------

def nearest_center(data: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """
    Index of the nearest center (Euclidean) for every row of ``data``.

    ``argmin`` returns the first minimum, so exact ties go to the lowest
    center index.
    """
    D = pairwise_distances(data, centers, metric="euclidean")
    return np.argmin(D, axis=1)


def _indicator_matrix(cells: np.ndarray, psi: int, sparse: bool):
    """
    Expands an (n × t) matrix of cell indices into the (n × t·psi)
    block one-hot matrix. Single place where the storage format is chosen.
    """
    n, t = cells.shape
    rows = np.repeat(np.arange(n), t)
    cols = (cells + np.arange(t) * psi).ravel()
    shape = (n, t * psi)

    if sparse:
        values = np.ones(rows.size, dtype=float)
        return sp.csr_matrix((values, (rows, cols)), shape=shape)

    F = np.zeros(shape, dtype=float)
    F[rows, cols] = 1.0
    return F


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def build_features(
    data,
    reference_data=None,
    psi: int = 16,
    t: int = 200,
    sparse: bool = True,
    random_state: RandomStateLike = None,
):
    """
    Builds the Isolation Kernel feature matrix.

    Parameters
    ----------
    data : array-like
        Query points (n_samples × n_features).
    reference_data : array-like, optional
        Points the partitions are sampled from (n_reference × n_features).
        Defaults to ``data``.
    psi : int
        Number of cells per partition. Must not exceed n_reference.
    t : int
        Number of independent random partitions.
    sparse : bool
        Return a CSR matrix instead of a dense array. Values are identical.
    random_state : None, int or np.random.RandomState
        Source of the partition sampling.

    Returns
    -------
    np.ndarray or scipy.sparse.csr_matrix
        Binary matrix (n_samples × t·psi) with exactly one nonzero per
        psi-wide block of each row; block j belongs to partition j.

    Raises
    ------
    InvalidArgumentError
        On shape mismatch, psi outside [1, n_reference] or t <= 0.
    """
    X = _as_matrix(data, "data")
    R = X if reference_data is None else _as_matrix(reference_data, "reference_data")
    _check_arguments(X, R, psi, t)

    rng = check_random_state(random_state)
    cells = np.empty((X.shape[0], t), dtype=np.intp)

    for j in range(t):
        sample = rng.choice(R.shape[0], size=psi, replace=False)
        cells[:, j] = nearest_center(X, R[sample])

    logger.debug(
        "Built %d partitions of %d cells for %d points", t, psi, X.shape[0]
    )

    return _indicator_matrix(cells, psi, sparse)


def similarity_from_features(features, t: int) -> np.ndarray:
    """
    Normalized inner product F·Fᵀ / t of an Isolation Kernel feature matrix.

    Returns
    -------
    np.ndarray
        Dense similarity matrix (n_samples × n_samples).
    """
    if t <= 0:
        raise InvalidArgumentError(f"t must be positive, got {t}")

    S = features @ features.T
    if sp.issparse(S):
        S = S.toarray()

    return np.asarray(S, dtype=float) / t


def build_similarity(
    data,
    reference_data=None,
    psi: int = 16,
    t: int = 200,
    sparse: bool = True,
    random_state: RandomStateLike = None,
) -> np.ndarray:
    """
    Isolation Kernel similarity matrix: fraction of the ``t`` partitions in
    which two points fall into the same cell.

    Accepts the same arguments and raises the same errors as
    :func:`build_features`.
    """
    F = build_features(
        data,
        reference_data=reference_data,
        psi=psi,
        t=t,
        sparse=sparse,
        random_state=random_state,
    )
    return similarity_from_features(F, t)


class IsolationKernelSimilarity(BaseSimilarity):
    """Isolation Kernel similarity."""

    def __init__(
        self,
        psi: int = 16,
        t: int = 200,
        sparse: bool = True,
        random_state: RandomStateLike = 0,
        reference_data: Optional[np.ndarray] = None,
    ):
        """
        Parameters
        ----------
        psi : int
            Number of cells per partition.
        t : int
            Number of partitions.
        sparse : bool
            Storage format of the feature matrix.
        random_state : None, int or np.random.RandomState
            With an int seed, ``features`` and ``compute`` see the same
            partitions on every call.
        reference_data : np.ndarray, optional
            Partitions are sampled from here instead of from X.
        """
        self.psi = psi
        self.t = t
        self.sparse = sparse
        self.random_state = random_state
        self.reference_data = reference_data

    def features(self, X: np.ndarray):
        return build_features(
            X,
            reference_data=self.reference_data,
            psi=self.psi,
            t=self.t,
            sparse=self.sparse,
            random_state=self.random_state,
        )

    def compute(self, X: np.ndarray) -> np.ndarray:
        return similarity_from_features(self.features(X), self.t)
