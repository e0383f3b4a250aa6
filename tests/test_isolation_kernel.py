"""Tests for the Isolation Kernel feature and similarity builders."""

import numpy as np
import pytest
from scipy import sparse as sp

from isokernel.similarity.isolation_kernel import (
    InvalidArgumentError,
    IsolationKernelSimilarity,
    build_features,
    build_similarity,
    nearest_center,
    similarity_from_features,
)


def _dense(F):
    return F.toarray() if sp.issparse(F) else F


# =============================================================================
# build_features
# =============================================================================


@pytest.mark.parametrize("sparse", [True, False])
def test_features_shape_and_one_hot_blocks(blobs, sparse):
    X, _ = blobs
    psi, t = 5, 12

    F = build_features(X, psi=psi, t=t, sparse=sparse, random_state=0)

    assert sp.issparse(F) == sparse
    assert F.shape == (X.shape[0], t * psi)

    dense = _dense(F)
    assert set(np.unique(dense)) <= {0.0, 1.0}
    np.testing.assert_array_equal(dense.sum(axis=1), np.full(X.shape[0], t))

    blocks = dense.reshape(X.shape[0], t, psi)
    np.testing.assert_array_equal(blocks.sum(axis=2), np.ones((X.shape[0], t)))


def test_sparse_and_dense_are_identical(blobs):
    X, _ = blobs

    F_sparse = build_features(X, psi=8, t=20, sparse=True, random_state=7)
    F_dense = build_features(X, psi=8, t=20, sparse=False, random_state=7)

    np.testing.assert_array_equal(F_sparse.toarray(), F_dense)


def test_same_seed_gives_identical_output(blobs):
    X, _ = blobs

    a = build_features(X, psi=4, t=30, sparse=False, random_state=123)
    b = build_features(X, psi=4, t=30, sparse=False, random_state=123)

    np.testing.assert_array_equal(a, b)


def test_shared_random_state_is_consumed(blobs):
    X, _ = blobs
    rng = np.random.RandomState(0)

    a = build_features(X, psi=4, t=30, sparse=False, random_state=rng)
    b = build_features(X, psi=4, t=30, sparse=False, random_state=rng)

    assert not np.array_equal(a, b)


def test_separate_reference_set():
    rng = np.random.RandomState(1)
    X = rng.rand(4, 3)
    R = rng.rand(10, 3)

    F = build_features(X, reference_data=R, psi=3, t=7, sparse=False, random_state=0)

    assert F.shape == (4, 21)
    np.testing.assert_array_equal(F.sum(axis=1), np.full(4, 7))


def test_psi_equal_to_reference_size_assigns_each_point_to_itself(two_clusters):
    X, _ = two_clusters

    F = build_features(X, psi=X.shape[0], t=3, sparse=False, random_state=0)
    blocks = F.reshape(X.shape[0], 3, X.shape[0])

    # Within each block, distinct points occupy distinct cells
    for j in range(3):
        cells = blocks[:, j, :].argmax(axis=1)
        assert len(set(cells)) == X.shape[0]


# =============================================================================
# Errors
# =============================================================================


def test_psi_larger_than_reference_raises(two_clusters):
    X, _ = two_clusters
    with pytest.raises(InvalidArgumentError):
        build_features(X, psi=7, t=5)


def test_zero_partitions_raises(two_clusters):
    X, _ = two_clusters
    with pytest.raises(InvalidArgumentError):
        build_features(X, psi=2, t=0)


def test_non_positive_psi_raises(two_clusters):
    X, _ = two_clusters
    with pytest.raises(InvalidArgumentError):
        build_features(X, psi=0, t=5)


def test_column_mismatch_raises(two_clusters):
    X, _ = two_clusters
    with pytest.raises(InvalidArgumentError):
        build_features(X, reference_data=np.zeros((6, 3)), psi=2, t=5)


def test_one_dimensional_data_raises():
    with pytest.raises(InvalidArgumentError):
        build_features(np.arange(5.0), psi=2, t=5)


def test_invalid_argument_is_a_value_error(two_clusters):
    X, _ = two_clusters
    with pytest.raises(ValueError):
        build_similarity(X, psi=10, t=5)


# =============================================================================
# Similarity
# =============================================================================


@pytest.mark.parametrize("sparse", [True, False])
def test_similarity_properties(blobs, sparse):
    X, _ = blobs

    S = build_similarity(X, psi=6, t=40, sparse=sparse, random_state=3)

    assert isinstance(S, np.ndarray)
    assert S.shape == (X.shape[0], X.shape[0])
    np.testing.assert_array_equal(S, S.T)
    np.testing.assert_array_equal(np.diag(S), np.ones(X.shape[0]))
    assert S.min() >= 0.0
    assert S.max() <= 1.0


def test_similarity_matches_normalized_inner_product(blobs):
    X, _ = blobs
    t = 25

    F = build_features(X, psi=4, t=t, sparse=False, random_state=11)
    S = build_similarity(X, psi=4, t=t, sparse=False, random_state=11)

    np.testing.assert_allclose(S, F @ F.T / t)


def test_similarity_with_psi_equal_to_size_is_identity(two_clusters):
    X, _ = two_clusters

    for seed in range(3):
        S = build_similarity(X, psi=6, t=10, random_state=seed)
        np.testing.assert_array_equal(S, np.eye(6))


def test_same_cluster_points_are_more_similar(two_clusters):
    X, y = two_clusters
    same = y[:, None] == y[None, :]
    off_diagonal = ~np.eye(len(y), dtype=bool)

    S = np.mean(
        [build_similarity(X, psi=2, t=50, random_state=seed) for seed in range(10)],
        axis=0,
    )

    assert S[same & off_diagonal].mean() > 0.7
    assert S[~same].mean() < 0.3


def test_similarity_from_features_rejects_zero_t():
    with pytest.raises(InvalidArgumentError):
        similarity_from_features(np.eye(3), 0)


# =============================================================================
# Nearest center
# =============================================================================


def test_nearest_center_breaks_ties_by_lowest_index():
    data = np.array([[0.0, 0.0], [0.9, 0.0]])
    centers = np.array([[1.0, 0.0], [-1.0, 0.0]])

    np.testing.assert_array_equal(nearest_center(data, centers), [0, 0])


def test_nearest_center_picks_closest():
    data = np.array([[0.0, 0.0], [10.0, 10.0]])
    centers = np.array([[9.0, 9.0], [1.0, 1.0]])

    np.testing.assert_array_equal(nearest_center(data, centers), [1, 0])


# =============================================================================
# IsolationKernelSimilarity
# =============================================================================


def test_similarity_class_is_consistent_with_its_features(blobs):
    X, _ = blobs
    ik = IsolationKernelSimilarity(psi=8, t=30, random_state=5)

    F = ik.features(X)
    S = ik.compute(X)

    np.testing.assert_allclose(S, similarity_from_features(F, 30))


def test_similarity_class_distance(blobs):
    X, _ = blobs
    ik = IsolationKernelSimilarity(psi=8, t=30, random_state=5)

    D = ik.distance(X)

    np.testing.assert_array_equal(np.diag(D), np.zeros(X.shape[0]))
    np.testing.assert_allclose(D, 1.0 - ik.compute(X))
    assert D.min() >= 0.0
