"""Shared pytest fixtures: small seeded data sets."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest


@pytest.fixture
def two_clusters():
    """Six 2-D points: two well-separated groups of three."""
    X = np.array([
        [0.0, 0.0],
        [0.1, 0.0],
        [0.0, 0.1],
        [5.0, 5.0],
        [5.1, 5.0],
        [5.0, 5.1],
    ])
    y = np.array([0, 0, 0, 1, 1, 1])
    return X, y


@pytest.fixture
def blobs():
    """60 samples, 4 features, 3 well-separated clusters."""
    rng = np.random.RandomState(42)
    centers = np.array([
        [0.0, 0.0, 0.0, 0.0],
        [6.0, 6.0, 0.0, 0.0],
        [0.0, 6.0, 6.0, 6.0],
    ])
    X = np.vstack([c + rng.randn(20, 4) * 0.4 for c in centers])
    y = np.repeat(np.arange(3), 20)
    return X, y


@pytest.fixture
def in_tmp_dir(tmp_path, monkeypatch):
    """Runs the test from an empty working directory."""
    monkeypatch.chdir(tmp_path)
    return tmp_path
