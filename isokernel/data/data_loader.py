from __future__ import annotations
import logging
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Optional, List

from sklearn.datasets import load_iris, load_wine, load_breast_cancer
from sklearn.preprocessing import MinMaxScaler, StandardScaler


logger = logging.getLogger(__name__)

BUILTIN_DATASETS = {
    "iris": load_iris,
    "wine": load_wine,
    "breast_cancer": load_breast_cancer,
}

NORMALIZERS = {
    "minmax": MinMaxScaler,
    "standard": StandardScaler,
}


class ClusteringDataset:
    """
    Wrapper around a small labelled tabular dataset.
    Handles loading, normalization, and access to features and labels.
    """

    def __init__(
        self,
        source: str | Path = "iris",
        normalization: Optional[str] = "minmax",
        label_column: int = -1,
    ):
        """
        Parameters
        ----------
        source : str or Path
            Name of a built-in scikit-learn dataset ("iris", "wine",
            "breast_cancer") or path to a CSV file with a header row.
        normalization : {"minmax", "standard", None}
            Per-feature scaling applied after loading.
        label_column : int
            Column of the CSV holding the class label.
        """
        if normalization is not None and normalization not in NORMALIZERS:
            raise ValueError(
                f"Unknown normalization: {normalization}. "
                f"Expected one of {sorted(NORMALIZERS)} or None."
            )

        self.source = source
        self.normalization = normalization
        self.label_column = label_column

        self.name = Path(str(source)).stem
        self.X: Optional[np.ndarray] = None
        self.y: Optional[np.ndarray] = None
        self.feature_names: List[str] = []
        self.target_names: List[str] = []

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_arrays(
        cls,
        X: np.ndarray,
        y: Optional[np.ndarray] = None,
        name: str = "custom",
        normalization: Optional[str] = None,
    ) -> ClusteringDataset:
        """
        Builds an already-loaded dataset from in-memory arrays.
        """
        dataset = cls(source=name, normalization=normalization)
        X = np.asarray(X, dtype=float)
        dataset.feature_names = [f"x{i}" for i in range(X.shape[1])]
        dataset.X = dataset._normalize(X)

        if y is not None:
            dataset.y, dataset.target_names = _encode_labels(np.asarray(y))

        return dataset

    def load(self) -> None:
        """
        Loads the dataset and applies the configured normalization.
        """
        if str(self.source) in BUILTIN_DATASETS:
            bunch = BUILTIN_DATASETS[str(self.source)]()
            X = np.asarray(bunch.data, dtype=float)
            self.y = np.asarray(bunch.target, dtype=int)
            self.feature_names = list(bunch.feature_names)
            self.target_names = [str(t) for t in bunch.target_names]
        else:
            X = self._load_csv(Path(self.source))

        self.X = self._normalize(X)

        logger.info(
            "Loaded dataset '%s': %d samples, %d features, %d classes",
            self.name,
            self.X.shape[0],
            self.X.shape[1],
            len(self.target_names),
        )

    def _load_csv(self, path: Path) -> np.ndarray:
        if not path.exists():
            raise FileNotFoundError(f"Dataset file not found: {path}")

        df = pd.read_csv(path, skipinitialspace=True)

        label_idx = self.label_column % df.shape[1]
        features = df.drop(columns=df.columns[label_idx])

        self.feature_names = [str(c).strip() for c in features.columns]
        self.y, self.target_names = _encode_labels(
            df.iloc[:, label_idx].astype(str).str.strip().to_numpy()
        )

        return features.to_numpy(dtype=float)

    def _normalize(self, X: np.ndarray) -> np.ndarray:
        if self.normalization is None:
            return X
        return NORMALIZERS[self.normalization]().fit_transform(X)

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_features(self) -> np.ndarray:
        """
        Returns the (normalized) feature matrix.
        """
        if self.X is None:
            raise RuntimeError("Dataset not loaded. Call load() first.")

        return self.X

    def get_labels(self) -> np.ndarray:
        """
        Returns the ground-truth labels as integers.
        """
        if self.X is None:
            raise RuntimeError("Dataset not loaded. Call load() first.")
        if self.y is None:
            raise RuntimeError(f"Dataset '{self.name}' has no labels.")

        return self.y

    @property
    def n_classes(self) -> int:
        return len(self.target_names)


def _encode_labels(values: np.ndarray):
    """
    Maps arbitrary label values to 0..k-1, keeping the sorted unique values
    as target names.
    """
    uniques, encoded = np.unique(values, return_inverse=True)
    return encoded.astype(int), [str(u) for u in uniques]
