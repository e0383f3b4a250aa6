from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import matplotlib as mpl
import matplotlib.pyplot as plt
import seaborn as sns
from scipy.cluster.hierarchy import linkage
from scipy.spatial.distance import squareform
from sklearn.decomposition import PCA


# ----------------------------------------------------------------------
# Global style configuration
# ----------------------------------------------------------------------

W = "#f8f5ff"
B = "#1e1e1e"

mpl.rcParams["text.color"] = W
mpl.rcParams["axes.labelcolor"] = W
mpl.rcParams["axes.edgecolor"] = W
mpl.rcParams["axes.facecolor"] = B
mpl.rcParams["figure.facecolor"] = B
mpl.rcParams["xtick.color"] = W
mpl.rcParams["ytick.color"] = W
mpl.rcParams["font.family"] = "monospace"

DEFAULT_CMAP = "bone"
DEFAULT_CLUSTER_CMAP = "tab10"
DEFAULT_FIGSIZE = (5, 5)


class ComparisonPlotter:
    """
    Plotting utilities for comparing Euclidean and Isolation Kernel
    clusterings: distance heatmaps, clustermaps with dendrograms and
    2-D cluster scatters.
    """

    def __init__(
        self,
        cmap: str = DEFAULT_CMAP,
        cluster_cmap: str = DEFAULT_CLUSTER_CMAP,
        figsize: tuple[int, int] = DEFAULT_FIGSIZE,
    ):
        """
        Parameters
        ----------
        cmap : str
            Colormap for distance heatmaps.
        cluster_cmap : str
            Qualitative colormap for cluster labels.
        figsize : tuple
            Default figure size.
        """
        self.cmap = cmap
        self.cluster_cmap = cluster_cmap
        self.figsize = figsize

    # ------------------------------------------------------------------
    # Heatmaps
    # ------------------------------------------------------------------

    def plot_distance_heatmap(
        self,
        D: np.ndarray,
        labels: Optional[np.ndarray] = None,
        ax: Optional[plt.Axes] = None,
        title: str = "",
    ) -> plt.Axes:
        """
        Plots a distance matrix as a heatmap.

        Parameters
        ----------
        D : np.ndarray
            Distance matrix (n × n).
        labels : np.ndarray, optional
            If given, rows and columns are grouped by label so that
            block structure is visible.
        ax : plt.Axes, optional
            Axis to draw on. If None, a new one is created.
        title : str
            Plot title.

        Returns
        -------
        plt.Axes
            The axis with the plot.
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=self.figsize)

        if labels is not None:
            order = np.argsort(labels, kind="stable")
            D = D[np.ix_(order, order)]

        sns.heatmap(
            D,
            ax=ax,
            cmap=self.cmap,
            square=True,
            xticklabels=False,
            yticklabels=False,
            cbar=True,
        )
        ax.set_title(title)

        return ax

    def plot_clustermap(
        self,
        D: np.ndarray,
        method: str = "average",
        labels: Optional[np.ndarray] = None,
        title: str = "",
    ) -> sns.matrix.ClusterGrid:
        """
        Heatmap of a distance matrix reordered by hierarchical clustering,
        with dendrograms on both axes.

        Parameters
        ----------
        D : np.ndarray
            Symmetric distance matrix with zero diagonal.
        method : str
            SciPy linkage method ("average", "complete", "single", ...).
        labels : np.ndarray, optional
            Ground-truth labels shown as a colored side bar.
        title : str
            Figure title.

        Returns
        -------
        seaborn.matrix.ClusterGrid
        """
        condensed = squareform(D, checks=False)
        Z = linkage(condensed, method=method)

        colors = None
        if labels is not None:
            palette = sns.color_palette(self.cluster_cmap, len(np.unique(labels)))
            _, codes = np.unique(labels, return_inverse=True)
            colors = [palette[c] for c in codes]

        grid = sns.clustermap(
            D,
            row_linkage=Z,
            col_linkage=Z,
            cmap=self.cmap,
            row_colors=colors,
            xticklabels=False,
            yticklabels=False,
            figsize=(self.figsize[0] * 1.6, self.figsize[1] * 1.6),
        )
        grid.figure.suptitle(title)

        return grid

    # ------------------------------------------------------------------
    # Cluster scatter
    # ------------------------------------------------------------------

    def plot_cluster_scatter(
        self,
        X: np.ndarray,
        labels: np.ndarray,
        ax: Optional[plt.Axes] = None,
        title: str = "",
    ) -> plt.Axes:
        """
        Scatter of the first two principal components, colored by cluster.
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=self.figsize)

        X = np.asarray(X, dtype=float)
        if X.shape[1] > 2:
            X = PCA(n_components=2).fit_transform(X)

        ax.scatter(X[:, 0], X[:, 1], c=labels, cmap=self.cluster_cmap, s=15)
        ax.set_xticks([])
        ax.set_yticks([])
        ax.set_title(title)

        return ax

    def plot_comparison_grid(
        self,
        X: np.ndarray,
        clusterings: Dict[str, np.ndarray],
        save: bool = False,
        path: Optional[str | Path] = None,
    ) -> plt.Figure:
        """
        One scatter panel per clustering, side by side.

        Parameters
        ----------
        X : np.ndarray
            Feature matrix used for the 2-D projection.
        clusterings : dict
            Mapping name → labels.
        save : bool
            Whether to save the figure.
        path : str or Path, optional
            Path to save the figure if save=True.
        """
        names = list(clusterings.keys())
        fig, axes = plt.subplots(
            1, len(names),
            figsize=(self.figsize[0] * len(names), self.figsize[1]),
            squeeze=False,
        )

        for ax, name in zip(axes[0], names):
            self.plot_cluster_scatter(X, clusterings[name], ax=ax, title=name)

        if save and path is not None:
            save_figure(fig, path)

        return fig

    # ------------------------------------------------------------------
    # psi search
    # ------------------------------------------------------------------

    def plot_psi_search(
        self,
        results: List[Dict],
        ax: Optional[plt.Axes] = None,
        score_key: str = "score",
    ) -> plt.Axes:
        """
        Line plot of the grid-search score against psi (log scale).
        """
        if ax is None:
            fig, ax = plt.subplots(figsize=self.figsize)

        psis = [r["psi"] for r in results]
        scores = [r[score_key] for r in results]

        ax.plot(psis, scores, marker="o", color=W)
        ax.set_xscale("log", base=2)
        ax.set_xlabel("psi")
        ax.set_ylabel(score_key)
        ax.set_title("Isolation Kernel psi search")

        return ax


def save_figure(fig: plt.Figure, path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, format="png", bbox_inches="tight")
