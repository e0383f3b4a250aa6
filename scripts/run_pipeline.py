"""
Master pipeline script for the Isolation Kernel clustering comparison.

Loads a dataset, clusters it under the Euclidean and Isolation Kernel views
with k-means and k-medoids, scores every clustering against the ground truth
(AMI), and saves metrics and plots to a new session folder.

Usage:
    python scripts/run_pipeline.py --profile default
    python scripts/run_pipeline.py --dataset wine --psi 8 --t 500
    python scripts/run_pipeline.py --profile optimized --seed 3
"""

import sys
import argparse
import logging
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from isokernel.utils.session import SessionManager
from isokernel.utils.logger import setup_logger, close_logger
from isokernel.utils.config import load_config, get_param, validate_config
from isokernel.data.data_loader import ClusteringDataset
from isokernel.clustering.multiview_clustering import MultiViewClustering
from isokernel.clustering.psi_optimizer import PsiOptimizer
from isokernel.evaluation.seed_stability import SeedStabilityAnalyzer
from isokernel.visualization.plots import ComparisonPlotter, save_figure


def _apply_overrides(config, dataset=None, psi=None, t=None, seed=None, optimize_psi=False):
    if dataset is not None:
        config["dataset"]["name"] = dataset
    if psi is not None:
        config["kernel"]["psi"] = psi
    if t is not None:
        config["kernel"]["t"] = t
    if seed is not None:
        config["clustering"]["random_state"] = seed
    if optimize_psi:
        config["clustering"]["optimize_psi"] = True
    return config


def _save_plots(session, plotter, X, y, result, logger):
    views = result["views"]

    fig, axes = plt.subplots(1, 2, figsize=(12, 5))
    plotter.plot_distance_heatmap(views["euclidean"][1], labels=y, ax=axes[0], title="Euclidean distance")
    plotter.plot_distance_heatmap(views["isolation"][1], labels=y, ax=axes[1], title="Isolation Kernel distance")
    save_figure(fig, session.get_plot_path("distance_heatmaps.png"))
    plt.close(fig)

    for name, (_, D) in views.items():
        grid = plotter.plot_clustermap(D, labels=y, title=f"{name} distance")
        save_figure(grid.figure, session.get_plot_path(f"clustermap_{name}.png"))
        plt.close(grid.figure)

    fig = plotter.plot_comparison_grid(
        X,
        result["clusterings"],
        save=True,
        path=session.get_plot_path("clusterings.png"),
    )
    plt.close(fig)

    logger.info(f"Plots saved to {session.plots_dir}")


def run_pipeline(
    profile: str = "default",
    dataset: str = None,
    psi: int = None,
    t: int = None,
    seed: int = None,
    optimize_psi: bool = False,
    make_plots: bool = True,
    stability: bool = True,
    verbose: bool = False,
):
    """
    Run the complete pipeline.

    Parameters
    ----------
    profile : str
        Configuration profile to use.
    dataset : str, optional
        Dataset name or CSV path; overrides the profile.
    psi, t : int, optional
        Isolation Kernel parameters; override the profile.
    seed : int, optional
        Random seed; overrides the profile.
    optimize_psi : bool
        Run the psi grid search before clustering.
    make_plots : bool
        Whether to save heatmaps and scatter plots.
    stability : bool
        Whether to run the seed stability analysis.
    verbose : bool
        Log at DEBUG level.

    Returns
    -------
    dict
        Execution summary, with a per-stage status list and the session
        end status ("completed" or "failed").
    """
    config = _apply_overrides(load_config(profile), dataset, psi, t, seed, optimize_psi)
    validate_config(config)

    session = SessionManager.create_session(
        profile=profile,
        description=f"Isolation Kernel comparison on {config['dataset']['name']}",
        config=config,
    )

    logger = setup_logger(
        "isokernel",
        log_file=session.logs_dir / "pipeline.log",
        level=logging.DEBUG if verbose else logging.INFO,
    )

    logger.info(f"Starting pipeline with profile: {profile}")
    logger.info(f"Session ID: {session.session_id}")

    n_clusters = get_param(config, "clustering.n_clusters")
    random_state = get_param(config, "clustering.random_state")
    kernel_t = get_param(config, "kernel.t")
    kernel_psi = get_param(config, "kernel.psi")
    kernel_sparse = get_param(config, "kernel.sparse")
    methods = get_param(config, "clustering.methods")

    stages = []
    summary = {
        "session_id": session.session_id,
        "profile": profile,
        "dataset": str(get_param(config, "dataset.name")),
        "psi": kernel_psi,
        "t": kernel_t,
        "stages": stages,
        "ami": {},
    }
    finished = False

    try:
        # Dataset
        data = None
        try:
            data = ClusteringDataset(
                get_param(config, "dataset.name"),
                normalization=get_param(config, "dataset.normalization"),
            )
            data.load()
            X, y = data.get_features(), data.get_labels()
            summary["dataset"] = data.name
            stages.append({"stage": "dataset", "status": "success"})
        except (OSError, ValueError, RuntimeError) as e:
            logger.error(f"NOK! dataset loading failed: {e}")
            stages.append({"stage": "dataset", "status": "failed", "error": str(e)})
            data = None

        # psi grid search
        if data is not None and get_param(config, "clustering.optimize_psi"):
            logger.info("Searching psi...")
            try:
                optimizer = PsiOptimizer(
                    method="kmeans",
                    metric="ami",
                    t=kernel_t,
                    n_clusters=n_clusters,
                    random_state=random_state,
                )
                search = optimizer.grid_search(
                    X,
                    psi_range=get_param(config, "clustering.psi_range"),
                    labels_true=y,
                )
                kernel_psi = search["optimal_psi"]
                summary["psi"] = kernel_psi
                session.save_metric("optimal_psi", kernel_psi, stage="psi_search")
                session.save_metric("results", search["results"], stage="psi_search")

                if make_plots:
                    plotter = ComparisonPlotter()
                    ax = plotter.plot_psi_search(search["results"])
                    save_figure(ax.figure, session.get_plot_path("psi_search.png"))
                    plt.close(ax.figure)

                stages.append({"stage": "psi_search", "status": "success"})
            except ValueError as e:
                logger.error(f"NOK! psi search failed: {e}")
                stages.append({"stage": "psi_search", "status": "failed", "error": str(e)})

        # Multi-view clustering
        result = None
        if data is not None:
            try:
                mvc = MultiViewClustering(
                    psi=kernel_psi,
                    t=kernel_t,
                    sparse=kernel_sparse,
                    n_clusters=n_clusters,
                    methods=methods,
                    random_state=random_state,
                    n_init=get_param(config, "clustering.n_init"),
                )
                result = mvc.run(X, labels_true=y)

                session.save_metric("psi", kernel_psi, stage="comparison")
                session.save_metric("t", kernel_t, stage="comparison")
                session.save_metric("truth_scores", result["truth_scores"], stage="comparison")
                session.save_metric("pairwise", result["comparisons"], stage="comparison")
                session.save_array("isolation_similarity", result["similarity"])
                summary["ami"] = {name: s["AMI"] for name, s in result["truth_scores"].items()}
                stages.append({"stage": "comparison", "status": "success"})
            except ValueError as e:
                logger.error(f"NOK! comparison failed: {e}")
                stages.append({"stage": "comparison", "status": "failed", "error": str(e)})
                result = None

        # Seed stability
        if result is not None and stability:
            try:
                analyzer = SeedStabilityAnalyzer(
                    psi=kernel_psi,
                    t=kernel_t,
                    n_clusters=n_clusters,
                    methods=methods,
                    sparse=kernel_sparse,
                )
                stab = analyzer.analyze(X, y, seeds=get_param(config, "evaluation.seeds"))
                session.save_metric("sparse", kernel_sparse, stage="stability")
                session.save_metric("summary", stab["summary"], stage="stability")
                session.save_metric("ami_scores", stab["ami_scores"], stage="stability")
                session.save_metric(
                    "within_between",
                    analyzer.within_between(stab["mean_similarity"], y),
                    stage="stability",
                )
                stages.append({"stage": "stability", "status": "success"})
            except ValueError as e:
                logger.error(f"NOK! stability analysis failed: {e}")
                stages.append({"stage": "stability", "status": "failed", "error": str(e)})

        if result is not None and make_plots:
            try:
                _save_plots(session, ComparisonPlotter(), X, y, result, logger)
                stages.append({"stage": "plots", "status": "success"})
            except Exception as e:
                logger.error(f"NOK! plotting failed: {e}")
                stages.append({"stage": "plots", "status": "failed", "error": str(e)})

        finished = True

    finally:
        failed = [s["stage"] for s in stages if s["status"] == "failed"]
        status = "completed" if finished and not failed else "failed"
        summary["status"] = status
        session.save_metric("execution_summary", summary)

        logger.info(f"{'=' * 60}")
        if status == "completed":
            logger.info("Pipeline execution completed")
        else:
            logger.error(f"Pipeline execution failed (stages: {', '.join(failed) or 'unhandled error'})")
        for name, ami in summary["ami"].items():
            logger.info(f"  {name:<20} AMI = {ami:.3f}")
        logger.info(f"{'=' * 60}")

        SessionManager.end_session(status=status)
        close_logger(logger)

    return summary


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Compare Euclidean and Isolation Kernel clustering"
    )
    parser.add_argument(
        "--profile",
        type=str,
        default="default",
        help="Configuration profile to use"
    )
    parser.add_argument("--dataset", type=str, help="Dataset name or CSV path")
    parser.add_argument("--psi", type=int, help="Cells per partition")
    parser.add_argument("--t", type=int, help="Number of partitions")
    parser.add_argument("--seed", type=int, help="Random seed")
    parser.add_argument(
        "--optimize-psi",
        action="store_true",
        help="Grid-search psi against the ground-truth labels"
    )
    parser.add_argument("--no-plots", action="store_true", help="Skip plots")
    parser.add_argument(
        "--no-stability",
        action="store_true",
        help="Skip the seed stability analysis"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )

    args = parser.parse_args()

    summary = run_pipeline(
        profile=args.profile,
        dataset=args.dataset,
        psi=args.psi,
        t=args.t,
        seed=args.seed,
        optimize_psi=args.optimize_psi,
        make_plots=not args.no_plots,
        stability=not args.no_stability,
        verbose=args.verbose,
    )

    if summary["status"] != "completed":
        sys.exit(1)


if __name__ == "__main__":
    main()
