"""Smoke tests for the plotting helpers and the pipeline scripts."""

import json
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pytest
import yaml
from sklearn.metrics import pairwise_distances

from isokernel.visualization.plots import ComparisonPlotter, save_figure


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


def test_distance_heatmap(blobs):
    X, y = blobs
    ax = ComparisonPlotter().plot_distance_heatmap(pairwise_distances(X), labels=y, title="d")

    assert ax.get_title() == "d"


def test_clustermap_has_dendrograms(blobs, tmp_path):
    X, y = blobs
    grid = ComparisonPlotter().plot_clustermap(pairwise_distances(X), labels=y)

    assert len(grid.dendrogram_row.reordered_ind) == X.shape[0]
    save_figure(grid.figure, tmp_path / "cm.png")
    assert (tmp_path / "cm.png").exists()


def test_comparison_grid_saves(blobs, tmp_path):
    X, y = blobs
    path = tmp_path / "plots" / "grid.png"

    fig = ComparisonPlotter().plot_comparison_grid(
        X, {"truth": y, "shifted": (y + 1) % 3}, save=True, path=path
    )

    assert len(fig.axes) == 2
    assert path.exists()


def test_psi_search_plot():
    results = [{"psi": 2, "score": 0.4}, {"psi": 4, "score": 0.6}, {"psi": 8, "score": 0.5}]

    ax = ComparisonPlotter().plot_psi_search(results)

    assert ax.get_xlabel() == "psi"


def test_pipeline_end_to_end(in_tmp_dir):
    from scripts.run_pipeline import run_pipeline
    from scripts.update_optimal_config import update_optimal_config

    summary = run_pipeline(
        psi=8,
        t=50,
        optimize_psi=True,
        stability=False,
        make_plots=True,
    )

    assert summary["status"] == "completed"
    run_dir = Path("results/runs") / summary["session_id"]
    assert (run_dir / "plots" / "distance_heatmaps.png").exists()
    assert (run_dir / "plots" / "psi_search.png").exists()
    assert (run_dir / "metrics" / "isolation_similarity.npy").exists()
    assert set(summary["ami"]) == {
        "euclidean_kmeans", "euclidean_kmedoids", "isolation_kmeans", "isolation_kmedoids",
    }

    with open(run_dir / "metrics" / "psi_search_metrics.json") as f:
        optimal_psi = json.load(f)["optimal_psi"]
    assert summary["psi"] == optimal_psi

    Path("config.yaml").write_text(yaml.dump({"profiles": {"default": {}}}))
    assert update_optimal_config(summary["session_id"])

    config = yaml.safe_load(Path("config.yaml").read_text())
    assert config["profiles"]["optimized"]["kernel"]["psi"] == optimal_psi


def test_update_config_without_sessions(in_tmp_dir):
    from scripts.update_optimal_config import update_optimal_config

    assert update_optimal_config() is False


def _read_json(path):
    with open(path) as f:
        return json.load(f)


def test_pipeline_records_failed_stage_and_ends_session(in_tmp_dir):
    from scripts.run_pipeline import run_pipeline
    from isokernel.utils.session import SessionManager

    # Iris has 150 samples, so psi=500 cannot be sampled
    summary = run_pipeline(psi=500, make_plots=False, stability=False)

    assert summary["status"] == "failed"
    assert summary["ami"] == {}
    failed = [s for s in summary["stages"] if s["status"] == "failed"]
    assert [s["stage"] for s in failed] == ["comparison"]
    assert "psi" in failed[0]["error"]

    run_dir = Path("results/runs") / summary["session_id"]
    assert not Path(SessionManager.SESSION_FILE).exists()
    assert _read_json(run_dir / "session.json")["status"] == "failed"
    assert _read_json(run_dir / "metrics" / "metrics.json")["execution_summary"]["status"] == "failed"
    assert "NOK! comparison failed" in (run_dir / "logs" / "pipeline.log").read_text(encoding="utf-8")


def test_pipeline_records_missing_dataset(in_tmp_dir):
    from scripts.run_pipeline import run_pipeline

    summary = run_pipeline(dataset="missing.csv", make_plots=False)

    assert [(s["stage"], s["status"]) for s in summary["stages"]] == [("dataset", "failed")]
    assert "missing.csv" in summary["stages"][0]["error"]
    assert summary["status"] == "failed"


def test_pipeline_rejects_invalid_override_before_session(in_tmp_dir):
    from scripts.run_pipeline import run_pipeline

    with pytest.raises(ValueError, match="kernel.t"):
        run_pipeline(t=0)

    assert not Path("results/runs").exists()


def test_pipeline_passes_sparse_setting_to_stability(in_tmp_dir, monkeypatch):
    import scripts.run_pipeline as pipeline
    from isokernel.evaluation.seed_stability import SeedStabilityAnalyzer

    created = []

    class RecordingAnalyzer(SeedStabilityAnalyzer):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            created.append(self)

    monkeypatch.setattr(pipeline, "SeedStabilityAnalyzer", RecordingAnalyzer)
    Path("config.yaml").write_text(yaml.dump({
        "profiles": {
            "default": {
                "kernel": {"sparse": False, "t": 30},
                "evaluation": {"seeds": [0, 1]},
            },
        }
    }))

    summary = pipeline.run_pipeline(make_plots=False)

    assert summary["status"] == "completed"
    assert [a.sparse for a in created] == [False]
    stability = _read_json(Path("results/runs") / summary["session_id"] / "metrics" / "stability_metrics.json")
    assert stability["sparse"] is False
    assert set(stability["summary"]) == {"kmeans", "kmedoids"}


def test_update_config_from_saved_search(in_tmp_dir):
    from scripts.update_optimal_config import update_optimal_config
    from isokernel.utils.config import DEFAULT_CONFIG
    from isokernel.utils.session import SessionManager

    session = SessionManager.create_session(config=DEFAULT_CONFIG)
    session.save_metric("optimal_psi", 8, stage="psi_search")
    SessionManager.end_session()

    config_path = in_tmp_dir / "config.yaml"
    config_path.write_text(yaml.dump({
        "profiles": {
            "default": {"kernel": {"psi": 16, "t": 200}},
            "optimized": {"kernel": {"psi": 32}, "clustering": {"optimize_psi": True}},
            "wine": {"dataset": {"name": "wine"}},
        }
    }))

    assert update_optimal_config(session.session_id, config_path=config_path)

    profiles = yaml.safe_load(config_path.read_text())["profiles"]
    assert profiles["optimized"]["kernel"]["psi"] == 8
    assert profiles["optimized"]["clustering"]["optimize_psi"] is False
    assert profiles["optimized"]["_updated"]["session"] == session.session_id
    assert profiles["default"] == {"kernel": {"psi": 16, "t": 200}}
    assert profiles["wine"] == {"dataset": {"name": "wine"}}


def test_update_config_without_search_results(in_tmp_dir):
    from scripts.update_optimal_config import update_optimal_config
    from isokernel.utils.config import DEFAULT_CONFIG
    from isokernel.utils.session import SessionManager

    SessionManager.create_session(config=DEFAULT_CONFIG)
    SessionManager.end_session()
    (in_tmp_dir / "config.yaml").write_text(yaml.dump({"profiles": {"default": {}}}))

    assert update_optimal_config() is False
    assert "optimized" not in yaml.safe_load((in_tmp_dir / "config.yaml").read_text())["profiles"]