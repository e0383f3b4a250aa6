"""
Update config.yaml with the psi found by a pipeline run's grid search.

Reads ``metrics/psi_search_metrics.json`` of a session and writes the optimal
psi into the 'optimized' profile of config.yaml.

Usage:
    python scripts/update_optimal_config.py
    python scripts/update_optimal_config.py --session run_2026-10-18_14-30-45
"""

import sys
import json
import argparse
import logging
from pathlib import Path

import yaml

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from isokernel.utils.session import SessionManager
from isokernel.utils.logger import setup_logger


logger = logging.getLogger("isokernel.update_config")


def update_optimal_config(session_id: str = None, config_path: Path = Path("config.yaml")) -> bool:
    """
    Update config.yaml with the optimal psi from a session.

    Parameters
    ----------
    session_id : str, optional
        Session ID to read results from. If None, uses the latest session.
    config_path : Path
        Configuration file to update.

    Returns
    -------
    bool
        True if the config was updated.
    """
    config_path = Path(config_path)
    runs_dir = Path(SessionManager.RUNS_DIR)

    if session_id:
        session_dir = runs_dir / session_id
    else:
        sessions = sorted(runs_dir.glob("run_*")) if runs_dir.exists() else []
        if not sessions:
            logger.error("NOK! No sessions found. Run the pipeline first.")
            return False
        session_dir = sessions[-1]
        session_id = session_dir.name

    metrics_file = session_dir / "metrics" / "psi_search_metrics.json"
    if not metrics_file.exists():
        logger.error(
            f"NOK! No psi search results in session {session_id}. "
            "Run the pipeline with --optimize-psi."
        )
        return False

    with open(metrics_file, "r") as f:
        metrics = json.load(f)

    optimal_psi = int(metrics["optimal_psi"])
    logger.info(f"OK! Optimal psi from {session_id}: {optimal_psi}")

    if not config_path.exists():
        logger.error(f"NOK! {config_path} not found!")
        return False

    with open(config_path, "r") as f:
        config = yaml.safe_load(f) or {}

    profiles = config.setdefault("profiles", {})
    optimized = profiles.setdefault("optimized", {})

    optimized.setdefault("kernel", {})["psi"] = optimal_psi
    # Already optimized
    optimized.setdefault("clustering", {})["optimize_psi"] = False
    optimized["_updated"] = {
        "session": session_id,
        "note": "Auto-updated from psi grid search",
    }

    with open(config_path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)

    logger.info(f"OK! {config_path} updated. Run with --profile optimized")
    return True


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Update config.yaml with the optimal psi from a pipeline run"
    )
    parser.add_argument(
        "--session",
        type=str,
        help="Session ID to read results from (default: latest)"
    )

    args = parser.parse_args()
    setup_logger("isokernel")

    if not update_optimal_config(args.session):
        sys.exit(1)


if __name__ == "__main__":
    main()
