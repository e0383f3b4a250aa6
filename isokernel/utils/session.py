"""
Session management for tracking pipeline runs.

A session is one pipeline run: a timestamped folder under ``results/runs``
holding the resolved configuration, logs, metrics, arrays and plots.
"""

from __future__ import annotations
import os
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any
import warnings

import numpy as np


logger = logging.getLogger(__name__)


def _to_builtin(value: Any) -> Any:
    """Converts NumPy scalars/arrays nested in dicts and lists to JSON types."""
    if isinstance(value, dict):
        return {str(k): _to_builtin(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_builtin(v) for v in value]
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


class SessionManager:
    """
    Manages execution sessions for the Isolation Kernel pipeline.

    The id of the active session is kept in ``SESSION_FILE`` so that
    separate scripts of one run write to the same folder.
    """

    SESSION_FILE = ".current_session"
    RUNS_DIR = "results/runs"

    def __init__(self, session_id: str, run_dir: Path, config: Dict[str, Any]):
        """
        Parameters
        ----------
        session_id : str
            Unique identifier for this session.
        run_dir : Path
            Directory where session outputs are stored.
        config : dict
            Configuration parameters for this session.
        """
        self.session_id = session_id
        self.run_dir = Path(run_dir)
        self.config = config
        self.start_time = datetime.now()

        self.logs_dir = self.run_dir / "logs"
        self.metrics_dir = self.run_dir / "metrics"
        self.plots_dir = self.run_dir / "plots"

        for dir_path in [self.logs_dir, self.metrics_dir, self.plots_dir]:
            dir_path.mkdir(parents=True, exist_ok=True)

    @classmethod
    def create_session(
        cls,
        profile: str = "default",
        description: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
    ) -> SessionManager:
        """
        Create a new session and mark it as the active one.

        Parameters
        ----------
        profile : str
            Configuration profile to use ("default" or "optimized").
        description : str, optional
            Human-readable description of this run.
        config : dict, optional
            Already-resolved configuration. Loaded from ``profile`` if None.

        Returns
        -------
        SessionManager
            New session instance.
        """
        from .config import load_config

        session_id = datetime.now().strftime("run_%Y-%m-%d_%H-%M-%S")
        run_dir = Path(cls.RUNS_DIR) / session_id

        # Two runs within the same second get a numeric suffix
        suffix = 1
        while run_dir.exists():
            suffix += 1
            run_dir = Path(cls.RUNS_DIR) / f"{session_id}_{suffix}"
        session_id = run_dir.name

        if config is None:
            config = load_config(profile)

        session = cls(session_id, run_dir, config)

        metadata = {
            "session_id": session_id,
            "profile": profile,
            "dataset": config.get("dataset", {}).get("name"),
            "description": description or f"Pipeline run with {profile} profile",
            "start_time": session.start_time.isoformat(),
            "config": config
        }

        with open(session.run_dir / "session.json", "w") as f:
            json.dump(_to_builtin(metadata), f, indent=2)

        with open(cls.SESSION_FILE, "w") as f:
            f.write(session_id)

        logger.info("Session created: %s (profile=%s, output=%s)", session_id, profile, run_dir)

        return session

    @classmethod
    def get_current_session(cls) -> Optional[SessionManager]:
        """
        Get the currently active session.

        Returns
        -------
        SessionManager or None
            Current session if one exists, None otherwise.
        """
        if not os.path.exists(cls.SESSION_FILE):
            return None

        with open(cls.SESSION_FILE, "r") as f:
            session_id = f.read().strip()

        run_dir = Path(cls.RUNS_DIR) / session_id
        metadata_file = run_dir / "session.json"

        if not metadata_file.exists():
            warnings.warn(f"Session {session_id} directory not found")
            return None

        try:
            with open(metadata_file, "r") as f:
                metadata = json.load(f)
        except json.JSONDecodeError as e:
            warnings.warn(f"Error loading session {session_id}: {e}")
            return None

        return cls(session_id, run_dir, metadata["config"])

    @classmethod
    def get_or_create_session(
        cls,
        profile: str = "default",
        auto_create: bool = True
    ) -> SessionManager:
        """
        Get current session or create new one if none exists.

        Parameters
        ----------
        profile : str
            Configuration profile to use if creating new session.
        auto_create : bool
            Whether to auto-create session if none exists.

        Returns
        -------
        SessionManager
            Current or newly created session.
        """
        session = cls.get_current_session()

        if session is None:
            if not auto_create:
                raise RuntimeError("No active session. Run scripts/run_pipeline.py first.")
            logger.info("No active session found. Creating new session...")
            session = cls.create_session(profile=profile)
        else:
            logger.info("Using existing session: %s", session.session_id)

        return session

    @classmethod
    def end_session(cls, status: str = "completed") -> bool:
        """
        End the current session.

        Returns
        -------
        bool
            True if session was ended successfully, False otherwise.
        """
        if not os.path.exists(cls.SESSION_FILE):
            logger.warning("No active session to end")
            return False

        session = cls.get_current_session()
        if session:
            metadata_file = session.run_dir / "session.json"
            with open(metadata_file, "r") as f:
                metadata = json.load(f)

            metadata["end_time"] = datetime.now().isoformat()
            metadata["status"] = status

            with open(metadata_file, "w") as f:
                json.dump(metadata, f, indent=2)

            logger.info("Session ended: %s", session.session_id)

        os.remove(cls.SESSION_FILE)
        return True

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def save_metric(self, name: str, value: Any, stage: Optional[str] = None):
        """
        Save a metric value.

        Parameters
        ----------
        name : str
            Metric name.
        value : any
            Metric value; NumPy scalars and arrays are converted.
        stage : str, optional
            Pipeline stage (e.g. "psi_search"); each stage gets its own file.
        """
        if stage:
            metric_file = self.metrics_dir / f"{stage}_metrics.json"
        else:
            metric_file = self.metrics_dir / "metrics.json"

        if metric_file.exists():
            with open(metric_file, "r") as f:
                metrics = json.load(f)
        else:
            metrics = {}

        metrics[name] = _to_builtin(value)
        metrics["last_updated"] = datetime.now().isoformat()

        with open(metric_file, "w") as f:
            json.dump(metrics, f, indent=2)

    def load_metrics(self, stage: Optional[str] = None) -> Dict[str, Any]:
        """
        Load the metrics saved for a stage (empty dict if none).
        """
        metric_file = self.metrics_dir / (f"{stage}_metrics.json" if stage else "metrics.json")
        if not metric_file.exists():
            return {}

        with open(metric_file, "r") as f:
            return json.load(f)

    def save_array(self, name: str, array: np.ndarray) -> Path:
        """
        Save a matrix (e.g. a similarity matrix) as ``<name>.npy``.
        """
        path = self.metrics_dir / f"{name}.npy"
        np.save(path, array)
        return path

    def get_plot_path(self, filename: str) -> Path:
        """
        Get path for saving a plot.
        """
        return self.plots_dir / filename
