"""
Configuration management for the Isolation Kernel clustering pipeline.

Handles loading and validation of configuration profiles.
"""

from __future__ import annotations
import copy
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import warnings


DEFAULT_CONFIG = {
    "dataset": {
        "name": "iris",
        "normalization": "minmax"
    },
    "kernel": {
        "psi": 16,      # Cells per partition
        "t": 200,       # Number of partitions
        "sparse": True
    },
    "clustering": {
        "n_clusters": 3,
        "methods": ["kmeans", "kmedoids"],
        "random_state": 0,
        "n_init": 10,
        "optimize_psi": False,
        "psi_range": [2, 4, 8, 16, 32, 64]
    },
    "evaluation": {
        "seeds": [0, 1, 2, 3, 4, 5, 6, 7, 8, 9]
    }
}


def load_config(profile: str = "default", config_file: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration for a specific profile.

    Parameters
    ----------
    profile : str
        Configuration profile to load ("default" or "optimized").
    config_file : Path, optional
        Path to config file. If None, uses "config.yaml" in project root.

    Returns
    -------
    dict
        Configuration dictionary.

    Examples
    --------
    >>> from isokernel.utils.config import load_config
    >>> config = load_config("default")
    >>> config["kernel"]["psi"]
    16
    """
    if config_file is None:
        config_file = Path("config.yaml")
    config_file = Path(config_file)

    # If config file doesn't exist, use defaults
    if not config_file.exists():
        warnings.warn(
            f"Config file {config_file} not found. Using default configuration."
        )
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(config_file, "r") as f:
        config_data = yaml.safe_load(f) or {}

    # Get profile-specific config
    if "profiles" in config_data:
        if profile not in config_data["profiles"]:
            warnings.warn(
                f"Profile '{profile}' not found in config. Using 'default'."
            )
            profile = "default"

        profile_config = config_data["profiles"].get(profile) or {}
    else:
        # No profiles defined, use entire config as default
        profile_config = config_data

    config = _merge_configs(DEFAULT_CONFIG, profile_config)
    validate_config(config)

    return config


def _merge_configs(default: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge override config into default config.

    Parameters
    ----------
    default : dict
        Default configuration.
    override : dict
        Override values.

    Returns
    -------
    dict
        Merged configuration.
    """
    result = copy.deepcopy(default)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def validate_config(config: Dict[str, Any]) -> None:
    """
    Checks the kernel and clustering parameters.

    Raises
    ------
    ValueError
        If a parameter is out of range.
    """
    psi = get_param(config, "kernel.psi")
    t = get_param(config, "kernel.t")
    n_clusters = get_param(config, "clustering.n_clusters")

    if not isinstance(psi, int) or psi < 1:
        raise ValueError(f"kernel.psi must be a positive integer, got {psi!r}")
    if not isinstance(t, int) or t < 1:
        raise ValueError(f"kernel.t must be a positive integer, got {t!r}")
    if not isinstance(n_clusters, int) or n_clusters < 1:
        raise ValueError(f"clustering.n_clusters must be a positive integer, got {n_clusters!r}")

    unknown = set(get_param(config, "clustering.methods", [])) - {"kmeans", "kmedoids"}
    if unknown:
        raise ValueError(f"Unknown clustering methods: {sorted(unknown)}")


def save_config(config: Dict[str, Any], output_file: Path):
    """
    Save configuration to YAML file.

    Parameters
    ----------
    config : dict
        Configuration to save.
    output_file : Path
        Output file path.
    """
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)

    with open(output_file, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)


def get_param(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a parameter from config using dot notation.

    Examples
    --------
    >>> config = {"kernel": {"psi": 8}}
    >>> get_param(config, "kernel.psi")
    8
    >>> get_param(config, "missing.key", default=0)
    0
    """
    value = config

    try:
        for key in path.split("."):
            value = value[key]
        return value
    except (KeyError, TypeError):
        return default
