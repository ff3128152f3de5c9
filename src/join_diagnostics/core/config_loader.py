"""YAML settings for analysis options and CLI logging.

Each setting resolves JOIN_DIAGNOSTICS_* env var, then the YAML file under
config/, then the dataclass default. A missing file is not an error; a
threshold or distance that cannot be coerced is.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml  # type: ignore

from join_diagnostics.core.diagnostics_config import (
    CARTESIAN_THRESHOLD,
    NEAR_MATCH_MAX_CANDIDATES,
    NEAR_MATCH_MAX_DISTANCE,
)

logger = logging.getLogger(__name__)


def get_project_root() -> Path:
    """
    Checkout root holding the bundled config/ directory.

    src/join_diagnostics/core/config_loader.py sits three packages below it.

    Raises:
        ValueError: If no config/ directory exists there (e.g. an installed wheel)
    """
    root = Path(__file__).resolve().parents[3]
    if not (root / "config").is_dir():
        raise ValueError(f"No config/ directory under {root}; bundled YAML files are unavailable")
    return root


def _default_config_path(filename: str) -> Path | None:
    """Path of a bundled config file, or None when running outside a source checkout."""
    try:
        return get_project_root() / "config" / filename
    except ValueError as e:
        logger.debug(f"No project config directory, using defaults: {e}")
        return None


def _coerce_type(value: Any, target_type: type) -> Any:
    """
    Convert a YAML or env value to the declared type.

    Strings are parsed ("10" → 10.0, "on" → True, "100.0" → 100); None passes
    through. Raises ValueError when a string does not parse.
    """
    if value is None:
        return None

    if isinstance(value, target_type) and not (target_type is int and isinstance(value, bool)):
        return value

    if target_type is bool:
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes", "on")
        return bool(value)

    if target_type is float:
        return float(value)

    if target_type is int:
        if isinstance(value, str):
            return int(float(value))  # Handle "100.0" → 100
        return int(value)

    if target_type is str:
        return str(value)

    return value


def _is_critical_config(key: str) -> bool:
    """Thresholds and distances change what gets reported, so a bad value must fail loudly."""
    return any(marker in key.lower() for marker in ("threshold", "distance"))


@dataclass
class AnalysisConfigDefaults:
    """Default values for analysis configuration (mirrors AnalysisOptions)."""

    sample_size: int | None = None
    sample_seed: int | None = None
    near_match_max_distance: int = NEAR_MATCH_MAX_DISTANCE
    near_match_max_candidates: int = NEAR_MATCH_MAX_CANDIDATES
    cartesian_threshold: float = CARTESIAN_THRESHOLD

    def to_dict(self) -> dict[str, Any]:
        """Convert dataclass to dictionary."""
        return {
            "sample_size": self.sample_size,
            "sample_seed": self.sample_seed,
            "near_match_max_distance": self.near_match_max_distance,
            "near_match_max_candidates": self.near_match_max_candidates,
            "cartesian_threshold": self.cartesian_threshold,
        }


# Declared types; defaults of None carry no type information
ANALYSIS_CONFIG_TYPES: dict[str, type] = {
    "sample_size": int,
    "sample_seed": int,
    "near_match_max_distance": int,
    "near_match_max_candidates": int,
    "cartesian_threshold": float,
}

ANALYSIS_ENV_MAPPING = {
    "JOIN_DIAGNOSTICS_SAMPLE_SIZE": "sample_size",
    "JOIN_DIAGNOSTICS_SAMPLE_SEED": "sample_seed",
    "JOIN_DIAGNOSTICS_NEAR_MATCH_MAX_DISTANCE": "near_match_max_distance",
    "JOIN_DIAGNOSTICS_NEAR_MATCH_MAX_CANDIDATES": "near_match_max_candidates",
    "JOIN_DIAGNOSTICS_CARTESIAN_THRESHOLD": "cartesian_threshold",
}


def _apply_env_overrides(
    config: dict[str, Any], env_mapping: dict[str, str], types: dict[str, type]
) -> dict[str, Any]:
    """
    Apply environment variable overrides to config.

    Args:
        config: Configuration dictionary
        env_mapping: Mapping of env var names to config keys
        types: Target type per config key

    Returns:
        Config with env var overrides applied
    """
    result = config.copy()
    for env_key, config_key in env_mapping.items():
        env_value = os.getenv(env_key)
        if env_value is None:
            continue
        target_type = types[config_key]
        try:
            result[config_key] = _coerce_type(env_value, target_type)
        except (ValueError, TypeError) as e:
            logger.warning(f"Failed to coerce env var {env_key}={env_value} to {target_type.__name__}: {e}")
    return result


def _read_yaml(config_path: Path) -> dict[str, Any]:
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Invalid config in {config_path}: expected a mapping, got {type(data).__name__}")
    return data


def load_analysis_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load analysis config from YAML with env var overrides.

    Precedence: Environment variable → YAML value → Default value

    Args:
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        dict with the AnalysisOptions field names as keys

    Raises:
        ValueError: If YAML is invalid or a critical value has the wrong type
    """
    defaults = AnalysisConfigDefaults().to_dict()

    if config_path is None:
        config_path = _default_config_path("diagnostics.yaml")

    config = defaults.copy()
    if config_path is not None and config_path.exists():
        yaml_data = _read_yaml(config_path)
        for key, value in yaml_data.items():
            if key not in defaults:
                logger.warning(f"Unknown analysis config key {key} in {config_path}, ignoring")
                continue
            target_type = ANALYSIS_CONFIG_TYPES[key]
            try:
                config[key] = _coerce_type(value, target_type)
            except (ValueError, TypeError) as e:
                if _is_critical_config(key):
                    raise ValueError(
                        f"Type coercion failed for critical config {key}={value}: "
                        f"expected {target_type.__name__}, got {type(value).__name__}. "
                        f"Error: {e}"
                    ) from e
                logger.warning(
                    f"Failed to coerce YAML value {key}={value} to {target_type.__name__}: {e}, using default"
                )
    else:
        logger.debug(f"Config file not found at {config_path}, using defaults")

    return _apply_env_overrides(config, ANALYSIS_ENV_MAPPING, ANALYSIS_CONFIG_TYPES)


@dataclass
class LoggingConfigDefaults:
    """Default values for logging configuration."""

    root_level: str = "WARNING"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    module_levels: dict[str, str] = field(
        default_factory=lambda: {
            "join_diagnostics.core.analyzer": "INFO",
            "join_diagnostics.storage": "INFO",
        }
    )
    reduce_noise: dict[str, str] = field(default_factory=lambda: {"polars": "WARNING"})

    def to_dict(self) -> dict[str, Any]:
        """Convert dataclass to dictionary."""
        return {
            "root_level": self.root_level,
            "format": self.format,
            "module_levels": self.module_levels.copy(),
            "reduce_noise": self.reduce_noise.copy(),
        }


def load_logging_config(config_path: Path | None = None) -> dict[str, Any]:
    """
    Load logging config from YAML.

    Args:
        config_path: Optional path to config file. If None, uses default location.

    Returns:
        dict with keys:
        - root_level: str
        - format: str
        - module_levels: dict[str, str]
        - reduce_noise: dict[str, str]

    Raises:
        ValueError: If YAML is invalid
    """
    defaults = LoggingConfigDefaults().to_dict()

    if config_path is None:
        config_path = _default_config_path("logging.yaml")

    config = defaults.copy()
    if config_path is not None and config_path.exists():
        yaml_data = _read_yaml(config_path)
        for key, value in yaml_data.items():
            if key not in defaults:
                continue
            if key in ("module_levels", "reduce_noise"):
                # Merge dicts
                if isinstance(value, dict):
                    config[key].update(value)
            else:
                config[key] = str(value)
    else:
        logger.debug(f"Config file not found at {config_path}, using defaults")

    level_override = os.getenv("JOIN_DIAGNOSTICS_LOG_LEVEL")
    if level_override:
        config["root_level"] = level_override.upper()

    return config
