"""
Runtime settings for the expression trigger engine.

This module provides settings file loading and saving, supporting YAML
and JSON formats. Trigger mappings themselves live in the
ConfigurationStore; these settings cover thresholds, timing and storage.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

logger = logging.getLogger(__name__)

# Default settings file locations
DEFAULT_SETTINGS_PATHS = [
    Path("expression_triggers.yaml"),
    Path("expression_triggers.json"),
    Path.home() / ".config" / "expression_triggers" / "settings.yaml",
    Path.home() / ".config" / "expression_triggers" / "settings.json",
]


@dataclass
class EngineSettings:
    """Settings for the expression trigger engine.

    Attributes:
        storage_path: JSON file for trigger mappings (None keeps them in memory)
        tick_period: Seconds between detection ticks
        noise_floor: Minimum basic confidence to be considered
        geometric_floor: Minimum heuristic confidence to override the basic result
        confidence_threshold: Minimum best confidence to hold an expression
        cooldown_seconds: Minimum gap between two fires of one expression
        calibration_window: Length of the neutral calibration window (seconds)
        calibration_period: Seconds between calibration samples
        dispatch_min_latency: Simulated assistant base latency (seconds)
        dispatch_latency_jitter: Simulated assistant extra random latency (seconds)
        dispatch_failure_rate: Simulated assistant failure probability [0, 1]
    """
    storage_path: Optional[str] = None
    tick_period: float = 0.1
    noise_floor: float = 0.3
    geometric_floor: float = 0.4
    confidence_threshold: float = 0.6
    cooldown_seconds: float = 3.0
    calibration_window: float = 3.0
    calibration_period: float = 0.2
    dispatch_min_latency: float = 0.5
    dispatch_latency_jitter: float = 1.0
    dispatch_failure_rate: float = 0.05

    def __post_init__(self):
        for name in ('tick_period', 'calibration_window', 'calibration_period'):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be > 0, got {value}")
        for name in ('cooldown_seconds', 'dispatch_min_latency', 'dispatch_latency_jitter'):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
        if not (0 <= self.dispatch_failure_rate <= 1):
            raise ValueError(
                f"dispatch_failure_rate must be in range [0, 1], got {self.dispatch_failure_rate}"
            )


def load_settings(
    settings_path: Optional[Union[str, Path]] = None
) -> EngineSettings:
    """
    Load engine settings from file.

    Supports YAML and JSON formats. If no path is specified, searches
    default locations.

    Args:
        settings_path: Path to settings file, or None to search defaults

    Returns:
        EngineSettings instance

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ValueError: If the settings file is invalid
    """
    if settings_path is not None:
        path = Path(settings_path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
    else:
        path = None
        for default_path in DEFAULT_SETTINGS_PATHS:
            if default_path.exists():
                path = default_path
                break

        if path is None:
            logger.info("No settings file found, using defaults")
            return EngineSettings()

    logger.info(f"Loading settings from {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            if path.suffix in ('.yaml', '.yml'):
                data = yaml.safe_load(f)
            else:
                data = json.load(f)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ValueError(f"Failed to parse settings file: {e}")

    return _dict_to_settings(data or {})


def save_settings(
    settings: EngineSettings,
    settings_path: Union[str, Path],
    format: str = "auto"
) -> None:
    """
    Save engine settings to file.

    Args:
        settings: Settings to save
        settings_path: Output file path
        format: "yaml", "json", or "auto" (detect from extension)
    """
    path = Path(settings_path)

    if format == "auto":
        format = "yaml" if path.suffix in ('.yaml', '.yml') else "json"

    data = asdict(settings)

    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        if format == "yaml":
            yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)
        else:
            json.dump(data, f, indent=2)

    logger.info(f"Saved settings to {path}")


def _dict_to_settings(data: Dict[str, Any]) -> EngineSettings:
    """Convert dictionary to EngineSettings, ignoring unknown keys."""
    if not isinstance(data, dict):
        raise ValueError("Settings file must contain a mapping")
    known = {f.name for f in fields(EngineSettings)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")
    return EngineSettings(**{k: v for k, v in data.items() if k in known})


def create_default_settings(output_path: Union[str, Path]) -> None:
    """
    Create a default settings file with comments.

    Args:
        output_path: Path to write the settings file
    """
    path = Path(output_path)

    if path.suffix in ('.yaml', '.yml'):
        content = """# Expression Trigger Settings
# ===========================

# JSON file holding the expression -> command mappings
# (null keeps them in memory for this run only)
storage_path: null

# Seconds between detection ticks
tick_period: 0.1

# Basic expression confidences must exceed this to count
noise_floor: 0.3

# Landmark heuristics must exceed this to override the basic expression
geometric_floor: 0.4

# Best expression confidence required to start holding
confidence_threshold: 0.6

# Minimum seconds between two triggers of the same expression
cooldown_seconds: 3.0

# Neutral calibration window and sampling period (seconds)
calibration_window: 3.0
calibration_period: 0.2

# Simulated assistant: latency = min + random() * jitter
dispatch_min_latency: 0.5
dispatch_latency_jitter: 1.0

# Simulated assistant failure probability
dispatch_failure_rate: 0.05
"""
    else:
        content = json.dumps(asdict(EngineSettings()), indent=2)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(content)

    logger.info(f"Created default settings at {path}")
