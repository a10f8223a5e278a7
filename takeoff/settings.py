"""
Settings Module

Loads engine defaults and reference tables from a YAML file, falling back
to the stock values in takeoff.constants for anything the file omits.
"""

import copy
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import (
    DEFAULT_SCALE_X,
    DEFAULT_SCALE_Y,
    DEFAULT_CLICK_TOLERANCE_PX,
    DEFAULT_OCR_LANG,
    DEFAULT_RENDER_DPI,
    OCR_MIN_CONFIDENCE,
    SCALE_CONFLICT_THRESHOLD_PERCENT,
    TAKEOFF_CATEGORIES,
    CCQ_TRADES,
    COMMON_MATERIALS,
    UnitSystem,
)

logger = logging.getLogger(__name__)

# Stock settings file shipped at the repository root
DEFAULT_SETTINGS_PATH = Path(__file__).parent.parent / "config" / "settings.yaml"


class SettingsError(Exception):
    """Raised when a settings file cannot be read or is malformed."""
    pass


@dataclass
class Settings:
    """Engine defaults and reference tables."""
    default_scale_x: float = DEFAULT_SCALE_X
    default_scale_y: float = DEFAULT_SCALE_Y
    unit_system: str = UnitSystem.METRIC
    ocr_min_confidence: float = OCR_MIN_CONFIDENCE
    ocr_lang: str = DEFAULT_OCR_LANG
    render_dpi: int = DEFAULT_RENDER_DPI
    click_tolerance_px: float = DEFAULT_CLICK_TOLERANCE_PX
    scale_conflict_threshold_percent: float = SCALE_CONFLICT_THRESHOLD_PERCENT

    trades: List[Dict[str, Any]] = field(default_factory=lambda: copy.deepcopy(CCQ_TRADES))
    materials: List[Dict[str, Any]] = field(default_factory=lambda: copy.deepcopy(COMMON_MATERIALS))
    categories: List[Dict[str, Any]] = field(default_factory=lambda: copy.deepcopy(TAKEOFF_CATEGORIES))


_DEFAULT_KEYS = (
    "default_scale_x",
    "default_scale_y",
    "unit_system",
    "ocr_min_confidence",
    "ocr_lang",
    "render_dpi",
    "click_tolerance_px",
    "scale_conflict_threshold_percent",
)


def settings_from_dict(data: Optional[Dict[str, Any]]) -> Settings:
    """
    Build Settings from a parsed YAML document.

    Recognized sections: "defaults" (scalar settings), "trades",
    "materials" and "categories" (lists replacing the stock tables).
    Unknown keys are logged and ignored.
    """
    settings = Settings()
    if not data:
        return settings

    if not isinstance(data, dict):
        raise SettingsError(f"Settings must be a mapping, got {type(data).__name__}")

    for key, value in (data.get("defaults") or {}).items():
        if key in _DEFAULT_KEYS:
            setattr(settings, key, value)
        else:
            logger.warning(f"Ignoring unknown setting: defaults.{key}")

    for section in ("trades", "materials", "categories"):
        if section in data and data[section] is not None:
            if not isinstance(data[section], list):
                raise SettingsError(f"Section '{section}' must be a list")
            setattr(settings, section, data[section])

    for key in data:
        if key not in ("defaults", "trades", "materials", "categories"):
            logger.warning(f"Ignoring unknown settings section: {key}")

    return settings


def load_settings(path: Optional[str] = None) -> Settings:
    """
    Load settings from a YAML file.

    Args:
        path: Settings file path. None loads config/settings.yaml if it
              exists, otherwise the stock constants.

    Returns:
        Settings

    Raises:
        SettingsError: If an explicit path is missing or the YAML is invalid
    """
    if path is None:
        settings_path = DEFAULT_SETTINGS_PATH
        if not settings_path.exists():
            logger.debug("No settings.yaml found, using stock constants")
            return Settings()
    else:
        settings_path = Path(path)
        if not settings_path.exists():
            raise SettingsError(f"Settings file not found: {path}")

    try:
        with open(settings_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {settings_path}: {e}") from e

    logger.debug(f"Loaded settings from {settings_path}")
    return settings_from_dict(data)
