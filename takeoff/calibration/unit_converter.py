"""
Unit Converter Module

Functions for converting lengths, areas and volumes between real-world
units. Meters are the canonical unit everywhere in the engine.
"""

import logging
import math

from ..constants import (
    METERS_PER_UNIT,
    UNIT_ALIASES,
    METERS_PER_FOOT,
    METERS_PER_INCH,
    INCHES_PER_FOOT,
    SQUARE_FEET_PER_SQUARE_METER,
    CUBIC_FEET_PER_CUBIC_METER,
)
from ..errors import UnknownUnitError

logger = logging.getLogger(__name__)

# Reverse lookup: alias -> canonical unit
_ALIAS_TO_UNIT = {
    alias: unit
    for unit, aliases in UNIT_ALIASES.items()
    for alias in aliases
}


def normalize_unit(unit: str) -> str:
    """
    Normalize a length unit name to its canonical short form.

    Examples:
        "M" -> "m"
        "pieds" -> "ft"
        '"' -> "in"

    Args:
        unit: Unit name or symbol

    Returns:
        One of "m", "cm", "mm", "ft", "in"

    Raises:
        UnknownUnitError: If the unit is not recognized
    """
    key = unit.strip().lower() if unit else ""
    if key in _ALIAS_TO_UNIT:
        return _ALIAS_TO_UNIT[key]

    raise UnknownUnitError(f"Unknown length unit: {unit!r}")


def to_meters(value: float, unit: str) -> float:
    """
    Convert a length to meters.

    Args:
        value: Length in the given unit
        unit: Source unit (m, cm, mm, ft/pi/', in/po/")

    Returns:
        Length in meters
    """
    return value * METERS_PER_UNIT[normalize_unit(unit)]


def from_meters(value_meters: float, unit: str) -> float:
    """
    Convert a length in meters to another unit.

    Args:
        value_meters: Length in meters
        unit: Target unit

    Returns:
        Length in the target unit
    """
    return value_meters / METERS_PER_UNIT[normalize_unit(unit)]


def feet_inches_to_meters(feet: float, inches: float = 0.0) -> float:
    """Convert a feet-inches pair (e.g. 4'-6") to meters."""
    return feet * METERS_PER_FOOT + inches * METERS_PER_INCH


def square_meters_to(area_sqm: float, unit: str = "m²") -> float:
    """
    Convert an area in square meters to "m²" or "pi²".

    Unknown units are logged and returned unchanged in m².
    """
    if unit in ("m²", "m2", "sqm"):
        return area_sqm
    elif unit in ("pi²", "pi2", "ft²", "sqft"):
        return area_sqm * SQUARE_FEET_PER_SQUARE_METER
    else:
        logger.warning(f"Unknown area unit '{unit}', returning m²")
        return area_sqm


def cubic_meters_to(volume_m3: float, unit: str = "m³") -> float:
    """
    Convert a volume in cubic meters to "m³" or "pi³".

    Unknown units are logged and returned unchanged in m³.
    """
    if unit in ("m³", "m3"):
        return volume_m3
    elif unit in ("pi³", "pi3", "ft³", "cuft"):
        return volume_m3 * CUBIC_FEET_PER_CUBIC_METER
    else:
        logger.warning(f"Unknown volume unit '{unit}', returning m³")
        return volume_m3


def format_feet_inches(length_meters: float) -> str:
    """
    Format a length in meters as an imperial string (e.g., 4'-6").

    Args:
        length_meters: Length in meters

    Returns:
        Formatted string like "4'-6""
    """
    total_inches = length_meters / METERS_PER_INCH
    feet = int(total_inches // INCHES_PER_FOOT)
    remaining_inches = total_inches - feet * INCHES_PER_FOOT

    if abs(remaining_inches - round(remaining_inches)) < 0.1:
        inches = int(round(remaining_inches))
        if inches == INCHES_PER_FOOT:
            return f"{feet + 1}'-0\""
        return f"{feet}'-{inches}\""
    else:
        return f"{feet}'-{remaining_inches:.1f}\""


def format_quantity(value: float, unit: str, decimals: int = 2) -> str:
    """
    Format a quantity with its unit.

    Examples:
        (12.5, "m") -> "12.50 m"
        (3, "unité") -> "3 unité"
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return f"- {unit}"
    if unit in ("unité", "pce", "lot"):
        return f"{int(round(value))} {unit}"
    return f"{value:.{decimals}f} {unit}"
