"""
Scale Calibration Module

Produces ScaleSpec objects (real-world meters per pixel, per axis) from a
named preset, a manual ratio, a detected 1:N annotation or a two-point
calibration on the rendered drawing.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from ..constants import (
    DEFAULT_SCALE_X,
    DEFAULT_SCALE_Y,
    DEFAULT_CLICK_TOLERANCE_PX,
    METRIC_SCALE_PRESETS,
    IMPERIAL_SCALE_PRESETS,
    SCALE_CONFLICT_THRESHOLD_PERCENT,
    MeasurementType,
    UnitSystem,
)
from ..errors import (
    DegenerateCalibrationError,
    InvalidScaleError,
    UnknownPresetError,
)
from .unit_converter import to_meters, normalize_unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScaleSpec:
    """Real-world meters represented by one pixel, per axis."""
    scale_x: float = DEFAULT_SCALE_X
    scale_y: float = DEFAULT_SCALE_Y
    unit_system: str = UnitSystem.METRIC

    def __post_init__(self):
        _validate_scale_value(self.scale_x, "scale_x")
        _validate_scale_value(self.scale_y, "scale_y")
        if self.unit_system not in UnitSystem.ALL:
            raise InvalidScaleError(f"Unknown unit system: {self.unit_system!r}")

    @property
    def is_isotropic(self) -> bool:
        return math.isclose(self.scale_x, self.scale_y, rel_tol=1e-9)

    @property
    def average(self) -> float:
        return (self.scale_x + self.scale_y) / 2

    def to_dict(self) -> Dict[str, object]:
        """Convert scale to dictionary for JSON serialization."""
        return {
            "scale_x": self.scale_x,
            "scale_y": self.scale_y,
            "unit_system": self.unit_system,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, object]) -> "ScaleSpec":
        return cls(
            scale_x=float(data["scale_x"]),
            scale_y=float(data.get("scale_y", data["scale_x"])),
            unit_system=data.get("unit_system", UnitSystem.METRIC),
        )


@dataclass
class CalibrationSample:
    """Two clicked pixel points and the known real distance between them."""
    point1: Tuple[float, float]
    point2: Tuple[float, float]
    real_distance: float
    unit: str = "m"

    @property
    def pixel_distance(self) -> float:
        return pixel_distance(self.point1, self.point2)


def _validate_scale_value(value: float, name: str) -> None:
    if value is None or not isinstance(value, (int, float)) or isinstance(value, bool):
        raise InvalidScaleError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(value) or value <= 0:
        raise InvalidScaleError(f"{name} must be positive and finite, got {value}")


DEFAULT_SCALE = ScaleSpec()


# =============================================================================
# PRESET LOOKUP
# =============================================================================

def normalize_preset_name(name: str) -> str:
    """
    Normalize a preset name for lookup.

    Typographic primes become ASCII quotes and whitespace is removed, so
    '1/4" = 1′' and '1/4"=1\'' resolve to the same preset.
    """
    normalized = name.strip()
    normalized = normalized.replace("′", "'").replace("’", "'").replace("‘", "'")
    normalized = normalized.replace("″", '"').replace("”", '"').replace("“", '"')
    normalized = re.sub(r"\s+", "", normalized)
    return normalized.lower()


_PRESET_INDEX = {}
for _label, _ratio in METRIC_SCALE_PRESETS.items():
    _PRESET_INDEX[normalize_preset_name(_label)] = (_label, _ratio, UnitSystem.METRIC)
for _label, _ratio in IMPERIAL_SCALE_PRESETS.items():
    _PRESET_INDEX[normalize_preset_name(_label)] = (_label, _ratio, UnitSystem.IMPERIAL)


def list_presets(unit_system: Optional[str] = None) -> Dict[str, float]:
    """
    Return preset labels and their meters-per-pixel values.

    Args:
        unit_system: "metric", "imperial" or None for both

    Returns:
        Dict of label -> meters per pixel
    """
    presets = {}
    if unit_system in (None, UnitSystem.METRIC):
        presets.update({label: 1 / ratio for label, ratio in METRIC_SCALE_PRESETS.items()})
    if unit_system in (None, UnitSystem.IMPERIAL):
        presets.update({label: 1 / ratio for label, ratio in IMPERIAL_SCALE_PRESETS.items()})
    return presets


def scale_from_preset(name: str) -> ScaleSpec:
    """
    Look up a named scale preset.

    Accepts metric ratios ("1:50") and imperial architectural scales
    ('1/4" = 1\''). Presets are isotropic.

    Args:
        name: Preset label

    Returns:
        ScaleSpec with the same value on both axes

    Raises:
        UnknownPresetError: If the name is not in the preset table
    """
    entry = _PRESET_INDEX.get(normalize_preset_name(name or ""))
    if entry is None:
        logger.warning(f"Unknown scale preset: {name!r}")
        raise UnknownPresetError(f"Unknown scale preset: {name!r}")

    label, ratio, unit_system = entry
    value = 1 / ratio
    logger.info(f"Preset scale {label}: {value:.6f} m/px")
    return ScaleSpec(scale_x=value, scale_y=value, unit_system=unit_system)


def scale_from_ratio(ratio: float, unit_system: str = UnitSystem.METRIC) -> ScaleSpec:
    """
    Build a ScaleSpec from a 1:N drawing ratio (e.g. detected on the plan).

    Args:
        ratio: N in 1:N
        unit_system: Unit system to tag the scale with

    Returns:
        Isotropic ScaleSpec of 1/N meters per pixel
    """
    _validate_scale_value(ratio, "ratio")
    value = 1 / ratio
    return ScaleSpec(scale_x=value, scale_y=value, unit_system=unit_system)


# =============================================================================
# MANUAL ENTRY
# =============================================================================

def scale_from_manual(
    scale_x: float,
    scale_y: Optional[float] = None,
    unit_system: str = UnitSystem.METRIC
) -> ScaleSpec:
    """
    Build a ScaleSpec from manually entered values.

    Args:
        scale_x: Meters per pixel on the X axis
        scale_y: Meters per pixel on the Y axis (None links it to scale_x)
        unit_system: "metric" or "imperial"

    Returns:
        ScaleSpec

    Raises:
        InvalidScaleError: If a value is <= 0 or not finite
    """
    if scale_y is None:
        scale_y = scale_x

    spec = ScaleSpec(scale_x=scale_x, scale_y=scale_y, unit_system=unit_system)
    logger.info(f"Manual scale: X={spec.scale_x:.6f} m/px, Y={spec.scale_y:.6f} m/px")
    return spec


# =============================================================================
# TWO-POINT CALIBRATION
# =============================================================================

def pixel_distance(
    point1: Tuple[float, float],
    point2: Tuple[float, float]
) -> float:
    """Euclidean distance between two pixel-space points."""
    return math.hypot(point2[0] - point1[0], point2[1] - point1[1])


def calibrate_two_point(
    point1: Tuple[float, float],
    point2: Tuple[float, float],
    real_distance: float,
    unit: str = "m",
    current: Optional[ScaleSpec] = None,
    axis: str = "both",
    link_axes: bool = True,
    unit_system: Optional[str] = None
) -> ScaleSpec:
    """
    Calculate a scale from two clicked points and a known real distance.

    Args:
        point1: First point (x, y) in pixels
        point2: Second point (x, y) in pixels
        real_distance: Real-world distance between the points
        unit: Unit of real_distance (m, cm, mm, ft, in)
        current: Scale in effect before calibration (default scale if None)
        axis: "x", "y" or "both"; which axis the calibration targets
        link_axes: Give both axes the computed scale regardless of axis
        unit_system: Unit system of the result (current's if None)

    Returns:
        New ScaleSpec

    Raises:
        DegenerateCalibrationError: If the points coincide
        InvalidScaleError: If real_distance is <= 0 or not finite
    """
    if axis not in ("x", "y", "both"):
        raise InvalidScaleError(f"Calibration axis must be 'x', 'y' or 'both', got {axis!r}")

    current = current or DEFAULT_SCALE
    unit_system = unit_system or current.unit_system

    pixels = pixel_distance(point1, point2)
    if pixels == 0:
        logger.warning(f"Calibration points coincide at {point1}")
        raise DegenerateCalibrationError(
            f"Calibration points coincide at {point1}; pick two distinct points"
        )

    _validate_scale_value(real_distance, "real_distance")
    real_meters = to_meters(real_distance, unit)
    scale = real_meters / pixels

    logger.info(
        f"Calibration: {real_meters:.4f} m / {pixels:.1f} px = {scale:.6f} m/px"
    )

    if link_axes or axis == "both":
        return ScaleSpec(scale_x=scale, scale_y=scale, unit_system=unit_system)
    elif axis == "x":
        return ScaleSpec(scale_x=scale, scale_y=current.scale_y, unit_system=unit_system)
    else:
        return ScaleSpec(scale_x=current.scale_x, scale_y=scale, unit_system=unit_system)


def calibrate_from_sample(
    sample: CalibrationSample,
    current: Optional[ScaleSpec] = None,
    axis: str = "both",
    link_axes: bool = True,
    unit_system: Optional[str] = None
) -> ScaleSpec:
    """Run a two-point calibration from a CalibrationSample."""
    return calibrate_two_point(
        sample.point1,
        sample.point2,
        sample.real_distance,
        sample.unit,
        current=current,
        axis=axis,
        link_axes=link_axes,
        unit_system=unit_system,
    )


def parse_calibration_string(
    calib_string: str
) -> CalibrationSample:
    """
    Parse a calibration string in format "x1,y1:x2,y2=LENGTH UNIT".

    Args:
        calib_string: Calibration string like "100,200:300,200=10ft"

    Returns:
        CalibrationSample (unit defaults to meters)

    Raises:
        ValueError: If string format is invalid
    """
    number = r"(-?\d+(?:\.\d+)?)"
    pattern = (
        rf"\s*{number}\s*,\s*{number}\s*:\s*{number}\s*,\s*{number}\s*"
        rf"=\s*(\d+(?:\.\d+)?)\s*([a-zA-Zèé'\"]+)?\s*$"
    )

    match = re.match(pattern, calib_string)
    if not match:
        raise ValueError(f"Invalid calibration format: {calib_string}")

    x1, y1, x2, y2, length, unit = match.groups()

    return CalibrationSample(
        point1=(float(x1), float(y1)),
        point2=(float(x2), float(y2)),
        real_distance=float(length),
        unit=normalize_unit(unit or "m"),
    )


# =============================================================================
# ERROR PROPAGATION
# =============================================================================

def estimate_calibration_uncertainty(
    point1: Tuple[float, float],
    point2: Tuple[float, float],
    click_tolerance_px: float = DEFAULT_CLICK_TOLERANCE_PX
) -> float:
    """
    Estimate the relative uncertainty of a two-point calibration.

    Each click is assumed to be off by click_tolerance_px (one standard
    deviation, independent per point), so the pixel distance carries an
    absolute error of sqrt(2) * tolerance and the scale inherits it as a
    relative error.

    Args:
        point1: First calibration point
        point2: Second calibration point
        click_tolerance_px: Click precision in pixels

    Returns:
        Relative uncertainty of the scale (0.01 = 1%)

    Raises:
        DegenerateCalibrationError: If the points coincide
    """
    pixels = pixel_distance(point1, point2)
    if pixels == 0:
        raise DegenerateCalibrationError("Calibration points coincide")

    return math.sqrt(2) * click_tolerance_px / pixels


def propagate_uncertainty(relative_scale_error: float, measurement_type: str) -> float:
    """
    Propagate a relative scale error to a measurement's primitive value.

    Lengths scale linearly with the scale, areas quadratically; counts do
    not depend on scale.

    Args:
        relative_scale_error: Relative uncertainty of the scale
        measurement_type: "line", "rectangle", "area" or "count"

    Returns:
        Relative uncertainty of the measurement value
    """
    if measurement_type == MeasurementType.LINE:
        return relative_scale_error
    elif measurement_type in (MeasurementType.RECTANGLE, MeasurementType.AREA):
        return 2 * relative_scale_error
    return 0.0


# =============================================================================
# SCALE COMPARISON
# =============================================================================

def check_scale_conflict(
    scale1: float,
    scale2: float,
    threshold_percent: float = SCALE_CONFLICT_THRESHOLD_PERCENT
) -> bool:
    """
    Check if two scales conflict (differ by more than threshold).

    Args:
        scale1: First scale (m/px)
        scale2: Second scale (m/px)
        threshold_percent: Allowed difference in percent

    Returns:
        True if scales conflict
    """
    if scale1 == 0 or scale2 == 0:
        return False

    diff_percent = abs(scale1 - scale2) / max(scale1, scale2) * 100
    return diff_percent > threshold_percent


def describe_scale(spec: ScaleSpec) -> str:
    """
    Human-readable notation for a scale, e.g. "1:50" or "X 1:50 / Y 1:48".
    """
    ratio_x = round(1 / spec.scale_x)
    ratio_y = round(1 / spec.scale_y)
    if ratio_x == ratio_y:
        return f"1:{ratio_x}"
    return f"X 1:{ratio_x} / Y 1:{ratio_y}"
