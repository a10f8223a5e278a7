"""
Geometry Calculator Module

Functions for deriving primitive quantities (length, area, perimeter,
count) from pixel-space geometry and the active scale.
"""

import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import LinearRing, MultiPoint

from ..calibration.scale_calibrator import ScaleSpec
from ..constants import (
    MIN_POINTS,
    DEFAULT_UNITS,
    DEFAULT_CATEGORY,
    DEGENERATE_AREA_EPSILON,
    MeasurementType,
)
from ..errors import (
    DegeneratePolygonError,
    TooFewPointsError,
    ValidationError,
)
from .measurement import (
    Dimensions,
    Measurement,
    MeasurementCosts,
    Point,
    generate_measurement_id,
)

logger = logging.getLogger(__name__)


def _require_points(points: Sequence, measurement_type: str) -> None:
    minimum = MIN_POINTS[measurement_type]
    if len(points) < minimum:
        logger.warning(
            f"{measurement_type} needs at least {minimum} points, got {len(points)}"
        )
        raise TooFewPointsError(
            f"A {measurement_type} measurement needs at least {minimum} points, "
            f"got {len(points)}"
        )


def scale_points(
    points: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> np.ndarray:
    """
    Convert pixel-space points to real-world meters, scaling each axis
    independently.

    Args:
        points: Sequence of (x, y) in pixels
        scale: Active ScaleSpec

    Returns:
        (N, 2) array of coordinates in meters
    """
    coords = np.asarray(points, dtype=float).reshape(-1, 2)
    return coords * np.array([scale.scale_x, scale.scale_y])


def _polygon_vertices(points: Sequence[Tuple[float, float]]) -> List[Tuple[float, float]]:
    """Drop a repeated closing vertex so rings are not double counted."""
    vertices = [(float(p[0]), float(p[1])) for p in points]
    if len(vertices) > 1 and vertices[0] == vertices[-1]:
        vertices = vertices[:-1]
    return vertices


# =============================================================================
# LINE
# =============================================================================

def line_length(
    points: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> float:
    """
    Calculate the real length of a polyline.

    Each segment's dx and dy are scaled by their own axis before taking
    the hypotenuse, so anisotropic scales are handled exactly.

    Args:
        points: Ordered polyline vertices in pixels (at least 2)
        scale: Active ScaleSpec

    Returns:
        Length in meters

    Raises:
        TooFewPointsError: If fewer than 2 points are given
    """
    _require_points(points, MeasurementType.LINE)

    real = scale_points(points, scale)
    deltas = np.diff(real, axis=0)
    return float(np.hypot(deltas[:, 0], deltas[:, 1]).sum())


# =============================================================================
# RECTANGLE
# =============================================================================

def rectangle_dimensions(
    corners: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> Tuple[float, float]:
    """
    Calculate real width and height of a rectangle from two opposite corners.

    Args:
        corners: Exactly two opposite corners in pixels
        scale: Active ScaleSpec

    Returns:
        (width, height) in meters

    Raises:
        TooFewPointsError: If fewer than 2 corners are given
        ValidationError: If more than 2 corners are given
    """
    _require_points(corners, MeasurementType.RECTANGLE)
    if len(corners) > 2:
        raise ValidationError(
            f"A rectangle is defined by 2 opposite corners, got {len(corners)} points"
        )

    (x1, y1), (x2, y2) = corners[0], corners[1]
    width = abs(x2 - x1) * scale.scale_x
    height = abs(y2 - y1) * scale.scale_y
    return width, height


def rectangle_area(
    corners: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> float:
    """Calculate rectangle area in square meters."""
    width, height = rectangle_dimensions(corners, scale)
    return width * height


def rectangle_perimeter(
    corners: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> float:
    """Calculate rectangle perimeter in meters."""
    width, height = rectangle_dimensions(corners, scale)
    return 2 * (width + height)


# =============================================================================
# POLYGON
# =============================================================================

def signed_polygon_area(
    points: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> float:
    """
    Calculate the signed area of a polygon with the shoelace formula.

    Vertices are scaled per axis before the formula is applied. The sign
    follows the traversal direction. Self-intersecting polygons yield the
    signed area of the traversal, not the true enclosed area, so a
    symmetric bow-tie measures zero.

    Args:
        points: Ordered polygon vertices in pixels (at least 3)
        scale: Active ScaleSpec

    Returns:
        Signed area in square meters

    Raises:
        TooFewPointsError: If fewer than 3 distinct vertices are given
        DegeneratePolygonError: If the vertices are collinear
    """
    vertices = _polygon_vertices(points)
    _require_points(vertices, MeasurementType.AREA)

    real = scale_points(vertices, scale)
    if MultiPoint(real.tolist()).convex_hull.area <= DEGENERATE_AREA_EPSILON:
        logger.warning(f"Degenerate polygon with {len(vertices)} collinear vertices")
        raise DegeneratePolygonError(
            f"Polygon vertices are collinear ({len(vertices)} points)"
        )

    x = real[:, 0]
    y = real[:, 1]
    signed = float(np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)) / 2

    if not LinearRing(vertices).is_simple:
        logger.debug("Self-intersecting polygon; area is the signed traversal area")

    return signed


def polygon_area(
    points: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> float:
    """Calculate polygon area in square meters (absolute shoelace area)."""
    return abs(signed_polygon_area(points, scale))


def polygon_perimeter(
    points: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> float:
    """
    Calculate the closed perimeter of a polygon in meters.

    Raises:
        TooFewPointsError: If fewer than 3 distinct vertices are given
    """
    vertices = _polygon_vertices(points)
    _require_points(vertices, MeasurementType.AREA)

    real = scale_points(vertices, scale)
    return float(LinearRing(real).length)


# =============================================================================
# COUNT
# =============================================================================

def count_points(points: Sequence[Tuple[float, float]]) -> int:
    """
    Count recorded point locations. Counts carry no scale dependency.

    Raises:
        TooFewPointsError: If no point was recorded
    """
    _require_points(points, MeasurementType.COUNT)
    return len(points)


# =============================================================================
# DISPATCH
# =============================================================================

def compute_primitive_value(
    measurement_type: str,
    points: Sequence[Tuple[float, float]],
    scale: ScaleSpec
) -> Tuple[float, str]:
    """
    Compute the primitive value and unit for a shape.

    Args:
        measurement_type: "line", "rectangle", "area" or "count"
        points: Shape geometry in pixels
        scale: Active ScaleSpec

    Returns:
        (value, unit)

    Raises:
        ValidationError: If the geometry is invalid for the type
    """
    if measurement_type == MeasurementType.LINE:
        value = line_length(points, scale)
    elif measurement_type == MeasurementType.RECTANGLE:
        value = rectangle_area(points, scale)
    elif measurement_type == MeasurementType.AREA:
        value = polygon_area(points, scale)
    elif measurement_type == MeasurementType.COUNT:
        value = float(count_points(points))
    else:
        raise ValidationError(f"Unknown measurement type: {measurement_type!r}")

    return value, DEFAULT_UNITS[measurement_type]


def compute_perimeter(measurement: Measurement) -> Optional[float]:
    """
    Perimeter of a rectangle or polygon measurement, from its stored
    geometry and the scale it was computed with.

    Returns None for lines, counts, and measurements without a recorded
    scale or valid geometry.
    """
    if measurement.scale_x is None or measurement.scale_y is None:
        return None

    scale = ScaleSpec(scale_x=measurement.scale_x, scale_y=measurement.scale_y)
    try:
        if measurement.type == MeasurementType.RECTANGLE:
            return rectangle_perimeter(measurement.points, scale)
        elif measurement.type == MeasurementType.AREA:
            return polygon_perimeter(measurement.points, scale)
    except ValidationError as e:
        logger.debug(f"Measurement {measurement.id}: no perimeter ({e})")
    return None


def create_measurement(
    measurement_type: str,
    points: Sequence[Tuple[float, float]],
    scale: ScaleSpec,
    category: str = DEFAULT_CATEGORY,
    page_number: int = 1,
    label: str = "",
    description: str = "",
    notes: str = "",
    color: Optional[str] = None,
    dimensions: Optional[Dimensions] = None,
    costs: Optional[MeasurementCosts] = None,
    measurement_id: Optional[str] = None
) -> Measurement:
    """
    Create a complete Measurement from drawn geometry.

    The value is computed once against the given scale and locked; the
    scale is recorded on the measurement.

    Args:
        measurement_type: "line", "rectangle", "area" or "count"
        points: Shape geometry in pixels
        scale: Active ScaleSpec
        category: Takeoff category name
        page_number: Page the shape was drawn on
        label: Display name
        description: Free-form description
        notes: Free-form notes
        color: Display color (category color if None)
        dimensions: Supplemental dimensions
        costs: Cost inputs
        measurement_id: Id to use (generated if None)

    Returns:
        Measurement with value, unit and calculated values populated

    Raises:
        ValidationError: If the geometry is invalid for the type
    """
    from ..costing.calculator import derive_values
    from ..costing.reference import default_color_for_category

    value, unit = compute_primitive_value(measurement_type, points, scale)

    measurement = Measurement(
        id=measurement_id or generate_measurement_id(),
        type=measurement_type,
        points=[Point(float(p[0]), float(p[1])) for p in points],
        page_number=page_number,
        category=category,
        color=color or default_color_for_category(category),
        label=label,
        description=description,
        notes=notes,
        value=value,
        unit=unit,
        dimensions=dimensions or Dimensions(),
        costs=costs or MeasurementCosts(),
        scale_x=scale.scale_x,
        scale_y=scale.scale_y,
    )
    measurement.calculated = derive_values(measurement)

    logger.debug(
        f"Measurement {measurement.id}: {measurement_type} "
        f"{value:.3f} {unit} ({len(measurement.points)} points)"
    )

    return measurement


def is_stale(measurement: Measurement, active_scale: ScaleSpec) -> bool:
    """
    Check whether a measurement was computed with a different scale.

    Values are locked to their calibration-time scale; this only flags
    them. Counts are never stale, and measurements without a recorded
    scale cannot be checked and are reported as not stale.
    """
    if measurement.type == MeasurementType.COUNT:
        return False
    if measurement.scale_x is None or measurement.scale_y is None:
        return False

    return not (
        math.isclose(measurement.scale_x, active_scale.scale_x, rel_tol=1e-9)
        and math.isclose(measurement.scale_y, active_scale.scale_y, rel_tol=1e-9)
    )
