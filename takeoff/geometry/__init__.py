# Measurement geometry module

from .measurement import (
    Point,
    Dimensions,
    MeasurementCosts,
    CalculatedValues,
    Measurement,
    generate_measurement_id,
)

from .calculator import (
    scale_points,
    line_length,
    rectangle_dimensions,
    rectangle_area,
    rectangle_perimeter,
    signed_polygon_area,
    polygon_area,
    polygon_perimeter,
    count_points,
    compute_primitive_value,
    compute_perimeter,
    create_measurement,
    is_stale,
)

__all__ = [
    # Measurement
    "Point",
    "Dimensions",
    "MeasurementCosts",
    "CalculatedValues",
    "Measurement",
    "generate_measurement_id",
    # Calculator
    "scale_points",
    "line_length",
    "rectangle_dimensions",
    "rectangle_area",
    "rectangle_perimeter",
    "signed_polygon_area",
    "polygon_area",
    "polygon_perimeter",
    "count_points",
    "compute_primitive_value",
    "compute_perimeter",
    "create_measurement",
    "is_stale",
]
