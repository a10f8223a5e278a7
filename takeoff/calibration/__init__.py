# Scale calibration and unit conversion module

from .scale_calibrator import (
    ScaleSpec,
    CalibrationSample,
    DEFAULT_SCALE,
    list_presets,
    scale_from_preset,
    scale_from_ratio,
    scale_from_manual,
    pixel_distance,
    calibrate_two_point,
    calibrate_from_sample,
    parse_calibration_string,
    estimate_calibration_uncertainty,
    propagate_uncertainty,
    check_scale_conflict,
    describe_scale,
)

from .unit_converter import (
    normalize_unit,
    to_meters,
    from_meters,
    feet_inches_to_meters,
    square_meters_to,
    cubic_meters_to,
    format_feet_inches,
    format_quantity,
)

__all__ = [
    # Scale Calibrator
    "ScaleSpec",
    "CalibrationSample",
    "DEFAULT_SCALE",
    "list_presets",
    "scale_from_preset",
    "scale_from_ratio",
    "scale_from_manual",
    "pixel_distance",
    "calibrate_two_point",
    "calibrate_from_sample",
    "parse_calibration_string",
    "estimate_calibration_uncertainty",
    "propagate_uncertainty",
    "check_scale_conflict",
    "describe_scale",
    # Unit Converter
    "normalize_unit",
    "to_meters",
    "from_meters",
    "feet_inches_to_meters",
    "square_meters_to",
    "cubic_meters_to",
    "format_feet_inches",
    "format_quantity",
]
