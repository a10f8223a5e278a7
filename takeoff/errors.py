"""
Error Taxonomy Module

Exceptions raised by calibration, geometry, reference lookup and the
measurement collection. Text classification and cost derivation never raise.
"""


class TakeoffError(Exception):
    """Base class for all takeoff engine errors."""
    pass


# =============================================================================
# VALIDATION ERRORS (bad geometry or calibration input)
# =============================================================================

class ValidationError(TakeoffError, ValueError):
    """Raised when input geometry or calibration values are invalid."""
    pass


class TooFewPointsError(ValidationError):
    """Raised when a shape has fewer points than its type requires."""
    pass


class DegeneratePolygonError(ValidationError):
    """Raised when a polygon's vertices are collinear or enclose no area."""
    pass


class DegenerateCalibrationError(ValidationError):
    """Raised when the two calibration points coincide."""
    pass


class InvalidScaleError(ValidationError):
    """Raised when a scale or calibration distance is <= 0 or not finite."""
    pass


# =============================================================================
# UNRECOGNIZED INPUT ERRORS (names and codes that fail lookup)
# =============================================================================

class UnrecognizedInputError(TakeoffError, ValueError):
    """Raised when a name, unit or code is not recognized."""
    pass


class UnknownPresetError(UnrecognizedInputError):
    """Raised when a scale preset name is not in the preset table."""
    pass


class UnknownUnitError(UnrecognizedInputError):
    """Raised when a length unit cannot be converted."""
    pass


class UnknownReferenceError(UnrecognizedInputError):
    """Raised when a trade code, material id or category is not found."""
    pass


# =============================================================================
# COLLECTION ERRORS
# =============================================================================

class CollectionError(TakeoffError):
    """Base class for measurement collection errors."""
    pass


class MeasurementNotFoundError(CollectionError, KeyError):
    """Raised when a measurement id is not in the collection."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class DuplicateMeasurementError(CollectionError):
    """Raised when adding a measurement whose id already exists."""
    pass
