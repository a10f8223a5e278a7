"""
Measurement Data Structure Module

Defines the Measurement class and the supplemental dimension, cost and
derived-value records attached to it.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any, NamedTuple

from ..constants import (
    DEFAULT_CATEGORY,
    DEFAULT_COLOR,
    DEFAULT_UNITS,
    MeasurementType,
)
from ..errors import ValidationError

logger = logging.getLogger(__name__)


class Point(NamedTuple):
    """A point in pixel space."""
    x: float
    y: float


def generate_measurement_id() -> str:
    """Generate a unique measurement id like "m_1718200000000_3f9a1c2b7"."""
    return f"m_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {key: value for key, value in data.items() if key in names}


@dataclass
class Dimensions:
    """
    Supplemental dimensions entered by the user.

    Lengths are in meters; quantity is a unitless repetition count.
    depth is stored but no derivation rule uses it.
    """
    height: Optional[float] = None
    width: Optional[float] = None
    depth: Optional[float] = None
    thickness: Optional[float] = None
    quantity: float = 1

    def __post_init__(self):
        for name in ("height", "width", "depth", "thickness"):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValidationError(f"Dimension {name} must be >= 0, got {value}")
        if self.quantity is None:
            self.quantity = 1
        if self.quantity < 1:
            raise ValidationError(f"Dimension quantity must be >= 1, got {self.quantity}")

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "height": self.height,
            "width": self.width,
            "depth": self.depth,
            "thickness": self.thickness,
            "quantity": self.quantity,
        })

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "Dimensions":
        return cls(**_known_fields(cls, data or {}))


@dataclass
class MeasurementCosts:
    """
    Cost inputs for a measurement.

    Only inputs are stored. Labor, material and total costs are always
    recomputed by takeoff.costing.derive_costs.
    """
    # Labor
    labor_trade_code: Optional[str] = None
    labor_trade_name: Optional[str] = None
    labor_hourly_rate: Optional[float] = None
    labor_hours: Optional[float] = None

    # Material
    material_name: Optional[str] = None
    material_unit: Optional[str] = None
    material_unit_price: Optional[float] = None
    material_quantity: Optional[float] = None

    # Markup in percent
    markup: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({f.name: getattr(self, f.name) for f in fields(self)})

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MeasurementCosts":
        return cls(**_known_fields(cls, data or {}))


@dataclass
class CalculatedValues:
    """Quantities derived from the primitive value and dimensions."""
    length: Optional[float] = None     # m
    area: Optional[float] = None       # m²
    volume: Optional[float] = None     # m³
    perimeter: Optional[float] = None  # m
    count: Optional[float] = None      # unité

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({f.name: getattr(self, f.name) for f in fields(self)})

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CalculatedValues":
        return cls(**_known_fields(cls, data or {}))


@dataclass
class Measurement:
    """
    A measurement drawn on a drawing page.

    value is the primitive quantity (m for lines, m² for rectangles and
    polygons, unit count for counts), computed once from the geometry and
    the scale in effect at creation. It is not rescaled when the page is
    recalibrated; scale_x/scale_y record the scale it was computed with.
    """
    # Identification
    id: str
    type: str

    # Geometry in pixel space
    points: List[Point] = field(default_factory=list)
    page_number: int = 1

    # Classification and display
    category: str = DEFAULT_CATEGORY
    color: str = DEFAULT_COLOR
    label: str = ""
    description: str = ""
    notes: str = ""

    # Primitive quantity
    value: float = 0.0
    unit: str = ""

    # Augmentation
    dimensions: Dimensions = field(default_factory=Dimensions)
    costs: MeasurementCosts = field(default_factory=MeasurementCosts)
    calculated: CalculatedValues = field(default_factory=CalculatedValues)

    # Scale the value was computed with (m/px)
    scale_x: Optional[float] = None
    scale_y: Optional[float] = None

    # Timestamps
    created_at: str = field(default_factory=utc_now_iso)
    updated_at: str = field(default_factory=utc_now_iso)

    def __post_init__(self):
        if self.type not in MeasurementType.ALL:
            raise ValidationError(f"Unknown measurement type: {self.type!r}")
        if self.value < 0:
            raise ValidationError(f"Measurement value must be >= 0, got {self.value}")
        self.points = [Point(float(p[0]), float(p[1])) for p in self.points]

        expected_unit = DEFAULT_UNITS[self.type]
        if not self.unit:
            self.unit = expected_unit

        if self.type == MeasurementType.COUNT:
            if self.value != len(self.points):
                raise ValidationError(
                    f"Count value must equal its number of points: "
                    f"{self.value} != {len(self.points)}"
                )
            if self.unit != expected_unit:
                raise ValidationError(f"Count unit must be {expected_unit!r}, got {self.unit!r}")

    @property
    def display_label(self) -> str:
        """Label, or "<type> - <category>" when none was given."""
        return self.label or f"{self.type} - {self.category}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert measurement to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "type": self.type,
            "points": [{"x": p.x, "y": p.y} for p in self.points],
            "page_number": self.page_number,
            "category": self.category,
            "color": self.color,
            "label": self.label,
            "description": self.description,
            "notes": self.notes,
            "value": self.value,
            "unit": self.unit,
            "dimensions": self.dimensions.to_dict(),
            "costs": self.costs.to_dict(),
            "calculated": self.calculated.to_dict(),
            "scale_x": self.scale_x,
            "scale_y": self.scale_y,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Measurement":
        """Rebuild a measurement from its to_dict() form."""
        points = []
        for p in data.get("points", []):
            if isinstance(p, dict):
                points.append(Point(float(p["x"]), float(p["y"])))
            else:
                points.append(Point(float(p[0]), float(p[1])))

        kwargs = _known_fields(cls, data)
        kwargs["points"] = points
        kwargs["dimensions"] = Dimensions.from_dict(data.get("dimensions"))
        kwargs["costs"] = MeasurementCosts.from_dict(data.get("costs"))
        kwargs["calculated"] = CalculatedValues.from_dict(data.get("calculated"))
        return cls(**kwargs)

    def to_csv_row(self) -> List[Any]:
        """Convert measurement to CSV row values."""
        return [
            self.id,
            self.type,
            self.page_number,
            self.category,
            self.display_label,
            round(self.value, 3),
            self.unit,
            _round_or_blank(self.calculated.length),
            _round_or_blank(self.calculated.area),
            _round_or_blank(self.calculated.volume),
            self.dimensions.quantity,
        ]

    @staticmethod
    def csv_header() -> List[str]:
        """Return CSV header row."""
        return [
            "id",
            "type",
            "page_number",
            "category",
            "label",
            "value",
            "unit",
            "length_m",
            "area_m2",
            "volume_m3",
            "quantity",
        ]


def _round_or_blank(value: Optional[float], digits: int = 3) -> Any:
    return "" if value is None else round(value, digits)
