"""
Measurement Collection Module

Ordered, id-keyed store of measurements for one takeoff, with category
rollups and sorted views. Mutations are serialized behind a lock so a UI
thread and a background exporter can share one collection.
"""

import copy
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, fields
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..calibration.scale_calibrator import ScaleSpec
from ..constants import (
    DUPLICATE_LABEL_SUFFIX,
    MeasurementType,
    SortOrder,
)
from ..costing.calculator import derive_costs, recalculate
from ..errors import (
    DuplicateMeasurementError,
    MeasurementNotFoundError,
    ValidationError,
)
from ..geometry.calculator import compute_primitive_value, is_stale
from ..geometry.measurement import (
    Dimensions,
    Measurement,
    MeasurementCosts,
    Point,
    generate_measurement_id,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

# Fields whose change invalidates the derived values
_RECALC_FIELDS = ("value", "points", "dimensions", "type", "scale_x", "scale_y")

# Fields that change the primitive value itself
_GEOMETRY_FIELDS = ("points", "type")

# Fields an update may never touch
_IMMUTABLE_FIELDS = ("id", "created_at", "calculated")


@dataclass
class CategoryTotals:
    """Rolled-up quantities and costs for one category."""
    count: int = 0
    linear_meters: float = 0.0
    area_square_meters: float = 0.0
    unit_count: float = 0.0
    labor_cost: float = 0.0
    material_cost: float = 0.0
    total_cost: float = 0.0

    def add(self, measurement: Measurement) -> None:
        """Fold one measurement into the totals."""
        self.count += 1
        if measurement.type == MeasurementType.LINE:
            self.linear_meters += measurement.value
        elif measurement.type in (MeasurementType.RECTANGLE, MeasurementType.AREA):
            self.area_square_meters += measurement.value
        elif measurement.type == MeasurementType.COUNT:
            self.unit_count += measurement.value

        breakdown = derive_costs(measurement)
        self.labor_cost += breakdown.labor_cost or 0.0
        self.material_cost += breakdown.material_cost or 0.0
        self.total_cost += breakdown.total_cost or 0.0

    def merge(self, other: "CategoryTotals") -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "linear_meters": round(self.linear_meters, 3),
            "area_square_meters": round(self.area_square_meters, 3),
            "unit_count": self.unit_count,
            "labor_cost": round(self.labor_cost, 2),
            "material_cost": round(self.material_cost, 2),
            "total_cost": round(self.total_cost, 2),
        }


def _recompute_primitive(measurement: Measurement) -> Tuple[float, str]:
    """Value and unit of a measurement's geometry at its recorded scale."""
    if measurement.scale_x is None or measurement.scale_y is None:
        raise ValidationError(
            f"Measurement {measurement.id} has no recorded scale; "
            f"its points or type cannot be changed"
        )
    scale = ScaleSpec(scale_x=measurement.scale_x, scale_y=measurement.scale_y)
    return compute_primitive_value(measurement.type, measurement.points, scale)

class MeasurementCollection:
    """
    Measurements of a takeoff, in insertion order.

    Stored measurements are owned by the collection; get() and iteration
    return them directly, so callers should go through update() to change
    anything that feeds the derived values.
    """

    def __init__(self, measurements: Optional[List[Measurement]] = None):
        self._items: "OrderedDict[str, Measurement]" = OrderedDict()
        self._lock = threading.RLock()
        for measurement in measurements or []:
            self.add(measurement)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Measurement]:
        with self._lock:
            snapshot = list(self._items.values())
        return iter(snapshot)

    def __contains__(self, measurement_id: object) -> bool:
        return measurement_id in self._items

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def add(self, measurement: Measurement) -> Measurement:
        """
        Add a measurement.

        Raises:
            DuplicateMeasurementError: If the id is already present
        """
        with self._lock:
            if measurement.id in self._items:
                raise DuplicateMeasurementError(
                    f"Measurement {measurement.id} already exists"
                )
            self._items[measurement.id] = measurement

        logger.debug(f"Added measurement {measurement.id} ({measurement.type})")
        return measurement

    def get(self, measurement_id: str) -> Measurement:
        """
        Raises:
            MeasurementNotFoundError: If the id is unknown
        """
        with self._lock:
            try:
                return self._items[measurement_id]
            except KeyError:
                raise MeasurementNotFoundError(
                    f"Measurement not found: {measurement_id}"
                ) from None

    def update(self, measurement_id: str, **patch: Any) -> Measurement:
        """
        Apply a partial update to a measurement.

        Derived values are recomputed when value, points, type, scale or
        dimensions change. updated_at is always refreshed. A new shape or
        type also recomputes value and unit from the recorded scale.

        Args:
            measurement_id: Id of the measurement to update
            **patch: Field values to set; dimensions and costs accept a
                dataclass or a dict of the fields to change

        Returns:
            The updated measurement

        Raises:
            MeasurementNotFoundError: If the id is unknown
            ValueError: If the patch names an unknown or read-only field
            ValidationError: If the patched geometry is invalid, or changes
                the shape of a measurement with no recorded scale
        """
        with self._lock:
            measurement = self.get(measurement_id)

            known = {f.name for f in fields(Measurement)}
            for key in patch:
                if key not in known:
                    raise ValueError(f"Unknown measurement field: {key}")
                if key in _IMMUTABLE_FIELDS:
                    raise ValueError(f"Field cannot be updated: {key}")

            # Validate on a copy so a bad patch leaves the stored one intact
            updated = copy.deepcopy(measurement)
            for key, value in patch.items():
                if key == "dimensions" and isinstance(value, dict):
                    merged = updated.dimensions.to_dict()
                    merged.update(value)
                    value = Dimensions.from_dict(merged)
                elif key == "costs" and isinstance(value, dict):
                    merged = updated.costs.to_dict()
                    merged.update(value)
                    value = MeasurementCosts.from_dict(merged)
                setattr(updated, key, value)

            if any(key in patch for key in _GEOMETRY_FIELDS):
                updated.value, updated.unit = _recompute_primitive(updated)

            # Re-run construction checks (type, value, point coercion)
            updated.__post_init__()

            if any(key in patch for key in _RECALC_FIELDS):
                recalculate(updated)
            else:
                updated.updated_at = utc_now_iso()

            self._items[measurement_id] = updated

        logger.debug(f"Updated measurement {measurement_id}: {sorted(patch)}")
        return updated

    def remove(self, measurement_id: str) -> Measurement:
        """
        Remove and return a measurement.

        Raises:
            MeasurementNotFoundError: If the id is unknown
        """
        with self._lock:
            if measurement_id not in self._items:
                raise MeasurementNotFoundError(
                    f"Measurement not found: {measurement_id}"
                )
            removed = self._items.pop(measurement_id)

        logger.debug(f"Removed measurement {measurement_id}")
        return removed

    def duplicate(
        self,
        measurement_id: str,
        offset: Optional[Tuple[float, float]] = None
    ) -> Measurement:
        """
        Copy a measurement under a new id, appended to the collection.

        The copy's label gets a " (copie)" suffix and fresh timestamps.
        offset shifts its points in pixels; value is unchanged by a
        translation.

        Raises:
            MeasurementNotFoundError: If the id is unknown
        """
        with self._lock:
            original = self.get(measurement_id)

            clone = copy.deepcopy(original)
            clone.id = generate_measurement_id()
            clone.label = f"{original.display_label}{DUPLICATE_LABEL_SUFFIX}"
            if offset is not None:
                dx, dy = offset
                clone.points = [Point(p.x + dx, p.y + dy) for p in clone.points]
            now = utc_now_iso()
            clone.created_at = now
            clone.updated_at = now

            self._items[clone.id] = clone

        logger.debug(f"Duplicated measurement {measurement_id} -> {clone.id}")
        return clone

    def clear(self) -> None:
        with self._lock:
            self._items.clear()

    # -------------------------------------------------------------------------
    # VIEWS
    # -------------------------------------------------------------------------

    def sorted(self, by: str = SortOrder.CATEGORY) -> List[Measurement]:
        """
        Measurements ordered by category, type or value.

        Category and type sort ascending; value sorts descending.
        Ties keep insertion order.

        Raises:
            ValueError: If by is not a known sort order
        """
        items = list(self)
        if by == SortOrder.CATEGORY:
            return sorted(items, key=lambda m: m.category)
        elif by == SortOrder.TYPE:
            return sorted(items, key=lambda m: m.type)
        elif by == SortOrder.VALUE:
            return sorted(items, key=lambda m: m.value, reverse=True)
        raise ValueError(f"Unknown sort order: {by!r} (expected one of {SortOrder.ALL})")

    def group_by_category(self) -> Dict[str, List[Measurement]]:
        """Measurements grouped by category, in first-seen category order."""
        groups: Dict[str, List[Measurement]] = {}
        for measurement in self:
            groups.setdefault(measurement.category, []).append(measurement)
        return groups

    def for_page(self, page_number: int) -> List[Measurement]:
        return [m for m in self if m.page_number == page_number]

    def stale_measurements(self, active_scale: ScaleSpec) -> List[Measurement]:
        """Measurements whose recorded scale differs from active_scale."""
        return [m for m in self if is_stale(m, active_scale)]

    # -------------------------------------------------------------------------
    # TOTALS
    # -------------------------------------------------------------------------

    def totals_by_category(self) -> Dict[str, CategoryTotals]:
        """
        Roll up each category: measurement count, summed line values (m),
        summed rectangle and polygon values (m²), summed counts, and the
        recomputed labor, material and total costs (without markup).
        """
        totals: Dict[str, CategoryTotals] = {}
        for measurement in self:
            totals.setdefault(measurement.category, CategoryTotals()).add(measurement)
        return totals

    def grand_totals(self) -> CategoryTotals:
        """Totals across every category."""
        grand = CategoryTotals()
        for category_totals in self.totals_by_category().values():
            grand.merge(category_totals)
        return grand

    # -------------------------------------------------------------------------
    # SERIALIZATION
    # -------------------------------------------------------------------------

    def to_list(self) -> List[Dict[str, Any]]:
        return [m.to_dict() for m in self]

    @classmethod
    def from_list(cls, data: List[Dict[str, Any]]) -> "MeasurementCollection":
        return cls([Measurement.from_dict(item) for item in data])
