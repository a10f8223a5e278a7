"""
Cost Calculator Module

Derives secondary quantities (area, volume) from a measurement's primitive
value and supplemental dimensions, and rolls up labor and material costs.
Both are pure functions of the measurement's stored fields and never raise;
missing inputs produce None, which is distinct from zero.
"""

import logging
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

from ..constants import MeasurementType
from ..geometry.calculator import compute_perimeter
from ..geometry.measurement import (
    CalculatedValues,
    Measurement,
    utc_now_iso,
)

logger = logging.getLogger(__name__)


@dataclass
class CostBreakdown:
    """Recomputed cost totals for a measurement."""
    labor_cost: Optional[float] = None
    material_cost: Optional[float] = None
    total_cost: Optional[float] = None
    total_with_markup: Optional[float] = None

    @property
    def has_cost_data(self) -> bool:
        return self.total_cost is not None

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


def derive_values(measurement: Measurement) -> CalculatedValues:
    """
    Derive secondary quantities from a measurement.

    Rules:
        line: length = value; + height -> area; + height + width -> volume
        rectangle/area: area = value; + thickness -> volume
        count: count = value, never area or volume
    Every derived quantity is multiplied by dimensions.quantity when > 1.

    Args:
        measurement: Measurement with value and dimensions

    Returns:
        CalculatedValues
    """
    result = CalculatedValues()
    dims = measurement.dimensions
    value = measurement.value

    if measurement.type == MeasurementType.LINE:
        result.length = value
        if _positive(dims.height):
            result.area = value * dims.height
            if _positive(dims.width):
                result.volume = value * dims.height * dims.width

    elif measurement.type in (MeasurementType.RECTANGLE, MeasurementType.AREA):
        result.area = value
        result.perimeter = compute_perimeter(measurement)
        if _positive(dims.thickness):
            result.volume = value * dims.thickness

    elif measurement.type == MeasurementType.COUNT:
        result.count = value

    quantity = dims.quantity or 1
    if quantity > 1:
        for f in fields(result):
            current = getattr(result, f.name)
            if current is not None:
                setattr(result, f.name, current * quantity)

    return result


def compute_labor_cost(
    hourly_rate: Optional[float],
    hours: Optional[float]
) -> Optional[float]:
    """Labor cost, or None unless both rate and hours are present."""
    if hourly_rate is None or hours is None:
        return None
    return hourly_rate * hours


def compute_material_cost(
    unit_price: Optional[float],
    quantity: Optional[float]
) -> Optional[float]:
    """Material cost, or None unless both price and quantity are present."""
    if unit_price is None or quantity is None:
        return None
    return unit_price * quantity


def derive_costs(measurement: Measurement) -> CostBreakdown:
    """
    Roll up labor and material costs for a measurement.

    total_cost treats a missing component as 0 but is None when both are
    missing ("no cost data" rather than "zero cost").

    Args:
        measurement: Measurement with cost inputs

    Returns:
        CostBreakdown
    """
    costs = measurement.costs

    labor = compute_labor_cost(costs.labor_hourly_rate, costs.labor_hours)
    material = compute_material_cost(costs.material_unit_price, costs.material_quantity)

    if labor is None and material is None:
        return CostBreakdown()

    total = (labor or 0.0) + (material or 0.0)

    if _positive(costs.markup):
        total_with_markup = total * (1 + costs.markup / 100)
    else:
        total_with_markup = total

    return CostBreakdown(
        labor_cost=labor,
        material_cost=material,
        total_cost=total,
        total_with_markup=total_with_markup,
    )


def best_material_quantity(
    calculated: CalculatedValues,
    value: float
) -> float:
    """
    Default material quantity: area if present, else volume, else value.
    """
    if calculated.area is not None:
        return calculated.area
    if calculated.volume is not None:
        return calculated.volume
    return value


def recalculate(measurement: Measurement) -> Measurement:
    """
    Refresh a measurement's derived values in place.

    Called whenever value, geometry or dimensions change.

    Returns:
        The same measurement, for chaining
    """
    measurement.calculated = derive_values(measurement)
    measurement.updated_at = utc_now_iso()
    return measurement
