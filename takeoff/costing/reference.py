"""
Reference Tables Module

Lookup of CCQ labor trades, common materials and takeoff categories, and
helpers that copy a selected trade or material into a measurement's cost
inputs.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..constants import DEFAULT_COLOR
from ..errors import UnknownReferenceError
from ..geometry.measurement import CalculatedValues, MeasurementCosts
from ..settings import Settings
from .calculator import best_material_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LaborTrade:
    """A CCQ trade with its hourly rate."""
    code: str
    name: str
    hourly_rate: float


@dataclass(frozen=True)
class Material:
    """A material with its unit and unit price."""
    id: str
    name: str
    unit: str
    price: float


@dataclass(frozen=True)
class Category:
    """A takeoff category with display color and default trade."""
    id: str
    name: str
    color: str
    default_trade: str = ""


class ReferenceTables:
    """Trades, materials and categories indexed for lookup."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or Settings()

        self.trades: Dict[str, LaborTrade] = {}
        for entry in settings.trades:
            trade = LaborTrade(
                code=str(entry["code"]),
                name=str(entry["name"]),
                hourly_rate=float(entry.get("rate", entry.get("hourly_rate", 0.0))),
            )
            self.trades[trade.code.upper()] = trade

        self.materials: Dict[str, Material] = {}
        for entry in settings.materials:
            material = Material(
                id=str(entry["id"]),
                name=str(entry["name"]),
                unit=str(entry["unit"]),
                price=float(entry["price"]),
            )
            self.materials[material.id] = material

        self.categories: List[Category] = [
            Category(
                id=str(entry["id"]),
                name=str(entry["name"]),
                color=str(entry.get("color", DEFAULT_COLOR)),
                default_trade=str(entry.get("default_trade") or ""),
            )
            for entry in settings.categories
        ]

    def get_trade(self, code: str) -> LaborTrade:
        trade = self.trades.get((code or "").upper())
        if trade is None:
            raise UnknownReferenceError(f"Unknown trade code: {code!r}")
        return trade

    def get_material(self, material_id: str) -> Material:
        material = self.materials.get(material_id)
        if material is None:
            raise UnknownReferenceError(f"Unknown material id: {material_id!r}")
        return material

    def find_category(self, name_or_id: str) -> Optional[Category]:
        key = (name_or_id or "").strip().lower()
        for category in self.categories:
            if category.id.lower() == key or category.name.lower() == key:
                return category
        return None


_default_tables: Optional[ReferenceTables] = None


def get_reference_tables() -> ReferenceTables:
    """Return the stock reference tables (built on first use)."""
    global _default_tables
    if _default_tables is None:
        _default_tables = ReferenceTables()
    return _default_tables


def get_trade(code: str, tables: Optional[ReferenceTables] = None) -> LaborTrade:
    """
    Look up a labor trade by CCQ code.

    Raises:
        UnknownReferenceError: If the code is not in the table
    """
    return (tables or get_reference_tables()).get_trade(code)


def get_material(material_id: str, tables: Optional[ReferenceTables] = None) -> Material:
    """
    Look up a material by id.

    Raises:
        UnknownReferenceError: If the id is not in the table
    """
    return (tables or get_reference_tables()).get_material(material_id)


def get_category(name_or_id: str, tables: Optional[ReferenceTables] = None) -> Category:
    """
    Look up a category by id or display name (case-insensitive).

    Raises:
        UnknownReferenceError: If no category matches
    """
    category = (tables or get_reference_tables()).find_category(name_or_id)
    if category is None:
        raise UnknownReferenceError(f"Unknown category: {name_or_id!r}")
    return category


def default_color_for_category(
    name_or_id: str,
    tables: Optional[ReferenceTables] = None
) -> str:
    """Display color for a category; free-form categories get the default."""
    category = (tables or get_reference_tables()).find_category(name_or_id)
    return category.color if category else DEFAULT_COLOR


def suggest_trade_for_category(
    name_or_id: str,
    tables: Optional[ReferenceTables] = None
) -> Optional[LaborTrade]:
    """Default trade for a category, or None when it has none."""
    tables = tables or get_reference_tables()
    category = tables.find_category(name_or_id)
    if category is None or not category.default_trade:
        return None
    try:
        return tables.get_trade(category.default_trade)
    except UnknownReferenceError:
        logger.warning(
            f"Category {category.name} references unknown trade {category.default_trade}"
        )
        return None


def apply_trade(
    costs: MeasurementCosts,
    code: str,
    tables: Optional[ReferenceTables] = None
) -> MeasurementCosts:
    """
    Copy a trade's code, name and hourly rate into cost inputs.

    Hours are left untouched.

    Returns:
        The same MeasurementCosts, for chaining

    Raises:
        UnknownReferenceError: If the code is not in the table
    """
    trade = get_trade(code, tables)
    costs.labor_trade_code = trade.code
    costs.labor_trade_name = trade.name
    costs.labor_hourly_rate = trade.hourly_rate
    return costs


def apply_material(
    costs: MeasurementCosts,
    material_id: str,
    calculated: CalculatedValues,
    value: float,
    tables: Optional[ReferenceTables] = None
) -> MeasurementCosts:
    """
    Copy a material's name, unit and price into cost inputs.

    The material quantity defaults to the best derived quantity (area,
    else volume, else the raw value); callers may override it afterwards.

    Returns:
        The same MeasurementCosts, for chaining

    Raises:
        UnknownReferenceError: If the id is not in the table
    """
    material = get_material(material_id, tables)
    costs.material_name = material.name
    costs.material_unit = material.unit
    costs.material_unit_price = material.price
    costs.material_quantity = best_material_quantity(calculated, value)
    return costs
