# Dimension augmentation and cost rollup module

from .calculator import (
    CostBreakdown,
    derive_values,
    derive_costs,
    compute_labor_cost,
    compute_material_cost,
    best_material_quantity,
    recalculate,
)

from .reference import (
    LaborTrade,
    Material,
    Category,
    ReferenceTables,
    get_reference_tables,
    get_trade,
    get_material,
    get_category,
    default_color_for_category,
    suggest_trade_for_category,
    apply_trade,
    apply_material,
)

__all__ = [
    # Calculator
    "CostBreakdown",
    "derive_values",
    "derive_costs",
    "compute_labor_cost",
    "compute_material_cost",
    "best_material_quantity",
    "recalculate",
    # Reference tables
    "LaborTrade",
    "Material",
    "Category",
    "ReferenceTables",
    "get_reference_tables",
    "get_trade",
    "get_material",
    "get_category",
    "default_color_for_category",
    "suggest_trade_for_category",
    "apply_trade",
    "apply_material",
]
