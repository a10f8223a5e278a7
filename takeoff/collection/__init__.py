# Measurement collection module

from .measurement_collection import (
    CategoryTotals,
    MeasurementCollection,
)

__all__ = [
    "CategoryTotals",
    "MeasurementCollection",
]
