"""
CSV Writer Module

Writes measurements and their recomputed costs to CSV files.
"""

import csv
import logging
from pathlib import Path
from typing import Iterable, List

from ..costing.calculator import derive_costs
from ..geometry.measurement import Measurement

logger = logging.getLogger(__name__)

COST_COLUMNS = [
    "labor_cost",
    "material_cost",
    "total_cost",
    "total_with_markup",
]


def _blank_or_round(value, digits: int = 2):
    return "" if value is None else round(value, digits)


def measurement_csv_row(measurement: Measurement) -> List:
    """Measurement row followed by its recomputed cost columns."""
    breakdown = derive_costs(measurement)
    return measurement.to_csv_row() + [
        _blank_or_round(breakdown.labor_cost),
        _blank_or_round(breakdown.material_cost),
        _blank_or_round(breakdown.total_cost),
        _blank_or_round(breakdown.total_with_markup),
    ]


def write_measurements_to_csv(
    measurements: Iterable[Measurement],
    output_path: str
) -> str:
    """
    Write measurements to a CSV file.

    Costs are recomputed at write time; blank cells mean "no cost data".

    Args:
        measurements: Measurements to write
        output_path: Output CSV file path

    Returns:
        Path to written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    rows = 0
    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(Measurement.csv_header() + COST_COLUMNS)
        for measurement in measurements:
            writer.writerow(measurement_csv_row(measurement))
            rows += 1

    logger.debug(f"Wrote {rows} measurements to {output_path}")
    return str(output_path)


def generate_csv_filename(input_path: str, output_dir: str) -> str:
    """
    Generate CSV output filename from input file name.

    Args:
        input_path: Input takeoff or drawing path
        output_dir: Output directory

    Returns:
        CSV file path like "<output_dir>/<stem>_measurements.csv"
    """
    stem = Path(input_path).stem
    return str(Path(output_dir) / f"{stem}_measurements.csv")
