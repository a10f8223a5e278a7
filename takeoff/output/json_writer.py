"""
JSON Writer Module

Writes a takeoff document (scale, measurements with recomputed costs,
category totals) to JSON, and loads one back into a collection.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from ..calibration.scale_calibrator import DEFAULT_SCALE, ScaleSpec, describe_scale
from ..collection.measurement_collection import MeasurementCollection
from ..constants import ENGINE_VERSION
from ..costing.calculator import derive_costs
from ..geometry.measurement import Measurement

logger = logging.getLogger(__name__)


def build_measurement_json(measurement: Measurement) -> Dict[str, Any]:
    """Measurement dict with its recomputed cost breakdown attached."""
    data = measurement.to_dict()
    data["cost_totals"] = derive_costs(measurement).to_dict()
    return data


def build_output_json(
    collection: MeasurementCollection,
    scale: Optional[ScaleSpec] = None,
    source_file: str = ""
) -> Dict[str, Any]:
    """
    Build the complete takeoff document.

    Args:
        collection: Measurements to export
        scale: Active scale (default scale if None)
        source_file: Drawing or takeoff file the measurements came from

    Returns:
        Dict with metadata, scale, measurements and totals
    """
    scale = scale or DEFAULT_SCALE
    stale = collection.stale_measurements(scale)

    return {
        "metadata": {
            "source_file": source_file,
            "engine_version": ENGINE_VERSION,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "total_measurements": len(collection),
            "stale_measurements": [m.id for m in stale],
        },
        "scale": {**scale.to_dict(), "notation": describe_scale(scale)},
        "measurements": [build_measurement_json(m) for m in collection],
        "totals": {
            "by_category": {
                category: totals.to_dict()
                for category, totals in collection.totals_by_category().items()
            },
            "grand_total": collection.grand_totals().to_dict(),
        },
    }


def write_takeoff_to_json(
    collection: MeasurementCollection,
    output_path: str,
    scale: Optional[ScaleSpec] = None,
    source_file: str = ""
) -> str:
    """
    Write a takeoff document to a JSON file.

    Returns:
        Path to written file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    document = build_output_json(collection, scale, source_file)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(document, f, indent=2, ensure_ascii=False)

    logger.debug(f"Wrote {len(collection)} measurements to {output_path}")
    return str(output_path)


def load_takeoff_json(
    input_path: str,
    default_scale: Optional[ScaleSpec] = None
) -> Tuple[MeasurementCollection, ScaleSpec]:
    """
    Load a takeoff document.

    Accepts a full document ({"scale", "measurements", ...}) or a bare
    list of measurement dicts. Stored cost totals are ignored; they are
    always recomputed from the inputs.

    Args:
        input_path: Takeoff JSON path
        default_scale: Scale for files that record none (DEFAULT_SCALE
                       when omitted)

    Returns:
        (collection, scale)

    Raises:
        ValueError: If the file is not a takeoff document
    """
    with open(input_path, encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        items, scale_data = data, None
    elif isinstance(data, dict) and "measurements" in data:
        items, scale_data = data["measurements"], data.get("scale")
    else:
        raise ValueError(f"Not a takeoff document: {input_path}")

    if scale_data:
        scale = ScaleSpec.from_dict(scale_data)
    else:
        scale = default_scale or DEFAULT_SCALE
    collection = MeasurementCollection.from_list(items)

    logger.debug(f"Loaded {len(collection)} measurements from {input_path}")
    return collection, scale


def generate_json_filename(input_path: str, output_dir: str) -> str:
    """JSON output path like "<output_dir>/<stem>_takeoff.json"."""
    stem = Path(input_path).stem
    return str(Path(output_dir) / f"{stem}_takeoff.json")
