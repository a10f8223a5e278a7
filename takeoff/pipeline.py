"""
Pipeline Orchestration Module

Coordinates the command-line workflows: summarizing a saved takeoff,
extracting OCR suggestions from a drawing, and calibrating a scale.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .calibration.scale_calibrator import (
    ScaleSpec,
    calibrate_from_sample,
    check_scale_conflict,
    describe_scale,
    estimate_calibration_uncertainty,
    parse_calibration_string,
    propagate_uncertainty,
    scale_from_manual,
    scale_from_preset,
)
from .calibration.unit_converter import format_feet_inches
from .collection.measurement_collection import CategoryTotals, MeasurementCollection
from .constants import MeasurementType, SortOrder, UnitSystem
from .costing.calculator import derive_values
from .geometry.measurement import Measurement
from .output.csv_writer import generate_csv_filename, write_measurements_to_csv
from .output.json_writer import (
    generate_json_filename,
    load_takeoff_json,
    write_takeoff_to_json,
)
from .settings import load_settings
from .text.dimension_classifier import (
    DimensionSuggestion,
    ScaleSuggestion,
    classify_tokens,
    suggest_dimensions,
    suggest_scales,
)
from .text.ocr_engine import OCRToken, extract_pdf_page_tokens, run_ocr


logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure root logging for command-line runs."""
    log_level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=log_level, format='%(message)s')


# =============================================================================
# SUMMARY
# =============================================================================

@dataclass
class SummaryConfig:
    """Configuration for a takeoff summary run."""
    input_path: str
    output_dir: Optional[str] = None
    sort: str = SortOrder.CATEGORY
    settings_path: Optional[str] = None
    verbose: bool = False


@dataclass
class SummaryResult:
    """Result from a takeoff summary run."""
    input_file: str
    scale: ScaleSpec
    measurements: List[Measurement]
    totals: Dict[str, CategoryTotals]
    grand_total: CategoryTotals
    stale_ids: List[str]
    warnings: List[str]
    csv_path: Optional[str]
    json_path: Optional[str]
    processing_time: float


def run_summary(config: SummaryConfig) -> SummaryResult:
    """
    Recompute a saved takeoff and report its category totals.

    Derived values are refreshed from each measurement's stored value and
    dimensions; costs are recomputed on export. Measurements computed with
    a scale other than the document's are reported, not rescaled. A file
    that records no scale is read at the default scale from settings.

    Args:
        config: Summary configuration

    Returns:
        SummaryResult
    """
    start_time = time.time()
    setup_logging(config.verbose)

    logger.info(f"Summarizing: {config.input_path}")

    settings = load_settings(config.settings_path)
    default_scale = ScaleSpec(
        scale_x=settings.default_scale_x,
        scale_y=settings.default_scale_y,
        unit_system=settings.unit_system,
    )

    collection, scale = load_takeoff_json(config.input_path, default_scale)
    warnings = []

    for measurement in collection:
        measurement.calculated = derive_values(measurement)

    stale = collection.stale_measurements(scale)
    for measurement in stale:
        warnings.append(
            f"{measurement.display_label}: computed at a different scale "
            f"(X={measurement.scale_x:.6f}, Y={measurement.scale_y:.6f} m/px)"
        )

    ordered = collection.sorted(config.sort)
    totals = collection.totals_by_category()
    grand_total = collection.grand_totals()

    csv_path = None
    json_path = None
    if config.output_dir:
        output_dir = Path(config.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        csv_path = generate_csv_filename(config.input_path, config.output_dir)
        write_measurements_to_csv(ordered, csv_path)
        logger.info(f"CSV written: {csv_path}")

        json_path = generate_json_filename(config.input_path, config.output_dir)
        write_takeoff_to_json(
            MeasurementCollection(ordered), json_path,
            scale=scale,
            source_file=config.input_path,
        )
        logger.info(f"JSON written: {json_path}")

    processing_time = time.time() - start_time

    logger.info(f"\nScale: {describe_scale(scale)}")
    logger.info(f"Measurements: {len(collection)}")
    for category, category_totals in totals.items():
        logger.info(
            f"  {category}: {category_totals.count} items, "
            f"{category_totals.linear_meters:.2f} m, "
            f"{category_totals.area_square_meters:.2f} m², "
            f"{category_totals.unit_count:g} unités, "
            f"{category_totals.total_cost:,.2f} $"
        )
    logger.info(f"Total cost: {grand_total.total_cost:,.2f} $")

    if warnings:
        logger.info(f"\nWarnings ({len(warnings)}):")
        for w in warnings[:10]:
            logger.info(f"  - {w}")
        if len(warnings) > 10:
            logger.info(f"  ... and {len(warnings) - 10} more")

    return SummaryResult(
        input_file=config.input_path,
        scale=scale,
        measurements=ordered,
        totals=totals,
        grand_total=grand_total,
        stale_ids=[m.id for m in stale],
        warnings=warnings,
        csv_path=csv_path,
        json_path=json_path,
        processing_time=processing_time,
    )


# =============================================================================
# OCR SUGGESTIONS
# =============================================================================

@dataclass
class OCRConfig:
    """Configuration for an OCR suggestion run."""
    input_path: str
    page: int = 1
    engine: Optional[str] = None
    min_confidence: Optional[float] = None
    dpi: Optional[int] = None
    lang: Optional[str] = None
    assume_unit: Optional[str] = None
    settings_path: Optional[str] = None
    verbose: bool = False


@dataclass
class OCRResult:
    """Classified tokens and the suggestions drawn from them."""
    input_file: str
    engine: str
    tokens: List[OCRToken]
    scale_suggestions: List[ScaleSuggestion]
    dimension_suggestions: List[DimensionSuggestion]
    warnings: List[str] = field(default_factory=list)


def resolve_engine(input_path: str, engine: Optional[str]) -> str:
    """
    Pick the token source for an input file.

    PDFs default to their embedded text layer; images default to
    Tesseract. The embedded engine is only meaningful for PDFs.
    """
    is_pdf = Path(input_path).suffix.lower() == ".pdf"
    if engine is None:
        return "embedded" if is_pdf else "tesseract"
    if engine == "embedded" and not is_pdf:
        logger.warning("Embedded text requires a PDF, using Tesseract")
        return "tesseract"
    return engine


def find_scale_conflicts(
    suggestions: List[ScaleSuggestion],
    threshold_percent: float
) -> List[str]:
    """Warnings for detected scales that disagree with the best one."""
    warnings = []
    if len(suggestions) < 2:
        return warnings

    best = suggestions[0]
    for other in suggestions[1:]:
        if check_scale_conflict(best.scale.scale_x, other.scale.scale_x, threshold_percent):
            warnings.append(
                f"Scale conflict: {best.token.text!r} (1:{best.ratio:g}) "
                f"vs {other.token.text!r} (1:{other.ratio:g})"
            )
    return warnings


def run_ocr_suggestions(config: OCRConfig) -> OCRResult:
    """
    Extract tokens from a drawing, classify them, and suggest scales and
    dimensions for the user to confirm.

    Args:
        config: OCR configuration

    Returns:
        OCRResult
    """
    setup_logging(config.verbose)
    settings = load_settings(config.settings_path)

    engine = resolve_engine(config.input_path, config.engine)
    min_confidence = (
        config.min_confidence if config.min_confidence is not None
        else settings.ocr_min_confidence
    )
    dpi = config.dpi or settings.render_dpi
    lang = config.lang or (settings.ocr_lang if engine == "tesseract" else None)

    logger.info(f"Extracting text: {config.input_path} (page {config.page}, {engine})")

    if Path(config.input_path).suffix.lower() == ".pdf":
        tokens = extract_pdf_page_tokens(
            config.input_path,
            page_number=config.page,
            engine=engine,
            dpi=dpi,
            lang=lang,
            min_confidence=min_confidence,
        )
    else:
        tokens = run_ocr(
            config.input_path,
            page_number=config.page,
            engine=engine,
            lang=lang,
            min_confidence=min_confidence,
        )

    tokens = classify_tokens(tokens)
    unit_system = settings.unit_system
    scales = suggest_scales(tokens, unit_system)
    dimensions = suggest_dimensions(tokens, assume_unit=config.assume_unit)
    warnings = find_scale_conflicts(scales, settings.scale_conflict_threshold_percent)

    if not tokens:
        warnings.append("No text found")

    logger.info(f"\nTokens: {len(tokens)}")
    for token in tokens:
        logger.debug(f"  [{token.type}] {token.text!r} ({token.confidence:.0f}%)")

    logger.info(f"Scale suggestions: {len(scales)}")
    for suggestion in scales:
        logger.info(
            f"  {suggestion.token.text!r} -> {describe_scale(suggestion.scale)} "
            f"({suggestion.scale.scale_x:.6f} m/px)"
        )

    logger.info(f"Dimension suggestions: {len(dimensions)}")
    for suggestion in dimensions:
        logger.info(
            f"  {suggestion.token.text!r} -> "
            f"{suggestion.dimension.value_meters:.4f} m"
        )

    for w in warnings:
        logger.warning(f"  - {w}")

    return OCRResult(
        input_file=config.input_path,
        engine=engine,
        tokens=tokens,
        scale_suggestions=scales,
        dimension_suggestions=dimensions,
        warnings=warnings,
    )


# =============================================================================
# CALIBRATION
# =============================================================================

@dataclass
class CalibrationConfig:
    """Configuration for a calibration run. Exactly one source is used."""
    calib: Optional[str] = None
    preset: Optional[str] = None
    scale_x: Optional[float] = None
    scale_y: Optional[float] = None
    axis: str = "both"
    unlink_axes: bool = False
    unit_system: Optional[str] = None
    settings_path: Optional[str] = None
    verbose: bool = False


@dataclass
class CalibrationResult:
    """A calibrated scale and its estimated precision."""
    scale: ScaleSpec
    source: str
    notation: str
    relative_uncertainty: Optional[float] = None
    area_uncertainty: Optional[float] = None


def run_calibration(config: CalibrationConfig) -> CalibrationResult:
    """
    Produce a ScaleSpec from a two-point calibration, a preset or manual
    values, in that order of precedence.

    Two-point calibrations also report the relative uncertainty implied
    by the configured click tolerance.

    Raises:
        ValueError: If no calibration source is given
        ValidationError: If the calibration input is invalid
    """
    setup_logging(config.verbose)
    settings = load_settings(config.settings_path)

    relative_uncertainty = None
    area_uncertainty = None

    if config.calib:
        sample = parse_calibration_string(config.calib)
        current = ScaleSpec(
            scale_x=settings.default_scale_x,
            scale_y=settings.default_scale_y,
            unit_system=settings.unit_system,
        )
        unit_system = config.unit_system
        if unit_system is None and sample.unit in ("ft", "in"):
            unit_system = UnitSystem.IMPERIAL
        scale = calibrate_from_sample(
            sample,
            current=current,
            axis=config.axis,
            link_axes=not config.unlink_axes,
            unit_system=unit_system,
        )
        relative_uncertainty = estimate_calibration_uncertainty(
            sample.point1, sample.point2, settings.click_tolerance_px
        )
        area_uncertainty = propagate_uncertainty(relative_uncertainty, MeasurementType.AREA)
        source = f"calibration: {config.calib}"
    elif config.preset:
        scale = scale_from_preset(config.preset)
        source = f"preset: {config.preset}"
    elif config.scale_x is not None:
        scale = scale_from_manual(
            config.scale_x,
            config.scale_y,
            config.unit_system or settings.unit_system,
        )
        source = "manual"
    else:
        raise ValueError("One of calibration, preset or scale is required")

    notation = describe_scale(scale)

    logger.info(f"Scale ({source}): {notation}")
    logger.info(f"  X: {scale.scale_x:.6f} m/px")
    logger.info(f"  Y: {scale.scale_y:.6f} m/px")
    if scale.unit_system == UnitSystem.IMPERIAL:
        logger.info(f"  100 px = {format_feet_inches(100 * scale.scale_x)}")
    if relative_uncertainty is not None:
        logger.info(
            f"  Uncertainty: ±{relative_uncertainty * 100:.2f}% length, "
            f"±{area_uncertainty * 100:.2f}% area"
        )

    return CalibrationResult(
        scale=scale,
        source=source,
        notation=notation,
        relative_uncertainty=relative_uncertainty,
        area_uncertainty=area_uncertainty,
    )
