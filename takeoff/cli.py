"""
Command Line Interface Module

Parses command-line arguments for the takeoff engine.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .constants import (
    DEFAULT_RENDER_DPI,
    OCR_MIN_CONFIDENCE,
    SortOrder,
    UnitSystem,
)

IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--settings",
        help="Settings YAML file (default: config/settings.yaml)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for the takeoff engine."""
    parser = argparse.ArgumentParser(
        prog="takeoff",
        description="Measure quantities on construction drawings and derive costs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  takeoff summary -i projet.json -o ./output --sort value
  takeoff ocr -i plans.pdf --page 2
  takeoff ocr -i scan.png --engine paddleocr --min-confidence 50
  takeoff calibrate --calib "100,200:600,200=10m"
  takeoff calibrate --preset "1/4\\" = 1'"
        """
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # summary
    summary = subparsers.add_parser(
        "summary",
        help="Recompute a saved takeoff and print category totals"
    )

    summary.add_argument(
        "-i", "--input",
        required=True,
        help="Takeoff JSON file"
    )

    summary.add_argument(
        "-o", "--output",
        help="Output directory for CSV/JSON exports (none written if omitted)"
    )

    summary.add_argument(
        "--sort",
        choices=list(SortOrder.ALL),
        default=SortOrder.CATEGORY,
        help="Measurement order in exports (default: category)"
    )

    _add_common_arguments(summary)

    # ocr
    ocr = subparsers.add_parser(
        "ocr",
        help="Extract text from a drawing and suggest scales and dimensions"
    )

    ocr.add_argument(
        "-i", "--input",
        required=True,
        help="Drawing PDF or image file"
    )

    ocr.add_argument(
        "--page",
        type=int,
        default=1,
        help="PDF page number, 1-indexed (default: 1)"
    )

    ocr.add_argument(
        "--engine",
        choices=["tesseract", "paddleocr", "embedded"],
        help="Token source (default: embedded for PDFs, tesseract for images)"
    )

    ocr.add_argument(
        "--min-confidence",
        type=float,
        help=f"Minimum OCR confidence 0-100 (default: {OCR_MIN_CONFIDENCE})"
    )

    ocr.add_argument(
        "--dpi",
        type=int,
        help=f"Render DPI for PDF pages (default: {DEFAULT_RENDER_DPI})"
    )

    ocr.add_argument(
        "--lang",
        help="OCR language code (default: fra+eng for Tesseract)"
    )

    ocr.add_argument(
        "--assume-unit",
        help="Unit for bare numbers, e.g. mm (default: ignore bare numbers)"
    )

    _add_common_arguments(ocr)

    # calibrate
    calibrate = subparsers.add_parser(
        "calibrate",
        help="Compute a scale from two points, a preset or manual values"
    )

    source = calibrate.add_mutually_exclusive_group(required=True)

    source.add_argument(
        "--calib",
        help="Two-point calibration ('x1,y1:x2,y2=10ft')"
    )

    source.add_argument(
        "--preset",
        help="Named scale preset (e.g. '1:50', '1/4\" = 1\\'')"
    )

    source.add_argument(
        "--scale",
        type=float,
        help="Manual scale in meters per pixel (X axis, or both)"
    )

    calibrate.add_argument(
        "--scale-y",
        type=float,
        help="Manual Y-axis scale in meters per pixel (default: same as --scale)"
    )

    calibrate.add_argument(
        "--axis",
        choices=["x", "y", "both"],
        default="both",
        help="Axis a two-point calibration targets (default: both)"
    )

    calibrate.add_argument(
        "--unlink-axes",
        action="store_true",
        help="Only update the calibrated axis"
    )

    calibrate.add_argument(
        "--units",
        choices=list(UnitSystem.ALL),
        help="Unit system of the resulting scale"
    )

    _add_common_arguments(calibrate)

    return parser


def validate_args(args: argparse.Namespace) -> Tuple[bool, str]:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments

    Returns:
        Tuple of (is_valid, error_message)
    """
    if getattr(args, "settings", None) and not Path(args.settings).exists():
        return False, f"Settings file not found: {args.settings}"

    if args.command == "summary":
        input_path = Path(args.input)
        if not input_path.exists():
            return False, f"Input file not found: {args.input}"
        if input_path.suffix.lower() != ".json":
            return False, f"Input file must be a takeoff JSON: {args.input}"

        if args.output:
            try:
                Path(args.output).mkdir(parents=True, exist_ok=True)
            except OSError as e:
                return False, f"Cannot create output directory: {e}"

    elif args.command == "ocr":
        input_path = Path(args.input)
        if not input_path.exists():
            return False, f"Input file not found: {args.input}"
        suffix = input_path.suffix.lower()
        if suffix != ".pdf" and suffix not in IMAGE_SUFFIXES:
            return False, f"Input file must be a PDF or image: {args.input}"

        if args.page < 1:
            return False, f"Page number must be >= 1: {args.page}"

        if args.min_confidence is not None and not 0 <= args.min_confidence <= 100:
            return False, f"Minimum confidence must be between 0 and 100: {args.min_confidence}"

        if args.dpi is not None and (args.dpi < 72 or args.dpi > 600):
            return False, f"DPI must be between 72 and 600: {args.dpi}"

    elif args.command == "calibrate":
        if args.scale is not None and args.scale <= 0:
            return False, f"Scale must be positive: {args.scale}"
        if args.scale_y is not None and args.scale is None:
            return False, "--scale-y requires --scale"
        if args.scale_y is not None and args.scale_y <= 0:
            return False, f"Scale must be positive: {args.scale_y}"

    return True, ""


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse and validate command-line arguments.

    Args:
        args: Optional list of arguments (uses sys.argv if None)

    Returns:
        Parsed and validated arguments
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    is_valid, error_msg = validate_args(parsed)
    if not is_valid:
        parser.error(error_msg)

    return parsed


def run_command(args: argparse.Namespace):
    """Dispatch parsed arguments to the matching pipeline."""
    from .pipeline import (
        CalibrationConfig,
        OCRConfig,
        SummaryConfig,
        run_calibration,
        run_ocr_suggestions,
        run_summary,
    )

    if args.command == "summary":
        return run_summary(SummaryConfig(
            input_path=args.input,
            output_dir=args.output,
            sort=args.sort,
            settings_path=args.settings,
            verbose=args.verbose,
        ))
    elif args.command == "ocr":
        return run_ocr_suggestions(OCRConfig(
            input_path=args.input,
            page=args.page,
            engine=args.engine,
            min_confidence=args.min_confidence,
            dpi=args.dpi,
            lang=args.lang,
            assume_unit=args.assume_unit,
            settings_path=args.settings,
            verbose=args.verbose,
        ))
    elif args.command == "calibrate":
        return run_calibration(CalibrationConfig(
            calib=args.calib,
            preset=args.preset,
            scale_x=args.scale,
            scale_y=args.scale_y,
            axis=args.axis,
            unlink_axes=args.unlink_axes,
            unit_system=args.units,
            settings_path=args.settings,
            verbose=args.verbose,
        ))
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None):
    """Main entry point for CLI."""
    args = parse_args(argv)

    try:
        run_command(args)
    except KeyboardInterrupt:
        print("\nProcessing cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"\nError: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
