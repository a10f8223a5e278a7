#!/usr/bin/env python
"""
Takeoff Engine - Installation Verification Script

Run this script to check that dependencies, OCR engines and the stock
settings file are usable.
"""

import sys
from pathlib import Path

# Add project root to path for the takeoff package
sys.path.insert(0, str(Path(__file__).parent.parent))


def check_package(name: str, import_name: str = None, version_attr: str = "__version__") -> tuple[bool, str]:
    """Check if a package is installed and return version."""
    import_name = import_name or name
    try:
        module = __import__(import_name)
        version = getattr(module, version_attr, "unknown")
        return True, str(version)
    except ImportError as e:
        return False, str(e)


def check_tesseract() -> tuple[bool, str]:
    """Check if the Tesseract executable is available."""
    try:
        import pytesseract
    except ImportError as e:
        return False, str(e)

    try:
        version = pytesseract.get_tesseract_version()
        languages = pytesseract.get_languages()
        missing = [lang for lang in ("fra", "eng") if lang not in languages]
        if missing:
            return False, f"{version}, missing language data: {', '.join(missing)}"
        return True, str(version)
    except (OSError, RuntimeError, pytesseract.TesseractNotFoundError) as e:
        return False, f"Tesseract not installed or not in PATH: {e}"


def check_paddleocr() -> tuple[bool, str]:
    """Check if the optional PaddleOCR engine is importable."""
    from takeoff.text.ocr_engine import PADDLE_AVAILABLE
    if PADDLE_AVAILABLE:
        return True, "available"
    return False, "not installed (pip install takeoff-engine[paddle])"


def check_constants() -> tuple[bool, str]:
    """Check if the constants module loads correctly."""
    try:
        from takeoff.constants import (
            DEFAULT_SCALE_X,
            OCR_MIN_CONFIDENCE,
            CCQ_TRADES,
            COMMON_MATERIALS,
        )
        return True, (
            f"loaded ({DEFAULT_SCALE_X=}, {OCR_MIN_CONFIDENCE=}, "
            f"{len(CCQ_TRADES)} trades, {len(COMMON_MATERIALS)} materials)"
        )
    except ImportError as e:
        return False, str(e)


def check_settings() -> tuple[bool, str]:
    """Check if settings.yaml loads into the engine's Settings."""
    try:
        from takeoff.settings import DEFAULT_SETTINGS_PATH, SettingsError, load_settings
    except ImportError as e:
        return False, str(e)

    if not DEFAULT_SETTINGS_PATH.exists():
        return False, "settings.yaml not found"
    try:
        settings = load_settings(str(DEFAULT_SETTINGS_PATH))
    except SettingsError as e:
        return False, str(e)
    return True, (
        f"{len(settings.categories)} categories, "
        f"default scale {settings.default_scale_x} m/px"
    )


def check_sample_takeoff() -> tuple[bool, str]:
    """Measure a 10 m wall at 1:50 and price it, end to end."""
    from takeoff.calibration import scale_from_preset
    from takeoff.constants import MeasurementType
    from takeoff.costing import derive_costs
    from takeoff.geometry import Dimensions, MeasurementCosts, create_measurement

    wall = create_measurement(
        MeasurementType.LINE, [(0, 0), (500, 0)], scale_from_preset("1:50"),
        category="Murs intérieurs",
        dimensions=Dimensions(height=2.5),
        costs=MeasurementCosts(labor_hourly_rate=42.5, labor_hours=8),
    )
    total = derive_costs(wall).total_cost
    if abs(wall.value - 10.0) > 1e-9 or abs(total - 340.0) > 1e-9:
        return False, f"unexpected result: {wall.value} m, {total} $"
    return True, f"{wall.value:.2f} m, {wall.calculated.area:.2f} m², {total:.2f} $"


def report(label: str, ok: bool, info: str, results: list, optional: bool = False) -> None:
    status = "PASS" if ok else ("WARN" if optional else "FAIL")
    print(f"  {label:25} [{status}] {info}")
    if not optional:
        results.append((label, ok))


def main():
    print("=" * 60)
    print("Takeoff Engine - Installation Verification")
    print("=" * 60)
    print()

    results = []

    print("Core Dependencies:")
    print("-" * 40)

    packages = [
        ("numpy", "numpy", "__version__"),
        ("shapely", "shapely", "__version__"),
        ("pymupdf", "pymupdf", "__version__"),
        ("pillow", "PIL", "__version__"),
        ("pytesseract", "pytesseract", "__version__"),
        ("pyyaml", "yaml", "__version__"),
    ]
    for name, import_name, version_attr in packages:
        report(name, *check_package(name, import_name, version_attr), results)

    print()
    print("OCR Engines:")
    print("-" * 40)
    report("tesseract", *check_tesseract(), results)
    report("paddleocr", *check_paddleocr(), results, optional=True)

    print()
    print("Configuration:")
    print("-" * 40)
    report("constants.py", *check_constants(), results)
    report("settings.yaml", *check_settings(), results)

    print()
    print("Engine:")
    print("-" * 40)
    report("sample takeoff", *check_sample_takeoff(), results)

    print()
    print("=" * 60)

    passed = sum(1 for _, ok in results if ok)
    total = len(results)

    if passed == total:
        print(f"ALL CHECKS PASSED ({passed}/{total})")
        print("Environment is ready for takeoff processing.")
        return 0

    failed = [name for name, ok in results if not ok]
    print(f"SOME CHECKS FAILED ({passed}/{total})")
    print(f"Failed: {', '.join(failed)}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
