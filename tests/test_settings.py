#!/usr/bin/env python
"""
Settings Tests

Tests for loading engine defaults and reference tables from YAML.
"""

import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from takeoff.constants import CCQ_TRADES, OCR_MIN_CONFIDENCE, TAKEOFF_CATEGORIES
from takeoff.settings import (
    DEFAULT_SETTINGS_PATH,
    Settings,
    SettingsError,
    load_settings,
    settings_from_dict,
)


def write_yaml(tmpdir: str, text: str) -> str:
    path = Path(tmpdir) / "settings.yaml"
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_stock_settings_file():
    """Test the shipped settings.yaml matches the stock constants."""
    assert DEFAULT_SETTINGS_PATH.exists(), "config/settings.yaml should ship with the repo"

    settings = load_settings()
    stock = Settings()
    assert settings.default_scale_x == stock.default_scale_x
    assert settings.ocr_min_confidence == OCR_MIN_CONFIDENCE
    assert [t["code"] for t in settings.trades] == [t["code"] for t in CCQ_TRADES]
    assert [t["rate"] for t in settings.trades] == [t["rate"] for t in CCQ_TRADES]
    assert settings.categories == TAKEOFF_CATEGORIES
    print("  [PASS] Stock settings file")


def test_defaults_override():
    """Test overriding scalar defaults."""
    settings = settings_from_dict({
        "defaults": {"default_scale_x": 0.01, "ocr_min_confidence": 60},
    })
    assert settings.default_scale_x == 0.01
    assert settings.default_scale_y == Settings().default_scale_y
    assert settings.ocr_min_confidence == 60
    assert settings.trades == CCQ_TRADES
    print("  [PASS] Defaults override")


def test_tables_replaced():
    """Test that table sections replace the stock tables."""
    settings = settings_from_dict({
        "trades": [{"code": "CARP", "name": "Charpentier", "rate": 55.0}],
    })
    assert len(settings.trades) == 1
    assert settings.materials == Settings().materials
    print("  [PASS] Table sections replace stock tables")


def test_unknown_keys_ignored():
    """Test unknown keys are ignored."""
    settings = settings_from_dict({
        "defaults": {"favourite_color": "blue"},
        "plugins": [],
    })
    assert not hasattr(settings, "favourite_color")
    assert settings == Settings()
    print("  [PASS] Unknown keys ignored")


def test_stock_tables_not_shared():
    """Test each Settings gets its own copy of the tables."""
    first = Settings()
    first.trades[0]["rate"] = 0.0
    assert Settings().trades[0]["rate"] == CCQ_TRADES[0]["rate"]
    print("  [PASS] Stock tables copied per instance")


def test_invalid_documents():
    """Test malformed settings are rejected."""
    for data in (["not", "a", "mapping"], {"trades": {"CARP": 42.5}}):
        try:
            settings_from_dict(data)
            assert False, f"Expected SettingsError for {data}"
        except SettingsError:
            pass

    assert settings_from_dict(None) == Settings()
    print("  [PASS] Malformed settings rejected")


def test_load_from_file():
    """Test loading an explicit settings file."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = write_yaml(tmpdir, "defaults:\n  unit_system: imperial\n  render_dpi: 300\n")
        settings = load_settings(path)
        assert settings.unit_system == "imperial"
        assert settings.render_dpi == 300

        bad = write_yaml(tmpdir, "defaults: [unclosed\n")
        try:
            load_settings(bad)
            assert False, "Expected SettingsError"
        except SettingsError:
            pass

    try:
        load_settings("/nonexistent/settings.yaml")
        assert False, "Expected SettingsError"
    except SettingsError:
        pass
    print("  [PASS] Load from file")


def run_all_tests():
    """Run all settings tests."""
    print("=" * 60)
    print("Settings Tests")
    print("=" * 60)
    print()

    results = []
    for test in (
        test_stock_settings_file,
        test_defaults_override,
        test_tables_replaced,
        test_unknown_keys_ignored,
        test_stock_tables_not_shared,
        test_invalid_documents,
        test_load_from_file,
    ):
        try:
            test()
            results.append(True)
        except AssertionError as e:
            print(f"  [FAIL] {test.__name__}: {e}")
            results.append(False)

    passed = sum(results)
    total = len(results)
    print("\n" + "=" * 60)
    print(f"Settings Results: {passed}/{total} tests passed")
    print("=" * 60)

    return passed == total


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
