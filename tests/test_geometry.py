#!/usr/bin/env python
"""
Geometry Tests

Tests for:
- Line length (polyline, anisotropic scales)
- Rectangle area and perimeter from two corners
- Polygon area (shoelace), orientation and degenerate input
- Counts
- Measurement creation, serialization and staleness
"""

import math
import random
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from takeoff.calibration import ScaleSpec
from takeoff.constants import MeasurementType
from takeoff.errors import (
    DegeneratePolygonError,
    TooFewPointsError,
    ValidationError,
)
from takeoff.geometry import (
    Dimensions,
    Measurement,
    Point,
    line_length,
    rectangle_dimensions,
    rectangle_area,
    rectangle_perimeter,
    signed_polygon_area,
    polygon_area,
    polygon_perimeter,
    count_points,
    compute_primitive_value,
    compute_perimeter,
    create_measurement,
    generate_measurement_id,
    is_stale,
)

SCALE = ScaleSpec(scale_x=0.02, scale_y=0.02)

SQUARE = [(0, 0), (100, 0), (100, 100), (0, 100)]

L_SHAPE = [(0, 0), (200, 0), (200, 100), (100, 100), (100, 200), (0, 200)]


def random_polylines(count: int = 20, seed: int = 7):
    """Deterministic sample polylines for property checks."""
    rng = random.Random(seed)
    for _ in range(count):
        n = rng.randint(2, 8)
        yield [(rng.uniform(0, 2000), rng.uniform(0, 2000)) for _ in range(n)]


class TestLine:
    """Tests for line measurements."""

    def test_simple_length(self):
        assert math.isclose(line_length([(0, 0), (500, 0)], SCALE), 10.0)
        print("  [PASS] 500 px at 0.02 m/px = 10 m")

    def test_polyline_sums_segments(self):
        points = [(0, 0), (300, 0), (300, 400)]
        assert math.isclose(line_length(points, SCALE), 14.0)
        print("  [PASS] Polyline length sums segments")

    def test_reversal_invariance(self):
        for points in random_polylines():
            forward = line_length(points, SCALE)
            backward = line_length(list(reversed(points)), SCALE)
            assert math.isclose(forward, backward, rel_tol=1e-12)
        print("  [PASS] Length unchanged by reversal")

    def test_anisotropic_scale(self):
        scale = ScaleSpec(scale_x=0.02, scale_y=0.01)
        length = line_length([(0, 0), (100, 100)], scale)
        assert math.isclose(length, math.sqrt(5))
        print("  [PASS] Per-axis scaling before hypotenuse")

    def test_zero_length_accepted(self):
        assert line_length([(50, 50), (50, 50)], SCALE) == 0.0
        print("  [PASS] Zero-length line accepted")

    def test_too_few_points(self):
        try:
            line_length([(0, 0)], SCALE)
            assert False, "Expected TooFewPointsError"
        except TooFewPointsError:
            pass
        print("  [PASS] Single-point line rejected")


class TestRectangle:
    """Tests for rectangle measurements."""

    def test_area(self):
        assert math.isclose(rectangle_area([(0, 0), (100, 50)], SCALE), 2.0)
        print("  [PASS] (0,0)-(100,50) at 0.02 m/px = 2 m²")

    def test_corner_order(self):
        assert rectangle_dimensions([(100, 50), (0, 0)], SCALE) == rectangle_dimensions(
            [(0, 0), (100, 50)], SCALE
        )
        print("  [PASS] Corner order irrelevant")

    def test_perimeter(self):
        assert math.isclose(rectangle_perimeter([(0, 0), (100, 50)], SCALE), 6.0)
        print("  [PASS] Rectangle perimeter")

    def test_too_many_corners(self):
        try:
            rectangle_area([(0, 0), (100, 0), (100, 50)], SCALE)
            assert False, "Expected ValidationError"
        except TooFewPointsError:
            assert False, "Three corners is too many, not too few"
        except ValidationError:
            pass
        print("  [PASS] Three corners rejected")

    def test_too_few_corners(self):
        try:
            rectangle_area([(0, 0)], SCALE)
            assert False, "Expected TooFewPointsError"
        except TooFewPointsError:
            pass
        print("  [PASS] Single corner rejected")


class TestPolygon:
    """Tests for polygon (area) measurements."""

    def test_square(self):
        assert math.isclose(polygon_area(SQUARE, SCALE), 4.0)
        assert math.isclose(polygon_perimeter(SQUARE, SCALE), 8.0)
        print("  [PASS] Square area and perimeter")

    def test_concave(self):
        scale = ScaleSpec(scale_x=0.01, scale_y=0.01)
        assert math.isclose(polygon_area(L_SHAPE, scale), 3.0)
        print("  [PASS] Concave L-shape area")

    def test_rotation_invariance(self):
        expected = signed_polygon_area(L_SHAPE, SCALE)
        for shift in range(1, len(L_SHAPE)):
            rotated = L_SHAPE[shift:] + L_SHAPE[:shift]
            assert math.isclose(signed_polygon_area(rotated, SCALE), expected)
        print("  [PASS] Vertex rotation keeps signed area")

    def test_reversal_flips_sign(self):
        forward = signed_polygon_area(L_SHAPE, SCALE)
        backward = signed_polygon_area(list(reversed(L_SHAPE)), SCALE)
        assert math.isclose(forward, -backward)
        assert math.isclose(polygon_area(L_SHAPE, SCALE), polygon_area(list(reversed(L_SHAPE)), SCALE))
        print("  [PASS] Reversal flips sign, not magnitude")

    def test_closing_vertex_ignored(self):
        closed = SQUARE + [SQUARE[0]]
        assert math.isclose(polygon_area(closed, SCALE), polygon_area(SQUARE, SCALE))
        assert math.isclose(polygon_perimeter(closed, SCALE), 8.0)
        print("  [PASS] Repeated closing vertex ignored")

    def test_collinear(self):
        for points in ([(0, 0), (50, 50), (100, 100)],
                       [(0, 0), (100, 0), (25, 0), (60, 0)]):
            try:
                polygon_area(points, SCALE)
                assert False, f"Expected DegeneratePolygonError for {points}"
            except DegeneratePolygonError:
                pass
        print("  [PASS] Collinear polygon rejected")

    def test_bow_tie(self):
        bow_tie = [(0, 0), (100, 100), (100, 0), (0, 100)]
        assert math.isclose(signed_polygon_area(bow_tie, SCALE), 0.0, abs_tol=1e-9)
        assert polygon_area(bow_tie, SCALE) < 1e-9

        lopsided = [(0, 0), (200, 100), (200, 0), (0, 100)]
        value, unit = compute_primitive_value(MeasurementType.AREA, lopsided, SCALE)
        assert value >= 0
        assert unit == "m²"
        print("  [PASS] Self-intersecting polygon measured by traversal")

    def test_too_few_vertices(self):
        for points in ([(0, 0), (100, 0)], [(0, 0), (100, 0), (0, 0)]):
            try:
                polygon_area(points, SCALE)
                assert False, f"Expected TooFewPointsError for {points}"
            except TooFewPointsError:
                pass
        print("  [PASS] Polygons under 3 distinct vertices rejected")


class TestCount:
    """Tests for count measurements."""

    def test_count(self):
        assert count_points([(1, 1), (2, 2), (3, 3)]) == 3
        print("  [PASS] Count of points")

    def test_count_ignores_scale(self):
        points = [(1, 1), (2, 2)]
        small = compute_primitive_value(MeasurementType.COUNT, points, ScaleSpec(0.001, 0.001))
        large = compute_primitive_value(MeasurementType.COUNT, points, ScaleSpec(5, 5))
        assert small == large == (2.0, "unité")
        print("  [PASS] Count independent of scale")

    def test_empty_count(self):
        try:
            count_points([])
            assert False, "Expected TooFewPointsError"
        except TooFewPointsError:
            pass
        print("  [PASS] Empty count rejected")


class TestMeasurement:
    """Tests for Measurement creation and serialization."""

    def test_create_rectangle(self):
        m = create_measurement(MeasurementType.RECTANGLE, [(0, 0), (100, 50)], SCALE, category="Toiture")
        assert math.isclose(m.value, 2.0)
        assert m.unit == "m²"
        assert m.scale_x == 0.02 and m.scale_y == 0.02
        assert m.color == "#B22222"
        assert math.isclose(m.calculated.area, 2.0)
        assert math.isclose(m.calculated.perimeter, 6.0)
        assert m.id.startswith("m_")
        print("  [PASS] Rectangle measurement created")

    def test_create_defaults(self):
        m = create_measurement(MeasurementType.LINE, [(0, 0), (500, 0)], SCALE)
        assert m.category == "Autre"
        assert m.color == "#A9A9A9"
        assert m.display_label == "line - Autre"
        assert m.calculated.length == m.value
        assert compute_perimeter(m) is None
        print("  [PASS] Default category, color and label")

    def test_create_rejects_bad_geometry(self):
        try:
            create_measurement(MeasurementType.AREA, [(0, 0), (1, 1)], SCALE)
            assert False, "Expected TooFewPointsError"
        except TooFewPointsError:
            pass
        print("  [PASS] Invalid geometry surfaces at creation")

    def test_unique_ids(self):
        ids = {generate_measurement_id() for _ in range(200)}
        assert len(ids) == 200
        print("  [PASS] Generated ids unique")

    def test_validation(self):
        for kwargs in (
            {"id": "a", "type": "circle"},
            {"id": "b", "type": "line", "value": -1.0},
        ):
            try:
                Measurement(**kwargs)
                assert False, f"Expected ValidationError for {kwargs}"
            except ValidationError:
                pass

        for kwargs in ({"height": -1}, {"quantity": 0}):
            try:
                Dimensions(**kwargs)
                assert False, f"Expected ValidationError for {kwargs}"
            except ValidationError:
                pass
        print("  [PASS] Invalid measurement and dimensions rejected")

    def test_dict_round_trip(self):
        m = create_measurement(
            MeasurementType.AREA, SQUARE, SCALE,
            category="Fondations",
            dimensions=Dimensions(thickness=0.2),
            label="Dalle",
        )
        restored = Measurement.from_dict(m.to_dict())
        assert restored.points == m.points
        assert isinstance(restored.points[0], Point)
        assert restored.dimensions.thickness == 0.2
        assert restored.calculated == m.calculated
        assert restored.label == "Dalle"
        print("  [PASS] Measurement survives to_dict/from_dict")

    def test_count_value_matches_points(self):
        m = Measurement(id="c", type="count", points=[(1, 1), (2, 2)], value=2)
        assert m.unit == "unité"

        for data in (
            {"id": "c", "type": "count", "points": [[1, 1], [2, 2]], "value": 5},
            {"id": "c", "type": "count", "points": [], "value": 1},
            {"id": "c", "type": "count", "points": [[1, 1]], "value": 1, "unit": "m"},
        ):
            try:
                Measurement.from_dict(data)
                assert False, f"Expected ValidationError for {data}"
            except ValidationError:
                pass
        print("  [PASS] Inconsistent counts rejected")

    def test_unit_follows_type(self):
        assert Measurement(id="l", type="line", value=3.0).unit == "m"
        assert Measurement(id="a", type="area", value=3.0).unit == "m²"
        print("  [PASS] Unit defaults from type")

    def test_from_dict_accepts_pairs(self):
        m = Measurement.from_dict({"id": "x", "type": "count", "points": [[1, 2], [3, 4]], "value": 2})
        assert m.points == [Point(1.0, 2.0), Point(3.0, 4.0)]
        print("  [PASS] Points as coordinate pairs accepted")


class TestStaleness:
    """Tests for scale-change detection."""

    def test_same_scale(self):
        m = create_measurement(MeasurementType.LINE, [(0, 0), (500, 0)], SCALE)
        assert not is_stale(m, ScaleSpec(0.02, 0.02))
        print("  [PASS] Same scale not stale")

    def test_recalibrated(self):
        m = create_measurement(MeasurementType.LINE, [(0, 0), (500, 0)], SCALE)
        assert is_stale(m, ScaleSpec(0.01, 0.01))
        assert math.isclose(m.value, 10.0)
        print("  [PASS] Recalibration flags but does not rescale")

    def test_count_never_stale(self):
        m = create_measurement(MeasurementType.COUNT, [(1, 1)], SCALE)
        assert not is_stale(m, ScaleSpec(1.0, 1.0))
        print("  [PASS] Counts never stale")

    def test_unknown_scale(self):
        m = Measurement(id="legacy", type="line", value=3.0)
        assert not is_stale(m, SCALE)
        print("  [PASS] Measurements without a recorded scale not stale")


def run_all_tests():
    """Run all geometry tests."""
    print("=" * 60)
    print("Geometry Tests")
    print("=" * 60)
    print()

    all_passed = True

    for test_class in (
        TestLine,
        TestRectangle,
        TestPolygon,
        TestCount,
        TestMeasurement,
        TestStaleness,
    ):
        print(f"{test_class.__name__}:")
        print("-" * 40)
        tests = test_class()
        for name in sorted(dir(tests)):
            if not name.startswith("test_"):
                continue
            try:
                getattr(tests, name)()
            except AssertionError as e:
                print(f"  [FAIL] {name}: {e}")
                all_passed = False
            except Exception as e:
                print(f"  [ERROR] {name}: {e}")
                all_passed = False
        print()

    print("=" * 60)
    print("ALL TESTS PASSED" if all_passed else "SOME TESTS FAILED")
    print("=" * 60)

    return all_passed


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
