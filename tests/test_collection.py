#!/usr/bin/env python
"""
Measurement Collection Tests

Tests for:
- Add, get, update, remove and duplicate
- Category totals and grand totals
- Sorting, grouping and page filtering
- Stale measurement detection
- Concurrent writers
"""

import math
import sys
import threading
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from takeoff.calibration import ScaleSpec
from takeoff.collection import CategoryTotals, MeasurementCollection
from takeoff.constants import MeasurementType, SortOrder
from takeoff.errors import (
    DuplicateMeasurementError,
    MeasurementNotFoundError,
    ValidationError,
)
from takeoff.geometry import (
    Dimensions,
    Measurement,
    MeasurementCosts,
    create_measurement,
)

SCALE = ScaleSpec(scale_x=0.02, scale_y=0.02)


def build_collection() -> MeasurementCollection:
    """Three walls, one slab and a door count across three categories."""
    collection = MeasurementCollection()
    collection.add(create_measurement(
        MeasurementType.LINE, [(0, 0), (500, 0)], SCALE,
        category="Murs intérieurs", measurement_id="wall_a",
    ))
    collection.add(create_measurement(
        MeasurementType.LINE, [(0, 0), (0, 250)], SCALE,
        category="Murs intérieurs", measurement_id="wall_b",
        costs=MeasurementCosts(labor_hourly_rate=40.0, labor_hours=5),
    ))
    collection.add(create_measurement(
        MeasurementType.RECTANGLE, [(0, 0), (250, 200)], SCALE,
        category="Fondations", measurement_id="slab", page_number=2,
        costs=MeasurementCosts(material_unit_price=185.0, material_quantity=4.0),
    ))
    collection.add(create_measurement(
        MeasurementType.COUNT, [(10, 10), (20, 20), (30, 30)], SCALE,
        category="Portes", measurement_id="doors",
    ))
    collection.add(create_measurement(
        MeasurementType.LINE, [(0, 0), (1000, 0)], SCALE,
        category="Murs intérieurs", measurement_id="wall_c",
    ))
    return collection


class TestCrud:
    """Tests for add, get, update and remove."""

    def test_add_and_get(self):
        collection = build_collection()
        assert len(collection) == 5
        assert "slab" in collection
        assert collection.get("slab").type == MeasurementType.RECTANGLE
        assert [m.id for m in collection] == ["wall_a", "wall_b", "slab", "doors", "wall_c"]
        print("  [PASS] Add, get and insertion order")

    def test_duplicate_id(self):
        collection = build_collection()
        try:
            collection.add(create_measurement(
                MeasurementType.COUNT, [(1, 1)], SCALE, measurement_id="doors"
            ))
            assert False, "Expected DuplicateMeasurementError"
        except DuplicateMeasurementError:
            pass
        print("  [PASS] Duplicate id rejected")

    def test_missing_id(self):
        collection = build_collection()
        for operation in (collection.get, collection.remove, collection.duplicate):
            try:
                operation("nope")
                assert False, f"Expected MeasurementNotFoundError from {operation.__name__}"
            except MeasurementNotFoundError:
                pass
        try:
            collection.update("nope", label="x")
            assert False, "Expected MeasurementNotFoundError"
        except KeyError:
            pass
        print("  [PASS] Missing id raises MeasurementNotFoundError")

    def test_update_dimensions_recalculates(self):
        collection = build_collection()
        before = collection.get("wall_a").updated_at
        updated = collection.update("wall_a", dimensions={"height": 2.75, "quantity": 4})
        assert math.isclose(updated.calculated.area, 110.0)
        assert updated.updated_at >= before
        assert collection.get("wall_a") is updated
        print("  [PASS] Dimension update recomputes derived values")

    def test_update_value_recalculates(self):
        collection = build_collection()
        updated = collection.update("wall_a", value=12.0)
        assert updated.calculated.length == 12.0
        print("  [PASS] Value update recomputes derived values")

    def test_update_costs_merges(self):
        collection = build_collection()
        collection.update("wall_b", costs={"labor_hours": 10})
        costs = collection.get("wall_b").costs
        assert costs.labor_hourly_rate == 40.0
        assert costs.labor_hours == 10
        print("  [PASS] Cost update merges with existing inputs")

    def test_update_label_keeps_values(self):
        collection = build_collection()
        calculated = collection.get("slab").calculated
        updated = collection.update("slab", label="Dalle", notes="coulée sur place")
        assert updated.label == "Dalle"
        assert updated.calculated == calculated
        print("  [PASS] Label update leaves values untouched")

    def test_invalid_update_rejected(self):
        collection = build_collection()
        original = collection.get("wall_a")
        for patch in ({"colour": "red"}, {"id": "other"}, {"calculated": None}):
            try:
                collection.update("wall_a", **patch)
                assert False, f"Expected ValueError for {patch}"
            except ValueError:
                pass
        try:
            collection.update("wall_a", value=-5.0)
            assert False, "Expected ValidationError"
        except ValidationError:
            pass
        assert collection.get("wall_a") is original
        assert original.value == 10.0
        print("  [PASS] Bad patches rejected without side effects")

    def test_update_points_recomputes_value(self):
        collection = build_collection()
        wall = collection.update("wall_a", points=[(0, 0), (0, 100)])
        assert math.isclose(wall.value, 2.0)
        assert math.isclose(wall.calculated.length, 2.0)

        doors = collection.update("doors", points=[(1, 1), (2, 2), (3, 3), (4, 4)])
        assert doors.value == 4
        assert doors.calculated.count == 4
        print("  [PASS] New points recompute the value at the recorded scale")

    def test_update_points_overrides_value(self):
        collection = build_collection()
        wall = collection.update("wall_a", points=[(0, 0), (300, 400)], value=99.0)
        assert math.isclose(wall.value, 10.0)
        print("  [PASS] Geometry wins over a value in the same patch")

    def test_update_type_recomputes_unit(self):
        collection = build_collection()
        updated = collection.update(
            "slab", type=MeasurementType.COUNT, points=[(5, 5), (15, 15)]
        )
        assert updated.value == 2
        assert updated.unit == "unité"
        assert updated.calculated.count == 2
        assert updated.calculated.area is None

        updated = collection.update("wall_c", type=MeasurementType.RECTANGLE,
                                    points=[(0, 0), (100, 50)])
        assert math.isclose(updated.value, 2.0)
        assert updated.unit == "m²"
        print("  [PASS] Type change recomputes value and unit")

    def test_update_points_without_scale_rejected(self):
        collection = MeasurementCollection()
        original = collection.add(Measurement(
            id="legacy", type=MeasurementType.LINE,
            points=[(0, 0), (10, 0)], value=3.0,
        ))
        try:
            collection.update("legacy", points=[(0, 0), (20, 0)])
            assert False, "Expected ValidationError"
        except ValidationError:
            pass
        assert collection.get("legacy") is original
        assert original.value == 3.0

        assert collection.update("legacy", label="ancien").label == "ancien"
        print("  [PASS] Geometry change needs a recorded scale")

    def test_remove(self):
        collection = build_collection()
        removed = collection.remove("doors")
        assert removed.id == "doors"
        assert "doors" not in collection
        assert len(collection) == 4
        print("  [PASS] Remove")

    def test_duplicate(self):
        collection = build_collection()
        clone = collection.duplicate("slab", offset=(10, 5))
        original = collection.get("slab")
        assert clone.id != "slab"
        assert clone.label == "rectangle - Fondations (copie)"
        assert clone.points[0] == (original.points[0].x + 10, original.points[0].y + 5)
        assert clone.value == original.value
        assert clone.dimensions is not original.dimensions
        assert list(collection)[-1] is clone
        print("  [PASS] Duplicate with new id, suffix and offset")

    def test_concurrent_adds(self):
        collection = MeasurementCollection()

        def worker(start):
            for i in range(start, start + 50):
                collection.add(create_measurement(
                    MeasurementType.COUNT, [(i, i)], SCALE, measurement_id=f"c_{i}"
                ))

        threads = [threading.Thread(target=worker, args=(n * 50,)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        assert len(collection) == 200
        print("  [PASS] Concurrent adds serialized")


class TestViews:
    """Tests for sorted and grouped views."""

    def test_sort_by_value_descending(self):
        values = [m.value for m in build_collection().sorted(SortOrder.VALUE)]
        assert values == sorted(values, reverse=True)
        print("  [PASS] Value sort descending")

    def test_sort_by_category(self):
        ordered = build_collection().sorted(SortOrder.CATEGORY)
        assert [m.category for m in ordered] == sorted(m.category for m in ordered)
        # Stable within a category
        walls = [m.id for m in ordered if m.category == "Murs intérieurs"]
        assert walls == ["wall_a", "wall_b", "wall_c"]
        print("  [PASS] Category sort ascending and stable")

    def test_sort_by_type(self):
        types = [m.type for m in build_collection().sorted(SortOrder.TYPE)]
        assert types == ["count", "line", "line", "line", "rectangle"]
        print("  [PASS] Type sort")

    def test_unknown_sort(self):
        try:
            build_collection().sorted("color")
            assert False, "Expected ValueError"
        except ValueError:
            pass
        print("  [PASS] Unknown sort order rejected")

    def test_group_and_page(self):
        collection = build_collection()
        groups = collection.group_by_category()
        assert list(groups) == ["Murs intérieurs", "Fondations", "Portes"]
        assert len(groups["Murs intérieurs"]) == 3
        assert [m.id for m in collection.for_page(2)] == ["slab"]
        print("  [PASS] Group by category and filter by page")

    def test_stale(self):
        collection = build_collection()
        assert collection.stale_measurements(SCALE) == []
        stale = collection.stale_measurements(ScaleSpec(0.01, 0.01))
        assert "doors" not in [m.id for m in stale]
        assert len(stale) == 4
        print("  [PASS] Stale measurements after recalibration")


class TestTotals:
    """Tests for category and grand totals."""

    def test_totals_by_category(self):
        totals = build_collection().totals_by_category()

        walls = totals["Murs intérieurs"]
        assert walls.count == 3
        assert math.isclose(walls.linear_meters, 35.0)
        assert walls.area_square_meters == 0.0
        assert math.isclose(walls.labor_cost, 200.0)
        assert math.isclose(walls.total_cost, 200.0)

        slab = totals["Fondations"]
        assert math.isclose(slab.area_square_meters, 20.0)
        assert math.isclose(slab.material_cost, 740.0)

        assert totals["Portes"].unit_count == 3
        print("  [PASS] Per-category quantities and costs")

    def test_grand_totals(self):
        grand = build_collection().grand_totals()
        assert grand.count == 5
        assert math.isclose(grand.total_cost, 940.0)
        assert math.isclose(grand.linear_meters, 35.0)
        print("  [PASS] Grand totals")

    def test_empty(self):
        collection = MeasurementCollection()
        assert collection.totals_by_category() == {}
        assert collection.grand_totals() == CategoryTotals()
        print("  [PASS] Empty collection totals")

    def test_quantity_does_not_change_primitive_totals(self):
        collection = build_collection()
        collection.update("wall_a", dimensions=Dimensions(height=2.5, quantity=2))
        totals = collection.totals_by_category()
        assert math.isclose(totals["Murs intérieurs"].linear_meters, 35.0)
        print("  [PASS] Totals sum primitive values")

    def test_list_round_trip(self):
        collection = build_collection()
        restored = MeasurementCollection.from_list(collection.to_list())
        assert [m.id for m in restored] == [m.id for m in collection]
        assert restored.grand_totals() == collection.grand_totals()
        print("  [PASS] Collection survives to_list/from_list")


def run_all_tests():
    """Run all collection tests."""
    print("=" * 60)
    print("Measurement Collection Tests")
    print("=" * 60)
    print()

    all_passed = True

    for test_class in (
        TestCrud,
        TestViews,
        TestTotals,
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
