"""
Tests for the food items loader and the per-column record index.
"""

import os
import sys
import tempfile

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.common.data_loader import (
    FoodItem,
    clear_cache,
    get_food_items,
    get_nutrient_columns,
    load_dataset,
)
from src.indexing.record_index import (
    FilterRule,
    InvalidRuleError,
    RecordIndex,
    parse_rule,
)


CSV_TEXT = """id,name,calories,fat,carbohydrate,fiber,protein
001,Apple,52,0.2,14,2.4,0.3
002,Banana,89,0.3,23,2.6,1.1
003,Chicken Breast,165,3.6,0,0,31
004,Almonds,579,49.9,21.6,12.5,21.2
005,Broccoli,34,0.4,7,2.6,2.8
006,Greek Yogurt,59,0.4,3.6,0,10
,Nameless,10,0,0,0,0
007,Water,0,0,0,,0
"""


def write_dataset(directory):
    path = os.path.join(directory, "food_items.csv")
    with open(path, "w") as f:
        f.write(CSV_TEXT)
    return path


def load_items():
    clear_cache()
    with tempfile.TemporaryDirectory() as tmp:
        items = get_food_items(write_dataset(tmp))
    clear_cache()
    return items


def build_index(branching_factor=3):
    index = RecordIndex(branching_factor=branching_factor)
    index.add_all(load_items())
    return index


def names(records):
    return [record.name for record in records]


# =========================================================================
# Tests: Data Loader
# =========================================================================

def test_load_dataset_drops_rows_without_id():
    clear_cache()
    with tempfile.TemporaryDirectory() as tmp:
        df = load_dataset(write_dataset(tmp))
    assert len(df) == 7
    assert "Nameless" not in df["name"].tolist()
    clear_cache()


def test_load_dataset_caches_by_path():
    clear_cache()
    with tempfile.TemporaryDirectory() as tmp:
        path = write_dataset(tmp)
        first = load_dataset(path)
        assert load_dataset(path) is first
        assert load_dataset(path, force_reload=True) is not first
    clear_cache()


def test_load_dataset_missing_file():
    clear_cache()
    try:
        load_dataset(os.path.join(tempfile.gettempdir(), "no_such_dataset.csv"))
        assert False, "Should have raised FileNotFoundError"
    except FileNotFoundError:
        pass


def test_nutrient_columns_exclude_identity():
    clear_cache()
    with tempfile.TemporaryDirectory() as tmp:
        df = load_dataset(write_dataset(tmp))
    assert get_nutrient_columns(df) == ["calories", "fat", "carbohydrate", "fiber", "protein"]
    clear_cache()


def test_food_items_keep_ids_and_skip_missing_amounts():
    items = load_items()
    assert [item.id for item in items][:2] == ["001", "002"]
    water = items[-1]
    assert water.name == "Water"
    assert water.get("fiber") is None
    assert water.get("calories") == 0.0
    assert water.to_dict()["id"] == "007"
    assert "fiber" not in water.to_dict()


# =========================================================================
# Tests: Rule Parsing
# =========================================================================

def test_parse_rule():
    assert parse_rule("calories <= 100") == FilterRule("calories", "<=", 100.0)
    assert parse_rule("  protein>=10.5 ") == FilterRule("protein", ">=", 10.5)
    assert str(parse_rule("fat == 0")) == "fat == 0"


def test_parse_rule_rejects_malformed():
    for bad in ("", "calories", "calories < 5", "calories != 5", "calories <= lots", "<= 5",
                "calories <= nan", "calories >= inf", "fat == -inf"):
        try:
            parse_rule(bad)
            assert False, f"Should have raised InvalidRuleError for {bad!r}"
        except InvalidRuleError:
            pass


def test_invalid_rule_is_value_error():
    assert issubclass(InvalidRuleError, ValueError)


# =========================================================================
# Tests: Record Index
# =========================================================================

def test_record_index_requires_columns():
    try:
        RecordIndex(columns=[])
        assert False, "Should have raised ValueError"
    except ValueError:
        pass


def test_add_all_counts_records():
    index = build_index()
    assert len(index) == 7
    assert index.columns == ["calories", "fat", "carbohydrate", "fiber", "protein"]
    # Water has no fiber amount, so the fiber tree holds one record fewer.
    assert len(index.tree("fiber")) == 6
    assert len(index.tree("calories")) == 7


def test_search_single_column():
    index = build_index()
    assert sorted(names(index.search("calories", "<=", 59))) == [
        "Apple", "Broccoli", "Greek Yogurt", "Water",
    ]
    assert names(index.search("fiber", "==", 2.6)) != []
    assert sorted(names(index.search("fiber", "==", 2.6))) == ["Banana", "Broccoli"]


def test_search_unknown_column():
    index = build_index()
    try:
        index.search("sugar", ">=", 1)
        assert False, "Should have raised KeyError"
    except KeyError:
        pass


def test_filter_intersects_rules():
    index = build_index()
    result = index.filter(["calories <= 100", "protein >= 1"])
    assert names(result) == ["Banana", "Broccoli", "Greek Yogurt"]


def test_filter_without_rules_returns_everything():
    index = build_index()
    assert names(index.filter([])) == [
        "Almonds", "Apple", "Banana", "Broccoli", "Chicken Breast", "Greek Yogurt", "Water",
    ]


def test_filter_no_match():
    index = build_index()
    assert index.filter(["calories >= 1000"]) == []
    assert index.filter(["fat >= 40", "carbohydrate <= 1"]) == []


def test_filter_unknown_column_and_bad_rule():
    index = build_index()
    try:
        index.filter(["sugar <= 5"])
        assert False, "Should have raised KeyError"
    except KeyError:
        pass
    try:
        index.filter(["calories ~ 5"])
        assert False, "Should have raised InvalidRuleError"
    except InvalidRuleError:
        pass


def test_filter_matches_brute_force_across_branching_factors():
    items = load_items()
    rules = ["calories >= 50", "fat <= 5", "fiber >= 0"]
    expected = sorted(
        item.name for item in items
        if item.get("calories") >= 50
        and item.get("fat") <= 5
        and item.get("fiber") is not None
    )
    for branching_factor in (3, 4, 8):
        index = RecordIndex(branching_factor=branching_factor)
        index.add_all(items)
        assert names(index.filter(rules)) == expected


def test_add_rejects_duplicate_id():
    index = RecordIndex(columns=["calories"])
    index.add(FoodItem("1", "Old", {"calories": 10.0}))
    try:
        index.add(FoodItem("1", "New", {"calories": 500.0}))
        assert False, "Should have raised ValueError"
    except ValueError:
        pass
    # The first record and its amounts are left untouched.
    assert len(index) == 1
    assert len(index.tree("calories")) == 1
    assert names(index.filter(["calories <= 100"])) == ["Old"]
    assert index.filter(["calories >= 100"]) == []


def test_records_are_stored_as_values():
    index = build_index()
    apple = index.search("calories", "==", 52)[0]
    assert isinstance(apple, FoodItem)
    assert apple.name == "Apple"
    assert apple.get("carbohydrate") == 14.0


# =========================================================================
# Main
# =========================================================================

if __name__ == "__main__":
    test_functions = [
        obj for name, obj in list(globals().items())
        if name.startswith("test_") and callable(obj)
    ]
    passed = 0
    failed = 0
    for test_fn in test_functions:
        try:
            test_fn()
            passed += 1
            print(f"  PASS: {test_fn.__name__}")
        except Exception as e:
            failed += 1
            print(f"  FAIL: {test_fn.__name__}: {e}")

    print(f"\n{'='*60}")
    print(f"Results: {passed} passed, {failed} failed out of {passed + failed}")
    if failed == 0:
        print("All tests passed!")
    else:
        print("Some tests failed!")
        sys.exit(1)
