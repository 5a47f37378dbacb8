import pytest

from bimqa.core.columns import ElementColumn
from bimqa.core.plan_validator import resolve_category, validate_plan

CATEGORIES = ["Doors", "Windows", "Walls"]


def test_exact_category_is_kept():
    plan = validate_plan({"task": "count", "category": "Doors"}, "urn:x", CATEGORIES)
    assert plan.category == "Doors"


def test_wrong_case_category_resolves_to_canonical():
    plan = validate_plan({"task": "count", "category": "doors"}, "urn:x", CATEGORIES)
    assert plan.category == "Doors"


def test_unknown_category_is_dropped_not_an_error():
    plan = validate_plan({"task": "count", "category": "Doorz"}, "urn:x", CATEGORIES)
    assert plan.category is None


@pytest.mark.parametrize("value", [None, "", "   ", 42, ["Doors"]])
def test_non_string_or_blank_category_is_none(value):
    assert resolve_category(value, CATEGORIES) is None


def test_category_is_trimmed_before_matching():
    assert resolve_category("  WALLS ", CATEGORIES) == "Walls"


def test_disallowed_params_are_nulled():
    plan = validate_plan(
        {"task": "distinct", "filterParam": "urn; DROP TABLE elements", "filterValue": "x",
         "targetParam": "props_flat"},
        "urn:x", CATEGORIES,
    )
    assert plan.filterParam is None
    assert plan.targetParam is None


def test_category_column_is_not_a_filter_param():
    plan = validate_plan({"filterParam": "component_type", "filterValue": "Doors"}, "urn:x", CATEGORIES)
    assert plan.filterParam is None


def test_allowed_params_become_typed_columns():
    plan = validate_plan(
        {"task": "group_count", "filterParam": "level_number", "filterValue": "Level 1",
         "targetParam": " room_name "},
        "urn:x", CATEGORIES,
    )
    assert plan.filterParam is ElementColumn.LEVEL_NUMBER
    assert plan.targetParam is ElementColumn.ROOM_NAME
    assert plan.filterValue == "Level 1"


def test_defaults_for_missing_fields():
    plan = validate_plan({}, "urn:x", CATEGORIES, default_limit=25)
    assert plan.task == "count"
    assert plan.limit == 25
    assert plan.intent == "bim"
    assert plan.category is None
    assert plan.useSemanticSearch is False
    assert plan.notes == ""


def test_unknown_task_falls_back_to_list():
    assert validate_plan({"task": "delete_all"}, "urn:x", CATEGORIES).task == "list"


@pytest.mark.parametrize("raw, expected", [(None, 100), ("abc", 100), (-3, 100), (0, 100), ("20", 20), (10_000, 1000)])
def test_limit_is_defaulted_and_clamped(raw, expected):
    plan = validate_plan({"limit": raw}, "urn:x", CATEGORIES, default_limit=100, max_limit=1000)
    assert plan.limit == expected


def test_non_scalar_filter_value_is_dropped():
    plan = validate_plan({"filterParam": "level_number", "filterValue": {"$ne": 1}}, "urn:x", CATEGORIES)
    assert plan.filterValue is None


def test_props_key_with_quote_is_rejected():
    plan = validate_plan({"task": "sum_area", "propsFlatKey": 'Area") OR 1=1 --'}, "urn:x", CATEGORIES)
    assert plan.propsFlatKey is None


def test_semantic_fields():
    plan = validate_plan(
        {"useSemanticSearch": "true", "semanticQuery": "  fire rated doors ", "topK": 9999},
        "urn:x", CATEGORIES, default_top_k=50, max_top_k=500,
    )
    assert plan.useSemanticSearch is True
    assert plan.semanticQuery == "fire rated doors"
    assert plan.topK == 500


def test_general_intent_is_preserved():
    assert validate_plan({"intent": "general"}, "urn:x", CATEGORIES).intent == "general"
