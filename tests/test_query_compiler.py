import pytest

from bimqa.core.columns import ElementColumn
from bimqa.core.models import ModelMetadata, QueryPlan
from bimqa.core.plan_validator import validate_plan
from bimqa.core.query_compiler import compile_filter

META = ModelMetadata(categories=["Doors", "Walls"])


def test_model_scope_is_always_first():
    cf = compile_filter(QueryPlan(urn="urn:x"), META)
    assert cf.clauses == ["urn = :p0"]
    assert cf.params == ["urn:x"]


def test_clause_order_and_bound_params():
    plan = QueryPlan(urn="urn:x", category="Doors",
                     filterParam=ElementColumn.LEVEL_NUMBER, filterValue="Level 1")
    cf = compile_filter(plan, META, candidate_ids=[3, 1, 2])
    assert cf.clauses == [
        "urn = :p0",
        "id IN (3, 1, 2)",
        "component_type = :p1",
        "level_number = :p2",
    ]
    assert cf.params == ["urn:x", "Doors", "Level 1"]
    assert cf.bindings() == {"p0": "urn:x", "p1": "Doors", "p2": "Level 1"}
    assert cf.where == "urn = :p0 AND id IN (3, 1, 2) AND component_type = :p1 AND level_number = :p2"


def test_filter_value_is_never_interpolated():
    hostile = "x' OR '1'='1"
    plan = QueryPlan(urn="urn:x", filterParam=ElementColumn.ROOM_NAME, filterValue=hostile)
    cf = compile_filter(plan, META)
    assert hostile not in cf.where
    assert cf.params[-1] == hostile


@pytest.mark.parametrize("value", [None, "", "   "])
def test_blank_filter_value_omits_attribute_clause(value):
    plan = QueryPlan(urn="urn:x", filterParam=ElementColumn.ROOM_NAME, filterValue=value)
    assert compile_filter(plan, META).clauses == ["urn = :p0"]


def test_numeric_filter_value_is_bound_as_text():
    plan = QueryPlan(urn="urn:x", filterParam=ElementColumn.LEVEL_NUMBER, filterValue=1)
    assert compile_filter(plan, META).params == ["urn:x", "1"]


def test_disallowed_filter_param_emits_no_attribute_clause():
    plan = validate_plan({"filterParam": "password", "filterValue": "x"}, "urn:x", META.categories)
    cf = compile_filter(plan, META)
    assert cf.clauses == ["urn = :p0"]


def test_empty_candidate_set_means_no_restriction():
    assert compile_filter(QueryPlan(urn="urn:x"), META, candidate_ids=[]).clauses == ["urn = :p0"]


def test_raw_string_identifier_is_refused():
    plan = QueryPlan.model_construct(urn="urn:x", category=None, filterParam="name; --", filterValue="x")
    with pytest.raises(TypeError):
        compile_filter(plan, META)
