"""Tests for smart collection rule evaluation."""

from __future__ import annotations

import logging
from datetime import date
from types import SimpleNamespace

import pytest

from smartwardrobe.core.exceptions import InvalidRuleException
from smartwardrobe.models.collection import RuleField, RuleOperator
from smartwardrobe.models.garment import Garment
from smartwardrobe.models.tag import Tag
from smartwardrobe.services import rule_engine
from smartwardrobe.services.rule_engine import (
    Rule,
    ScalarField,
    TagNamesField,
    UnknownField,
    evaluate,
    matches,
    matching_ids,
    resolve_field,
    validate_rule,
)


def make_garment(garment_id: int = 1, tags: tuple[str, ...] = (), **attrs) -> Garment:
    attrs.setdefault("name", "Oxford Shirt")
    attrs.setdefault("category", "Shirts")
    return Garment(id=garment_id, tags=[Tag(name=name) for name in tags], **attrs)


def rule(field: str, operator: RuleOperator, value: str) -> Rule:
    return Rule.from_record(SimpleNamespace(field=field, operator=operator.value, value=value))


def test_resolve_field_maps_known_and_unknown_names() -> None:
    assert resolve_field("category") == ScalarField("category")
    assert resolve_field(" Cost ") == ScalarField("cost", numeric=True)
    assert resolve_field("tags") == TagNamesField()
    assert resolve_field("fabric_weight") == UnknownField("fabric_weight")


def test_equals_is_case_insensitive() -> None:
    garment = make_garment(category="Shirts")

    assert evaluate(garment, rule("category", RuleOperator.EQUALS, "shirts"))
    assert evaluate(garment, rule("category", RuleOperator.EQUALS, " SHIRTS "))
    assert not evaluate(garment, rule("category", RuleOperator.EQUALS, "shirt"))


@pytest.mark.parametrize(
    ("operator", "value", "expected"),
    [
        (RuleOperator.CONTAINS, "oxf", True),
        (RuleOperator.STARTS_WITH, "blue", True),
        (RuleOperator.STARTS_WITH, "oxford", False),
        (RuleOperator.ENDS_WITH, "SHIRT", True),
        (RuleOperator.NOT_CONTAINS, "linen", True),
        (RuleOperator.NOT_EQUALS, "blue oxford shirt", False),
    ],
)
def test_string_operators(operator: RuleOperator, value: str, expected: bool) -> None:
    garment = make_garment(name="Blue Oxford Shirt")

    assert evaluate(garment, rule("name", operator, value)) is expected


def test_in_matches_any_candidate() -> None:
    pants = make_garment(category="Pants")
    skirt = make_garment(category="Skirts")
    in_rule = rule("category", RuleOperator.IN, "shirts, Pants ,,")

    assert in_rule.candidates == ("shirts", "pants")
    assert evaluate(pants, in_rule)
    assert not evaluate(skirt, in_rule)


def test_missing_attribute_compares_as_empty_string() -> None:
    garment = make_garment(brand=None)

    assert evaluate(garment, rule("brand", RuleOperator.NOT_EQUALS, "Uniqlo"))
    assert not evaluate(garment, rule("brand", RuleOperator.CONTAINS, "u"))


def test_tags_match_when_any_tag_satisfies_the_rule() -> None:
    garment = make_garment(tags=("Summer", "Work"))

    assert evaluate(garment, rule("tags", RuleOperator.CONTAINS, "summer"))
    assert evaluate(garment, rule("tags", RuleOperator.EQUALS, "WORK"))
    assert not evaluate(garment, rule("tags", RuleOperator.EQUALS, "winter"))


def test_negated_tag_rule_means_no_tag_matches() -> None:
    tagged = make_garment(tags=("Summer", "Work"))
    untagged = make_garment(garment_id=2)

    assert not evaluate(tagged, rule("tags", RuleOperator.NOT_CONTAINS, "summ"))
    assert evaluate(tagged, rule("tags", RuleOperator.NOT_CONTAINS, "winter"))
    assert not evaluate(tagged, rule("tags", RuleOperator.NOT_EQUALS, "work"))
    assert evaluate(untagged, rule("tags", RuleOperator.NOT_CONTAINS, "summer"))
    assert not evaluate(untagged, rule("tags", RuleOperator.CONTAINS, ""))


def test_cost_equality_is_numeric() -> None:
    garment = make_garment(cost=20.0)

    assert evaluate(garment, rule("cost", RuleOperator.EQUALS, "20"))
    assert evaluate(garment, rule("cost", RuleOperator.EQUALS, "20.00"))
    assert not evaluate(garment, rule("cost", RuleOperator.EQUALS, "20.5"))
    assert evaluate(garment, rule("cost", RuleOperator.NOT_EQUALS, "19.99"))
    assert evaluate(garment, rule("cost", RuleOperator.STARTS_WITH, "2"))


def test_cost_equality_without_cost_never_matches() -> None:
    garment = make_garment(cost=None)

    assert not evaluate(garment, rule("cost", RuleOperator.EQUALS, "0"))
    assert evaluate(garment, rule("cost", RuleOperator.NOT_EQUALS, "0"))


def test_dates_and_status_compare_by_their_text() -> None:
    garment = make_garment(purchase_date=date(2023, 5, 1), status="CLEAN")

    assert evaluate(garment, rule("purchase_date", RuleOperator.STARTS_WITH, "2023-05"))
    assert evaluate(garment, rule("status", RuleOperator.EQUALS, "clean"))


def test_unknown_field_never_matches() -> None:
    garment = make_garment()

    assert not evaluate(garment, rule("fabric_weight", RuleOperator.EQUALS, "heavy"))
    assert not evaluate(garment, rule("fabric_weight", RuleOperator.NOT_EQUALS, "heavy"))


def test_matches_is_a_conjunction() -> None:
    garment = make_garment(category="Shirts", color="Blue", tags=("Work",))
    rules = [
        rule("category", RuleOperator.EQUALS, "shirts"),
        rule("color", RuleOperator.EQUALS, "blue"),
        rule("tags", RuleOperator.CONTAINS, "work"),
    ]

    assert matches(garment, rules)
    assert not matches(garment, rules + [rule("color", RuleOperator.EQUALS, "red")])


def test_empty_rule_list_matches_nothing() -> None:
    assert not matches(make_garment(), [])
    assert matching_ids([make_garment(1), make_garment(2)], []) == set()


def test_matches_stops_at_first_failing_rule(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []
    original = rule_engine.evaluate

    def spy(garment, r):
        calls.append(r.field_name)
        return original(garment, r)

    monkeypatch.setattr(rule_engine, "evaluate", spy)
    rules = [
        rule("category", RuleOperator.EQUALS, "pants"),
        rule("color", RuleOperator.EQUALS, "blue"),
    ]

    assert not rule_engine.matches(make_garment(category="Shirts"), rules)
    assert calls == ["category"]


def test_matches_traces_each_rule_at_debug(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger=rule_engine.__name__)
    rules = [
        rule("category", RuleOperator.EQUALS, "shirts"),
        rule("color", RuleOperator.EQUALS, "blue"),
    ]

    assert not matches(make_garment(7, category="Shirts", color="Red"), rules)

    assert [record.getMessage() for record in caplog.records] == [
        "Garment 7 rule category EQUALS 'shirts': match",
        "Garment 7 rule color EQUALS 'blue': no match",
    ]


def test_matches_skips_trace_when_debug_is_off(
    monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    caplog.set_level(logging.INFO, logger=rule_engine.__name__)

    def describe(self) -> str:
        raise AssertionError("rule described with debug logging off")

    monkeypatch.setattr(Rule, "describe", describe)

    assert matches(make_garment(category="Shirts"), [rule("category", RuleOperator.EQUALS, "shirts")])
    assert caplog.records == []


def test_matching_ids() -> None:
    garments = [
        make_garment(1, category="Shirts"),
        make_garment(2, category="Pants"),
        make_garment(3, category="shirts"),
    ]

    assert matching_ids(garments, [rule("category", RuleOperator.EQUALS, "Shirts")]) == {1, 3}


def test_unknown_operator_is_rejected() -> None:
    with pytest.raises(InvalidRuleException):
        Rule.from_record(SimpleNamespace(field="category", operator="LIKE", value="x"))


@pytest.mark.parametrize(
    ("field", "operator", "value"),
    [
        ("fabric_weight", RuleOperator.EQUALS, "heavy"),
        (RuleField.CATEGORY, RuleOperator.EQUALS, "   "),
        (RuleField.CATEGORY, RuleOperator.IN, " , ,"),
        (RuleField.COST, RuleOperator.EQUALS, "cheap"),
        (RuleField.COST, RuleOperator.NOT_EQUALS, "nan"),
        (RuleField.CATEGORY, "BETWEEN", "a"),
    ],
)
def test_validate_rule_rejects_invalid_rules(field, operator, value) -> None:
    with pytest.raises(InvalidRuleException):
        validate_rule(field, operator, value)


def test_validate_rule_returns_typed_rule() -> None:
    validated = validate_rule(RuleField.COST, "equals", "19.90")

    assert validated == Rule(ScalarField("cost", numeric=True), RuleOperator.EQUALS, "19.90")
    assert validated.describe() == "cost EQUALS '19.90'"
