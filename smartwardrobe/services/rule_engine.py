"""
Smart collection rule engine

Converts stored rule rows into typed rules and evaluates them against garments.
Evaluation is pure: it only reads garment attributes and tag names.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Optional, Sequence, Union

from smartwardrobe.core.exceptions import InvalidRuleException
from smartwardrobe.models.collection import RuleField, RuleOperator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScalarField:
    """A single-valued garment attribute"""

    attribute: str
    numeric: bool = False


@dataclass(frozen=True)
class TagNamesField:
    """The set of names of the garment's tags"""


@dataclass(frozen=True)
class UnknownField:
    """A stored field name that no garment attribute answers to"""

    name: str


FieldTarget = Union[ScalarField, TagNamesField, UnknownField]

_FIELD_TARGETS: dict[RuleField, FieldTarget] = {
    RuleField.NAME: ScalarField("name"),
    RuleField.CATEGORY: ScalarField("category"),
    RuleField.MATERIAL: ScalarField("material"),
    RuleField.COLOR: ScalarField("color"),
    RuleField.SIZE: ScalarField("size"),
    RuleField.BRAND: ScalarField("brand"),
    RuleField.STATUS: ScalarField("status"),
    RuleField.NOTES: ScalarField("notes"),
    RuleField.CARE_INSTRUCTIONS: ScalarField("care_instructions"),
    RuleField.PURCHASE_DATE: ScalarField("purchase_date"),
    RuleField.COST: ScalarField("cost", numeric=True),
    RuleField.TAGS: TagNamesField(),
}

# Negated operators evaluate as the exact negation of their positive counterpart
_NEGATIONS: dict[RuleOperator, RuleOperator] = {
    RuleOperator.NOT_EQUALS: RuleOperator.EQUALS,
    RuleOperator.NOT_CONTAINS: RuleOperator.CONTAINS,
}

IN_DELIMITER = ","


def resolve_field(name: str) -> FieldTarget:
    """Map a stored field name to its target; unknown names resolve to UnknownField."""
    try:
        return _FIELD_TARGETS[RuleField(name.strip().lower())]
    except (ValueError, AttributeError):
        return UnknownField(str(name))


def parse_operator(operator: Union[str, RuleOperator]) -> RuleOperator:
    if isinstance(operator, RuleOperator):
        return operator
    try:
        return RuleOperator(str(operator).strip().upper())
    except ValueError as e:
        allowed = ", ".join(op.value for op in RuleOperator)
        raise InvalidRuleException(
            f"Unknown rule operator '{operator}'. Allowed operators: {allowed}"
        ) from e


@dataclass(frozen=True)
class Rule:
    """
    Typed smart collection rule.

    Attributes:
        field: Resolved field target
        operator: Comparison operator
        value: Raw comparison value as stored
    """

    field: FieldTarget
    operator: RuleOperator
    value: str

    @classmethod
    def from_record(cls, record: Any) -> "Rule":
        """
        Build a rule from any object exposing field/operator/value (e.g. a CollectionRule row).

        Unknown field names are kept as UnknownField so evaluation fails closed.

        Raises:
            InvalidRuleException: If the operator is unknown or the value is missing
        """
        value = getattr(record, "value", None)
        if value is None:
            raise InvalidRuleException("Rule value is required")
        return cls(
            field=resolve_field(getattr(record, "field", "") or ""),
            operator=parse_operator(getattr(record, "operator", "")),
            value=str(value),
        )

    @property
    def field_name(self) -> str:
        if isinstance(self.field, ScalarField):
            return self.field.attribute
        if isinstance(self.field, TagNamesField):
            return RuleField.TAGS.value
        return self.field.name

    @property
    def candidates(self) -> tuple[str, ...]:
        """Casefolded candidate values of an IN rule"""
        return tuple(
            part.strip().casefold()
            for part in self.value.split(IN_DELIMITER)
            if part.strip()
        )

    def describe(self) -> str:
        return f"{self.field_name} {self.operator.value} '{self.value}'"


def validate_rule(
    field: Union[str, RuleField],
    operator: Union[str, RuleOperator],
    value: Optional[str],
) -> Rule:
    """
    Strict validation applied when a rule is created.

    Raises:
        InvalidRuleException: With the violated constraint in the message
    """
    field_name = field.value if isinstance(field, RuleField) else str(field or "")
    target = resolve_field(field_name)
    if isinstance(target, UnknownField):
        allowed = ", ".join(f.value for f in RuleField)
        raise InvalidRuleException(
            f"Unknown rule field '{field_name}'. Allowed fields: {allowed}"
        )

    parsed_operator = parse_operator(operator)

    if value is None or not str(value).strip():
        raise InvalidRuleException(f"Rule value is required for field '{field_name}'")
    value = str(value)

    if parsed_operator is RuleOperator.IN and not Rule(target, parsed_operator, value).candidates:
        raise InvalidRuleException(
            f"Rule value for IN must list at least one candidate separated by '{IN_DELIMITER}'"
        )

    if (
        isinstance(target, ScalarField)
        and target.numeric
        and parsed_operator in (RuleOperator.EQUALS, RuleOperator.NOT_EQUALS)
        and _to_decimal(value) is None
    ):
        raise InvalidRuleException(
            f"Rule value for numeric field '{field_name}' must be a number, got '{value}'"
        )

    return Rule(field=target, operator=parsed_operator, value=value)


def _to_decimal(raw: Any) -> Optional[Decimal]:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        number = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def _stringify(raw: Any) -> str:
    """Render an attribute value for string comparison"""
    if raw is None:
        return ""
    if hasattr(raw, "value") and isinstance(raw.value, str):  # str enums
        return raw.value
    if isinstance(raw, (datetime, date)):
        return raw.isoformat()
    if isinstance(raw, (int, float, Decimal)) and not isinstance(raw, bool):
        number = _to_decimal(raw)
        if number is None:
            return str(raw)
        # 20.0 -> "20", 19.90 -> "19.9"
        return f"{number.normalize():f}"
    return str(raw)


def _compare(operator: RuleOperator, actual: str, rule: Rule) -> bool:
    """Apply a positive operator to one casefolded value"""
    expected = rule.value.strip().casefold()
    if operator is RuleOperator.EQUALS:
        return actual == expected
    if operator is RuleOperator.CONTAINS:
        return expected in actual
    if operator is RuleOperator.STARTS_WITH:
        return actual.startswith(expected)
    if operator is RuleOperator.ENDS_WITH:
        return actual.endswith(expected)
    if operator is RuleOperator.IN:
        return actual in rule.candidates
    raise InvalidRuleException(f"Operator {operator.value} has no positive comparison")


def _numeric_equals(raw: Any, rule: Rule) -> bool:
    actual = _to_decimal(raw)
    expected = _to_decimal(rule.value)
    if actual is None or expected is None:
        return False
    return actual == expected


def _tag_names(garment: Any) -> Iterable[str]:
    for tag in getattr(garment, "tags", None) or []:
        name = getattr(tag, "name", tag)
        if name is not None:
            yield str(name).strip().casefold()


def evaluate(garment: Any, rule: Rule) -> bool:
    """
    Decide whether a single rule holds for a garment.

    - String comparisons are case-insensitive; missing attributes compare as ""
    - Numeric fields use numeric equality for EQUALS/NOT_EQUALS
    - The tags field holds if any tag name satisfies the comparison
    - NOT_EQUALS/NOT_CONTAINS are exact negations of EQUALS/CONTAINS
    - Unknown fields never match
    """
    if isinstance(rule.field, UnknownField):
        return False

    negated = rule.operator in _NEGATIONS
    operator = _NEGATIONS.get(rule.operator, rule.operator)

    if isinstance(rule.field, TagNamesField):
        hit = any(_compare(operator, name, rule) for name in _tag_names(garment))
    else:
        raw = getattr(garment, rule.field.attribute, None)
        if rule.field.numeric and operator is RuleOperator.EQUALS:
            hit = _numeric_equals(raw, rule)
        else:
            hit = _compare(operator, _stringify(raw).strip().casefold(), rule)

    return not hit if negated else hit


def matches(garment: Any, rules: Sequence[Rule]) -> bool:
    """
    Conjunction of all rules; an empty rule list matches nothing.
    Rules are evaluated in the given order and evaluation stops at the first miss.
    """
    if not rules:
        return False
    garment_id = getattr(garment, "id", None)
    trace = logger.isEnabledFor(logging.DEBUG)
    for rule in rules:
        hit = evaluate(garment, rule)
        if trace:
            logger.debug(f"Garment {garment_id} rule {rule.describe()}: {'match' if hit else 'no match'}")
        if not hit:
            return False
    return True


def matching_ids(garments: Iterable[Any], rules: Sequence[Rule]) -> set[int]:
    """Ids of the garments satisfying every rule"""
    return {garment.id for garment in garments if matches(garment, rules)}
