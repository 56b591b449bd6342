# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Compiled, immutable form of a rule document.

The loader turns the YAML document into these frozen dataclasses once. All
coercion happens here: condition values become tagged values, regexes are
compiled, and each condition resolves its predicate up front so evaluation
never re-interprets strings.

Field/operator table:

=============  ==============================================  ========
field          operators                                       value
=============  ==============================================  ========
count          lt, lte, gt, gte, eq, ne                        number
metric_name    eq, ne, contains, not_contains, matches         string
labels         contains (any), not_contains (none),            string
               matches (all), eq (any)
label_count    lt, lte, gt, gte, eq                            integer
=============  ==============================================  ========
"""

from __future__ import annotations

import operator as op
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from dataclasses import field as dc_field
from typing import Any

from instrumentation_score.collection.model_metric_record import ModelMetricRecord
from instrumentation_score.rules.model_rules_config import (
    EnumConditionField,
    EnumConditionOperator,
    EnumDataSource,
    EnumImpact,
    EnumValidatorType,
)

_F = EnumConditionField
_O = EnumConditionOperator

# Data view each validator type reads.
VALIDATOR_DATA_SOURCES: Mapping[EnumValidatorType, EnumDataSource] = {
    EnumValidatorType.CARDINALITY: EnumDataSource.CARDINALITY,
    EnumValidatorType.FORMAT: EnumDataSource.LABELS,
    EnumValidatorType.LABELS: EnumDataSource.LABELS,
    EnumValidatorType.LABEL_COUNT: EnumDataSource.LABELS,
}

# Row fields available in each data view.
DATA_SOURCE_FIELDS: Mapping[EnumDataSource, frozenset[EnumConditionField]] = {
    EnumDataSource.CARDINALITY: frozenset({_F.COUNT, _F.METRIC_NAME}),
    EnumDataSource.LABELS: frozenset({_F.METRIC_NAME, _F.LABELS, _F.LABEL_COUNT}),
}

FIELD_OPERATORS: Mapping[EnumConditionField, tuple[EnumConditionOperator, ...]] = {
    _F.COUNT: (_O.LT, _O.LTE, _O.GT, _O.GTE, _O.EQ, _O.NE),
    _F.METRIC_NAME: (_O.EQ, _O.NE, _O.CONTAINS, _O.NOT_CONTAINS, _O.MATCHES),
    _F.LABELS: (_O.CONTAINS, _O.NOT_CONTAINS, _O.MATCHES, _O.EQ),
    _F.LABEL_COUNT: (_O.LT, _O.LTE, _O.GT, _O.GTE, _O.EQ),
}

_COMPARISONS: Mapping[EnumConditionOperator, Callable[[Any, Any], bool]] = {
    _O.LT: op.lt,
    _O.LTE: op.le,
    _O.GT: op.gt,
    _O.GTE: op.ge,
    _O.EQ: op.eq,
    _O.NE: op.ne,
}


# ---------------------------------------------------------------------------
# Tagged condition values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NumberValue:
    """Numeric comparison operand (``count``)."""

    value: float


@dataclass(frozen=True)
class IntegerValue:
    """Integer comparison operand (``label_count``)."""

    value: int


@dataclass(frozen=True)
class StringValue:
    """String operand for ``eq``/``ne``/``contains``/``not_contains``."""

    value: str

    @property
    def folded(self) -> str:
        """Lower-cased value used by the substring operators."""
        return self.value.lower()


@dataclass(frozen=True)
class PatternValue:
    """Regex operand for ``matches``, compiled once."""

    pattern: re.Pattern[str]

    @property
    def value(self) -> str:
        return self.pattern.pattern


ConditionValue = NumberValue | IntegerValue | StringValue | PatternValue

Predicate = Callable[[ModelMetricRecord], bool]


def _coerce_value(
    field_: EnumConditionField,
    operator: EnumConditionOperator,
    raw: int | float | str,
) -> ConditionValue:
    """Coerce a raw document value into the tagged value the operator needs.

    Raises:
        ValueError: If the value cannot be coerced or the regex is invalid.
    """
    if isinstance(raw, bool):
        raise ValueError("value must be a number or a string, got a boolean")

    if field_ is _F.COUNT:
        try:
            return NumberValue(float(raw))
        except ValueError:
            raise ValueError(f"'count' requires a numeric value, got {raw!r}") from None

    if field_ is _F.LABEL_COUNT:
        if isinstance(raw, int):
            return IntegerValue(raw)
        if isinstance(raw, float) and raw.is_integer():
            return IntegerValue(int(raw))
        raise ValueError(f"'label_count' requires an integer value, got {raw!r}")

    if not isinstance(raw, str):
        raise ValueError(f"{field_.value!r} requires a string value, got {raw!r}")
    if operator is _O.MATCHES:
        try:
            return PatternValue(re.compile(raw))
        except re.error as exc:
            raise ValueError(f"invalid regular expression {raw!r}: {exc}") from None
    return StringValue(raw)


def _contains(haystack: str, value: StringValue) -> bool:
    return value.folded in haystack.lower()


def _build_predicate(
    field_: EnumConditionField,
    operator: EnumConditionOperator,
    value: ConditionValue,
) -> Predicate:
    if isinstance(value, NumberValue):
        compare = _COMPARISONS[operator]
        number = value.value
        return lambda record: compare(float(record.cardinality), number)

    if isinstance(value, IntegerValue):
        compare = _COMPARISONS[operator]
        count = value.value
        return lambda record: compare(record.label_count, count)

    if field_ is _F.METRIC_NAME:
        if isinstance(value, PatternValue):
            pattern = value.pattern
            return lambda record: pattern.search(record.metric_name) is not None
        if operator is _O.CONTAINS:
            return lambda record: _contains(record.metric_name, value)
        if operator is _O.NOT_CONTAINS:
            return lambda record: not _contains(record.metric_name, value)
        compare = _COMPARISONS[operator]
        text = value.value
        return lambda record: compare(record.metric_name, text)

    # Label-set semantics differ per operator: contains/eq need any label,
    # not_contains needs none, matches needs every label.
    if isinstance(value, PatternValue):
        pattern = value.pattern
        return lambda record: all(pattern.search(label) for label in record.labels)
    if operator is _O.CONTAINS:
        return lambda record: any(_contains(label, value) for label in record.labels)
    if operator is _O.NOT_CONTAINS:
        return lambda record: not any(
            _contains(label, value) for label in record.labels
        )
    text = value.value
    return lambda record: any(label == text for label in record.labels)


# ---------------------------------------------------------------------------
# Compiled rule document
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompiledCondition:
    """A condition with its tagged value and resolved predicate."""

    field: EnumConditionField
    operator: EnumConditionOperator
    value: ConditionValue
    predicate: Predicate = dc_field(repr=False, compare=False)

    @classmethod
    def compile(
        cls,
        field_: EnumConditionField | str,
        operator: EnumConditionOperator | str,
        raw_value: int | float | str,
    ) -> CompiledCondition:
        """Validate a field/operator/value triple and resolve its predicate.

        Raises:
            ValueError: On an unknown field or operator, an operator not
                valid for the field, or a value the operator cannot use.
        """
        field_ = EnumConditionField(field_)
        operator = EnumConditionOperator(operator)
        allowed = FIELD_OPERATORS[field_]
        if operator not in allowed:
            raise ValueError(
                f"operator {operator.value!r} is not valid for field "
                f"{field_.value!r}; valid operators are "
                f"{[o.value for o in allowed]}"
            )
        value = _coerce_value(field_, operator, raw_value)
        return cls(
            field=field_,
            operator=operator,
            value=value,
            predicate=_build_predicate(field_, operator, value),
        )

    def holds(self, record: ModelMetricRecord) -> bool:
        """Return True if the condition holds for ``record``."""
        return self.predicate(record)


@dataclass(frozen=True)
class CompiledValidator:
    """A validator ready for evaluation."""

    name: str
    type: EnumValidatorType
    data_source: EnumDataSource
    conditions: tuple[CompiledCondition, ...]
    ui_title: str | None = None
    ui_description: str | None = None
    parameters: Mapping[str, Any] = dc_field(default_factory=dict, compare=False)

    @property
    def uses_cardinality(self) -> bool:
        """True if this validator feeds the rule's cardinality sums."""
        return self.data_source is EnumDataSource.CARDINALITY

    def passes(self, record: ModelMetricRecord) -> bool:
        """AND of all conditions for one row."""
        return all(condition.holds(record) for condition in self.conditions)


@dataclass(frozen=True)
class CompiledRule:
    """A rule ready for evaluation."""

    rule_id: str
    impact: EnumImpact
    validators: tuple[CompiledValidator, ...]
    description: str = ""


@dataclass(frozen=True)
class CompiledExclusion:
    """An exclusion entry with its job pattern compiled once.

    An entry with neither ``job`` nor ``pattern`` matches no job.
    """

    job: str | None = None
    pattern: re.Pattern[str] | None = None
    metrics: frozenset[str] = frozenset()

    @property
    def excludes_whole_job(self) -> bool:
        return not self.metrics

    def matches_job(self, job: str) -> bool:
        if self.job is not None and self.job == job:
            return True
        return self.pattern is not None and self.pattern.search(job) is not None


@dataclass(frozen=True)
class RuleSet:
    """A fully loaded rule document: rules plus exclusions."""

    rules: tuple[CompiledRule, ...] = ()
    exclusions: tuple[CompiledExclusion, ...] = ()

    @property
    def rule_ids(self) -> list[str]:
        return [rule.rule_id for rule in self.rules]


__all__ = [
    "DATA_SOURCE_FIELDS",
    "FIELD_OPERATORS",
    "VALIDATOR_DATA_SOURCES",
    "CompiledCondition",
    "CompiledExclusion",
    "CompiledRule",
    "CompiledValidator",
    "ConditionValue",
    "IntegerValue",
    "NumberValue",
    "PatternValue",
    "Predicate",
    "RuleSet",
    "StringValue",
]
