# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Rule evaluation engine.

Evaluates every rule of a :class:`RuleSet` over a sequence of metric
records and returns one :class:`ModelRuleResult` per rule, in rule order.
Evaluation is pure: the same records and rule set always produce equal
results, and nothing is cached between calls.

For each validator every record is one row. A row passes when all of the
validator's conditions hold. Validators on the ``cardinality`` data source
also add the row's series count to the rule's cardinality sums.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from instrumentation_score.collection.model_metric_record import ModelMetricRecord
from instrumentation_score.rules.filter_exclusion import ExclusionFilter
from instrumentation_score.rules.loader_rules import RuleSetLoader
from instrumentation_score.rules.model_compiled_rules import (
    DATA_SOURCE_FIELDS,
    CompiledExclusion,
    CompiledRule,
    CompiledValidator,
    RuleSet,
)
from instrumentation_score.rules.model_rule_result import (
    ModelRuleResult,
    ModelValidatorStat,
)

logger = logging.getLogger(__name__)


class RuleEvaluationError(Exception):
    """Raised when a rule cannot be evaluated.

    Attributes:
        rule_id: Offending rule.
        validator_name: Offending validator.
    """

    def __init__(self, rule_id: str, validator_name: str, message: str) -> None:
        self.rule_id = rule_id
        self.validator_name = validator_name
        super().__init__(
            f"Failed to evaluate rule {rule_id} (validator {validator_name}): {message}"
        )


def _check_validator(rule: CompiledRule, validator: CompiledValidator) -> None:
    available = DATA_SOURCE_FIELDS.get(validator.data_source, frozenset())
    for condition in validator.conditions:
        if condition.field not in available:
            raise RuleEvaluationError(
                rule.rule_id,
                validator.name,
                f"field {condition.field.value!r} is not available in data source "
                f"{validator.data_source.value!r}",
            )


def _evaluate_rule(
    rule: CompiledRule, records: Sequence[ModelMetricRecord]
) -> ModelRuleResult:
    passed_metrics = 0
    total_metrics = 0
    passed_cardinality = 0
    total_cardinality = 0
    failed_checks: list[str] = []
    failed_metrics: dict[str, list[str]] = {}
    stats: list[ModelValidatorStat] = []

    for validator in rule.validators:
        _check_validator(rule, validator)

        passed = 0
        for record in records:
            try:
                ok = validator.passes(record)
            except (TypeError, ValueError) as exc:
                raise RuleEvaluationError(rule.rule_id, validator.name, str(exc)) from exc

            if validator.uses_cardinality:
                total_cardinality += record.cardinality
            if ok:
                passed += 1
                if validator.uses_cardinality:
                    passed_cardinality += record.cardinality
            else:
                failed_metrics.setdefault(record.metric_name, []).append(validator.name)

        total = len(records)
        if passed < total:
            failed_checks.append(validator.name)
        passed_metrics += passed
        total_metrics += total
        stats.append(
            ModelValidatorStat(
                name=validator.name,
                passed_metrics=passed,
                total_metrics=total,
                pass_rate=passed / total if total else 0.0,
                ui_title=validator.ui_title,
                ui_description=validator.ui_description,
            )
        )

    return ModelRuleResult(
        rule_id=rule.rule_id,
        impact=rule.impact,
        description=rule.description,
        passed_checks=len(rule.validators),
        total_checks=len(rule.validators),
        failed_checks=failed_checks,
        failed_metrics=failed_metrics,
        passed_metrics=passed_metrics,
        total_metrics=total_metrics,
        passed_cardinality=passed_cardinality,
        total_cardinality=total_cardinality,
        validator_stats=stats,
    )


def evaluate_rules(
    rules: Sequence[CompiledRule],
    records: Sequence[ModelMetricRecord],
    exclusions: Sequence[CompiledExclusion] | None = None,
) -> list[ModelRuleResult]:
    """Evaluate ``rules`` over ``records`` after applying ``exclusions``.

    Records are filtered per their own job, so ``records`` may span jobs.

    Raises:
        RuleEvaluationError: If a rule cannot be evaluated.
    """
    if exclusions:
        exclusion_filter = ExclusionFilter(exclusions)
        records = [
            record
            for record in records
            if not exclusion_filter.is_metric_excluded(record.job, record.metric_name)
        ]
    return [_evaluate_rule(rule, records) for rule in rules]


class RuleEngine:
    """Evaluate a loaded rule set.

    Usage::

        engine = RuleEngine.from_file("rules_config.yaml")
        if not engine.is_job_excluded(job):
            results = engine.evaluate(engine.filter(job, records))
    """

    def __init__(self, rule_set: RuleSet) -> None:
        self._rule_set = rule_set
        self._exclusion_filter = ExclusionFilter(rule_set.exclusions)

    @classmethod
    def from_file(cls, path: str | Path) -> RuleEngine:
        """Load a rule document and build an engine for it.

        Raises:
            RuleSetLoadError: If the document cannot be loaded.
        """
        return cls(RuleSetLoader().load_file(path))

    @property
    def rule_set(self) -> RuleSet:
        return self._rule_set

    @property
    def rules(self) -> tuple[CompiledRule, ...]:
        return self._rule_set.rules

    @property
    def exclusion_filter(self) -> ExclusionFilter:
        return self._exclusion_filter

    def is_job_excluded(self, job: str) -> bool:
        return self._exclusion_filter.is_job_excluded(job)

    def is_metric_excluded(self, job: str, metric_name: str) -> bool:
        return self._exclusion_filter.is_metric_excluded(job, metric_name)

    def filter(
        self, job: str, records: Sequence[ModelMetricRecord]
    ) -> list[ModelMetricRecord]:
        return self._exclusion_filter.filter(job, records)

    def evaluate(self, records: Sequence[ModelMetricRecord]) -> list[ModelRuleResult]:
        """Evaluate every rule over ``records`` (exclusions are not applied).

        Raises:
            RuleEvaluationError: If a rule cannot be evaluated.
        """
        logger.debug(
            "Evaluating %d rules over %d records", len(self._rule_set.rules), len(records)
        )
        return evaluate_rules(self._rule_set.rules, records)


__all__ = [
    "RuleEngine",
    "RuleEvaluationError",
    "evaluate_rules",
]
