# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Per-rule evaluation results."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from instrumentation_score.rules.model_rules_config import EnumImpact


class ModelValidatorStat(BaseModel):
    """Pass/fail statistics of one validator within a rule.

    Attributes:
        name: Validator name.
        passed_metrics: Rows that passed.
        total_metrics: Rows evaluated.
        pass_rate: ``passed_metrics / total_metrics`` (0.0 when no rows).
        ui_title: Display title carried from the rule document.
        ui_description: Display description carried from the rule document.
    """

    name: str
    passed_metrics: int = Field(..., ge=0)
    total_metrics: int = Field(..., ge=0)
    pass_rate: float = Field(..., ge=0.0, le=1.0)
    ui_title: str | None = None
    ui_description: str | None = None

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}


class ModelRuleResult(BaseModel):
    """Outcome of one rule over one set of records.

    ``passed_metrics``/``total_metrics`` count validator-metric evaluations,
    so a metric checked by two validators counts twice.
    ``passed_cardinality``/``total_cardinality`` sum series counts from
    validators on the ``cardinality`` data source only.

    Attributes:
        rule_id: Rule identifier.
        impact: Rule impact level.
        description: Rule description.
        passed_checks: Validators evaluated.
        total_checks: Validators defined on the rule.
        failed_checks: Names of validators with at least one failing row.
        failed_metrics: Metric name -> names of validators that rejected it,
            in first-failure order.
        passed_metrics: Passing validator-metric evaluations.
        total_metrics: All validator-metric evaluations.
        passed_cardinality: Series count of passing cardinality rows.
        total_cardinality: Series count of all cardinality rows.
        validator_stats: Per-validator statistics, in validator order.
    """

    rule_id: str
    impact: EnumImpact
    description: str = ""
    passed_checks: int = Field(default=0, ge=0)
    total_checks: int = Field(default=0, ge=0)
    failed_checks: list[str] = Field(default_factory=list)
    failed_metrics: dict[str, list[str]] = Field(default_factory=dict)
    passed_metrics: int = Field(default=0, ge=0)
    total_metrics: int = Field(default=0, ge=0)
    passed_cardinality: int = Field(default=0, ge=0)
    total_cardinality: int = Field(default=0, ge=0)
    validator_stats: list[ModelValidatorStat] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}

    @model_validator(mode="after")
    def validate_passed_within_total(self) -> ModelRuleResult:
        """Passed counts never exceed their totals."""
        if self.passed_metrics > self.total_metrics:
            raise ValueError(
                f"passed_metrics ({self.passed_metrics}) exceeds "
                f"total_metrics ({self.total_metrics})"
            )
        if self.passed_cardinality > self.total_cardinality:
            raise ValueError(
                f"passed_cardinality ({self.passed_cardinality}) exceeds "
                f"total_cardinality ({self.total_cardinality})"
            )
        return self

    @property
    def pass_rate(self) -> float:
        """Metric-count pass rate (0.0 when nothing was evaluated)."""
        if self.total_metrics == 0:
            return 0.0
        return self.passed_metrics / self.total_metrics

    @property
    def uses_cardinality_weighting(self) -> bool:
        """True if the score counts series rather than metrics for this rule."""
        return self.total_cardinality > 0


__all__ = ["ModelRuleResult", "ModelValidatorStat"]
