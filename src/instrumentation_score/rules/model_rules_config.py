# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Pydantic models for the rule configuration document.

The rules YAML is the external, hot-loaded contract for evaluation. These
models check its structure; the loader then applies the semantic checks
(field/operator/value compatibility, regex compilation) and compiles it.

Rules YAML structure::

    exclusion_list:
      - job: "node-exporter"                # exclude the whole job
      - job_name_pattern: "^test-.*"
        metrics: ["up", "scrape_duration_seconds"]
    rules:
      - rule_id: PROM-MET-02
        description: "Metrics must stay below 10k series"
        impact: Critical
        validators:
          - name: cardinality_below_10k
            type: cardinality
            data_source: cardinality
            conditions:
              - field: count
                operator: lt
                value: 10000
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator


class EnumImpact(str, Enum):
    """Impact level of a rule. Each level maps to a fixed score weight."""

    CRITICAL = "Critical"
    IMPORTANT = "Important"
    NORMAL = "Normal"
    LOW = "Low"


class EnumValidatorType(str, Enum):
    """Kind of check a validator performs."""

    CARDINALITY = "cardinality"
    FORMAT = "format"
    LABELS = "labels"
    LABEL_COUNT = "label_count"


class EnumDataSource(str, Enum):
    """Data view a validator reads rows from."""

    CARDINALITY = "cardinality"
    LABELS = "labels"


class EnumConditionField(str, Enum):
    """Row field a condition tests."""

    COUNT = "count"
    METRIC_NAME = "metric_name"
    LABELS = "labels"
    LABEL_COUNT = "label_count"


class EnumConditionOperator(str, Enum):
    """Comparison operator of a condition."""

    LT = "lt"
    LTE = "lte"
    GT = "gt"
    GTE = "gte"
    EQ = "eq"
    NE = "ne"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    MATCHES = "matches"


class ModelExclusionEntry(BaseModel):
    """A job (or some of its metrics) removed from evaluation.

    Attributes:
        job: Exact job name.
        job_name_pattern: Regular expression searched in the job name.
        metrics: Metric names to exclude; empty means the whole job.
    """

    job: str | None = Field(default=None, description="Exact job name")
    job_name_pattern: str | None = Field(
        default=None, description="Regex searched in job names"
    )
    metrics: list[str] = Field(
        default_factory=list,
        description="Metric names to exclude; empty excludes the whole job",
    )

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}

    @field_validator("metrics", mode="before")
    @classmethod
    def null_metrics_as_empty(cls, v: Any) -> Any:
        """``metrics:`` with no items excludes the whole job."""
        return [] if v is None else v


class ModelConditionConfig(BaseModel):
    """One condition of a validator; all conditions of a validator are ANDed.

    Attributes:
        field: Row field to test.
        operator: Comparison operator.
        value: Number or string; coerced per operator by the loader.
    """

    field: EnumConditionField
    operator: EnumConditionOperator
    value: int | float | str

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}

    @field_validator("value", mode="before")
    @classmethod
    def reject_booleans(cls, v: Any) -> Any:
        """YAML booleans would otherwise be accepted as 0/1."""
        if isinstance(v, bool):
            raise ValueError("value must be a number or a string, got a boolean")
        return v


class ModelValidatorConfig(BaseModel):
    """A named, typed check contributing pass/fail counts to its rule.

    Attributes:
        name: Validator name, reported in failed-metric listings.
        type: Validator kind.
        data_source: Data view the validator reads.
        ui_title: Optional display title for report renderers.
        ui_description: Optional display description for report renderers.
        conditions: Conditions, ANDed per row.
        parameters: Free-form parameters carried through untouched.
    """

    name: str = Field(..., min_length=1)
    type: EnumValidatorType
    data_source: EnumDataSource
    ui_title: str | None = None
    ui_description: str | None = None
    conditions: list[ModelConditionConfig] = Field(..., min_length=1)
    parameters: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}


class ModelRuleDefinition(BaseModel):
    """A scored rule made of one or more validators.

    Attributes:
        rule_id: Unique rule identifier.
        description: Human-readable description.
        impact: Impact level, which fixes the rule's weight in the score.
        validators: Validators, evaluated in order.
    """

    rule_id: str = Field(..., min_length=1)
    description: str = ""
    impact: EnumImpact
    validators: list[ModelValidatorConfig] = Field(..., min_length=1)

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}


class ModelRulesConfig(BaseModel):
    """Top-level rules document.

    Attributes:
        exclusion_list: Job/metric exclusions applied before evaluation.
        rules: Rule definitions, evaluated in order.
    """

    exclusion_list: list[ModelExclusionEntry] = Field(default_factory=list)
    rules: list[ModelRuleDefinition] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}

    @field_validator("exclusion_list", "rules", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        """``exclusion_list:`` with no entries parses as null in YAML."""
        return [] if v is None else v

    @model_validator(mode="after")
    def validate_no_duplicate_rule_ids(self) -> ModelRulesConfig:
        """Validate that all rule IDs are unique."""
        seen: set[str] = set()
        duplicates: set[str] = set()
        for rule in self.rules:
            if rule.rule_id in seen:
                duplicates.add(rule.rule_id)
            seen.add(rule.rule_id)
        if duplicates:
            raise ValueError(
                f"Duplicate rule IDs found: {sorted(duplicates)}. "
                "Each rule_id must be unique."
            )
        return self


__all__ = [
    "EnumConditionField",
    "EnumConditionOperator",
    "EnumDataSource",
    "EnumImpact",
    "EnumValidatorType",
    "ModelConditionConfig",
    "ModelExclusionEntry",
    "ModelRuleDefinition",
    "ModelRulesConfig",
    "ModelValidatorConfig",
]
