# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""MetricRecord Pydantic model.

A MetricRecord is one metric observed for one job during a collection run.
Records are immutable after creation and are the only data the rule engine
reads.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class ModelMetricRecord(BaseModel):
    """One metric observed for one job.

    The identity key is ``(job, metric_name)``; it is unique within a
    collection run.

    Attributes:
        job: Job (scrape target group) the metric was collected under.
        metric_name: Metric name.
        labels: Label names seen on the metric for this job. Order is kept
            for display and serialization; duplicates are dropped.
        cardinality: Number of unique series for this metric+job.
        label_cardinality: Optional distinct-value count per label name.
            Only present when per-label collection was enabled and succeeded.
    """

    job: str = Field(..., description="Job name", min_length=1)
    metric_name: str = Field(..., description="Metric name", min_length=1)
    labels: tuple[str, ...] = Field(
        default=(),
        description="Label names seen on this metric for this job",
    )
    cardinality: int = Field(
        default=0,
        ge=0,
        description="Unique series count for this metric+job",
    )
    label_cardinality: dict[str, int] | None = Field(
        default=None,
        description="Distinct value count per label name",
    )

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}

    @field_validator("labels")
    @classmethod
    def dedupe_labels(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Drop empty and repeated label names, keeping first-seen order."""
        return tuple(dict.fromkeys(label for label in v if label))

    @field_validator("label_cardinality")
    @classmethod
    def validate_label_cardinality(
        cls, v: dict[str, int] | None
    ) -> dict[str, int] | None:
        """Reject negative per-label counts."""
        if v is None:
            return v
        negative = sorted(name for name, count in v.items() if count < 0)
        if negative:
            raise ValueError(f"label_cardinality counts must be >= 0: {negative}")
        return v

    @property
    def key(self) -> tuple[str, str]:
        """Identity key ``(job, metric_name)``."""
        return (self.job, self.metric_name)

    @property
    def label_count(self) -> int:
        """Number of distinct label names."""
        return len(self.labels)


__all__ = ["ModelMetricRecord"]
