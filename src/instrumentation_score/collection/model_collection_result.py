# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Result of a collection run."""

from __future__ import annotations

from collections import Counter
from datetime import datetime

from pydantic import BaseModel, Field

from instrumentation_score.collection.model_collection_error import (
    ModelCollectionError,
)
from instrumentation_score.collection.model_metric_record import ModelMetricRecord


class ModelCollectionResult(BaseModel):
    """Records and soft errors produced by one collection run.

    Neither sequence has a meaningful order. A non-empty ``errors`` list
    does not mean the run failed.

    Attributes:
        records: Collected metric records, unique by ``(job, metric_name)``.
        errors: Per-operation soft errors.
        metric_count: Size of the metric-name catalog that was walked.
        started_at: Run start (UTC).
        finished_at: Run end (UTC).
    """

    records: list[ModelMetricRecord] = Field(default_factory=list)
    errors: list[ModelCollectionError] = Field(default_factory=list)
    metric_count: int = Field(default=0, ge=0)
    started_at: datetime
    finished_at: datetime

    model_config = {"frozen": True, "extra": "ignore"}

    @property
    def jobs(self) -> list[str]:
        """Distinct job names, sorted."""
        return sorted({record.job for record in self.records})

    def error_counts(self) -> dict[str, int]:
        """Soft error counts keyed by operation name."""
        return dict(Counter(error.operation.value for error in self.errors))

    def summary(self) -> str:
        """One-line human-readable summary of the run."""
        line = (
            f"{len(self.records)} metric-job records from {self.metric_count} metrics "
            f"across {len(self.jobs)} jobs"
        )
        if not self.errors:
            return f"{line}, no errors"
        breakdown = ", ".join(
            f"{operation}={count}"
            for operation, count in sorted(self.error_counts().items())
        )
        return f"{line}, {len(self.errors)} soft errors ({breakdown})"


__all__ = ["ModelCollectionResult"]
