# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Job and metric exclusion applied before evaluation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from instrumentation_score.collection.model_metric_record import ModelMetricRecord
from instrumentation_score.rules.model_compiled_rules import CompiledExclusion


class ExclusionFilter:
    """Decide which jobs and metrics are removed from scoring.

    A job matches an entry when its name equals the entry's ``job`` or the
    entry's pattern is found in it. A matching entry without metrics
    excludes the whole job; otherwise only the listed metrics are removed.
    """

    def __init__(self, exclusions: Sequence[CompiledExclusion] = ()) -> None:
        self._exclusions = tuple(exclusions)

    @property
    def exclusions(self) -> tuple[CompiledExclusion, ...]:
        return self._exclusions

    def is_job_excluded(self, job: str) -> bool:
        """True if some whole-job entry matches ``job``."""
        return any(
            entry.excludes_whole_job and entry.matches_job(job)
            for entry in self._exclusions
        )

    def is_metric_excluded(self, job: str, metric_name: str) -> bool:
        """True if ``metric_name`` is removed from ``job``'s records."""
        for entry in self._exclusions:
            if not entry.matches_job(job):
                continue
            if entry.excludes_whole_job or metric_name in entry.metrics:
                return True
        return False

    def filter(
        self, job: str, records: Iterable[ModelMetricRecord]
    ) -> list[ModelMetricRecord]:
        """Return the records of ``job`` that survive exclusion, in order."""
        return [
            record
            for record in records
            if not self.is_metric_excluded(job, record.metric_name)
        ]


__all__ = ["ExclusionFilter"]
