# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Evaluation outcome models: per job, excluded jobs and multi-job reports."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from instrumentation_score.rules.model_rule_result import ModelRuleResult
from instrumentation_score.scoring.calculator_score import (
    EnumScoreCategory,
    categorize_score,
)


class EnumExclusionReason(str, Enum):
    """Why a job was not scored."""

    JOB_EXCLUDED = "job_excluded"
    ALL_METRICS_EXCLUDED = "all_metrics_excluded"


class ModelEvaluationOutcome(BaseModel):
    """Score, category and rule results of one evaluation.

    Attributes:
        score: Score in [0, 100].
        category: Category band of the score.
        results: One result per rule, in rule order.
        excluded_job_count: Jobs removed by the exclusion list.
    """

    score: float = Field(..., ge=0.0, le=100.0)
    category: EnumScoreCategory
    results: list[ModelRuleResult] = Field(default_factory=list)
    excluded_job_count: int = Field(default=0, ge=0)

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}


class ModelJobEvaluation(BaseModel):
    """Evaluation of one job's records.

    Attributes:
        job: Job name.
        score: Score in [0, 100].
        category: Category band of the score.
        total_metrics: Records evaluated after exclusion filtering.
        total_cardinality: Series count of the evaluated records.
        estimated_cost: ``total_cardinality * unit price`` when costs are enabled.
        results: One result per rule, in rule order.
        failed_metrics: Distinct metric names failing any validator, in
            first-failure order.
    """

    job: str
    score: float = Field(..., ge=0.0, le=100.0)
    category: EnumScoreCategory
    total_metrics: int = Field(..., ge=0)
    total_cardinality: int = Field(..., ge=0)
    estimated_cost: float | None = None
    results: list[ModelRuleResult] = Field(default_factory=list)
    failed_metrics: list[str] = Field(default_factory=list)

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}

    def to_outcome(self, excluded_job_count: int = 0) -> ModelEvaluationOutcome:
        """Project onto the score/category/results contract."""
        return ModelEvaluationOutcome(
            score=self.score,
            category=self.category,
            results=self.results,
            excluded_job_count=excluded_job_count,
        )


class ModelExcludedJob(BaseModel):
    """A job removed from scoring by the exclusion list."""

    job: str
    reason: EnumExclusionReason

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}


class ModelFailedJobFile(BaseModel):
    """A job file that produced no evaluation (unreadable or empty)."""

    path: str
    message: str

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}


class ModelEvaluationReport(BaseModel):
    """Report over many jobs.

    Aggregates are computed once by :meth:`from_jobs`; use it rather than
    constructing the model by hand.

    Attributes:
        timestamp: Report creation time (UTC).
        jobs: Scored jobs, in evaluation order.
        excluded_jobs: Jobs removed by the exclusion list.
        failed_files: Job files that could not be evaluated.
        excluded_job_count: ``len(excluded_jobs)``.
        average_score: Mean score of ``jobs`` (0.0 when there are none).
        total_cardinality: Sum of the jobs' series counts.
        total_cost: Sum of estimated costs, or None when costs are disabled.
        category_distribution: Category name -> number of jobs.
    """

    timestamp: datetime
    jobs: list[ModelJobEvaluation] = Field(default_factory=list)
    excluded_jobs: list[ModelExcludedJob] = Field(default_factory=list)
    failed_files: list[ModelFailedJobFile] = Field(default_factory=list)
    excluded_job_count: int = Field(default=0, ge=0)
    average_score: float = Field(default=0.0, ge=0.0, le=100.0)
    total_cardinality: int = Field(default=0, ge=0)
    total_cost: float | None = None
    category_distribution: dict[str, int] = Field(default_factory=dict)

    model_config = {"frozen": True, "extra": "ignore", "from_attributes": True}

    @classmethod
    def from_jobs(
        cls,
        jobs: Sequence[ModelJobEvaluation],
        excluded_jobs: Sequence[ModelExcludedJob] = (),
        failed_files: Sequence[ModelFailedJobFile] = (),
        timestamp: datetime | None = None,
    ) -> ModelEvaluationReport:
        """Build a report and its aggregates from per-job evaluations."""
        distribution = {category.value: 0 for category in EnumScoreCategory}
        for job in jobs:
            distribution[categorize_score(job.score).value] += 1

        costs = [job.estimated_cost for job in jobs if job.estimated_cost is not None]
        return cls(
            timestamp=timestamp or datetime.now(UTC),
            jobs=list(jobs),
            excluded_jobs=list(excluded_jobs),
            failed_files=list(failed_files),
            excluded_job_count=len(excluded_jobs),
            average_score=sum(job.score for job in jobs) / len(jobs) if jobs else 0.0,
            total_cardinality=sum(job.total_cardinality for job in jobs),
            total_cost=sum(costs) if costs else None,
            category_distribution=distribution,
        )

    def jobs_below(self, min_score: float) -> list[ModelJobEvaluation]:
        """Jobs scoring strictly below ``min_score``, in report order."""
        return [job for job in self.jobs if job.score < min_score]


__all__ = [
    "EnumExclusionReason",
    "ModelEvaluationOutcome",
    "ModelEvaluationReport",
    "ModelExcludedJob",
    "ModelFailedJobFile",
    "ModelJobEvaluation",
]
