# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Job evaluation: exclusion, rule evaluation and scoring per job.

A job is either scored (:class:`ModelJobEvaluation`) or reported as
excluded (:class:`ModelExcludedJob`). A job left with no records after
metric exclusion is excluded, never scored as 0 or 100.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from instrumentation_score.collection.model_metric_record import ModelMetricRecord
from instrumentation_score.evaluation.model_evaluation import (
    EnumExclusionReason,
    ModelEvaluationOutcome,
    ModelEvaluationReport,
    ModelExcludedJob,
    ModelFailedJobFile,
    ModelJobEvaluation,
)
from instrumentation_score.records.codec_record_file import (
    RecordFileError,
    discover_job_files,
    read_job_file,
)
from instrumentation_score.rules.engine_rules import RuleEngine
from instrumentation_score.scoring.calculator_score import (
    calculate_score,
    categorize_score,
)

logger = logging.getLogger(__name__)


class EmptyJobFileError(RecordFileError):
    """Raised when a job file holds no parseable records."""


def _validate_unit_price(cost_unit_price: float | None) -> None:
    if cost_unit_price is not None and cost_unit_price <= 0:
        raise ValueError(f"cost_unit_price must be greater than 0, got {cost_unit_price}")


def evaluate_job(
    engine: RuleEngine,
    job: str,
    records: Sequence[ModelMetricRecord],
    *,
    cost_unit_price: float | None = None,
) -> ModelJobEvaluation | ModelExcludedJob:
    """Evaluate one job's records.

    Args:
        engine: Rule engine holding rules and exclusions.
        job: Job name.
        records: The job's records.
        cost_unit_price: Price per series; enables ``estimated_cost``.

    Returns:
        The job evaluation, or an excluded-job marker.

    Raises:
        RuleEvaluationError: If a rule cannot be evaluated.
        ValueError: If ``cost_unit_price`` is not positive.
    """
    _validate_unit_price(cost_unit_price)

    if engine.is_job_excluded(job):
        logger.info("Job %s is excluded from evaluation", job)
        return ModelExcludedJob(job=job, reason=EnumExclusionReason.JOB_EXCLUDED)

    evaluated = engine.filter(job, records)
    if not evaluated:
        logger.info("No metrics remaining after exclusion filtering for job %s", job)
        return ModelExcludedJob(job=job, reason=EnumExclusionReason.ALL_METRICS_EXCLUDED)

    results = engine.evaluate(evaluated)
    score = calculate_score(results)
    total_cardinality = sum(record.cardinality for record in evaluated)

    failed: dict[str, None] = {}
    for result in results:
        for metric_name in result.failed_metrics:
            failed.setdefault(metric_name, None)

    return ModelJobEvaluation(
        job=job,
        score=score,
        category=categorize_score(score),
        total_metrics=len(evaluated),
        total_cardinality=total_cardinality,
        estimated_cost=(
            total_cardinality * cost_unit_price if cost_unit_price is not None else None
        ),
        results=results,
        failed_metrics=list(failed),
    )


def evaluate_outcome(
    engine: RuleEngine,
    job: str,
    records: Sequence[ModelMetricRecord],
) -> ModelEvaluationOutcome | ModelExcludedJob:
    """Evaluate one job and return the score/category/results contract."""
    evaluation = evaluate_job(engine, job, records)
    if isinstance(evaluation, ModelExcludedJob):
        return evaluation
    return evaluation.to_outcome()


def load_job(path: str | Path) -> tuple[str, list[ModelMetricRecord]]:
    """Read a job file and return its job name and records.

    The job name is taken from the first record.

    Raises:
        RecordFileError: If the file cannot be read.
        EmptyJobFileError: If the file holds no records.
    """
    records = read_job_file(path)
    if not records:
        raise EmptyJobFileError(f"No metrics found in {path}")
    return records[0].job, records


def evaluate_jobs(
    engine: RuleEngine,
    paths: Iterable[str | Path],
    *,
    cost_unit_price: float | None = None,
) -> ModelEvaluationReport:
    """Evaluate every job file in ``paths`` into one report.

    Unreadable and empty files are listed in ``failed_files``; they never
    abort the run.

    Raises:
        RuleEvaluationError: If a rule cannot be evaluated.
        ValueError: If ``cost_unit_price`` is not positive.
    """
    _validate_unit_price(cost_unit_price)

    paths = list(paths)
    jobs: list[ModelJobEvaluation] = []
    excluded: list[ModelExcludedJob] = []
    failed_files: list[ModelFailedJobFile] = []

    for index, path in enumerate(paths, start=1):
        logger.debug("Evaluating jobs: %d/%d (%s)", index, len(paths), path)
        try:
            job, records = load_job(path)
        except RecordFileError as exc:
            logger.warning("Failed to evaluate %s: %s", Path(path).name, exc)
            failed_files.append(ModelFailedJobFile(path=str(path), message=str(exc)))
            continue

        evaluation = evaluate_job(engine, job, records, cost_unit_price=cost_unit_price)
        if isinstance(evaluation, ModelExcludedJob):
            excluded.append(evaluation)
        else:
            jobs.append(evaluation)

    if excluded:
        logger.info("Excluded %d job(s) based on the exclusion list", len(excluded))
    return ModelEvaluationReport.from_jobs(jobs, excluded, failed_files)


def evaluate_directory(
    engine: RuleEngine,
    directory: str | Path,
    *,
    cost_unit_price: float | None = None,
) -> ModelEvaluationReport:
    """Evaluate every ``*.txt`` job file in ``directory``.

    Raises:
        RecordFileError: If ``directory`` is not a directory.
    """
    paths = discover_job_files(directory)
    logger.info("Found %d job files to evaluate", len(paths))
    return evaluate_jobs(engine, paths, cost_unit_price=cost_unit_price)


__all__ = [
    "EmptyJobFileError",
    "evaluate_directory",
    "evaluate_job",
    "evaluate_jobs",
    "evaluate_outcome",
    "load_job",
]
