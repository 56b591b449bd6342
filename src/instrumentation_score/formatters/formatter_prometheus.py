# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Prometheus text exposition of evaluation results.

Single-job output carries the score gauge plus per-rule check and failure
counters; multi-job output carries one ``instrumentation_quality_score``
gauge per job, suitable for SLO queries such as
``100 - instrumentation_quality_score{job="api-service"}``.

Each call renders from its own ``CollectorRegistry``.
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from instrumentation_score.evaluation.model_evaluation import (
    ModelEvaluationReport,
    ModelJobEvaluation,
)

QUALITY_SCORE_METRIC = "instrumentation_quality_score"
RULE_CHECKS_METRIC = "instrumentation_rule_checks_total"
RULE_FAILURES_METRIC = "instrumentation_rule_failures_total"

_RULE_LABELS = ["job", "rule_id", "impact"]


def _score_gauge(registry: CollectorRegistry) -> Gauge:
    return Gauge(
        QUALITY_SCORE_METRIC,
        "Instrumentation quality score per job (0-100)",
        labelnames=["job"],
        registry=registry,
    )


def format_job_prometheus(evaluation: ModelJobEvaluation) -> str:
    """Expose one job's score and per-rule counters."""
    registry = CollectorRegistry()
    _score_gauge(registry).labels(job=evaluation.job).set(round(evaluation.score, 2))

    checks = Counter(
        RULE_CHECKS_METRIC,
        "Validators evaluated per rule",
        labelnames=_RULE_LABELS,
        registry=registry,
    )
    failures = Counter(
        RULE_FAILURES_METRIC,
        "Validators with failing metrics per rule",
        labelnames=_RULE_LABELS,
        registry=registry,
    )
    for result in evaluation.results:
        labels = (evaluation.job, result.rule_id, result.impact.value)
        checks.labels(*labels).inc(result.total_checks)
        failures.labels(*labels).inc(len(result.failed_checks))

    return generate_latest(registry).decode("utf-8")


def format_report_prometheus(report: ModelEvaluationReport) -> str:
    """Expose one quality-score gauge per scored job."""
    registry = CollectorRegistry()
    gauge = _score_gauge(registry)
    for job in report.jobs:
        gauge.labels(job=job.job).set(round(job.score, 2))
    return generate_latest(registry).decode("utf-8")


__all__ = [
    "QUALITY_SCORE_METRIC",
    "RULE_CHECKS_METRIC",
    "RULE_FAILURES_METRIC",
    "format_job_prometheus",
    "format_report_prometheus",
]
