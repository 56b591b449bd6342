# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Human-readable text reports."""

from __future__ import annotations

from instrumentation_score.evaluation.model_evaluation import (
    ModelEvaluationReport,
    ModelJobEvaluation,
)
from instrumentation_score.rules.model_rule_result import ModelRuleResult
from instrumentation_score.scoring.calculator_score import EnumScoreCategory

_CATEGORY_RANGES: dict[EnumScoreCategory, str] = {
    EnumScoreCategory.EXCELLENT: "90-100",
    EnumScoreCategory.GOOD: "75-89",
    EnumScoreCategory.NEEDS_IMPROVEMENT: "50-74",
    EnumScoreCategory.POOR: "0-49",
}


def _format_rule_lines(result: ModelRuleResult, show_failures: bool) -> list[str]:
    lines = [
        f"Rule {result.rule_id} ({result.impact.value}): "
        f"{result.passed_metrics}/{result.total_metrics} metrics passed "
        f"({result.pass_rate * 100:.1f}%)"
    ]
    if result.total_cardinality > 0:
        lines.append(
            f"  Series: {result.passed_cardinality}/{result.total_cardinality} passed"
        )
    if result.failed_checks:
        lines.append(f"  Failed validators: {', '.join(result.failed_checks)}")
    if show_failures:
        for metric_name, validators in result.failed_metrics.items():
            lines.append(f"    - {metric_name}: {', '.join(validators)}")
    return lines


def format_job_text(
    evaluation: ModelJobEvaluation,
    *,
    show_costs: bool = False,
    show_failures: bool = False,
) -> str:
    """Format one job's evaluation.

    Example output::

        === Instrumentation Score Report for Job: api-service ===

        Total Metrics: 120
        Instrumentation Score: 82.50% (Good)

        Rule PROM-MET-02 (Critical): 118/120 metrics passed (98.3%)
          Series: 40000/50000 passed
          Failed validators: cardinality_below_10k
    """
    lines: list[str] = [
        f"=== Instrumentation Score Report for Job: {evaluation.job} ===",
        "",
        f"Total Metrics: {evaluation.total_metrics}",
    ]
    if show_costs:
        lines.append(f"Total Cardinality: {evaluation.total_cardinality} series")
        if evaluation.estimated_cost is not None:
            lines.append(f"Estimated Cost: ${evaluation.estimated_cost:.2f}/month")
    lines.append(
        f"Instrumentation Score: {evaluation.score:.2f}% ({evaluation.category.value})"
    )
    lines.append("")

    for result in evaluation.results:
        lines.extend(_format_rule_lines(result, show_failures))
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"


def format_report_text(
    report: ModelEvaluationReport,
    *,
    min_score: float = 0.0,
    show_costs: bool = False,
    show_failures: bool = False,
) -> str:
    """Format a multi-job summary.

    Jobs below ``min_score`` are listed when ``min_score`` is positive;
    ``show_failures`` adds each job's failing metric names.
    """
    lines: list[str] = ["=== Summary ==="]
    lines.append(f"Total Jobs: {len(report.jobs)}")
    if report.excluded_job_count:
        lines.append(f"Excluded Jobs: {report.excluded_job_count}")
    if report.failed_files:
        lines.append(f"Failed Files: {len(report.failed_files)}")
    lines.append(f"Average Score: {report.average_score:.2f}%")
    lines.append(f"Total Active Series: {report.total_cardinality}")
    if show_costs and report.total_cost is not None:
        lines.append(f"Total Cost: ${report.total_cost:.2f}/month")

    lines.append("")
    lines.append("Score Distribution:")
    for category in EnumScoreCategory:
        count = report.category_distribution.get(category.value, 0)
        lines.append(
            f"  {category.value} ({_CATEGORY_RANGES[category]}): {count} jobs"
        )

    if min_score > 0:
        lines.append("")
        lines.append(f"Jobs Below Threshold ({min_score:.2f}%):")
        below = report.jobs_below(min_score)
        if below:
            for job in below:
                lines.append(f"  - {job.job}: {job.score:.2f}%")
        else:
            lines.append("  (none)")

    if show_failures:
        failing = [job for job in report.jobs if job.failed_metrics]
        if failing:
            lines.append("")
            lines.append("Failing Metrics:")
            for job in failing:
                lines.append(f"  {job.job}:")
                for metric_name in job.failed_metrics:
                    lines.append(f"    - {metric_name}")

    if report.failed_files:
        lines.append("")
        lines.append("Files Not Evaluated:")
        for failed in report.failed_files:
            lines.append(f"  - {failed.path}: {failed.message}")

    return "\n".join(lines) + "\n"


__all__ = ["format_job_text", "format_report_text"]
