"""Unit tests for the text, JSON and Prometheus renderers."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from instrumentation_score.evaluation import (
    EnumExclusionReason,
    ModelEvaluationReport,
    ModelExcludedJob,
    ModelFailedJobFile,
    ModelJobEvaluation,
)
from instrumentation_score.formatters import (
    format_job_prometheus,
    format_job_text,
    format_json,
    format_report_prometheus,
    format_report_text,
)
from instrumentation_score.rules import EnumImpact, ModelRuleResult
from instrumentation_score.scoring import EnumScoreCategory

pytestmark = pytest.mark.unit


@pytest.fixture
def job_evaluation() -> ModelJobEvaluation:
    return ModelJobEvaluation(
        job="api-service",
        score=82.5,
        category=EnumScoreCategory.GOOD,
        total_metrics=120,
        total_cardinality=50_000,
        estimated_cost=12.5,
        failed_metrics=["HttpLatency"],
        results=[
            ModelRuleResult(
                rule_id="PROM-MET-02",
                impact=EnumImpact.CRITICAL,
                passed_checks=1,
                total_checks=1,
                failed_checks=["cardinality_below_10k"],
                failed_metrics={"HttpLatency": ["cardinality_below_10k"]},
                passed_metrics=118,
                total_metrics=120,
                passed_cardinality=40_000,
                total_cardinality=50_000,
            ),
            ModelRuleResult(
                rule_id="PROM-LBL-01",
                impact=EnumImpact.IMPORTANT,
                passed_checks=1,
                total_checks=1,
                passed_metrics=120,
                total_metrics=120,
            ),
        ],
    )


@pytest.fixture
def report(job_evaluation: ModelJobEvaluation) -> ModelEvaluationReport:
    worker = ModelJobEvaluation(
        job='we"ird',
        score=40.0,
        category=EnumScoreCategory.POOR,
        total_metrics=2,
        total_cardinality=5,
        estimated_cost=1.0,
    )
    return ModelEvaluationReport.from_jobs(
        [job_evaluation, worker],
        excluded_jobs=[
            ModelExcludedJob(job="node-exporter", reason=EnumExclusionReason.JOB_EXCLUDED)
        ],
        failed_files=[ModelFailedJobFile(path="empty.txt", message="No metrics found")],
        timestamp=datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC),
    )


# =========================================================================
# Text
# =========================================================================


class TestJobText:
    def test_default_output(self, job_evaluation: ModelJobEvaluation) -> None:
        text = format_job_text(job_evaluation)
        lines = text.splitlines()

        assert lines[0] == "=== Instrumentation Score Report for Job: api-service ==="
        assert "Total Metrics: 120" in lines
        assert "Instrumentation Score: 82.50% (Good)" in lines
        assert "Rule PROM-MET-02 (Critical): 118/120 metrics passed (98.3%)" in lines
        assert "  Series: 40000/50000 passed" in lines
        assert "  Failed validators: cardinality_below_10k" in lines
        assert "Rule PROM-LBL-01 (Important): 120/120 metrics passed (100.0%)" in lines
        assert "Estimated Cost" not in text
        assert "HttpLatency" not in text
        assert text.endswith("\n")

    def test_costs_and_failures(self, job_evaluation: ModelJobEvaluation) -> None:
        text = format_job_text(job_evaluation, show_costs=True, show_failures=True)
        assert "Total Cardinality: 50000 series" in text
        assert "Estimated Cost: $12.50/month" in text
        assert "    - HttpLatency: cardinality_below_10k" in text


class TestReportText:
    def test_summary(self, report: ModelEvaluationReport) -> None:
        lines = format_report_text(report).splitlines()

        assert lines[0] == "=== Summary ==="
        assert "Total Jobs: 2" in lines
        assert "Excluded Jobs: 1" in lines
        assert "Failed Files: 1" in lines
        assert "Average Score: 61.25%" in lines
        assert "Total Active Series: 50005" in lines
        assert "  Excellent (90-100): 0 jobs" in lines
        assert "  Good (75-89): 1 jobs" in lines
        assert "  Needs Improvement (50-74): 0 jobs" in lines
        assert "  Poor (0-49): 1 jobs" in lines
        assert "  - empty.txt: No metrics found" in lines
        assert not any(line.startswith("Jobs Below Threshold") for line in lines)

    def test_threshold_costs_and_failures(self, report: ModelEvaluationReport) -> None:
        text = format_report_text(
            report, min_score=50, show_costs=True, show_failures=True
        )
        assert "Total Cost: $13.50/month" in text
        assert "Jobs Below Threshold (50.00%):\n  - we\"ird: 40.00%" in text
        assert "Failing Metrics:\n  api-service:\n    - HttpLatency" in text

    def test_threshold_with_no_offenders(self, report: ModelEvaluationReport) -> None:
        text = format_report_text(report, min_score=10)
        assert "Jobs Below Threshold (10.00%):\n  (none)" in text


# =========================================================================
# JSON
# =========================================================================


class TestJson:
    def test_job_evaluation(self, job_evaluation: ModelJobEvaluation) -> None:
        data = json.loads(format_json(job_evaluation))
        assert data["job"] == "api-service"
        assert data["category"] == "Good"
        assert data["results"][0]["impact"] == "Critical"
        assert data["results"][0]["failed_metrics"] == {
            "HttpLatency": ["cardinality_below_10k"]
        }

    def test_report(self, report: ModelEvaluationReport) -> None:
        text = format_json(report)
        data = json.loads(text)
        assert data["timestamp"] == "2025-01-02T03:04:05Z"
        assert data["excluded_jobs"] == [
            {"job": "node-exporter", "reason": "job_excluded"}
        ]
        assert data["average_score"] == pytest.approx(61.25)
        assert text.startswith('{\n  "timestamp"')


# =========================================================================
# Prometheus exposition
# =========================================================================


class TestPrometheus:
    def test_single_job(self, job_evaluation: ModelJobEvaluation) -> None:
        lines = format_job_prometheus(job_evaluation).splitlines()

        assert "# TYPE instrumentation_quality_score gauge" in lines
        assert 'instrumentation_quality_score{job="api-service"} 82.5' in lines
        assert "# TYPE instrumentation_rule_checks_total counter" in lines
        assert (
            'instrumentation_rule_checks_total{job="api-service",'
            'rule_id="PROM-MET-02",impact="Critical"} 1.0'
        ) in lines
        assert (
            'instrumentation_rule_failures_total{job="api-service",'
            'rule_id="PROM-MET-02",impact="Critical"} 1.0'
        ) in lines
        assert (
            'instrumentation_rule_failures_total{job="api-service",'
            'rule_id="PROM-LBL-01",impact="Important"} 0.0'
        ) in lines

    def test_report_gauges(self, report: ModelEvaluationReport) -> None:
        lines = format_report_prometheus(report).splitlines()
        assert lines[:2] == [
            "# HELP instrumentation_quality_score Instrumentation quality score per job (0-100)",
            "# TYPE instrumentation_quality_score gauge",
        ]
        assert lines[2:] == [
            'instrumentation_quality_score{job="api-service"} 82.5',
            'instrumentation_quality_score{job="we\\"ird"} 40.0',
        ]

    def test_report_without_jobs_has_only_metadata(self) -> None:
        text = format_report_prometheus(ModelEvaluationReport.from_jobs([]))
        assert all(line.startswith("#") for line in text.splitlines())

    def test_repeated_renders_do_not_collide(
        self, job_evaluation: ModelJobEvaluation
    ) -> None:
        first = format_job_prometheus(job_evaluation)
        second = format_job_prometheus(job_evaluation)
        assert 'instrumentation_quality_score{job="api-service"} 82.5' in first
        assert 'instrumentation_quality_score{job="api-service"} 82.5' in second
