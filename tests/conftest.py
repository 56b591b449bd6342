"""
Pytest configuration and fixtures for instrumentation_score tests.

Shared fixtures: sample metric records, a representative rules document and
client configuration for the mocked Prometheus backend.
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from instrumentation_score.clients.model_prometheus_client_config import (
    ModelPrometheusClientConfig,
)
from instrumentation_score.collection.model_metric_record import ModelMetricRecord
from instrumentation_score.rules.loader_rules import RuleSetLoader
from instrumentation_score.rules.model_compiled_rules import RuleSet

# =========================================================================
# Metric Record Fixtures
# =========================================================================


@pytest.fixture
def sample_records() -> list[ModelMetricRecord]:
    """Records of one job: two well-formed metrics and one offender."""
    return [
        ModelMetricRecord(
            job="api-service",
            metric_name="http_requests_total",
            labels=("method", "status"),
            cardinality=1500,
        ),
        ModelMetricRecord(
            job="api-service",
            metric_name="process_cpu_seconds_total",
            labels=(),
            cardinality=1,
        ),
        ModelMetricRecord(
            job="api-service",
            metric_name="HttpLatency",
            labels=("method", "user_id"),
            cardinality=25000,
        ),
    ]


# =========================================================================
# Rules Fixtures
# =========================================================================


@pytest.fixture
def rules_yaml() -> str:
    """A rules document exercising both data sources and an exclusion list."""
    return textwrap.dedent(
        """\
        exclusion_list:
          - job: "node-exporter"
          - job_name_pattern: "^test-"
          - job: "api-service"
            metrics: ["process_cpu_seconds_total"]
        rules:
          - rule_id: PROM-MET-02
            description: "Metrics must stay below 10k series"
            impact: Critical
            validators:
              - name: cardinality_below_10k
                type: cardinality
                data_source: cardinality
                ui_title: "Cardinality"
                conditions:
                  - field: count
                    operator: lt
                    value: 10000
          - rule_id: PROM-LBL-01
            description: "No high-cardinality identifiers in labels"
            impact: Important
            validators:
              - name: no_user_id_label
                type: labels
                data_source: labels
                conditions:
                  - field: labels
                    operator: not_contains
                    value: "user_id"
          - rule_id: PROM-NAME-01
            description: "Snake case metric names"
            impact: Normal
            validators:
              - name: snake_case_name
                type: format
                data_source: labels
                conditions:
                  - field: metric_name
                    operator: matches
                    value: "^[a-z][a-z0-9_]*$"
        """
    )


@pytest.fixture
def rule_set(rules_yaml: str) -> RuleSet:
    """The compiled sample rules document."""
    return RuleSetLoader().load_yaml_string(rules_yaml)


@pytest.fixture
def rules_file(tmp_path: Path, rules_yaml: str) -> Path:
    """The sample rules document written to disk."""
    path = tmp_path / "rules_config.yaml"
    path.write_text(rules_yaml, encoding="utf-8")
    return path


# =========================================================================
# Client Fixtures
# =========================================================================


@pytest.fixture
def client_config() -> ModelPrometheusClientConfig:
    """Client configuration with retries but no real backoff waits."""
    return ModelPrometheusClientConfig(
        base_url="http://prometheus.test:9090",
        max_retries=2,
        retry_base_delay=0.0,
        rate_limit_cooldown=0.0,
    )
