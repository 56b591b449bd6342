# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Environment-driven settings for the command-line tool.

Variables (case-insensitive):

- ``url``: backend base URL (required for ``collect``).
- ``login``: optional ``user:password`` for HTTP Basic auth.
- ``CONCURRENT_METRICS`` / ``CONCURRENT_JOBS`` / ``CONCURRENT_LABEL_CARDINALITY``:
  collection concurrency tiers (defaults 5 / 3 / 50).
- ``RETRY_COUNT``: additional attempts per request (default 2).
- ``REQUEST_TIMEOUT_SECONDS``: per-request timeout (default 30).
- ``LOG_LEVEL``: default log level (default INFO).

Command-line flags override these values.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from instrumentation_score.clients.model_prometheus_client_config import (
    ModelPrometheusClientConfig,
)
from instrumentation_score.collection.model_collector_config import (
    ModelCollectorConfig,
)
from instrumentation_score.enums.enum_log_level import EnumLogLevel


class CollectorSettings(BaseSettings):
    """Collection settings loaded from the environment."""

    model_config = SettingsConfigDict(extra="ignore", case_sensitive=False)

    url: str | None = Field(default=None, description="Backend base URL")
    login: str | None = Field(
        default=None, description="Optional 'user:password' for Basic auth", repr=False
    )
    concurrent_metrics: int = Field(default=5, gt=0)
    concurrent_jobs: int = Field(default=3, gt=0)
    concurrent_label_cardinality: int = Field(default=50, gt=0)
    retry_count: int = Field(default=2, ge=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0.0)
    log_level: EnumLogLevel = Field(default=EnumLogLevel.INFO)

    def to_client_config(
        self, *, retry_count: int | None = None
    ) -> ModelPrometheusClientConfig:
        """Build the HTTP client configuration.

        Raises:
            ValueError: If no backend URL is configured.
        """
        if not self.url:
            raise ValueError("url environment variable is required")
        return ModelPrometheusClientConfig(
            base_url=self.url,
            login=self.login,
            timeout_seconds=self.request_timeout_seconds,
            max_retries=self.retry_count if retry_count is None else retry_count,
        )

    def to_collector_config(
        self,
        *,
        query_filters: str = "",
        concurrent_metrics: int | None = None,
        concurrent_jobs: int | None = None,
        concurrent_label_cardinality: int | None = None,
        collect_label_cardinality: bool = False,
    ) -> ModelCollectorConfig:
        """Build the collector configuration, preferring explicit overrides."""
        if concurrent_metrics is None:
            concurrent_metrics = self.concurrent_metrics
        if concurrent_jobs is None:
            concurrent_jobs = self.concurrent_jobs
        if concurrent_label_cardinality is None:
            concurrent_label_cardinality = self.concurrent_label_cardinality
        return ModelCollectorConfig(
            query_filters=query_filters,
            max_concurrent_metrics=concurrent_metrics,
            max_concurrent_jobs=concurrent_jobs,
            max_concurrent_label_cardinality=concurrent_label_cardinality,
            collect_label_cardinality=collect_label_cardinality,
        )


__all__ = ["CollectorSettings"]
