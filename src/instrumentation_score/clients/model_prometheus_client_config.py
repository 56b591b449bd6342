# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Configuration model for the Prometheus HTTP client."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ModelPrometheusClientConfig(BaseModel):
    """Configuration for the Prometheus query API client.

    Attributes:
        base_url: Base URL of the Prometheus-compatible backend (from ``url``).
        login: Optional ``user:password`` pair for HTTP Basic auth (from ``login``).
        timeout_seconds: HTTP request timeout in seconds.
        max_retries: Additional attempts after the first one on transient failures.
        retry_base_delay: Backoff unit in seconds; attempt N waits N * retry_base_delay.
        rate_limit_cooldown: Sleep in seconds after an HTTP 429 before failing the call.
        retry_on_rate_limit: Treat HTTP 429 as a transient failure instead of
            failing the call after the cooldown.
        max_connections: Upper bound on pooled connections to the backend.
    """

    model_config = {"frozen": True, "extra": "ignore"}

    base_url: str = Field(
        description="Base URL of the Prometheus-compatible backend.",
        min_length=1,
    )
    login: str | None = Field(
        default=None,
        description="Optional 'user:password' pair for HTTP Basic auth.",
        repr=False,
    )
    timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="HTTP request timeout in seconds.",
    )
    max_retries: int = Field(
        default=2,
        ge=0,
        description="Additional attempts after the first one on transient failures.",
    )
    retry_base_delay: float = Field(
        default=1.0,
        ge=0.0,
        description="Linear backoff unit in seconds.",
    )
    rate_limit_cooldown: float = Field(
        default=2.0,
        ge=0.0,
        description="Sleep in seconds after an HTTP 429 response.",
    )
    retry_on_rate_limit: bool = Field(
        default=False,
        description="Retry HTTP 429 responses like 502/503/504.",
    )
    max_connections: int = Field(
        default=100,
        gt=0,
        description="Maximum pooled connections to the backend.",
    )


__all__ = ["ModelPrometheusClientConfig"]
