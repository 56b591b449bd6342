# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""HTTP clients for metrics backends.

The collection pipeline receives a client through its constructor; nothing
outside this package talks to httpx directly.
"""

from __future__ import annotations

from instrumentation_score.clients.client_prometheus import (
    PrometheusClient,
    PrometheusClientError,
    PrometheusConnectionError,
    PrometheusHTTPError,
    PrometheusRateLimitError,
    PrometheusResponseError,
    PrometheusTimeoutError,
)
from instrumentation_score.clients.model_prometheus_client_config import (
    ModelPrometheusClientConfig,
)

__all__ = [
    "ModelPrometheusClientConfig",
    "PrometheusClient",
    "PrometheusClientError",
    "PrometheusConnectionError",
    "PrometheusHTTPError",
    "PrometheusRateLimitError",
    "PrometheusResponseError",
    "PrometheusTimeoutError",
]
