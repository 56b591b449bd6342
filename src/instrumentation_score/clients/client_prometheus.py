# SPDX-License-Identifier: MIT
# Copyright (c) 2025 OmniNode Team
"""Async client for the Prometheus HTTP query API.

Provides the read queries the collection pipeline needs: the metric-name
catalog, the jobs exposing a metric, the series count and label names for a
metric+job pair, and the per-label value counts exposed by backends that ship
a cardinality-analysis extension (Grafana Mimir style).

Every call goes through one bounded retry loop:

- Network failures (connect errors, timeouts) and HTTP 502/503/504 are
  retried up to ``max_retries`` extra times, waiting ``attempt * retry_base_delay``
  seconds before each retry.
- HTTP 429 sleeps for ``rate_limit_cooldown`` and then fails the call with
  :class:`PrometheusRateLimitError`. It is not retried unless
  ``retry_on_rate_limit`` is set, so a globally rate-limited backend is not
  hit again by every in-flight task at once.
- Any other non-2xx status fails immediately with :class:`PrometheusHTTPError`.

Example:
    ```python
    config = ModelPrometheusClientConfig(base_url="http://localhost:9090")
    async with PrometheusClient(config) as client:
        names = await client.get_metric_names()
        jobs = await client.get_jobs_for_metric(names[0])
    ```
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any
from urllib.parse import urlsplit, urlunsplit

import httpx

from instrumentation_score.clients.model_prometheus_client_config import (
    ModelPrometheusClientConfig,
)

if TYPE_CHECKING:
    from types import TracebackType

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS_CODES = frozenset({502, 503, 504})
_HTTP_TOO_MANY_REQUESTS = 429
_HTTP_NOT_FOUND = 404

# Truncation for raw response bodies echoed into error messages
_MAX_ERROR_BODY_CHARS = 200

_NAME_LABEL = "__name__"


class PrometheusClientError(Exception):
    """Base exception for Prometheus client errors.

    Attributes:
        operation: Name of the client operation that failed (for diagnostics).
    """

    def __init__(self, message: str, *, operation: str) -> None:
        super().__init__(message)
        self.operation = operation


class PrometheusConnectionError(PrometheusClientError):
    """Raised when the backend cannot be reached after all retries."""


class PrometheusTimeoutError(PrometheusClientError):
    """Raised when requests time out after all retries."""


class PrometheusResponseError(PrometheusClientError):
    """Raised when a 2xx response body cannot be decoded into the expected shape."""


class PrometheusHTTPError(PrometheusClientError):
    """Raised for non-2xx responses.

    Attributes:
        status_code: HTTP status returned by the backend.
        backend_message: The ``error`` field of the backend's JSON error body,
            or the (truncated) raw body when it is not JSON.
    """

    def __init__(
        self,
        *,
        operation: str,
        status_code: int,
        backend_message: str,
    ) -> None:
        super().__init__(
            f"HTTP {status_code} - {operation} - error: {backend_message}",
            operation=operation,
        )
        self.status_code = status_code
        self.backend_message = backend_message


class PrometheusRateLimitError(PrometheusHTTPError):
    """Raised for HTTP 429 responses after the cooldown sleep."""


def escape_label_value(value: str) -> str:
    """Escape a value for use inside a double-quoted PromQL label matcher."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def build_selector(
    metric_name: str,
    job: str | None = None,
    query_filters: str = "",
) -> str:
    """Build a series selector for a metric, optionally narrowed to one job.

    Args:
        metric_name: Metric name matched through ``__name__``.
        job: Optional job name; adds a ``job="..."`` matcher.
        query_filters: Backend-native matcher fragment appended verbatim,
            e.g. ``cluster=~"prod.*",env="production"``.

    Returns:
        A selector such as ``{__name__="up",env="prod",job="api"}``.
    """
    matchers = [f'{_NAME_LABEL}="{escape_label_value(metric_name)}"']
    if query_filters:
        matchers.append(query_filters)
    if job is not None:
        matchers.append(f'job="{escape_label_value(job)}"')
    return "{" + ",".join(matchers) + "}"


def redact_url(url: str) -> str:
    """Return ``url`` with any userinfo component removed, for logging."""
    parts = urlsplit(url)
    if parts.username is None and parts.password is None:
        return url
    netloc = parts.hostname or ""
    if parts.port is not None:
        netloc = f"{netloc}:{parts.port}"
    return urlunsplit(parts._replace(netloc=netloc))


def _parse_basic_auth(login: str | None) -> tuple[str, str] | None:
    if not login:
        return None
    user, sep, password = login.partition(":")
    if not sep or not user:
        logger.warning("Ignoring login value that is not in 'user:password' form")
        return None
    return user, password


def _extract_backend_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    text = response.text
    if len(text) > _MAX_ERROR_BODY_CHARS:
        text = text[:_MAX_ERROR_BODY_CHARS] + "..."
    return text or response.reason_phrase


def _series_labels(series: Any, operation: str) -> dict[str, Any]:
    """Return the ``metric`` label map of one instant-query result entry."""
    if not isinstance(series, dict):
        raise PrometheusResponseError(
            f"Expected a series object, got {type(series).__name__}",
            operation=operation,
        )
    labels = series.get("metric", {})
    if not isinstance(labels, dict):
        raise PrometheusResponseError(
            f"Series 'metric' is {type(labels).__name__}, not an object",
            operation=operation,
        )
    return labels


class PrometheusClient:
    """Async client for the Prometheus query API with connection pooling.

    Maintains a persistent ``httpx.AsyncClient``; use it as an async context
    manager or call :meth:`connect` / :meth:`close` explicitly.

    Args:
        config: Client configuration.
        transport: Optional httpx transport, used by tests to plug in
            ``httpx.MockTransport``.
    """

    def __init__(
        self,
        config: ModelPrometheusClientConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> ModelPrometheusClientConfig:
        """Return the client configuration."""
        return self._config

    @property
    def base_url(self) -> str:
        """Backend base URL without a trailing slash."""
        return self._config.base_url.rstrip("/")

    @property
    def is_connected(self) -> bool:
        """True if the connection pool is open."""
        return self._client is not None

    async def connect(self) -> None:
        """Open the connection pool. Safe to call multiple times."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            auth=_parse_basic_auth(self._config.login),
            timeout=httpx.Timeout(self._config.timeout_seconds),
            limits=httpx.Limits(max_connections=self._config.max_connections),
            transport=self._transport,
        )
        logger.debug("PrometheusClient connected to %s", redact_url(self.base_url))

    async def close(self) -> None:
        """Close the connection pool. Safe to call multiple times."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("PrometheusClient connection closed")

    async def __aenter__(self) -> PrometheusClient:
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    # =========================================================================
    # Query operations
    # =========================================================================

    async def get_metric_names(self, query_filters: str = "") -> list[str]:
        """Return every metric name known to the backend.

        Args:
            query_filters: Optional matcher fragment; when set only metrics
                with at least one series matching ``{query_filters}`` are listed.
        """
        params: dict[str, Any] = {}
        if query_filters:
            params["match[]"] = f"{{{query_filters}}}"
        data = await self._get_data(
            "metric_names", "/api/v1/label/__name__/values", params
        )
        if not isinstance(data, list):
            raise PrometheusResponseError(
                f"Expected a list of metric names, got {type(data).__name__}",
                operation="metric_names",
            )
        return [str(name) for name in data]

    async def get_jobs_for_metric(
        self,
        metric_name: str,
        query_filters: str = "",
        at: int | None = None,
    ) -> list[str]:
        """Return the distinct jobs exposing ``metric_name``.

        Series without a ``job`` label are ignored.
        """
        query = f"count by (job) ({build_selector(metric_name, None, query_filters)})"
        result = await self._instant_query("jobs_for_metric", query, at)
        jobs: list[str] = []
        seen: set[str] = set()
        for series in result:
            job = _series_labels(series, "jobs_for_metric").get("job")
            if job is not None and not isinstance(job, str):
                raise PrometheusResponseError(
                    f"Non-string job label {job!r} for {metric_name}",
                    operation="jobs_for_metric",
                )
            if job is not None and job not in seen:
                seen.add(job)
                jobs.append(job)
        return jobs

    async def get_cardinality(
        self,
        metric_name: str,
        job: str,
        query_filters: str = "",
        at: int | None = None,
    ) -> int:
        """Return the number of series of ``metric_name`` for ``job``.

        An empty query result means no series, i.e. 0.
        """
        query = f"count({build_selector(metric_name, job, query_filters)})"
        result = await self._instant_query("cardinality", query, at)
        if not result:
            return 0
        if not isinstance(result[0], dict):
            raise PrometheusResponseError(
                f"Expected a series object, got {type(result[0]).__name__}",
                operation="cardinality",
            )
        value = result[0].get("value")
        if not isinstance(value, list) or len(value) < 2:
            return 0
        try:
            return int(float(value[1]))
        except (TypeError, ValueError) as exc:
            raise PrometheusResponseError(
                f"Non-numeric series count {value[1]!r} for {metric_name}/{job}",
                operation="cardinality",
            ) from exc

    async def get_labels(
        self,
        metric_name: str,
        job: str,
        query_filters: str = "",
    ) -> list[str]:
        """Return the label names seen on ``metric_name`` for ``job``.

        Label names are read from an instant query first; when that fails or
        returns nothing the ``/api/v1/labels`` endpoint is used instead.
        """
        selector = build_selector(metric_name, job, query_filters)
        try:
            labels = await self._labels_via_query(selector)
        except PrometheusClientError as exc:
            logger.debug(
                "Instant query for labels of %s failed, using labels API: %s",
                selector,
                exc,
            )
            labels = []
        if labels:
            return labels
        return await self._labels_via_api(selector)

    async def get_label_cardinality(
        self,
        metric_name: str,
        job: str,
        labels: Sequence[str],
        query_filters: str = "",
    ) -> dict[str, int]:
        """Return distinct value counts per label for ``metric_name``/``job``.

        Only available on backends exposing the cardinality-analysis API
        (``/api/v1/cardinality/label_values``). A 404 surfaces as
        :class:`PrometheusHTTPError` like any other status.
        """
        wanted = [label for label in labels if label != _NAME_LABEL]
        if not wanted:
            return {}
        params = {
            "selector": build_selector(metric_name, job, query_filters),
            "label_names[]": wanted,
        }
        payload = await self._request_json(
            "label_cardinality", "/api/v1/cardinality/label_values", params
        )
        entries = payload.get("labels") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            raise PrometheusResponseError(
                "Cardinality response is missing the 'labels' list",
                operation="label_cardinality",
            )
        counts: dict[str, int] = {}
        for entry in entries:
            if not isinstance(entry, dict):
                raise PrometheusResponseError(
                    f"Expected a label entry object, got {type(entry).__name__}",
                    operation="label_cardinality",
                )
            name = entry.get("label_name")
            count = entry.get("label_values_count")
            if not isinstance(name, str) or not isinstance(count, int):
                continue
            if name != _NAME_LABEL:
                counts[name] = count
        return counts

    # =========================================================================
    # Internals
    # =========================================================================

    async def _labels_via_query(self, selector: str) -> list[str]:
        result = await self._instant_query("labels_query", selector, None)
        labels: list[str] = []
        seen: set[str] = {_NAME_LABEL}
        for series in result:
            for key in _series_labels(series, "labels_query"):
                if key not in seen:
                    seen.add(key)
                    labels.append(key)
        return labels

    async def _labels_via_api(self, selector: str) -> list[str]:
        data = await self._get_data(
            "labels_api", "/api/v1/labels", {"match[]": selector}
        )
        if not isinstance(data, list):
            raise PrometheusResponseError(
                f"Expected a list of label names, got {type(data).__name__}",
                operation="labels_api",
            )
        return [str(label) for label in data if label != _NAME_LABEL]

    async def _instant_query(
        self, operation: str, query: str, at: int | None
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"query": query}
        if at is not None:
            params["time"] = str(at)
        data = await self._get_data(operation, "/api/v1/query", params)
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, list):
            raise PrometheusResponseError(
                "Query response is missing 'data.result'",
                operation=operation,
            )
        return result

    async def _get_data(
        self, operation: str, path: str, params: dict[str, Any]
    ) -> Any:
        payload = await self._request_json(operation, path, params)
        if not isinstance(payload, dict) or "data" not in payload:
            raise PrometheusResponseError(
                "Response body has no 'data' field",
                operation=operation,
            )
        return payload["data"]

    async def _request_json(
        self, operation: str, path: str, params: dict[str, Any]
    ) -> Any:
        """GET ``path`` with the retry policy and return the decoded JSON body.

        Raises:
            PrometheusTimeoutError: If every attempt timed out.
            PrometheusConnectionError: If every attempt failed at the network level.
            PrometheusRateLimitError: On HTTP 429 (after the cooldown).
            PrometheusHTTPError: On other non-2xx statuses, or when 502/503/504
                persists after all retries.
            PrometheusResponseError: If the body cannot be decoded or is not
                valid JSON.
        """
        if self._client is None:
            await self.connect()
        assert self._client is not None

        attempts = self._config.max_retries + 1
        last_exception: PrometheusClientError | None = None

        for attempt in range(attempts):
            if attempt > 0:
                delay = attempt * self._config.retry_base_delay
                logger.debug("Retrying %s in %.2fs...", operation, delay)
                await asyncio.sleep(delay)

            try:
                response = await self._client.get(path, params=params)
            except httpx.TimeoutException as exc:
                last_exception = PrometheusTimeoutError(
                    f"{operation} timed out after {self._config.timeout_seconds}s: {exc}",
                    operation=operation,
                )
                logger.warning(
                    "Prometheus timeout in %s (attempt %d/%d): %s",
                    operation,
                    attempt + 1,
                    attempts,
                    exc,
                )
                continue
            except httpx.TransportError as exc:
                last_exception = PrometheusConnectionError(
                    f"{operation} failed to reach {redact_url(self.base_url)}: {exc}",
                    operation=operation,
                )
                logger.warning(
                    "Prometheus connection error in %s (attempt %d/%d): %s",
                    operation,
                    attempt + 1,
                    attempts,
                    exc,
                )
                continue
            except httpx.RequestError as exc:
                # Undecodable bodies and redirect loops are permanent
                raise PrometheusResponseError(
                    f"Unreadable {operation} response: {exc}",
                    operation=operation,
                ) from exc

            status = response.status_code
            if 200 <= status < 300:
                try:
                    return response.json()
                except ValueError as exc:
                    raise PrometheusResponseError(
                        f"Invalid JSON in {operation} response: {exc}",
                        operation=operation,
                    ) from exc

            message = _extract_backend_message(response)

            if status in _RETRYABLE_STATUS_CODES:
                last_exception = PrometheusHTTPError(
                    operation=operation, status_code=status, backend_message=message
                )
                logger.warning(
                    "Prometheus server error %d in %s (attempt %d/%d)",
                    status,
                    operation,
                    attempt + 1,
                    attempts,
                )
                continue

            if status == _HTTP_TOO_MANY_REQUESTS:
                rate_limited = PrometheusRateLimitError(
                    operation=operation, status_code=status, backend_message=message
                )
                if self._config.retry_on_rate_limit:
                    last_exception = rate_limited
                    continue
                logger.warning(
                    "Rate limited in %s, cooling down %.1fs before failing the query",
                    operation,
                    self._config.rate_limit_cooldown,
                )
                await asyncio.sleep(self._config.rate_limit_cooldown)
                raise rate_limited

            if status == _HTTP_NOT_FOUND and operation == "label_cardinality":
                logger.debug("Backend does not expose the cardinality-analysis API")
            raise PrometheusHTTPError(
                operation=operation, status_code=status, backend_message=message
            )

        if last_exception is not None:
            raise last_exception
        raise PrometheusClientError(
            "Unexpected error: no exception captured", operation=operation
        )


def unix_now() -> int:
    """Current time as whole Unix seconds, the evaluation timestamp for queries."""
    return int(time.time())


__all__ = [
    "PrometheusClient",
    "PrometheusClientError",
    "PrometheusConnectionError",
    "PrometheusHTTPError",
    "PrometheusRateLimitError",
    "PrometheusResponseError",
    "PrometheusTimeoutError",
    "build_selector",
    "escape_label_value",
    "redact_url",
    "unix_now",
]
