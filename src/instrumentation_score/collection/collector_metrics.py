# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Collection orchestrator: backend catalog -> MetricRecords.

Walks every metric name on the backend, discovers the jobs exposing it, and
fetches the series count and label names for each metric+job pair. Work is
bounded by three independent semaphores:

- tier 1 (``max_concurrent_metrics``): metrics processed at once. A metric
  holds its slot until all of its jobs are done.
- tier 2 (``max_concurrent_jobs``): per metric, jobs whose cardinality and
  labels are fetched at once.
- tier 3 (``max_concurrent_label_cardinality``): per-label cardinality calls
  in flight across the whole run.

Failures below the catalog fetch are recorded as soft errors. A metric whose
job discovery fails yields one ``fetch_job_data`` error; a job whose
cardinality or labels call fails yields one error and no record. A failed
per-label cardinality call only drops the per-label data.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

from instrumentation_score.clients.client_prometheus import (
    PrometheusClient,
    PrometheusClientError,
    unix_now,
)
from instrumentation_score.collection.model_collection_error import (
    EnumCollectionOperation,
    ModelCollectionError,
)
from instrumentation_score.collection.model_collection_result import (
    ModelCollectionResult,
)
from instrumentation_score.collection.model_collector_config import (
    ModelCollectorConfig,
)
from instrumentation_score.collection.model_metric_record import ModelMetricRecord

logger = logging.getLogger(__name__)


class CollectionError(Exception):
    """Raised when the metric-name catalog cannot be fetched."""


class CollectionCancelledError(Exception):
    """Raised when a run is cancelled through its cancellation event.

    Attributes:
        partial: Records and errors gathered before cancellation.
    """

    def __init__(self, partial: ModelCollectionResult) -> None:
        super().__init__(
            f"Collection cancelled after {len(partial.records)} records"
        )
        self.partial = partial


@dataclass
class _RunState:
    """Append-only accumulator for one run.

    All tasks run on one event loop and no mutation awaits, so appends never
    interleave.
    """

    total: int
    records: list[ModelMetricRecord] = field(default_factory=list)
    errors: list[ModelCollectionError] = field(default_factory=list)
    processed: int = 0


class MetricsCollector:
    """Collect MetricRecords from a Prometheus-compatible backend.

    Usage::

        async with PrometheusClient(client_config) as client:
            collector = MetricsCollector(client, ModelCollectorConfig())
            result = await collector.collect()
        print(result.summary())

    Args:
        client: Connected (or lazily connecting) Prometheus client.
        config: Concurrency and filtering configuration.
        cancel_event: Optional event; setting it stops scheduling new work,
            cancels in-flight requests and makes :meth:`collect` raise
            :class:`CollectionCancelledError`.
    """

    def __init__(
        self,
        client: PrometheusClient,
        config: ModelCollectorConfig | None = None,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        self._client = client
        self._config = config or ModelCollectorConfig()
        self._cancel_event = cancel_event or asyncio.Event()

    @property
    def config(self) -> ModelCollectorConfig:
        """Return the collector configuration."""
        return self._config

    @property
    def cancelled(self) -> bool:
        """True once the cancellation event is set."""
        return self._cancel_event.is_set()

    def cancel(self) -> None:
        """Request cancellation of the running collection."""
        self._cancel_event.set()

    async def collect(self) -> ModelCollectionResult:
        """Run one full collection.

        Returns:
            ModelCollectionResult with records and soft errors.

        Raises:
            CollectionError: If the metric-name catalog cannot be fetched.
            CollectionCancelledError: If the cancellation event is set.
        """
        started_at = datetime.now(UTC)
        at = unix_now()
        query_filters = self._config.query_filters

        logger.info("Fetching metric names...")
        if query_filters:
            logger.info("Using query filters: %s", query_filters)
        try:
            metric_names = await self._client.get_metric_names(query_filters)
        except PrometheusClientError as exc:
            raise CollectionError(f"failed to fetch metric names: {exc}") from exc

        metric_names = list(dict.fromkeys(metric_names))
        logger.info("Found %d metrics, analyzing by job", len(metric_names))

        state = _RunState(total=len(metric_names))
        work = asyncio.ensure_future(self._collect_all(metric_names, at, state))
        waiter = asyncio.ensure_future(self._cancel_event.wait())
        try:
            await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not work.done():
                work.cancel()
            waiter.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await waiter
            with contextlib.suppress(asyncio.CancelledError):
                await work

        result = ModelCollectionResult(
            records=state.records,
            errors=state.errors,
            metric_count=len(metric_names),
            started_at=started_at,
            finished_at=datetime.now(UTC),
        )
        if work.cancelled():
            logger.warning("Collection cancelled: %s", result.summary())
            raise CollectionCancelledError(result)
        # Surfaces unexpected (non-client) exceptions from the worker tasks
        work.result()

        logger.info("Analysis complete: %s", result.summary())
        return result

    async def _collect_all(
        self, metric_names: list[str], at: int, state: _RunState
    ) -> None:
        metric_semaphore = asyncio.Semaphore(self._config.max_concurrent_metrics)
        label_semaphore = asyncio.Semaphore(
            self._config.max_concurrent_label_cardinality
        )
        await asyncio.gather(
            *(
                self._process_metric(name, at, state, metric_semaphore, label_semaphore)
                for name in metric_names
            )
        )

    async def _process_metric(
        self,
        metric_name: str,
        at: int,
        state: _RunState,
        metric_semaphore: asyncio.Semaphore,
        label_semaphore: asyncio.Semaphore,
    ) -> None:
        async with metric_semaphore:
            if self.cancelled:
                return
            try:
                await self._collect_metric(metric_name, at, state, label_semaphore)
            finally:
                self._report_progress(state)

    async def _collect_metric(
        self,
        metric_name: str,
        at: int,
        state: _RunState,
        label_semaphore: asyncio.Semaphore,
    ) -> None:
        query_filters = self._config.query_filters
        try:
            jobs = await self._client.get_jobs_for_metric(
                metric_name, query_filters, at
            )
        except PrometheusClientError as exc:
            state.errors.append(
                ModelCollectionError(
                    metric_name=metric_name,
                    operation=EnumCollectionOperation.FETCH_JOB_DATA,
                    message=str(exc),
                )
            )
            logger.warning("Job discovery failed for %s: %s", metric_name, exc)
            return

        if not jobs:
            return

        # Tier 2 is scoped to this metric
        job_semaphore = asyncio.Semaphore(self._config.max_concurrent_jobs)
        fetched = await asyncio.gather(
            *(
                self._collect_job(metric_name, job, at, state, job_semaphore)
                for job in dict.fromkeys(jobs)
            )
        )
        records = [record for record in fetched if record is not None]

        if self._config.collect_label_cardinality:
            records = list(
                await asyncio.gather(
                    *(
                        self._attach_label_cardinality(record, label_semaphore)
                        for record in records
                    )
                )
            )

        state.records.extend(records)

    async def _collect_job(
        self,
        metric_name: str,
        job: str,
        at: int,
        state: _RunState,
        job_semaphore: asyncio.Semaphore,
    ) -> ModelMetricRecord | None:
        query_filters = self._config.query_filters
        async with job_semaphore:
            if self.cancelled:
                return None
            try:
                cardinality = await self._client.get_cardinality(
                    metric_name, job, query_filters, at
                )
            except PrometheusClientError as exc:
                self._record_job_error(
                    state, metric_name, job, EnumCollectionOperation.FETCH_CARDINALITY, exc
                )
                return None
            try:
                labels = await self._client.get_labels(metric_name, job, query_filters)
            except PrometheusClientError as exc:
                self._record_job_error(
                    state, metric_name, job, EnumCollectionOperation.FETCH_LABELS, exc
                )
                return None

        return ModelMetricRecord(
            job=job,
            metric_name=metric_name,
            labels=tuple(labels),
            cardinality=cardinality,
        )

    async def _attach_label_cardinality(
        self,
        record: ModelMetricRecord,
        label_semaphore: asyncio.Semaphore,
    ) -> ModelMetricRecord:
        if not record.labels:
            return record
        async with label_semaphore:
            if self.cancelled:
                return record
            try:
                counts = await self._client.get_label_cardinality(
                    record.metric_name,
                    record.job,
                    record.labels,
                    self._config.query_filters,
                )
            except PrometheusClientError as exc:
                logger.warning(
                    "Failed to get label cardinality for %s/%s: %s",
                    record.metric_name,
                    record.job,
                    exc,
                )
                return record
        return record.model_copy(update={"label_cardinality": counts})

    @staticmethod
    def _record_job_error(
        state: _RunState,
        metric_name: str,
        job: str,
        operation: EnumCollectionOperation,
        exc: PrometheusClientError,
    ) -> None:
        state.errors.append(
            ModelCollectionError(
                metric_name=metric_name,
                job=job,
                operation=operation,
                message=str(exc),
            )
        )
        logger.debug("%s failed for %s/%s: %s", operation.value, metric_name, job, exc)

    def _report_progress(self, state: _RunState) -> None:
        state.processed += 1
        if (
            state.processed % self._config.progress_interval == 0
            or state.processed == state.total
        ):
            logger.info(
                "Processing metrics: %d/%d (%.1f%%)",
                state.processed,
                state.total,
                state.processed / state.total * 100,
            )


__all__ = [
    "CollectionCancelledError",
    "CollectionError",
    "MetricsCollector",
]
