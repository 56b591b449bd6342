"""Collection pipeline: backend catalog -> per-job MetricRecords."""

from instrumentation_score.collection.collector_metrics import (
    CollectionCancelledError,
    CollectionError,
    MetricsCollector,
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

__all__ = [
    "CollectionCancelledError",
    "CollectionError",
    "EnumCollectionOperation",
    "MetricsCollector",
    "ModelCollectionError",
    "ModelCollectionResult",
    "ModelCollectorConfig",
    "ModelMetricRecord",
]
