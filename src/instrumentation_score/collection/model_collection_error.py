# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Soft error recorded during a collection run."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class EnumCollectionOperation(str, Enum):
    """Collection step that produced a soft error."""

    FETCH_JOB_DATA = "fetch_job_data"
    FETCH_CARDINALITY = "fetch_cardinality"
    FETCH_LABELS = "fetch_labels"


class ModelCollectionError(BaseModel):
    """A per-operation failure that did not abort the collection run.

    Attributes:
        metric_name: Metric being processed.
        job: Job being processed, or None when job discovery itself failed.
        operation: Which collection step failed.
        message: Human-readable error text.
        timestamp: When the failure was recorded (UTC).
    """

    metric_name: str
    job: str | None = None
    operation: EnumCollectionOperation
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    model_config = {"frozen": True, "extra": "ignore"}


__all__ = ["EnumCollectionOperation", "ModelCollectionError"]
