# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Configuration model for the collection orchestrator."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ModelCollectorConfig(BaseModel):
    """Collection pipeline configuration.

    The three concurrency tiers are sized independently because the backend
    endpoints they hit tolerate different request rates.

    Attributes:
        query_filters: Optional matcher fragment added to every selector.
        max_concurrent_metrics: Tier 1, metrics whose jobs are discovered at once.
        max_concurrent_jobs: Tier 2, per metric, jobs whose cardinality and
            labels are fetched at once.
        max_concurrent_label_cardinality: Tier 3, per-label cardinality calls
            in flight across the run.
        collect_label_cardinality: Fetch per-label cardinality (needs the
            cardinality-analysis API).
        progress_interval: Log progress every N processed metrics.
    """

    model_config = {"frozen": True, "extra": "ignore"}

    query_filters: str = Field(default="", description="Extra selector matchers")
    max_concurrent_metrics: int = Field(default=5, gt=0)
    max_concurrent_jobs: int = Field(default=3, gt=0)
    max_concurrent_label_cardinality: int = Field(default=50, gt=0)
    collect_label_cardinality: bool = Field(default=False)
    progress_interval: int = Field(default=50, gt=0)


__all__ = ["ModelCollectorConfig"]
