# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Instrumentation Score - metrics surface quality scoring.

Inventories every metric/job combination exposed by a Prometheus-compatible
backend, records cardinality and label shape per job, and scores each job
against a declarative rule set.

Quick Start - Scoring a job file:
    >>> from instrumentation_score import RuleEngine, calculate_score, read_job_file
    >>> engine = RuleEngine.from_file("rules_config.yaml")
    >>> records = read_job_file("reports/job_metrics_20251102_160000/api.txt")
    >>> results = engine.evaluate(records)
    >>> calculate_score(results)  # 0.0 to 100.0
    87.5
"""

from instrumentation_score.records.codec_record_file import read_job_file
from instrumentation_score.rules.engine_rules import RuleEngine, evaluate_rules
from instrumentation_score.rules.loader_rules import RuleSetLoader, RuleSetLoadError
from instrumentation_score.scoring.calculator_score import (
    EnumScoreCategory,
    calculate_score,
    categorize_score,
)

__version__ = "0.3.0"

__all__ = [
    "EnumScoreCategory",
    "RuleEngine",
    "RuleSetLoadError",
    "RuleSetLoader",
    "calculate_score",
    "categorize_score",
    "evaluate_rules",
    "read_job_file",
]
