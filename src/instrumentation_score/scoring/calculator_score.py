# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Instrumentation quality score.

The score is a deterministic aggregate of rule results::

    score = 100 * sum(P_i * W_i) / sum(T_i * W_i)

where ``W_i`` is the rule's impact weight and ``P_i``/``T_i`` are its passed
and total series counts when the rule carries cardinality data, or its
passed and total metric evaluations otherwise. No evaluable data scores 0.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import Enum

from instrumentation_score.rules.model_rule_result import ModelRuleResult
from instrumentation_score.rules.model_rules_config import EnumImpact

IMPACT_WEIGHTS: Mapping[EnumImpact, float] = {
    EnumImpact.CRITICAL: 40.0,
    EnumImpact.IMPORTANT: 30.0,
    EnumImpact.NORMAL: 20.0,
    EnumImpact.LOW: 10.0,
}

# Category lower bounds, highest first
_EXCELLENT_THRESHOLD = 90.0
_GOOD_THRESHOLD = 75.0
_NEEDS_IMPROVEMENT_THRESHOLD = 50.0


class EnumScoreCategory(str, Enum):
    """Informational band of a score."""

    EXCELLENT = "Excellent"
    GOOD = "Good"
    NEEDS_IMPROVEMENT = "Needs Improvement"
    POOR = "Poor"


def score_terms(result: ModelRuleResult) -> tuple[float, float]:
    """Return the (numerator, denominator) contribution of one rule result."""
    weight = IMPACT_WEIGHTS[result.impact]
    if result.total_cardinality > 0:
        return result.passed_cardinality * weight, result.total_cardinality * weight
    return result.passed_metrics * weight, result.total_metrics * weight


def calculate_score(results: Sequence[ModelRuleResult]) -> float:
    """Compute the score in [0, 100] for a sequence of rule results."""
    numerator = 0.0
    denominator = 0.0
    for result in results:
        num, den = score_terms(result)
        numerator += num
        denominator += den
    if denominator == 0:
        return 0.0
    return numerator / denominator * 100


def categorize_score(score: float) -> EnumScoreCategory:
    """Map a score to its category band."""
    if score >= _EXCELLENT_THRESHOLD:
        return EnumScoreCategory.EXCELLENT
    if score >= _GOOD_THRESHOLD:
        return EnumScoreCategory.GOOD
    if score >= _NEEDS_IMPROVEMENT_THRESHOLD:
        return EnumScoreCategory.NEEDS_IMPROVEMENT
    return EnumScoreCategory.POOR


__all__ = [
    "IMPACT_WEIGHTS",
    "EnumScoreCategory",
    "calculate_score",
    "categorize_score",
    "score_terms",
]
