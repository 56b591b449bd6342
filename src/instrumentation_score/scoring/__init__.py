# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Impact-weighted score calculation."""

from instrumentation_score.scoring.calculator_score import (
    IMPACT_WEIGHTS,
    EnumScoreCategory,
    calculate_score,
    categorize_score,
    score_terms,
)

__all__ = [
    "IMPACT_WEIGHTS",
    "EnumScoreCategory",
    "calculate_score",
    "categorize_score",
    "score_terms",
]
