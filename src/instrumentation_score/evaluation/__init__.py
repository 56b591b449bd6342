# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Per-job evaluation and multi-job reports."""

from instrumentation_score.evaluation.model_evaluation import (
    EnumExclusionReason,
    ModelEvaluationOutcome,
    ModelEvaluationReport,
    ModelExcludedJob,
    ModelFailedJobFile,
    ModelJobEvaluation,
)
from instrumentation_score.evaluation.runner_evaluation import (
    EmptyJobFileError,
    evaluate_directory,
    evaluate_job,
    evaluate_jobs,
    evaluate_outcome,
    load_job,
)

__all__ = [
    "EmptyJobFileError",
    "EnumExclusionReason",
    "ModelEvaluationOutcome",
    "ModelEvaluationReport",
    "ModelExcludedJob",
    "ModelFailedJobFile",
    "ModelJobEvaluation",
    "evaluate_directory",
    "evaluate_job",
    "evaluate_jobs",
    "evaluate_outcome",
    "load_job",
]
