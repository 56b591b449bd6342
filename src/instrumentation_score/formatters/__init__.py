# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""Text, JSON and Prometheus exposition renderers for evaluation results."""

from instrumentation_score.formatters.formatter_json import format_json
from instrumentation_score.formatters.formatter_prometheus import (
    format_job_prometheus,
    format_report_prometheus,
)
from instrumentation_score.formatters.formatter_text import (
    format_job_text,
    format_report_text,
)

__all__ = [
    "format_job_prometheus",
    "format_job_text",
    "format_json",
    "format_report_prometheus",
    "format_report_text",
]
