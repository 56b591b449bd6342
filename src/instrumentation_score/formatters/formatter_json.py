# SPDX-FileCopyrightText: 2025 OmniNode.ai Inc.
# SPDX-License-Identifier: MIT

"""JSON reports."""

from __future__ import annotations

import json

from pydantic import BaseModel

# JSON output indentation (spaces)
JSON_INDENT_SPACES = 2


def format_json(model: BaseModel) -> str:
    """Serialize an evaluation model (job evaluation, outcome or report)."""
    return json.dumps(model.model_dump(mode="json"), indent=JSON_INDENT_SPACES)


__all__ = ["JSON_INDENT_SPACES", "format_json"]
