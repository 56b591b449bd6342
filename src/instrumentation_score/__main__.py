# SPDX-License-Identifier: MIT
"""Entry point for ``python -m instrumentation_score``."""

from __future__ import annotations

import sys

from instrumentation_score.cli import main

if __name__ == "__main__":
    sys.exit(main())
