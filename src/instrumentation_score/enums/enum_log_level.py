"""Log level enum for CLI and settings configuration."""

import logging
from enum import StrEnum


class EnumLogLevel(StrEnum):
    """Log level enumeration for CLI and settings configuration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    def to_logging_level(self) -> int:
        """Return the numeric ``logging`` level for this value."""
        return logging.getLevelNamesMapping()[self.value]


__all__ = ["EnumLogLevel"]
