"""Shared enumerations for instrumentation_score."""

from instrumentation_score.enums.enum_log_level import EnumLogLevel

__all__ = ["EnumLogLevel"]
