"""Quarterly time divider package root."""

from quarterly.divider import (QuarterlyTimeDivider, latest_session_levels,
                               run_divider)
from quarterly.exceptions import ConfigError, QuarterlyError
from quarterly.types import DividerConfig, DividerOutput, TimeframeMode

__all__ = [
    "QuarterlyTimeDivider",
    "run_divider",
    "latest_session_levels",
    "DividerConfig",
    "DividerOutput",
    "TimeframeMode",
    "QuarterlyError",
    "ConfigError",
]
