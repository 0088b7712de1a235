"""Quarterly divider exception hierarchy.

All package-specific exceptions derive from :class:`QuarterlyError` so callers
can catch them uniformly. The per-bar classifier itself never raises on bad
data; these are raised by the configuration and data-feeding layers.
"""

from __future__ import annotations


class QuarterlyError(Exception):
    """Base class for quarterly-divider exceptions."""


class ConfigError(QuarterlyError):
    """Raised when configuration files or parameters are invalid."""


class DataSourceError(QuarterlyError):
    """Raised when accessing or processing a data source fails."""


class DataValidationError(QuarterlyError):
    """Raised when a bar cannot be interpreted at all.

    Named DataValidationError to avoid conflict with pydantic's ValidationError.
    """


__all__ = [
    "QuarterlyError",
    "ConfigError",
    "DataSourceError",
    "DataValidationError",
]
