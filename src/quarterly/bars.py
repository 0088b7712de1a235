"""Boundary accessors for bar-like objects.

Bars may come from the package's own :class:`~quarterly.types.Bar` model or
from any host object that exposes ``timestamp``/``high``/``low``/``close``
either as plain attributes or as zero-argument methods. Everything past this
module only sees plain floats and timezone-aware datetimes.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any

from quarterly.exceptions import DataValidationError


def _resolve(bar: Any, name: str) -> Any:
    """Read attribute ``name`` from ``bar``, calling it if it is callable."""
    value = getattr(bar, name, None)
    if callable(value):
        value = value()
    return value


def read_price(bar: Any, name: str) -> float | None:
    """Read a numeric bar field, returning None when absent or unusable.

    :param bar: Bar-like object.
    :param name: Attribute name (e.g. "high", "low", "close").
    :returns: The value as a float, or None.
    """
    value = _resolve(bar, name)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if math.isnan(number):
        return None
    return number


def read_timestamp(bar: Any) -> datetime:
    """Read a bar's timestamp as a timezone-aware datetime.

    Accepts datetimes (naive ones are taken as UTC) and numeric epoch
    milliseconds.

    :param bar: Bar-like object.
    :returns: Timezone-aware timestamp.
    :raises DataValidationError: If the bar carries no usable timestamp.
    """
    value = _resolve(bar, "timestamp")
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as e:
            raise DataValidationError(f"Bar has no usable timestamp: {value!r}") from e
    raise DataValidationError(f"Bar has no usable timestamp: {value!r}")


def read_base(bar: Any) -> float:
    """Price a marker is anchored at: close, else a generic value, else 0."""
    for name in ("close", "value"):
        price = read_price(bar, name)
        if price is not None:
            return price
    return 0.0


__all__ = ["read_price", "read_timestamp", "read_base"]
