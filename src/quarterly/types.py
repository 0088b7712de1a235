"""Core type definitions for the quarterly time divider.

All data models use Pydantic BaseModel for automatic validation, JSON
serialization, and better error messages.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from enum import Enum
from typing import Any, NewType
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field

# Type aliases for domain-specific identifiers
Symbol = NewType("Symbol", str)


# ---------------------------------------------------------------------------
# Base Configuration
# ---------------------------------------------------------------------------


class FrozenModel(BaseModel):
    """Base model with frozen (immutable) configuration."""

    model_config = ConfigDict(frozen=True)


class MutableModel(BaseModel):
    """Base model for mutable state objects."""

    model_config = ConfigDict(validate_assignment=True)


# ---------------------------------------------------------------------------
# Date/Time Types
# ---------------------------------------------------------------------------


class DateRange(FrozenModel):
    """Inclusive start, exclusive end range for time-bounded queries.

    :param start: Start of the range (inclusive).
    :param end: End of the range (exclusive).
    """

    start: datetime
    end: datetime


class TimeframeMode(str, Enum):
    """Nominal bar interval inferred from the stream's first timestamp delta."""

    UNKNOWN = "unknown"
    ONE_MINUTE = "1m"
    FIVE_MINUTE = "5m"
    FIFTEEN_MINUTE = "15m"
    ONE_HOUR = "1h"


class SessionName(str, Enum):
    """The four named trading sessions tracked per UTC day."""

    SYDNEY = "Sydney"
    ASIA = "Asia"
    LONDON = "London"
    NY = "NY"


# ---------------------------------------------------------------------------
# Market Data Types
# ---------------------------------------------------------------------------


class Bar(FrozenModel):
    """Bar of market data as produced by the data sources.

    Only ``timestamp`` is required. The divider reads prices through
    :mod:`quarterly.bars`, so any object exposing the same attributes (as
    plain values or zero-argument callables) can be fed in place of this model.

    :param timestamp: Timestamp for this bar (should be timezone-aware).
    :param symbol: Market symbol for this bar, if known.
    :param open: Opening price.
    :param high: Highest price during the bar period.
    :param low: Lowest price during the bar period.
    :param close: Closing price.
    :param volume: Trading volume during the bar period.
    """

    timestamp: datetime
    symbol: Symbol | None = None
    open: float | None = None
    high: float | None = None
    low: float | None = None
    close: float | None = None
    volume: float | None = None


# ---------------------------------------------------------------------------
# Session Types
# ---------------------------------------------------------------------------


class SessionWindow(FrozenModel):
    """Active session interval for the local calendar day of a bar.

    Both ends are inclusive.

    :param start: Session start instant.
    :param end: Session end instant.
    """

    start: datetime
    end: datetime

    def contains(self, ts: datetime) -> bool:
        """Whether ``ts`` lies inside ``[start, end]``."""
        return self.start <= ts <= self.end


class SessionHours(FrozenModel):
    """Start/end time of day (UTC) for a named session.

    Values are not range checked; out-of-range values roll over like
    calendar arithmetic.
    """

    start_hour: int
    start_minute: int
    end_hour: int
    end_minute: int


# Common market session windows, in UTC.
DEFAULT_SESSION_HOURS: dict[SessionName, SessionHours] = {
    SessionName.SYDNEY: SessionHours(start_hour=22, start_minute=0, end_hour=7, end_minute=0),
    SessionName.ASIA: SessionHours(start_hour=0, start_minute=0, end_hour=9, end_minute=0),
    SessionName.LONDON: SessionHours(start_hour=8, start_minute=0, end_hour=17, end_minute=0),
    SessionName.NY: SessionHours(start_hour=13, start_minute=0, end_hour=22, end_minute=0),
}

# Config field prefix for each named session's overrides.
SESSION_OVERRIDE_PREFIX: dict[SessionName, str] = {
    SessionName.SYDNEY: "syd",
    SessionName.ASIA: "asia",
    SessionName.LONDON: "lon",
    SessionName.NY: "ny",
}


class NamedSession(MutableModel):
    """One named session instance for a UTC day, with its running extremes.

    :param name: Which session this is.
    :param start: Session start instant (inclusive).
    :param end: Session end instant (exclusive).
    :param current_high: Highest high seen inside the window, or None.
    :param current_low: Lowest low seen inside the window, or None.
    """

    name: SessionName
    start: datetime
    end: datetime
    current_high: float | None = None
    current_low: float | None = None

    def contains(self, ts: datetime) -> bool:
        """Whether ``ts`` lies inside the half-open window ``[start, end)``."""
        return self.start <= ts < self.end

    def update(self, high: float | None, low: float | None) -> None:
        """Widen the running extremes with a bar's high and low."""
        if high is not None and (self.current_high is None or high > self.current_high):
            self.current_high = high
        if low is not None and (self.current_low is None or low < self.current_low):
            self.current_low = low

    def levels(self) -> SessionLevels:
        """Snapshot of this session for output."""
        return SessionLevels(
            high=self.current_high,
            low=self.current_low,
            start=self.start,
            end=self.end,
        )


class SessionLevels(FrozenModel):
    """Output snapshot of one named session.

    :param high: Session high so far, or None if no bar contributed yet.
    :param low: Session low so far, or None if no bar contributed yet.
    :param start: Session start instant.
    :param end: Session end instant.
    """

    high: float | None = None
    low: float | None = None
    start: datetime
    end: datetime


# ---------------------------------------------------------------------------
# Marker Types
# ---------------------------------------------------------------------------


class MarkerDecision(FrozenModel):
    """Outcome of the quarter-marker classifier for one bar.

    :param is_marker: Whether a new marker fires on this bar.
    :param is_first_segment: Whether the marker opens a larger cycle.
    :param marker_id: Bucket identity of the marker, when one fires.
    """

    is_marker: bool = False
    is_first_segment: bool | None = None
    marker_id: str | None = None


NO_MARKER = MarkerDecision()


# ---------------------------------------------------------------------------
# Configuration Types
# ---------------------------------------------------------------------------


class DividerConfig(FrozenModel):
    """Configuration for the quarterly time divider.

    :param use_custom_session: Restrict markers to a custom time-of-day window.
    :param start_hour: Custom session start hour (local time).
    :param start_minute: Custom session start minute (local time).
    :param end_hour: Custom session end hour (local time).
    :param end_minute: Custom session end minute (local time).
    :param local_timezone: IANA zone for the local calendar, None for host local.
    :param syd_start_hour: Override for the Sydney session (UTC); the remaining
        ``{syd,asia,lon,ny}_{start,end}_{hour,min}`` fields work the same way.
        None keeps the default.
    """

    use_custom_session: bool = False
    start_hour: int = 9
    start_minute: int = 30
    end_hour: int = 16
    end_minute: int = 0
    local_timezone: str | None = None

    syd_start_hour: int | None = None
    syd_start_min: int | None = None
    syd_end_hour: int | None = None
    syd_end_min: int | None = None
    asia_start_hour: int | None = None
    asia_start_min: int | None = None
    asia_end_hour: int | None = None
    asia_end_min: int | None = None
    lon_start_hour: int | None = None
    lon_start_min: int | None = None
    lon_end_hour: int | None = None
    lon_end_min: int | None = None
    ny_start_hour: int | None = None
    ny_start_min: int | None = None
    ny_end_hour: int | None = None
    ny_end_min: int | None = None

    def session_hours(self, name: SessionName) -> SessionHours:
        """Resolve the UTC hours of a named session, applying any overrides.

        :param name: Session to resolve.
        :returns: Hours with overrides merged over the defaults.
        """
        default = DEFAULT_SESSION_HOURS[name]
        prefix = SESSION_OVERRIDE_PREFIX[name]

        def pick(suffix: str, fallback: int) -> int:
            value = getattr(self, f"{prefix}_{suffix}")
            return fallback if value is None else value

        return SessionHours(
            start_hour=pick("start_hour", default.start_hour),
            start_minute=pick("start_min", default.start_minute),
            end_hour=pick("end_hour", default.end_hour),
            end_minute=pick("end_min", default.end_minute),
        )

    def zone(self) -> tzinfo | None:
        """Local calendar zone, or None to use the host's local zone."""
        if self.local_timezone is None:
            return None
        return ZoneInfo(self.local_timezone)


class ScanConfig(FrozenModel):
    """Configuration for the ``scan`` command.

    :param data_source: Data source type ("csv" or "yahoo").
    :param source_params: Provider-specific parameters.
    :param symbols: Symbols to scan (empty = every symbol in the source).
    :param date_range: Time range to scan, or None for everything available.
    :param granularity: Bar granularity requested from the source.
    :param divider: Divider configuration.
    :param log_level: Logging level.
    """

    data_source: str
    source_params: dict[str, Any] = Field(default_factory=dict)
    symbols: list[Symbol] = Field(default_factory=list)
    date_range: DateRange | None = None
    granularity: str = "1m"
    divider: DividerConfig = Field(default_factory=DividerConfig)
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Output Types
# ---------------------------------------------------------------------------


class DividerOutput(FrozenModel):
    """Per-bar result of the quarterly time divider.

    :param timestamp: Timestamp of the bar this output belongs to.
    :param is_marker: Whether a quarter marker fires on this bar.
    :param base: Price to anchor the marker at (only when ``is_marker``).
    :param is_first_segment: Whether the marker opens a larger cycle
        (only when ``is_marker``).
    :param mode: Timeframe mode in effect, or None outside the session.
    :param in_session: Whether the bar lies inside the active session window.
    :param sessions: Named-session levels for the current UTC day.
    """

    timestamp: datetime
    is_marker: bool = False
    base: float | None = None
    is_first_segment: bool | None = None
    mode: TimeframeMode | None = None
    in_session: bool = False
    sessions: dict[SessionName, SessionLevels] = Field(default_factory=dict)

    def to_record(self) -> dict[str, Any]:
        """Flatten into a plot record (``isMarker``, ``SydneyHigh``, ...)."""
        record: dict[str, Any] = {"isMarker": self.is_marker}
        if self.is_marker:
            record["base"] = self.base
            record["isFirstSegment"] = self.is_first_segment
        for name, levels in self.sessions.items():
            record[f"{name.value}High"] = levels.high
            record[f"{name.value}Low"] = levels.low
            record[f"{name.value}Start"] = levels.start
            record[f"{name.value}End"] = levels.end
        return record


# ---------------------------------------------------------------------------
# Exports
# ---------------------------------------------------------------------------

__all__ = [
    # Type aliases
    "Symbol",
    # Base models
    "FrozenModel",
    "MutableModel",
    # Date/Time
    "DateRange",
    "TimeframeMode",
    "SessionName",
    # Market data
    "Bar",
    # Sessions
    "SessionWindow",
    "SessionHours",
    "DEFAULT_SESSION_HOURS",
    "SESSION_OVERRIDE_PREFIX",
    "NamedSession",
    "SessionLevels",
    # Markers
    "MarkerDecision",
    "NO_MARKER",
    # Configuration
    "DividerConfig",
    "ScanConfig",
    # Output
    "DividerOutput",
]
