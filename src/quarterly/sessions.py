"""Session windows: the active marker session and the four named sessions.

The active session window is anchored to the bar's *local* calendar day
(``DividerConfig.local_timezone``), while the Sydney/Asia/London/NY sessions
are anchored to the bar's *UTC* calendar day. Both are pure functions of the
bar's day and the configuration.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone

from quarterly.types import (
    DividerConfig,
    NamedSession,
    SessionLevels,
    SessionName,
    SessionWindow,
)

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(hours=24)


class SessionWindowBuilder:
    """Computes the active session window for a bar's local calendar day.

    Without a custom session the window is the whole local day. With one it
    runs from the configured start to end time of day, wrapping to the next
    day when the end is not after the start.

    :param config: Divider configuration.
    """

    def __init__(self, config: DividerConfig) -> None:
        self.config = config
        self._zone = config.zone()
        self._cached_day: date | None = None
        self._cached_window: SessionWindow | None = None

    def build(self, ts: datetime) -> SessionWindow:
        """Return the session window for the local day containing ``ts``.

        :param ts: Timezone-aware bar timestamp.
        :returns: Window with both bounds expressed in UTC.
        """
        local = ts.astimezone(self._zone)
        local_day = local.date()
        if self._cached_window is not None and self._cached_day == local_day:
            return self._cached_window

        midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)
        if self.config.use_custom_session:
            # Wall-clock arithmetic: the offset is re-evaluated at the target time.
            start = midnight + timedelta(
                hours=self.config.start_hour, minutes=self.config.start_minute
            )
            end = midnight + timedelta(
                hours=self.config.end_hour, minutes=self.config.end_minute
            )
            if end <= start:
                end = end + timedelta(days=1)
        else:
            start = midnight
            end = midnight.astimezone(timezone.utc) + ONE_DAY

        window = SessionWindow(
            start=start.astimezone(timezone.utc),
            end=end.astimezone(timezone.utc),
        )
        self._cached_day = local_day
        self._cached_window = window
        return window


def utc_day_key(ts: datetime) -> str:
    """``YYYY-MM-DD`` key of the UTC calendar day containing ``ts``."""
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d")


def build_named_sessions(
    ts: datetime,
    config: DividerConfig,
) -> dict[SessionName, NamedSession]:
    """Build fresh Sydney/Asia/London/NY sessions for the UTC day of ``ts``.

    Sessions whose end is not after their start (Sydney by default) run
    into the following UTC day.

    :param ts: Any instant on the target UTC day.
    :param config: Divider configuration carrying optional overrides.
    :returns: Sessions keyed by name, accumulators unset.
    """
    day_start = ts.astimezone(timezone.utc).replace(
        hour=0, minute=0, second=0, microsecond=0
    )
    sessions: dict[SessionName, NamedSession] = {}
    for name in SessionName:
        hours = config.session_hours(name)
        start = day_start + timedelta(hours=hours.start_hour, minutes=hours.start_minute)
        end = day_start + timedelta(hours=hours.end_hour, minutes=hours.end_minute)
        if end <= start:
            end += ONE_DAY
        sessions[name] = NamedSession(name=name, start=start, end=end)
    return sessions


class NamedSessionTracker:
    """Tracks running high/low extremes of the named sessions for the current UTC day.

    All four sessions are rebuilt, with their extremes reset, whenever a bar
    arrives on a different UTC day than the previous one.

    :param config: Divider configuration.
    """

    def __init__(self, config: DividerConfig) -> None:
        self.config = config
        self.day_key: str | None = None
        self.sessions: dict[SessionName, NamedSession] = {}

    def update(self, ts: datetime, high: float | None, low: float | None) -> None:
        """Fold one bar into every named session whose window contains it.

        :param ts: Bar timestamp.
        :param high: Bar high, or None if unavailable.
        :param low: Bar low, or None if unavailable.
        """
        key = utc_day_key(ts)
        if key != self.day_key or not self.sessions:
            self.day_key = key
            self.sessions = build_named_sessions(ts, self.config)
            logger.debug("Rebuilt named sessions for UTC day %s", key)

        for session in self.sessions.values():
            if session.contains(ts):
                session.update(high, low)

    def snapshot(self) -> dict[SessionName, SessionLevels]:
        """Current levels of every named session (empty before the first bar)."""
        return {name: session.levels() for name, session in self.sessions.items()}


__all__ = [
    "SessionWindowBuilder",
    "NamedSessionTracker",
    "build_named_sessions",
    "utc_day_key",
]
