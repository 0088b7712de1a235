"""Quarter marker classification.

Each timeframe mode partitions time differently:

- ``1m``: 90-minute blocks from session start, each split into four
  22.5-minute segments; the first segment of a block is flagged.
- ``5m``: 90-minute blocks only; a block is flagged when it starts on a
  local 03:00/09:00/15:00/21:00 boundary.
- ``15m``: markers at New York 00:00/06:00/12:00/18:00; 18:00 is flagged.
- ``1h``: markers at New York 18:00 only; every fourth one (starting with the
  first) is flagged.

A marker fires at most once per bucket identity. The identity cache is
cleared whenever the mode changes or the bar stream leaves the session.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo

from quarterly.types import NO_MARKER, MarkerDecision, TimeframeMode

logger = logging.getLogger(__name__)

BLOCK = timedelta(minutes=90)
SEGMENTS_PER_BLOCK = 4
SEGMENT = BLOCK // SEGMENTS_PER_BLOCK

NEW_YORK = ZoneInfo("America/New_York")

# 5m blocks starting on this 6-hour cadence (local time) open a new cycle.
SIX_HOUR_CYCLE = 6
SIX_HOUR_OFFSET = 3

# 1h mode: every N-th New York 18:00 bar opens a new cycle.
HOURLY_CYCLE = 4


def _utc_date(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%d")


def _utc_minute(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M")


class QuarterMarkerClassifier:
    """Decides whether an in-session bar opens a new quarter marker.

    :param zone: Local calendar zone used by the 5-minute cycle flag
        (None for the host's local zone).
    """

    def __init__(self, zone: tzinfo | None = None) -> None:
        self.zone = zone
        self.last_marker_id: str | None = None
        self.last_mode: TimeframeMode | None = None
        self.occurrence_count = 0
        self._handlers: dict[
            TimeframeMode, Callable[[datetime, datetime], MarkerDecision]
        ] = {
            TimeframeMode.ONE_MINUTE: self._one_minute,
            TimeframeMode.FIVE_MINUTE: self._five_minute,
            TimeframeMode.FIFTEEN_MINUTE: self._fifteen_minute,
            TimeframeMode.ONE_HOUR: self._one_hour,
        }

    def reset(self) -> None:
        """Forget the last marker and mode (used when leaving the session)."""
        self.last_marker_id = None
        self.last_mode = None

    def classify(
        self,
        mode: TimeframeMode,
        ts: datetime,
        session_start: datetime,
    ) -> MarkerDecision:
        """Classify one in-session bar.

        :param mode: Detected timeframe mode.
        :param ts: Bar timestamp.
        :param session_start: Start of the active session window.
        :returns: The marker decision for this bar.
        """
        if mode != self.last_mode:
            if self.last_mode is not None:
                logger.debug("Timeframe mode changed %s -> %s", self.last_mode.value, mode.value)
            self.last_marker_id = None
            self.last_mode = mode

        handler = self._handlers.get(mode)
        if handler is None:
            return NO_MARKER
        return handler(ts, session_start)

    def _fire(self, marker_id: str, is_first: bool) -> MarkerDecision:
        if marker_id == self.last_marker_id:
            return NO_MARKER
        self.last_marker_id = marker_id
        logger.debug("Marker %s (first=%s)", marker_id, is_first)
        return MarkerDecision(is_marker=True, is_first_segment=is_first, marker_id=marker_id)

    def _one_minute(self, ts: datetime, session_start: datetime) -> MarkerDecision:
        block_index = (ts - session_start) // BLOCK
        block_start = session_start + block_index * BLOCK
        offset = max(ts - block_start, timedelta(0))
        segment_index = min(offset // SEGMENT, SEGMENTS_PER_BLOCK - 1)
        marker_id = f"1m-{_utc_date(session_start)}-{block_index}-{segment_index}"
        return self._fire(marker_id, segment_index == 0)

    def _five_minute(self, ts: datetime, session_start: datetime) -> MarkerDecision:
        block_index = (ts - session_start) // BLOCK
        block_start = (session_start + block_index * BLOCK).astimezone(self.zone)
        is_first = (
            block_start.minute == 0
            and block_start.hour % SIX_HOUR_CYCLE == SIX_HOUR_OFFSET
        )
        marker_id = f"5m-{_utc_date(session_start)}-{block_index}-0"
        return self._fire(marker_id, is_first)

    def _fifteen_minute(self, ts: datetime, session_start: datetime) -> MarkerDecision:
        ny = ts.astimezone(NEW_YORK)
        if ny.minute != 0 or ny.hour % SIX_HOUR_CYCLE != 0:
            return NO_MARKER
        return self._fire(f"15m-6h-{_utc_minute(ts)}", ny.hour == 18)

    def _one_hour(self, ts: datetime, session_start: datetime) -> MarkerDecision:
        ny = ts.astimezone(NEW_YORK)
        if ny.hour != 18 or ny.minute != 0:
            return NO_MARKER
        marker_id = f"1h-18-{_utc_minute(ts)}"
        if marker_id == self.last_marker_id:
            return NO_MARKER
        self.occurrence_count += 1
        return self._fire(marker_id, self.occurrence_count % HOURLY_CYCLE == 1)


__all__ = [
    "BLOCK",
    "SEGMENTS_PER_BLOCK",
    "SEGMENT",
    "NEW_YORK",
    "QuarterMarkerClassifier",
]
