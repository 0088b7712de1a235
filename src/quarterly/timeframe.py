"""Bar interval detection from observed timestamp deltas."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from quarterly.types import TimeframeMode

logger = logging.getLogger(__name__)

# (mode, canonical interval, tolerance)
MODE_BANDS: tuple[tuple[TimeframeMode, timedelta, timedelta], ...] = (
    (TimeframeMode.ONE_MINUTE, timedelta(minutes=1), timedelta(seconds=2)),
    (TimeframeMode.FIVE_MINUTE, timedelta(minutes=5), timedelta(seconds=5)),
    (TimeframeMode.FIFTEEN_MINUTE, timedelta(minutes=15), timedelta(seconds=7)),
    (TimeframeMode.ONE_HOUR, timedelta(hours=1), timedelta(seconds=20)),
)


def classify_frame(frame: timedelta | None) -> TimeframeMode:
    """Map a bar interval onto a timeframe mode.

    :param frame: Observed bar interval, or None if not yet known.
    :returns: The first mode whose tolerance band contains ``frame``,
        otherwise ``TimeframeMode.UNKNOWN``.
    """
    if frame is None:
        return TimeframeMode.UNKNOWN
    for mode, canonical, tolerance in MODE_BANDS:
        if abs(frame - canonical) <= tolerance:
            return mode
    return TimeframeMode.UNKNOWN


class TimeframeDetector:
    """Infers the stream's bar interval from the first inter-bar delta.

    The first delta is captured once and never refined; later gaps or
    irregular bars do not change the detected mode.
    """

    def __init__(self) -> None:
        self.previous_ts: datetime | None = None
        self.frame: timedelta | None = None

    @property
    def mode(self) -> TimeframeMode:
        """Mode for the captured frame length."""
        return classify_frame(self.frame)

    def observe(self, ts: datetime) -> TimeframeMode:
        """Record a bar timestamp and return the current mode.

        :param ts: Timestamp of the bar being processed.
        :returns: Mode derived from the captured frame length.
        """
        if self.previous_ts is not None and self.frame is None:
            self.frame = ts - self.previous_ts
            logger.debug("Captured frame length %s (mode %s)", self.frame, self.mode.value)
        self.previous_ts = ts
        return self.mode


__all__ = ["MODE_BANDS", "classify_frame", "TimeframeDetector"]
