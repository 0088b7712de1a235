"""Per-stream quarterly time divider.

:class:`QuarterlyTimeDivider` owns every piece of state that must survive
between bars (frame detection, session caches, marker identity, named
session extremes). Feed it one bar at a time, in timestamp order::

    divider = QuarterlyTimeDivider(DividerConfig(local_timezone="UTC"))
    for bar in bars:
        output = divider.process(bar)
        if output.is_marker:
            ...

One instance serves exactly one bar stream; create a new instance per stream.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Iterator, Sequence

from quarterly.bars import read_base, read_price, read_timestamp
from quarterly.markers import QuarterMarkerClassifier
from quarterly.sessions import NamedSessionTracker, SessionWindowBuilder
from quarterly.timeframe import TimeframeDetector
from quarterly.types import (
    NO_MARKER,
    DividerConfig,
    DividerOutput,
    MarkerDecision,
    SessionLevels,
    SessionName,
    TimeframeMode,
)

logger = logging.getLogger(__name__)


def assemble_output(
    timestamp: datetime,
    decision: MarkerDecision,
    sessions: dict[SessionName, SessionLevels],
    base: float | None = None,
    mode: TimeframeMode | None = None,
    in_session: bool = False,
) -> DividerOutput:
    """Merge a marker decision with the named-session snapshot.

    ``base`` and ``is_first_segment`` are only carried when a marker fires.
    """
    if not decision.is_marker:
        return DividerOutput(
            timestamp=timestamp,
            mode=mode,
            in_session=in_session,
            sessions=sessions,
        )
    return DividerOutput(
        timestamp=timestamp,
        is_marker=True,
        base=base,
        is_first_segment=decision.is_first_segment,
        mode=mode,
        in_session=in_session,
        sessions=sessions,
    )


class QuarterlyTimeDivider:
    """Streaming quarter-marker and named-session classifier.

    :param config: Divider configuration (defaults to a full-day session).
    """

    def __init__(self, config: DividerConfig | None = None) -> None:
        self.config = config or DividerConfig()
        self.detector = TimeframeDetector()
        self.windows = SessionWindowBuilder(self.config)
        self.named_sessions = NamedSessionTracker(self.config)
        self.classifier = QuarterMarkerClassifier(self.config.zone())

    def process(self, bar: Any) -> DividerOutput:
        """Classify one bar and update all stream state.

        :param bar: Bar-like object (see :mod:`quarterly.bars`).
        :returns: Marker decision plus current named-session levels.
        :raises DataValidationError: If the bar has no usable timestamp.
        """
        ts = read_timestamp(bar).astimezone(timezone.utc)
        self.detector.observe(ts)
        window = self.windows.build(ts)
        self.named_sessions.update(ts, read_price(bar, "high"), read_price(bar, "low"))

        if not window.contains(ts):
            if self.classifier.last_mode is not None:
                logger.debug("Bar %s outside session %s - %s", ts, window.start, window.end)
            self.classifier.reset()
            return assemble_output(ts, NO_MARKER, self.named_sessions.snapshot())

        mode = self.detector.mode
        decision = self.classifier.classify(mode, ts, window.start)
        base = read_base(bar) if decision.is_marker else None
        return assemble_output(
            ts,
            decision,
            self.named_sessions.snapshot(),
            base=base,
            mode=mode,
            in_session=True,
        )


def run_divider(
    bars: Iterable[Any],
    config: DividerConfig | None = None,
) -> Iterator[DividerOutput]:
    """Run a fresh divider over ``bars`` and yield one output per bar."""
    divider = QuarterlyTimeDivider(config)
    for bar in bars:
        yield divider.process(bar)


def latest_session_levels(
    outputs: Sequence[DividerOutput],
) -> dict[SessionName, SessionLevels]:
    """Named-session levels from the most recent output that carries them.

    Sessions with neither a high nor a low yet are left out.

    :param outputs: Divider outputs, oldest first.
    :returns: Levels keyed by session name (empty if none are available).
    """
    for output in reversed(outputs):
        if output.sessions:
            return {
                name: levels
                for name, levels in output.sessions.items()
                if levels.high is not None or levels.low is not None
            }
    return {}


__all__ = [
    "QuarterlyTimeDivider",
    "assemble_output",
    "run_divider",
    "latest_session_levels",
]
