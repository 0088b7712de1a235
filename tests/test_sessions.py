"""Tests for session windows and named-session tracking."""

from datetime import datetime, timezone

from quarterly.sessions import (NamedSessionTracker, SessionWindowBuilder,
                                build_named_sessions, utc_day_key)
from quarterly.types import DividerConfig, SessionName


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestSessionWindowBuilder:
    """Tests for the active session window."""

    def test_default_is_full_local_day(self) -> None:
        """Without a custom session the window spans the whole local day."""
        builder = SessionWindowBuilder(DividerConfig(local_timezone="UTC"))
        window = builder.build(utc(2024, 3, 5, 10, 17))

        assert window.start == utc(2024, 3, 5)
        assert window.end == utc(2024, 3, 6)

    def test_default_follows_local_calendar(self) -> None:
        """The local day decides which midnight anchors the window."""
        builder = SessionWindowBuilder(DividerConfig(local_timezone="America/New_York"))
        # 02:00 UTC on March 5 is still March 4 in New York (EST, UTC-5).
        window = builder.build(utc(2024, 3, 5, 2, 0))

        assert window.start == utc(2024, 3, 4, 5, 0)
        assert window.end == utc(2024, 3, 5, 5, 0)

    def test_custom_session_in_local_time(self) -> None:
        """Custom hours are interpreted in the local zone."""
        config = DividerConfig(
            use_custom_session=True,
            start_hour=9,
            start_minute=30,
            end_hour=16,
            end_minute=0,
            local_timezone="America/New_York",
        )
        builder = SessionWindowBuilder(config)

        winter = builder.build(utc(2024, 3, 5, 15, 0))
        assert winter.start == utc(2024, 3, 5, 14, 30)
        assert winter.end == utc(2024, 3, 5, 21, 0)

        summer = builder.build(utc(2024, 7, 1, 15, 0))
        assert summer.start == utc(2024, 7, 1, 13, 30)
        assert summer.end == utc(2024, 7, 1, 20, 0)

    def test_overnight_custom_session_wraps(self) -> None:
        """An end time not after the start moves to the next day."""
        config = DividerConfig(
            use_custom_session=True,
            start_hour=22,
            start_minute=0,
            end_hour=2,
            end_minute=0,
            local_timezone="UTC",
        )
        window = SessionWindowBuilder(config).build(utc(2024, 3, 5, 23, 0))

        assert window.start == utc(2024, 3, 5, 22, 0)
        assert window.end == utc(2024, 3, 6, 2, 0)

    def test_equal_start_and_end_spans_a_day(self) -> None:
        """Identical start and end yield a 24-hour window."""
        config = DividerConfig(
            use_custom_session=True,
            start_hour=8,
            start_minute=0,
            end_hour=8,
            end_minute=0,
            local_timezone="UTC",
        )
        window = SessionWindowBuilder(config).build(utc(2024, 3, 5, 9, 0))

        assert window.start == utc(2024, 3, 5, 8, 0)
        assert window.end == utc(2024, 3, 6, 8, 0)

    def test_out_of_range_hours_roll_over(self) -> None:
        """Hours past 23 are not rejected, they roll into the next day."""
        config = DividerConfig(
            use_custom_session=True,
            start_hour=20,
            start_minute=0,
            end_hour=26,
            end_minute=0,
            local_timezone="UTC",
        )
        window = SessionWindowBuilder(config).build(utc(2024, 3, 5, 21, 0))

        assert window.end == utc(2024, 3, 6, 2, 0)

    def test_contains_is_inclusive(self) -> None:
        """Both window bounds are inside the session."""
        config = DividerConfig(
            use_custom_session=True,
            start_hour=9,
            start_minute=0,
            end_hour=10,
            end_minute=0,
            local_timezone="UTC",
        )
        window = SessionWindowBuilder(config).build(utc(2024, 3, 5, 9, 30))

        assert window.contains(utc(2024, 3, 5, 9, 0))
        assert window.contains(utc(2024, 3, 5, 10, 0))
        assert not window.contains(utc(2024, 3, 5, 8, 59))
        assert not window.contains(utc(2024, 3, 5, 10, 1))

    def test_window_is_rebuilt_for_a_new_day(self) -> None:
        """Bars on a later day get that day's window."""
        builder = SessionWindowBuilder(DividerConfig(local_timezone="UTC"))
        first = builder.build(utc(2024, 3, 5, 23, 59))
        second = builder.build(utc(2024, 3, 6, 0, 0))

        assert first.start == utc(2024, 3, 5)
        assert second.start == utc(2024, 3, 6)


class TestBuildNamedSessions:
    """Tests for named-session construction."""

    def test_default_windows(self) -> None:
        """Defaults follow the common UTC market session times."""
        sessions = build_named_sessions(utc(2024, 3, 5, 12, 0), DividerConfig())

        assert list(sessions) == [
            SessionName.SYDNEY,
            SessionName.ASIA,
            SessionName.LONDON,
            SessionName.NY,
        ]
        assert sessions[SessionName.SYDNEY].start == utc(2024, 3, 5, 22, 0)
        assert sessions[SessionName.SYDNEY].end == utc(2024, 3, 6, 7, 0)
        assert sessions[SessionName.ASIA].start == utc(2024, 3, 5, 0, 0)
        assert sessions[SessionName.ASIA].end == utc(2024, 3, 5, 9, 0)
        assert sessions[SessionName.LONDON].start == utc(2024, 3, 5, 8, 0)
        assert sessions[SessionName.LONDON].end == utc(2024, 3, 5, 17, 0)
        assert sessions[SessionName.NY].start == utc(2024, 3, 5, 13, 0)
        assert sessions[SessionName.NY].end == utc(2024, 3, 5, 22, 0)

    def test_accumulators_start_unset(self) -> None:
        """Fresh sessions have no high or low."""
        sessions = build_named_sessions(utc(2024, 3, 5), DividerConfig())

        for session in sessions.values():
            assert session.current_high is None
            assert session.current_low is None

    def test_overrides_replace_defaults(self) -> None:
        """Numeric overrides win; missing ones keep the default."""
        config = DividerConfig(lon_start_hour=7, lon_end_min=30, ny_start_min=30)
        sessions = build_named_sessions(utc(2024, 3, 5), config)

        assert sessions[SessionName.LONDON].start == utc(2024, 3, 5, 7, 0)
        assert sessions[SessionName.LONDON].end == utc(2024, 3, 5, 17, 30)
        assert sessions[SessionName.NY].start == utc(2024, 3, 5, 13, 30)
        assert sessions[SessionName.ASIA].start == utc(2024, 3, 5, 0, 0)

    def test_sydney_window_spans_midnight(self) -> None:
        """Late-evening and early-morning bars share one Sydney window."""
        sydney = build_named_sessions(utc(2024, 3, 5, 12, 0), DividerConfig())[
            SessionName.SYDNEY
        ]

        assert sydney.contains(utc(2024, 3, 5, 23, 30))
        assert sydney.contains(utc(2024, 3, 6, 6, 30))
        assert not sydney.contains(utc(2024, 3, 6, 7, 0))

    def test_windows_are_half_open(self) -> None:
        """Start is inside a named session, end is not."""
        london = build_named_sessions(utc(2024, 3, 5), DividerConfig())[SessionName.LONDON]

        assert london.contains(utc(2024, 3, 5, 8, 0))
        assert not london.contains(utc(2024, 3, 5, 17, 0))


class TestNamedSessionTracker:
    """Tests for running session extremes."""

    def test_utc_day_key(self) -> None:
        """Day keys use the UTC calendar date."""
        assert utc_day_key(utc(2024, 3, 5, 23, 59)) == "2024-03-05"

    def test_snapshot_empty_before_first_bar(self) -> None:
        """No sessions exist until a bar arrives."""
        assert NamedSessionTracker(DividerConfig()).snapshot() == {}

    def test_extremes_only_widen(self) -> None:
        """Highs only rise and lows only fall inside a session."""
        tracker = NamedSessionTracker(DividerConfig())
        tracker.update(utc(2024, 3, 5, 9, 0), 105.0, 100.0)
        tracker.update(utc(2024, 3, 5, 10, 0), 103.0, 101.0)
        tracker.update(utc(2024, 3, 5, 11, 0), 108.0, 97.5)

        london = tracker.snapshot()[SessionName.LONDON]
        assert london.high == 108.0
        assert london.low == 97.5

    def test_bars_only_feed_containing_sessions(self) -> None:
        """A bar outside a session's window leaves it untouched."""
        tracker = NamedSessionTracker(DividerConfig())
        tracker.update(utc(2024, 3, 5, 8, 30), 110.0, 90.0)

        snapshot = tracker.snapshot()
        assert snapshot[SessionName.ASIA].high == 110.0
        assert snapshot[SessionName.LONDON].high == 110.0
        assert snapshot[SessionName.NY].high is None
        assert snapshot[SessionName.SYDNEY].low is None

    def test_missing_prices_contribute_nothing(self) -> None:
        """None high/low values are skipped."""
        tracker = NamedSessionTracker(DividerConfig())
        tracker.update(utc(2024, 3, 5, 14, 0), None, 99.0)
        tracker.update(utc(2024, 3, 5, 15, 0), 102.0, None)

        ny = tracker.snapshot()[SessionName.NY]
        assert ny.high == 102.0
        assert ny.low == 99.0

    def test_new_utc_day_resets_sessions(self) -> None:
        """Crossing UTC midnight rebuilds windows and clears extremes."""
        tracker = NamedSessionTracker(DividerConfig())
        tracker.update(utc(2024, 3, 5, 14, 0), 120.0, 80.0)
        tracker.update(utc(2024, 3, 5, 23, 0), 125.0, 79.0)
        assert tracker.snapshot()[SessionName.SYDNEY].high == 125.0

        tracker.update(utc(2024, 3, 6, 0, 30), 101.0, 100.0)

        snapshot = tracker.snapshot()
        assert tracker.day_key == "2024-03-06"
        assert snapshot[SessionName.NY].high is None
        assert snapshot[SessionName.NY].start == utc(2024, 3, 6, 13, 0)
        assert snapshot[SessionName.SYDNEY].high is None
        assert snapshot[SessionName.SYDNEY].start == utc(2024, 3, 6, 22, 0)
        assert snapshot[SessionName.ASIA].high == 101.0
