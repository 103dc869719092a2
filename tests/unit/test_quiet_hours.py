"""Tests for quiet hours and the run context."""

import time as clock
from datetime import UTC, date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from lumen_flow.exceptions import RunDeadlineExceeded
from lumen_flow.models.notification_settings import NotificationSettings
from lumen_flow.nudges.context import RunContext, is_in_quiet_hours, parse_time_of_day
from lumen_flow.utils.config import NudgeConfig

MELBOURNE = ZoneInfo("Australia/Melbourne")


def melbourne(hour, minute=0, second=0):
    """Aware instant at a Melbourne wall-clock time on 10 June 2025."""
    return datetime(2025, 6, 10, hour, minute, second, tzinfo=MELBOURNE)


def settings_with(start, end):
    return NotificationSettings(user_id="user-1", quiet_hours_start=start, quiet_hours_end=end)


class TestParseTimeOfDay:
    """Tests for parse_time_of_day."""

    def test_time_passthrough(self):
        assert parse_time_of_day(time(21, 0)) == time(21, 0)

    def test_strings(self):
        assert parse_time_of_day("21:00") == time(21, 0)
        assert parse_time_of_day("07:59:30") == time(7, 59, 30)

    def test_offset_dropped(self):
        """Test aware times and offset strings come back naive."""
        assert parse_time_of_day(time(21, 0, tzinfo=UTC)) == time(21, 0)
        assert parse_time_of_day(time(21, 0, tzinfo=UTC)).tzinfo is None
        assert parse_time_of_day("21:00+02:00") == time(21, 0)
        assert parse_time_of_day("21:00+02:00").tzinfo is None

    @pytest.mark.parametrize("value", [None, "", "25:00", "nine", 900])
    def test_invalid(self, value):
        assert parse_time_of_day(value) is None


class TestIsInQuietHours:
    """Tests for quiet hours evaluation."""

    def test_wrapping_window(self):
        """Test a window crossing midnight (21:00 to 08:00)."""
        settings = settings_with(time(21, 0), time(8, 0))
        assert is_in_quiet_hours(settings, melbourne(23), MELBOURNE) is True
        assert is_in_quiet_hours(settings, melbourne(9), MELBOURNE) is False
        assert is_in_quiet_hours(settings, melbourne(7, 59), MELBOURNE) is True
        assert is_in_quiet_hours(settings, melbourne(12), MELBOURNE) is False

    def test_wrapping_window_boundaries_inclusive(self):
        """Test both ends of the window are inside it."""
        settings = settings_with(time(21, 0), time(8, 0))
        assert is_in_quiet_hours(settings, melbourne(21), MELBOURNE) is True
        assert is_in_quiet_hours(settings, melbourne(8), MELBOURNE) is True
        assert is_in_quiet_hours(settings, melbourne(8, 0, 1), MELBOURNE) is False
        assert is_in_quiet_hours(settings, melbourne(20, 59, 59), MELBOURNE) is False

    def test_same_day_window(self):
        """Test a window that does not cross midnight."""
        settings = settings_with(time(12, 0), time(13, 30))
        assert is_in_quiet_hours(settings, melbourne(12, 45), MELBOURNE) is True
        assert is_in_quiet_hours(settings, melbourne(13, 31), MELBOURNE) is False
        assert is_in_quiet_hours(settings, melbourne(11, 59), MELBOURNE) is False

    def test_evaluated_in_given_timezone(self):
        """Test the instant is converted to the configured zone first."""
        settings = settings_with(time(21, 0), time(8, 0))
        # 13:00 UTC is 23:00 in Melbourne in June
        utc_instant = datetime(2025, 6, 10, 13, 0, tzinfo=UTC)
        assert is_in_quiet_hours(settings, utc_instant, MELBOURNE) is True
        assert is_in_quiet_hours(settings, utc_instant, ZoneInfo("UTC")) is False

    def test_naive_instant_treated_as_utc(self):
        """Test naive instants are interpreted as UTC."""
        settings = settings_with(time(21, 0), time(8, 0))
        assert is_in_quiet_hours(settings, datetime(2025, 6, 10, 13, 0), MELBOURNE) is True

    def test_fixed_offset_instant(self):
        """Test instants with a non-UTC offset are handled."""
        settings = settings_with(time(21, 0), time(8, 0))
        instant = datetime(2025, 6, 10, 18, 0, tzinfo=timezone(timedelta(hours=5)))
        # 13:00 UTC -> 23:00 Melbourne
        assert is_in_quiet_hours(settings, instant, MELBOURNE) is True

    def test_missing_times_fail_closed(self):
        """Test missing quiet hours never block delivery."""
        assert is_in_quiet_hours(settings_with(None, None), melbourne(23), MELBOURNE) is False
        assert is_in_quiet_hours(settings_with(time(21, 0), None), melbourne(23), MELBOURNE) is False

    def test_malformed_times_fail_closed(self, caplog):
        """Test malformed stored values are ignored with a warning."""
        settings = settings_with("late", "08:00")
        assert is_in_quiet_hours(settings, melbourne(23), MELBOURNE) is False
        assert "malformed quiet hours" in caplog.text

    def test_string_times_accepted(self):
        """Test HH:MM strings work like time values."""
        settings = settings_with("21:00", "08:00")
        assert is_in_quiet_hours(settings, melbourne(23), MELBOURNE) is True

    def test_aware_times_compared_as_wall_clock(self):
        """Test times carrying an offset are read as local wall-clock times."""
        aware = settings_with(time(21, 0, tzinfo=UTC), time(8, 0))
        assert is_in_quiet_hours(aware, melbourne(23), MELBOURNE) is True
        assert is_in_quiet_hours(aware, melbourne(12), MELBOURNE) is False

        offset_string = settings_with("21:00+02:00", "08:00")
        assert is_in_quiet_hours(offset_string, melbourne(23), MELBOURNE) is True
        assert is_in_quiet_hours(offset_string, melbourne(12), MELBOURNE) is False


class TestRunContext:
    """Tests for RunContext."""

    def test_create_normalises_now(self):
        """Test naive and offset instants are normalised to aware UTC."""
        config = NudgeConfig()
        naive = RunContext.create(config, now=datetime(2025, 6, 10, 2, 0))
        assert naive.now == datetime(2025, 6, 10, 2, 0, tzinfo=UTC)
        assert naive.naive_now == datetime(2025, 6, 10, 2, 0)

        local = RunContext.create(config, now=melbourne(12))
        assert local.now.utcoffset() == timedelta(0)
        assert local.naive_now == datetime(2025, 6, 10, 2, 0)

    def test_local_today(self):
        """Test the local date can differ from the UTC date."""
        ctx = RunContext.create(NudgeConfig(), now=datetime(2025, 6, 10, 20, 0, tzinfo=UTC))
        assert ctx.local_today == date(2025, 6, 11)

    def test_settings_indexed_by_user(self):
        """Test settings rows are keyed by user id."""
        rows = [settings_with(time(21, 0), time(8, 0))]
        ctx = RunContext.create(NudgeConfig(), settings=rows, now=melbourne(23))
        assert list(ctx.settings_by_user) == ["user-1"]
        assert ctx.in_quiet_hours("user-1") is True
        assert ctx.in_quiet_hours("unknown-user") is False

    def test_quiet_hours_cached_per_run(self):
        """Test the quiet-hours result is computed once per user."""
        settings = settings_with(time(21, 0), time(8, 0))
        ctx = RunContext.create(NudgeConfig(), settings=[settings], now=melbourne(23))
        assert ctx.in_quiet_hours("user-1") is True
        settings.quiet_hours_start = None
        assert ctx.in_quiet_hours("user-1") is True

    @pytest.mark.parametrize(
        "local_time,expected",
        [
            ((13, 59, 59), False),
            ((14, 0, 0), True),
            ((14, 30, 0), True),
            ((15, 0, 59), True),
            ((15, 1, 0), False),
        ],
    )
    def test_focus_window(self, local_time, expected):
        """Test the focus window is inclusive to the minute."""
        ctx = RunContext.create(NudgeConfig(), now=melbourne(*local_time))
        assert ctx.in_focus_window() is expected

    def test_deadline_not_reached(self):
        """Test a fresh context is within its deadline."""
        ctx = RunContext.create(NudgeConfig(run_deadline_seconds=60), now=melbourne(12))
        ctx.check_deadline()

    def test_deadline_exceeded(self):
        """Test an expired deadline raises."""
        ctx = RunContext.create(NudgeConfig(), now=melbourne(12))
        ctx.deadline = clock.monotonic() - 1
        with pytest.raises(RunDeadlineExceeded):
            ctx.check_deadline()

    def test_deadline_independent_of_injected_now(self):
        """Test an old injected instant does not trip the deadline."""
        ctx = RunContext.create(NudgeConfig(), now=datetime(2001, 1, 1, tzinfo=UTC))
        ctx.check_deadline()
