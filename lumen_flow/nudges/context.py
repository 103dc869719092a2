"""Run context and quiet-hours evaluation for the nudge evaluator.

Every evaluator pass works against an explicit ``RunContext`` instead of
reading the wall clock: the current instant, the configured time zone, the
per-user settings and the run deadline are all captured once up front. Tests
build a context with a frozen ``now`` to make rule evaluation deterministic.
"""

import logging
import time as clock
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, time
from zoneinfo import ZoneInfo

from lumen_flow.exceptions import RunDeadlineExceeded
from lumen_flow.models.notification_settings import NotificationSettings
from lumen_flow.utils.config import NudgeConfig

logger = logging.getLogger(__name__)


def parse_time_of_day(value: time | str | None) -> time | None:
    """Parse a time-of-day value.

    Accepts ``datetime.time`` or "HH:MM" / "HH:MM:SS" strings. Any UTC
    offset is dropped: quiet hours are wall-clock times in the configured
    time zone.

    Returns:
        The parsed naive time, or None if the value is missing or malformed
    """
    if value is None:
        return None
    if isinstance(value, time):
        return value.replace(tzinfo=None)
    if isinstance(value, str):
        try:
            return time.fromisoformat(value.strip()).replace(tzinfo=None)
        except ValueError:
            return None
    return None


def is_in_quiet_hours(
    settings: NotificationSettings,
    now: datetime,
    tz: ZoneInfo,
) -> bool:
    """Check whether ``now`` falls inside the user's quiet hours.

    The window is inclusive at both ends. If start > end the window wraps
    midnight (e.g. 21:00 to 08:00). Missing or malformed times fail closed
    and return False, so a bad setting never blocks notifications.

    Args:
        settings: User notification settings
        now: Current instant (aware; naive values are treated as UTC)
        tz: Time zone the quiet hours are expressed in

    Returns:
        True if non-critical notifications should be withheld
    """
    start = parse_time_of_day(settings.quiet_hours_start)
    end = parse_time_of_day(settings.quiet_hours_end)
    if start is None or end is None:
        if settings.quiet_hours_start is not None or settings.quiet_hours_end is not None:
            logger.warning(
                f"Ignoring malformed quiet hours for user {settings.user_id}: "
                f"{settings.quiet_hours_start!r} - {settings.quiet_hours_end!r}"
            )
        return False

    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    local = now.astimezone(tz).time().replace(microsecond=0, tzinfo=None)

    if start > end:
        return local >= start or local <= end
    return start <= local <= end


@dataclass
class RunContext:
    """Everything one evaluator pass needs to know about time and users."""

    now: datetime
    timezone: ZoneInfo
    config: NudgeConfig
    settings_by_user: dict[str, NotificationSettings] = field(default_factory=dict)
    deadline: float | None = None
    _quiet_cache: dict[str, bool] = field(default_factory=dict, repr=False)

    @classmethod
    def create(
        cls,
        config: NudgeConfig,
        settings: list[NotificationSettings] | None = None,
        now: datetime | None = None,
    ) -> "RunContext":
        """Build a context for one run.

        Args:
            config: Nudge configuration
            settings: All users' settings rows
            now: Injected current instant (defaults to the system clock)
        """
        if now is None:
            now = datetime.now(UTC)
        elif now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        else:
            now = now.astimezone(UTC)

        return cls(
            now=now,
            timezone=ZoneInfo(config.timezone),
            config=config,
            settings_by_user={s.user_id: s for s in settings or []},
            deadline=clock.monotonic() + config.run_deadline_seconds,
        )

    @property
    def naive_now(self) -> datetime:
        """Current instant as naive UTC, matching how timestamps are stored."""
        return self.now.replace(tzinfo=None)

    @property
    def local_now(self) -> datetime:
        """Current instant in the configured time zone."""
        return self.now.astimezone(self.timezone)

    @property
    def local_today(self) -> date:
        return self.local_now.date()

    def in_quiet_hours(self, user_id: str) -> bool:
        """Quiet-hours state for a user, evaluated once per run."""
        if user_id not in self._quiet_cache:
            settings = self.settings_by_user.get(user_id)
            self._quiet_cache[user_id] = (
                is_in_quiet_hours(settings, self.now, self.timezone) if settings else False
            )
        return self._quiet_cache[user_id]

    def in_focus_window(self) -> bool:
        """Whether the local time (to the minute) is inside the daily focus window."""
        local = self.local_now.time().replace(second=0, microsecond=0, tzinfo=None)
        return self.config.focus_window_start <= local <= self.config.focus_window_end

    def check_deadline(self) -> None:
        """Raise RunDeadlineExceeded once the run has used up its time budget.

        Elapsed time is measured on the monotonic clock, independent of the
        injected ``now``.
        """
        if self.deadline is not None and clock.monotonic() > self.deadline:
            raise RunDeadlineExceeded(
                f"Nudge run exceeded its {self.config.run_deadline_seconds}s deadline"
            )
