"""Nudge evaluator: one batch pass over every user with notification settings.

Users are processed sequentially, and within a user the rules run in
``RuleKind`` order. Each (user, rule) pair gets its own session and its own
error boundary, so a failing rule never stops the remaining rules or users.

Two overlapping runs could both pass the duplicate check and double-fire a
notification inside its suppression window. The scheduler never overlaps runs
in one process; across processes the worst case is one duplicate alert.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from lumen_flow.exceptions import RunDeadlineExceeded
from lumen_flow.models.database import get_session_factory
from lumen_flow.nudges.context import RunContext
from lumen_flow.nudges.kinds import RuleKind
from lumen_flow.nudges.rules import RULES, NudgeRule
from lumen_flow.services.run_log_service import RunLogService
from lumen_flow.services.settings_service import NotificationSettingsService
from lumen_flow.utils.config import Config, get_config

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of one evaluator pass."""

    started_at: datetime
    finished_at: datetime | None = None
    users_checked: int = 0
    notifications_created: int = 0
    created_by_rule: dict[str, int] = field(default_factory=lambda: {k.value: 0 for k in RuleKind})
    errors: list[str] = field(default_factory=list)
    deadline_exceeded: bool = False
    run_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "run_id": self.run_id,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "users_checked": self.users_checked,
            "notifications_created": self.notifications_created,
            "created_by_rule": dict(self.created_by_rule),
            "errors": list(self.errors),
            "deadline_exceeded": self.deadline_exceeded,
        }


class NudgeEvaluator:
    """Runs every nudge rule for every user."""

    def __init__(
        self,
        config: Config | None = None,
        session_factory: Callable[[], Session] | None = None,
        rules: dict[RuleKind, NudgeRule] | None = None,
    ):
        """Initialize the evaluator.

        Args:
            config: Application configuration (defaults to the global config)
            session_factory: Factory for database sessions (defaults to the app's)
            rules: Rule implementations, mainly overridden in tests
        """
        self.config = config or get_config()
        self._session_factory = session_factory
        self.rules = rules if rules is not None else RULES

    def _new_session(self) -> Session:
        if self._session_factory is not None:
            return self._session_factory()
        return get_session_factory()()

    def build_context(self, now: datetime | None = None) -> RunContext:
        """Load all users' settings and capture the run's clock and time zone."""
        db = self._new_session()
        try:
            settings = NotificationSettingsService(db).get_all()
            # Detach so the rows stay readable after this session closes
            db.expunge_all()
        finally:
            db.close()
        return RunContext.create(self.config.nudges, settings=settings, now=now)

    def run(self, now: datetime | None = None) -> RunResult:
        """Evaluate every rule for every user once.

        Args:
            now: Injected current instant; defaults to the system clock

        Returns:
            Summary of the run
        """
        result = RunResult(started_at=datetime.now(UTC))
        ctx = self.build_context(now)
        logger.info(f"Starting nudge run for {len(ctx.settings_by_user)} users at {ctx.now.isoformat()}")

        try:
            for user_id, settings in ctx.settings_by_user.items():
                ctx.check_deadline()
                if not settings.nudges_enabled:
                    logger.debug(f"Nudges disabled for user {user_id}, skipping")
                    continue
                result.users_checked += 1
                self._evaluate_user(ctx, user_id, result)
        except RunDeadlineExceeded as e:
            logger.error(f"{e}; {result.users_checked} users checked before stopping")
            result.deadline_exceeded = True

        result.finished_at = datetime.now(UTC)
        self._record(result)
        logger.info(
            f"Nudge run finished: {result.notifications_created} created, "
            f"{len(result.errors)} errors, {result.users_checked} users checked"
        )
        return result

    def _evaluate_user(self, ctx: RunContext, user_id: str, result: RunResult) -> None:
        for kind in RuleKind:
            ctx.check_deadline()
            rule = self.rules.get(kind)
            if rule is None:
                continue

            db = self._new_session()
            # Filled as notifications are committed, so a failure part-way still counts earlier writes
            created: list = []
            try:
                rule.evaluate(db, ctx, user_id, created=created)
            except Exception as e:
                db.rollback()
                message = f"{kind.value} failed for user {user_id}: {e}"
                logger.error(message)
                result.errors.append(message)
            finally:
                db.close()
                result.created_by_rule[kind.value] += len(created)
                result.notifications_created += len(created)

    def _record(self, result: RunResult) -> None:
        db = self._new_session()
        try:
            run = RunLogService(db).record(result)
            result.run_id = run.id
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to record nudge run: {e}")
        finally:
            db.close()


def run_nudges(config: Config | None = None, now: datetime | None = None) -> RunResult:
    """Run the evaluator once with the application's database."""
    return NudgeEvaluator(config).run(now=now)
