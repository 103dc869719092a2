"""Run log service for evaluator passes."""

import json
import logging
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from lumen_flow.models.nudge_run import NudgeRun

if TYPE_CHECKING:
    from lumen_flow.nudges.evaluator import RunResult

logger = logging.getLogger(__name__)


class RunLogService:
    """Service for recording and querying nudge runs."""

    def __init__(self, db: Session):
        self.db = db

    def record(self, result: "RunResult") -> NudgeRun:
        """Persist a finished run.

        Args:
            result: Result returned by the evaluator

        Returns:
            The created NudgeRun row
        """
        run = NudgeRun(
            started_at=result.started_at.replace(tzinfo=None),
            finished_at=result.finished_at.replace(tzinfo=None),
            users_checked=result.users_checked,
            notifications_created=result.notifications_created,
            errors=len(result.errors),
            deadline_exceeded=result.deadline_exceeded,
            details=json.dumps({
                "created_by_rule": result.created_by_rule,
                "errors": result.errors,
            }),
        )
        self.db.add(run)
        self.db.commit()
        self.db.refresh(run)
        return run

    def get_recent_runs(self, limit: int = 20) -> list[NudgeRun]:
        """Get the most recent runs, newest first."""
        return (
            self.db.query(NudgeRun)
            .order_by(NudgeRun.started_at.desc(), NudgeRun.id.desc())
            .limit(limit)
            .all()
        )

    def get_last_run(self) -> NudgeRun | None:
        """Get the most recent run, if any."""
        runs = self.get_recent_runs(limit=1)
        return runs[0] if runs else None

    @staticmethod
    def parse_details(run: NudgeRun) -> dict:
        """Decode the details JSON of a run."""
        if not run.details:
            return {}
        try:
            return json.loads(run.details)
        except json.JSONDecodeError:
            logger.warning(f"Malformed details on nudge run {run.id}")
            return {}
