"""Nudge rules.

Each rule queries one slice of a user's workspace, derives a condition and a
severity, and hands candidate nudges to the shared emit path. The emit path
applies, in order: the muted-entity filter, the severity gate (quiet hours and
critical-only), the duplicate suppression check and finally the writer.

Critical nudges always bypass quiet hours and critical-only.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import and_, func
from sqlalchemy.orm import Session, contains_eager

from lumen_flow.models.document import Document
from lumen_flow.models.notification import Notification
from lumen_flow.models.project import Project, ProjectStatus
from lumen_flow.models.task import Task, TaskStatus
from lumen_flow.nudges.context import RunContext
from lumen_flow.nudges.kinds import NotificationSeverity, RuleKind
from lumen_flow.services.daily_focus_service import DailyFocusService
from lumen_flow.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def whole_days(delta: timedelta) -> int:
    """Number of whole days in a timedelta, truncated toward zero."""
    return int(delta.total_seconds() / 86400)


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


@dataclass
class Nudge:
    """A candidate notification produced by a rule."""

    title: str
    body: str
    severity: NotificationSeverity
    entity_type: str | None = None
    entity_id: str | None = None
    action_url: str | None = None
    # Entity used for duplicate suppression; None scopes it to (user, rule)
    dedupe_entity_id: str | None = None


class NudgeRule:
    """Base class for nudge rules."""

    kind: RuleKind

    def candidates(self, db: Session, ctx: RunContext, user_id: str) -> list[Nudge]:
        """Query workspace state and return the nudges that would fire."""
        raise NotImplementedError

    def evaluate(
        self,
        db: Session,
        ctx: RunContext,
        user_id: str,
        created: list[Notification] | None = None,
    ) -> list[Notification]:
        """Run the rule for one user.

        Args:
            db: Database session
            ctx: Run context
            user_id: User to evaluate
            created: List that each written notification is appended to as
                soon as it is committed. Callers pass one in to keep the
                count of earlier writes when a later candidate raises.

        Returns:
            Notifications created by this rule
        """
        if created is None:
            created = []
        service = NotificationService(db)
        for nudge in self.candidates(db, ctx, user_id):
            notification = self.emit(service, ctx, user_id, nudge)
            if notification is not None:
                created.append(notification)
        return created

    def emit(
        self,
        service: NotificationService,
        ctx: RunContext,
        user_id: str,
        nudge: Nudge,
    ) -> Notification | None:
        """Apply gating and duplicate suppression, then write the notification."""
        reason = self.suppression_reason(ctx, user_id, nudge)
        if reason:
            logger.debug(f"Suppressed {self.kind.value} for user {user_id} ({nudge.entity_id}): {reason}")
            return None

        if service.has_similar_notification(
            user_id,
            self.kind,
            nudge.dedupe_entity_id,
            ctx.config.window_hours(self.kind),
            now=ctx.naive_now,
        ):
            logger.debug(f"Duplicate {self.kind.value} for user {user_id} ({nudge.entity_id}) within window")
            return None

        notification = service.create_notification(
            user_id,
            self.kind,
            nudge.title,
            nudge.body,
            nudge.severity,
            entity_type=nudge.entity_type,
            entity_id=nudge.entity_id,
            action_url=nudge.action_url,
            created_at=ctx.naive_now,
        )
        if notification is not None:
            logger.info(
                f"Fired {self.kind.value} [{nudge.severity.value}] for user {user_id}: {nudge.title}"
            )
        return notification

    @staticmethod
    def suppression_reason(ctx: RunContext, user_id: str, nudge: Nudge) -> str | None:
        """Why the nudge must not be delivered, or None if it may."""
        settings = ctx.settings_by_user.get(user_id)
        if settings is not None and settings.is_muted(nudge.entity_type, nudge.entity_id):
            return "entity muted"
        if nudge.severity == NotificationSeverity.CRITICAL:
            return None
        if ctx.in_quiet_hours(user_id):
            return "quiet hours"
        if settings is not None and settings.critical_only:
            return "critical only"
        return None


class ProjectDeadlineRule(NudgeRule):
    """Active project with open tasks and a deadline within the horizon."""

    kind = RuleKind.PROJECT_DEADLINE

    def candidates(self, db: Session, ctx: RunContext, user_id: str) -> list[Nudge]:
        cfg = ctx.config
        open_tasks = func.count(Task.id)
        rows = (
            db.query(Project, open_tasks)
            .outerjoin(
                Task,
                and_(Task.project_id == Project.id, Task.status != TaskStatus.COMPLETED),
            )
            .filter(
                Project.user_id == user_id,
                Project.status == ProjectStatus.ACTIVE,
                Project.deadline.is_not(None),
            )
            .group_by(Project.id)
            .all()
        )

        nudges = []
        for project, open_count in rows:
            days_until = whole_days(project.deadline - ctx.naive_now)
            if not (0 <= days_until <= cfg.deadline_horizon_days) or open_count <= 0:
                continue

            severity = (
                NotificationSeverity.CRITICAL
                if days_until <= cfg.critical_deadline_days
                else NotificationSeverity.WARN
            )
            nudges.append(Nudge(
                title=f"Project deadline approaching: {project.name}",
                body=(
                    f"{plural(open_count, 'open task')} remaining. "
                    f"Deadline in {plural(days_until, 'day')}."
                ),
                severity=severity,
                entity_type="project",
                entity_id=str(project.id),
                action_url=f"/projects?id={project.id}",
                dedupe_entity_id=str(project.id),
            ))
        return nudges


class TaskOverdueRule(NudgeRule):
    """Pending task whose due date has passed."""

    kind = RuleKind.TASK_OVERDUE

    def candidates(self, db: Session, ctx: RunContext, user_id: str) -> list[Nudge]:
        now = ctx.naive_now
        tasks = (
            db.query(Task)
            .join(Task.project)
            .options(contains_eager(Task.project))
            .filter(
                Project.user_id == user_id,
                Task.status == TaskStatus.PENDING,
                Task.due_date.is_not(None),
                Task.due_date < now,
            )
            .order_by(Task.due_date.asc())
            .all()
        )

        nudges = []
        for task in tasks:
            hours_overdue = (now - task.due_date).total_seconds() / 3600
            if hours_overdue <= 0:
                continue

            # Exactly the threshold is still a warning
            severity = (
                NotificationSeverity.CRITICAL
                if hours_overdue > ctx.config.critical_overdue_hours
                else NotificationSeverity.WARN
            )
            days = int(hours_overdue // 24)
            project_name = task.project.name if task.project else "Unknown project"
            nudges.append(Nudge(
                title=f"Task overdue: {task.title}",
                body=f"This task is {days} days overdue in {project_name}.",
                severity=severity,
                entity_type="task",
                entity_id=str(task.id),
                action_url=f"/workflow?task={task.id}",
                dedupe_entity_id=str(task.id),
            ))
        return nudges


class ProjectStaleRule(NudgeRule):
    """Active project with no updates for several days."""

    kind = RuleKind.PROJECT_STALE

    def candidates(self, db: Session, ctx: RunContext, user_id: str) -> list[Nudge]:
        now = ctx.naive_now
        threshold = ctx.config.stale_after_days
        projects = (
            db.query(Project)
            .filter(
                Project.user_id == user_id,
                Project.status == ProjectStatus.ACTIVE,
                Project.updated_at <= now - timedelta(days=threshold),
            )
            .order_by(Project.updated_at.asc())
            .all()
        )

        nudges = []
        for project in projects:
            days_since = whole_days(now - project.updated_at)
            if days_since < threshold:
                continue
            nudges.append(Nudge(
                title=f"Inactive project: {project.name}",
                body=f"No activity in {plural(days_since, 'day')}. Consider updating or archiving.",
                severity=NotificationSeverity.INFO,
                entity_type="project",
                entity_id=str(project.id),
                action_url=f"/projects?id={project.id}",
                dedupe_entity_id=str(project.id),
            ))
        return nudges


class DailyFocusNudgeRule(NudgeRule):
    """Afternoon reminder when none of today's top actions have been started."""

    kind = RuleKind.DAILY_FOCUS_NUDGE

    def candidates(self, db: Session, ctx: RunContext, user_id: str) -> list[Nudge]:
        if not ctx.in_focus_window():
            return []

        plan = DailyFocusService(db).get_plan(user_id, ctx.local_today)
        if plan is None or not plan.actions:
            return []
        if any(action.is_started for action in plan.actions):
            return []

        count = len(plan.actions)
        return [Nudge(
            title="Today's top actions not started",
            body=f"You have {plural(count, 'priority action')} for today. Take a look!",
            severity=NotificationSeverity.INFO,
            entity_type="daily_focus",
            entity_id=str(plan.id),
            action_url="/dashboard",
            dedupe_entity_id=None,
        )]


class LowAlignmentRule(NudgeRule):
    """Recently added document that scored poorly against the user's principles."""

    kind = RuleKind.LOW_ALIGNMENT

    def candidates(self, db: Session, ctx: RunContext, user_id: str) -> list[Nudge]:
        cfg = ctx.config
        since = ctx.naive_now - timedelta(hours=cfg.low_alignment_lookback_hours)
        documents = (
            db.query(Document)
            .filter(
                Document.user_id == user_id,
                Document.principle_alignment_score < cfg.low_alignment_threshold,
                Document.user_override.is_(False),
                Document.created_at >= since,
            )
            .order_by(Document.created_at.desc())
            .all()
        )

        return [
            Nudge(
                title=f"Low alignment score: {doc.title}",
                body=(
                    f"This document has a {doc.principle_alignment_score}% alignment. "
                    f"Consider reviewing tags and links."
                ),
                severity=NotificationSeverity.INFO,
                entity_type="document",
                entity_id=str(doc.id),
                action_url=f"/library?doc={doc.id}",
                dedupe_entity_id=str(doc.id),
            )
            for doc in documents
        ]


RULES: dict[RuleKind, NudgeRule] = {
    RuleKind.PROJECT_DEADLINE: ProjectDeadlineRule(),
    RuleKind.TASK_OVERDUE: TaskOverdueRule(),
    RuleKind.PROJECT_STALE: ProjectStaleRule(),
    RuleKind.DAILY_FOCUS_NUDGE: DailyFocusNudgeRule(),
    RuleKind.LOW_ALIGNMENT: LowAlignmentRule(),
}

_missing = set(RuleKind) - set(RULES)
if _missing:
    raise RuntimeError(f"No nudge rule registered for: {', '.join(k.value for k in _missing)}")


def get_rule(kind: RuleKind) -> NudgeRule:
    """Get the rule implementation for a kind."""
    return RULES[kind]
