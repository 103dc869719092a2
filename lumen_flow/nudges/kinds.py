"""Closed sets of rule kinds and severities used by the nudge evaluator."""

import enum


class RuleKind(str, enum.Enum):
    """Kind of nudge rule. The value is stored as the notification type."""

    PROJECT_DEADLINE = "project_deadline"
    TASK_OVERDUE = "task_overdue"
    PROJECT_STALE = "project_stale"
    DAILY_FOCUS_NUDGE = "daily_focus_nudge"
    LOW_ALIGNMENT = "doc_low_alignment"


class NotificationSeverity(str, enum.Enum):
    """Severity of an emitted notification."""

    INFO = "info"
    WARN = "warn"
    CRITICAL = "critical"


DEFAULT_SUPPRESSION_WINDOWS: dict[RuleKind, int] = {
    RuleKind.PROJECT_DEADLINE: 6,
    RuleKind.TASK_OVERDUE: 6,
    RuleKind.PROJECT_STALE: 24,
    RuleKind.DAILY_FOCUS_NUDGE: 6,
    RuleKind.LOW_ALIGNMENT: 24,
}
