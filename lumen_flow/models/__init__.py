"""Data models."""

from lumen_flow.models.daily_focus import DailyFocus, FocusAction
from lumen_flow.models.database import Base, get_db, get_db_session, init_db
from lumen_flow.models.document import Document
from lumen_flow.models.notification import Notification
from lumen_flow.models.notification_settings import MUTABLE_ENTITY_TYPES, NotificationSettings
from lumen_flow.models.nudge_run import NudgeRun
from lumen_flow.models.project import Project, ProjectPriority, ProjectStatus
from lumen_flow.models.task import Task, TaskPriority, TaskStatus
from lumen_flow.nudges.kinds import NotificationSeverity, RuleKind

__all__ = [
    "Base",
    "DailyFocus",
    "Document",
    "FocusAction",
    "MUTABLE_ENTITY_TYPES",
    "Notification",
    "NotificationSettings",
    "NotificationSeverity",
    "NudgeRun",
    "Project",
    "ProjectPriority",
    "ProjectStatus",
    "RuleKind",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "get_db",
    "get_db_session",
    "init_db",
]
