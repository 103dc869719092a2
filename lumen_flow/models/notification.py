"""Notification model for alerts emitted by the nudge evaluator."""

from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from lumen_flow.models.database import Base
from lumen_flow.nudges.kinds import NotificationSeverity


class Notification(Base):
    """An in-app notification owned by a single user."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("notifications_user_created_idx", "user_id", "created_at"),
        Index("notifications_dedupe_idx", "user_id", "type", "entity_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # Rule kind that produced the notification (free-form tag in storage)
    type: Mapped[str] = mapped_column(String(50), nullable=False)

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[NotificationSeverity] = mapped_column(
        Enum(NotificationSeverity), nullable=False
    )

    # Subject the notification is about (project, task, document, daily_focus)
    entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    action_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    read_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    @property
    def is_read(self) -> bool:
        return self.read_at is not None

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, type={self.type}, severity={self.severity.value}, read={self.is_read})>"
