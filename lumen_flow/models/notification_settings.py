"""Per-user notification preferences."""

from datetime import datetime, time

from sqlalchemy import JSON, Boolean, DateTime, String, Time, func
from sqlalchemy.orm import Mapped, mapped_column

from lumen_flow.models.database import Base

MUTABLE_ENTITY_TYPES = ("project", "task", "document", "daily_focus")


class NotificationSettings(Base):
    """Notification settings, one row per user, created with defaults on first access."""

    __tablename__ = "notification_settings"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    quiet_hours_start: Mapped[time | None] = mapped_column(Time, default=time(21, 0), nullable=True)
    quiet_hours_end: Mapped[time | None] = mapped_column(Time, default=time(8, 0), nullable=True)

    # Delivery channels
    channel_inapp: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    channel_email: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    channel_slack: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    channel_discord: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    digest_daily: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    digest_time: Mapped[time] = mapped_column(Time, default=time(8, 30), nullable=False)

    nudges_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    critical_only: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # List of {"type": ..., "id": ...} references the user has muted
    muted_entities: Mapped[list[dict[str, str]]] = mapped_column(JSON, default=list, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def is_muted(self, entity_type: str | None, entity_id: str | None) -> bool:
        """Check whether an entity reference is in the muted list."""
        if not entity_type or not entity_id or not self.muted_entities:
            return False
        return any(
            m.get("type") == entity_type and str(m.get("id")) == str(entity_id)
            for m in self.muted_entities
        )

    def __repr__(self) -> str:
        return f"<NotificationSettings(user_id={self.user_id}, nudges={self.nudges_enabled}, critical_only={self.critical_only})>"
