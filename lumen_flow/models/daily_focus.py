"""Daily focus plan and its trackable actions."""

import datetime as dt

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lumen_flow.models.database import Base


class DailyFocus(Base):
    """Generated plan of top actions for one user and one local day."""

    __tablename__ = "daily_focus"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_focus_user_date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    focus_theme: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    top_actions: Mapped[list[dict]] = mapped_column(JSON, default=list, nullable=False)

    generated_at: Mapped[dt.datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    actions: Mapped[list["FocusAction"]] = relationship(
        "FocusAction",
        back_populates="daily_focus",
        cascade="all, delete-orphan",
        order_by="FocusAction.action_id",
    )

    def __repr__(self) -> str:
        return f"<DailyFocus(id={self.id}, user_id={self.user_id}, date={self.date})>"


class FocusAction(Base):
    """One of the top actions of a daily focus plan, with its completion marker."""

    __tablename__ = "focus_actions"
    __table_args__ = (UniqueConstraint("daily_focus_id", "action_id", name="uq_focus_action_plan"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    daily_focus_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("daily_focus.id", ondelete="CASCADE"), nullable=False
    )

    # "<date>-<index>", unique within the plan
    action_id: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    priority_level: Mapped[str | None] = mapped_column(String(20), nullable=True)

    completed_at: Mapped[dt.datetime | None] = mapped_column(DateTime, nullable=True)
    deferred: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    ignored: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    daily_focus: Mapped[DailyFocus] = relationship("DailyFocus", back_populates="actions")

    @property
    def is_started(self) -> bool:
        return self.completed_at is not None

    def __repr__(self) -> str:
        return f"<FocusAction(action_id={self.action_id}, started={self.is_started})>"
