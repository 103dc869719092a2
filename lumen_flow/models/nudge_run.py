"""Run log of nudge evaluator passes."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from lumen_flow.models.database import Base


class NudgeRun(Base):
    """One evaluator pass across all users."""

    __tablename__ = "nudge_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    finished_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    users_checked: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notifications_created: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    errors: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    deadline_exceeded: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # JSON: created counts per rule and error descriptions
    details: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def __repr__(self) -> str:
        return f"<NudgeRun(id={self.id}, created={self.notifications_created}, errors={self.errors})>"
