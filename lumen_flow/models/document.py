"""Document model (library items scored against the user's principles)."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from lumen_flow.models.database import Base


class Document(Base):
    """A stored document with its AI principle-alignment score."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)

    # 0-100, produced by the categorizer; null until scored
    principle_alignment_score: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Set when the user replaced the AI's categorization
    user_override: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Document(id={self.id}, title='{self.title[:30]}', score={self.principle_alignment_score})>"
