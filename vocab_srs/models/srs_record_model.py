"""SRS scheduling data per learner and item."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vocab_srs.db.base_class import Base

if TYPE_CHECKING:
    from .learner_model import Learner


class SRSRecordRow(Base):
    """Stores the spaced-repetition state of one item for one learner."""

    __tablename__ = "srs_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    learner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("learners.id", ondelete="CASCADE"), index=True
    )
    item_id: Mapped[str] = mapped_column(String(255), index=True)

    repetition_count: Mapped[int] = mapped_column(Integer, default=0)
    easiness_factor: Mapped[float] = mapped_column(Float, default=2.5)
    interval_days: Mapped[int] = mapped_column(Integer, default=0)
    last_reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    next_due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True)
    # Derniers passages, du plus ancien au plus récent.
    history: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)

    total_reviews: Mapped[int] = mapped_column(Integer, default=0)
    retention_score: Mapped[float] = mapped_column(Float, default=100.0)
    mastery_level: Mapped[str] = mapped_column(String(20), default="learning")

    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    learner: Mapped["Learner"] = relationship(back_populates="records")

    __table_args__ = (
        UniqueConstraint("learner_id", "item_id", name="uq_learner_item_record"),
    )


__all__ = ["SRSRecordRow"]
