from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vocab_srs.db.base_class import Base

if TYPE_CHECKING:
    from .learner_model import Learner


class GoalStateRow(Base):
    """Objectifs quotidiens, série de jours et récompenses d'un apprenant."""

    __tablename__ = "goal_states"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    learner_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("learners.id", ondelete="CASCADE"), unique=True, index=True
    )

    date_key: Mapped[str] = mapped_column(String(10))
    words_target: Mapped[int] = mapped_column(Integer, default=20)
    time_target_seconds: Mapped[int] = mapped_column(Integer, default=900)

    words_reviewed_today: Mapped[int] = mapped_column(Integer, default=0)
    time_spent_today_seconds: Mapped[float] = mapped_column(Float, default=0.0)
    correct_today: Mapped[int] = mapped_column(Integer, default=0)
    answered_today: Mapped[int] = mapped_column(Integer, default=0)
    accuracy_today: Mapped[float] = mapped_column(Float, default=0.0)
    goals_completed_today: Mapped[bool] = mapped_column(Boolean, default=False)

    streak_current: Mapped[int] = mapped_column(Integer, default=0)
    streak_best: Mapped[int] = mapped_column(Integer, default=0)
    last_study_date: Mapped[str | None] = mapped_column(String(10))
    experience_total: Mapped[int] = mapped_column(Integer, default=0)
    rewards_unlocked: Mapped[list[str]] = mapped_column(JSON, default=list)

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    learner: Mapped["Learner"] = relationship(back_populates="goal_state")


__all__ = ["GoalStateRow"]
