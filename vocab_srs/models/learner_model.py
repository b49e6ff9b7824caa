from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vocab_srs.db.base_class import Base

if TYPE_CHECKING:
    from .goal_state_model import GoalStateRow
    from .srs_record_model import SRSRecordRow


class Learner(Base):
    """Apprenant identifié par un identifiant externe opaque."""

    __tablename__ = "learners"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    external_id: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    records: Mapped[List["SRSRecordRow"]] = relationship(
        back_populates="learner", cascade="all, delete-orphan"
    )
    goal_state: Mapped[Optional["GoalStateRow"]] = relationship(
        back_populates="learner", cascade="all, delete-orphan", uselist=False
    )


__all__ = ["Learner"]
