"""Pydantic models for per-item scheduling records."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from vocab_srs.core.config import settings


class MasteryLevel(str, Enum):
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"


class ReviewHistoryEntry(BaseModel):
    """One graded review, kept in the record's bounded history."""

    timestamp: datetime
    rating: int
    response_time_ms: int = 0


class SRSRecord(BaseModel):
    """Scheduling state of one item for one learner.

    Field types are enforced here; the scheduling invariants (easiness floor,
    due date consistency...) are checked by the review store when a snapshot
    is loaded, so a single broken row can be repaired instead of rejected.
    """

    model_config = ConfigDict(from_attributes=True)

    item_id: str
    repetition_count: int = 0
    easiness_factor: float = Field(default_factory=lambda: settings.DEFAULT_EASINESS_FACTOR)
    interval_days: int = 0
    last_reviewed_at: Optional[datetime] = None
    next_due_at: Optional[datetime] = None
    history: List[ReviewHistoryEntry] = Field(default_factory=list)

    total_reviews: int = 0
    retention_score: float = 100.0
    mastery_level: MasteryLevel = MasteryLevel.LEARNING
    created_at: Optional[datetime] = None

    @property
    def is_reviewed(self) -> bool:
        return self.last_reviewed_at is not None

    def is_due(self, now: datetime) -> bool:
        return self.next_due_at is not None and self.next_due_at <= now


class ReviewRequest(BaseModel):
    """Rating submitted by the presentation layer for one item."""

    item_id: str = Field(..., min_length=1)
    # Range is enforced by the scheduler so every entry point shares one check.
    rating: int
    response_time_ms: int = Field(default=0, ge=0)
    reviewed_at: Optional[datetime] = None


class DueQueueResponse(BaseModel):
    learner_id: str
    generated_at: datetime
    item_ids: List[str] = Field(default_factory=list)
    count: int = 0


class NextItemResponse(BaseModel):
    learner_id: str
    item_id: Optional[str] = None
    reason: str
