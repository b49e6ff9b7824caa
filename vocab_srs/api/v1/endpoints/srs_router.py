"""Review submission, due queue and session endpoints."""

import random
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from vocab_srs.api.v1.dependencies import build_review_service, get_db, session_registry
from vocab_srs.core.exceptions import SRSError
from vocab_srs.schemas.progress.goal_schema import SessionSummary
from vocab_srs.schemas.srs.snapshot_schema import ReviewOutcome
from vocab_srs.schemas.srs.srs_schema import (
    DueQueueResponse,
    NextItemResponse,
    ReviewRequest,
    SRSRecord,
)
from vocab_srs.utils.date_utils import utcnow

router = APIRouter()


@router.post("/reviews", response_model=ReviewOutcome, summary="Enregistre une réponse notée de 0 à 5")
def submit_review(
    learner_id: str,
    payload: ReviewRequest,
    db: Session = Depends(get_db),
) -> ReviewOutcome:
    service = build_review_service(learner_id, db)
    try:
        return service.submit_review(
            payload.item_id,
            payload.rating,
            payload.response_time_ms,
            now=payload.reviewed_at,
        )
    except SRSError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc


@router.get("/due", response_model=DueQueueResponse, summary="Items à réviser, les plus en retard d'abord")
def get_due_items(learner_id: str, db: Session = Depends(get_db)) -> DueQueueResponse:
    service = build_review_service(learner_id, db)
    now = utcnow()
    item_ids = service.due_items(now)
    return DueQueueResponse(learner_id=learner_id, generated_at=now, item_ids=item_ids, count=len(item_ids))


@router.get("/next", response_model=NextItemResponse, summary="Prochain item à présenter")
def get_next_item(
    learner_id: str,
    candidates: List[str] = Query(default=[]),
    seed: Optional[int] = None,
    db: Session = Depends(get_db),
) -> NextItemResponse:
    service = build_review_service(learner_id, db)
    rng = random.Random(seed) if seed is not None else None
    item_id, reason = service.next_item(candidates, rng=rng)
    return NextItemResponse(learner_id=learner_id, item_id=item_id, reason=reason)


@router.get("/records/{item_id}", response_model=SRSRecord)
def get_record(learner_id: str, item_id: str, db: Session = Depends(get_db)) -> SRSRecord:
    return build_review_service(learner_id, db).get_record(item_id)


@router.get("/session", response_model=SessionSummary)
def get_session(learner_id: str) -> SessionSummary:
    return session_registry.get(learner_id).summary()


@router.post("/session/reset", response_model=SessionSummary)
def reset_session(learner_id: str) -> SessionSummary:
    return session_registry.get(learner_id).reset()
