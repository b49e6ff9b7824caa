from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from vocab_srs.api.v1.dependencies import build_review_service, get_db
from vocab_srs.core.exceptions import SRSError
from vocab_srs.gamification.reward_rules import compute_level, xp_for_next_level
from vocab_srs.schemas.progress.goal_schema import GoalProgressResponse, GoalState, GoalTargetsUpdate
from vocab_srs.services.review_service import ReviewService

router = APIRouter()


def _progress_payload(service: ReviewService, state: GoalState) -> GoalProgressResponse:
    words_pct, time_pct = service.goals.progress_ratios()
    return GoalProgressResponse(
        goal_state=state,
        words_progress_pct=words_pct,
        time_progress_pct=time_pct,
        level=compute_level(state.experience_total),
        xp_for_next_level=xp_for_next_level(state.experience_total),
    )


@router.get("", response_model=GoalProgressResponse, summary="Objectifs du jour et progression")
def get_goals(learner_id: str, db: Session = Depends(get_db)) -> GoalProgressResponse:
    service = build_review_service(learner_id, db)
    return _progress_payload(service, service.goal_state())


@router.put("/targets", response_model=GoalProgressResponse, summary="Modifie les objectifs quotidiens")
def update_targets(
    learner_id: str,
    payload: GoalTargetsUpdate,
    db: Session = Depends(get_db),
) -> GoalProgressResponse:
    service = build_review_service(learner_id, db)
    try:
        state = service.update_targets(payload.words_target, payload.time_target_seconds)
    except SRSError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.code) from exc
    return _progress_payload(service, state)
