from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from vocab_srs.api.v1.dependencies import build_review_service, get_db
from vocab_srs.gamification.reward_rules import compute_level
from vocab_srs.schemas.gamification.reward_schema import (
    RewardCatalogResponse,
    RewardRead,
    RewardWithStatus,
)

router = APIRouter()


@router.get("", response_model=RewardCatalogResponse, summary="Liste des récompenses et progression")
def list_rewards(learner_id: str, db: Session = Depends(get_db)) -> RewardCatalogResponse:
    service = build_review_service(learner_id, db)
    state = service.goal_state()
    return RewardCatalogResponse(
        rewards=[
            RewardWithStatus(reward=RewardRead.model_validate(reward), is_unlocked=is_unlocked)
            for reward, is_unlocked in service.rewards.catalog(state.rewards_unlocked)
        ],
        streak_current=state.streak_current,
        experience_total=state.experience_total,
        level=compute_level(state.experience_total),
    )
