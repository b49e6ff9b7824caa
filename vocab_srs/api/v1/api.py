# Fichier: vocab_srs/api/v1/api.py
from fastapi import APIRouter

from .endpoints import goals_router, rewards_router, srs_router

LEARNER_PREFIX = "/learners/{learner_id}"

api_router = APIRouter()

api_router.include_router(srs_router.router, prefix=LEARNER_PREFIX, tags=["SRS"])
api_router.include_router(goals_router.router, prefix=f"{LEARNER_PREFIX}/goals", tags=["Goals"])
api_router.include_router(rewards_router.router, prefix=f"{LEARNER_PREFIX}/rewards", tags=["Rewards"])
