from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class RewardRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    threshold_type: str
    threshold_value: int
    title: str
    description: str
    icon: Optional[str] = None


class RewardWithStatus(BaseModel):
    reward: RewardRead
    is_unlocked: bool


class RewardCatalogResponse(BaseModel):
    rewards: List[RewardWithStatus]
    streak_current: int
    experience_total: int
    level: int
