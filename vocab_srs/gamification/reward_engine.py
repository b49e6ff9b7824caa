from __future__ import annotations

import logging
from collections.abc import MutableSequence, MutableSet
from typing import List, Optional, Sequence, Union

from vocab_srs.gamification.reward_rules import (
    EXPERIENCE,
    STREAK,
    RewardDefinition,
    build_reward_ladder,
)

logger = logging.getLogger(__name__)

Unlocked = Union[MutableSet[str], MutableSequence[str]]


def _insert(unlocked: Unlocked, reward_id: str) -> None:
    if isinstance(unlocked, MutableSet):
        unlocked.add(reward_id)
    else:
        unlocked.append(reward_id)


class RewardEngine:
    """Check-and-insert evaluator over a fixed reward ladder.

    The engine holds no per-learner state: ``already_unlocked`` is the only
    memory of what was emitted, and every emitted id is inserted into it, so
    an id can be returned at most once for the lifetime of that collection.
    """

    def __init__(self, ladder: Optional[Sequence[RewardDefinition]] = None):
        ladder = list(build_reward_ladder() if ladder is None else ladder)
        streaks = sorted((r for r in ladder if r.threshold_type == STREAK), key=lambda r: r.threshold_value)
        points = sorted((r for r in ladder if r.threshold_type == EXPERIENCE), key=lambda r: r.threshold_value)
        self.ladder: List[RewardDefinition] = streaks + points

    def evaluate(
        self,
        streak_current: int,
        experience_total: int,
        already_unlocked: Unlocked,
    ) -> List[RewardDefinition]:
        unlocked_now: List[RewardDefinition] = []
        for reward in self.ladder:
            reached = streak_current if reward.threshold_type == STREAK else experience_total
            if reached < reward.threshold_value or reward.id in already_unlocked:
                continue
            _insert(already_unlocked, reward.id)
            unlocked_now.append(reward)
            logger.info("Récompense débloquée: %s (%s)", reward.id, reward.title)
        return unlocked_now

    def catalog(self, already_unlocked: Sequence[str]) -> List[tuple[RewardDefinition, bool]]:
        unlocked = set(already_unlocked)
        return [(reward, reward.id in unlocked) for reward in self.ladder]
