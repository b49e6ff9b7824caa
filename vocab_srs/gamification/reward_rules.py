"""
Définition centralisée des paliers de récompenses (séries et expérience).

Les paliers sont construits une fois à partir de la configuration
(STREAK_MILESTONES / EXPERIENCE_MILESTONES) ; les identifiants suivent le
format ``streak_<n>`` / ``xp_<n>`` qui est persisté dans
``GoalState.rewards_unlocked``.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from vocab_srs.core.config import settings

STREAK = "streak"
EXPERIENCE = "experience"

XP_PER_LEVEL_UNIT = 100


@dataclass(frozen=True)
class RewardDefinition:
    id: str
    threshold_type: str
    threshold_value: int
    title: str
    description: str
    icon: Optional[str] = None


# Titres connus par palier; les paliers ajoutés via la config reçoivent un titre générique.
STREAK_TITLES: Dict[int, Tuple[str, str]] = {
    3: ("Getting Started", "fire"),
    7: ("Week Warrior", "whatshot"),
    14: ("Fortnight Scholar", "calendar"),
    30: ("Monthly Devotee", "star"),
    50: ("Persistent Learner", "medal"),
    100: ("Centurion", "trophy"),
    365: ("Year of Study", "crown"),
}

EXPERIENCE_TITLES: Dict[int, Tuple[str, str]] = {
    100: ("First Steps", "sparkle"),
    500: ("Apprentice", "book"),
    1000: ("Scholar", "scroll"),
    2500: ("Expert", "laurel"),
    5000: ("Master", "crown"),
}


def streak_reward(days: int) -> RewardDefinition:
    title, icon = STREAK_TITLES.get(days, (f"{days}-Day Streak", "fire"))
    return RewardDefinition(
        id=f"streak_{days}",
        threshold_type=STREAK,
        threshold_value=days,
        title=title,
        description=f"Study {days} days in a row",
        icon=icon,
    )


def experience_reward(points: int) -> RewardDefinition:
    title, icon = EXPERIENCE_TITLES.get(points, (f"{points} XP", "sparkle"))
    return RewardDefinition(
        id=f"xp_{points}",
        threshold_type=EXPERIENCE,
        threshold_value=points,
        title=title,
        description=f"Earn {points} experience points",
        icon=icon,
    )


def build_reward_ladder(
    streak_milestones: Optional[Iterable[int]] = None,
    experience_milestones: Optional[Iterable[int]] = None,
) -> List[RewardDefinition]:
    """Streak ladder first, then experience ladder, each ascending."""
    streaks = sorted(set(settings.STREAK_MILESTONES if streak_milestones is None else streak_milestones))
    points = sorted(
        set(settings.EXPERIENCE_MILESTONES if experience_milestones is None else experience_milestones)
    )
    return [streak_reward(days) for days in streaks] + [experience_reward(xp) for xp in points]


def compute_level(experience_total: int) -> int:
    """``floor(sqrt(xp / 100)) + 1``; a fresh learner is level 1."""
    return int(math.floor(math.sqrt(max(experience_total, 0) / XP_PER_LEVEL_UNIT))) + 1


def xp_for_next_level(experience_total: int) -> int:
    """Total XP at which the learner reaches the level after the current one."""
    level = compute_level(experience_total)
    return level * level * XP_PER_LEVEL_UNIT
