"""Daily goals, day rollover and the day streak."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from vocab_srs.core.config import settings
from vocab_srs.core.exceptions import ClockSkewError
from vocab_srs.schemas.progress.goal_schema import GoalState
from vocab_srs.utils.date_utils import day_key, previous_day_key, utcnow

logger = logging.getLogger(__name__)

DAILY_COUNTERS = {
    "words_reviewed_today": 0,
    "time_spent_today_seconds": 0.0,
    "correct_today": 0,
    "answered_today": 0,
    "accuracy_today": 0.0,
    "goals_completed_today": False,
}


def new_goal_state(today: str) -> GoalState:
    return GoalState(date_key=today)


def rollover(state: GoalState, today: str) -> GoalState:
    """Move ``state`` to ``today``: zero the daily counters, keep the rest."""
    return state.model_copy(update={"date_key": today, **DAILY_COUNTERS})


def next_streak(state: GoalState, today: str, reset_on_missed_day: bool) -> Tuple[int, int]:
    """Streak values after a first activity on ``today``."""

    last = state.last_study_date
    if last is not None and last >= today:
        return state.streak_current, state.streak_best

    if last is None or state.streak_current <= 0:
        current = 1
    elif last == previous_day_key(today) or not reset_on_missed_day:
        current = state.streak_current + 1
    else:
        current = 1
    return current, max(state.streak_best, current)


def goals_met(state: GoalState) -> bool:
    return (
        state.words_reviewed_today >= state.words_target
        and state.time_spent_today_seconds >= state.time_target_seconds
    )


class GoalTracker:
    """Holds the learner's :class:`GoalState` for the current calendar day.

    Day boundaries are computed in ``settings.DAY_BOUNDARY_TIMEZONE``.
    ``preview_progress`` and ``apply`` split ``record_progress`` in two so the
    new state can be persisted before it becomes visible.
    """

    def __init__(
        self,
        state: Optional[GoalState] = None,
        tz_name: Optional[str] = None,
        reset_on_missed_day: Optional[bool] = None,
    ):
        self.tz_name = tz_name
        self.reset_on_missed_day = (
            settings.STREAK_RESET_ON_MISSED_DAY if reset_on_missed_day is None else reset_on_missed_day
        )
        self.state: GoalState = state or new_goal_state(day_key(utcnow(), tz_name))
        self.anomalies: List[ClockSkewError] = []

    def _today(self, now: Optional[datetime]) -> str:
        return day_key(now or utcnow(), self.tz_name)

    def _rolled(self, state: GoalState, today: str) -> GoalState:
        # A stored day ahead of today (clock skew) is kept as is.
        if state.date_key < today:
            logger.info("Changement de jour %s -> %s, compteurs remis à zéro.", state.date_key, today)
            return rollover(state, today)
        return state

    # ------------------------------------------------------------------
    # Chargement
    # ------------------------------------------------------------------
    def load(self, state: Optional[GoalState], now: Optional[datetime] = None) -> GoalState:
        """Adopt ``state`` for the day of ``now``.

        Clock skew is reported here only, once per load; previews never
        touch ``anomalies``.
        """
        today = self._today(now)
        self.anomalies = []
        if state is None:
            self.state = new_goal_state(today)
            return self.state.model_copy(deep=True)

        if state.date_key > today:
            anomaly = ClockSkewError(state.date_key, today)
            self.anomalies.append(anomaly)
            logger.warning("Décalage d'horloge détecté: %s", anomaly)
        self.state = self._rolled(state.model_copy(deep=True), today)
        return self.state.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------
    def preview_progress(
        self,
        words_delta: int,
        time_delta_seconds: float,
        was_correct: bool,
        now: Optional[datetime] = None,
        experience_delta: int = 0,
    ) -> GoalState:
        if words_delta < 0 or time_delta_seconds < 0 or experience_delta < 0:
            raise ValueError("progress deltas must be >= 0")

        today = self._today(now)
        state = self._rolled(self.state.model_copy(deep=True), today)

        streak_current, streak_best = next_streak(state, today, self.reset_on_missed_day)
        last_study_date = state.last_study_date if (state.last_study_date or "") > today else today

        words = state.words_reviewed_today + words_delta
        answered = state.answered_today + (1 if words_delta > 0 else 0)
        correct = state.correct_today + (1 if was_correct and words_delta > 0 else 0)

        updated = state.model_copy(
            update={
                "words_reviewed_today": words,
                "time_spent_today_seconds": state.time_spent_today_seconds + time_delta_seconds,
                "answered_today": answered,
                "correct_today": correct,
                "accuracy_today": (correct / answered * 100) if answered else 0.0,
                "streak_current": streak_current,
                "streak_best": streak_best,
                "last_study_date": last_study_date,
                "experience_total": state.experience_total + experience_delta,
            }
        )
        if not updated.goals_completed_today and goals_met(updated):
            updated.goals_completed_today = True
            logger.info("Objectifs du jour atteints (%s).", today)
        return updated

    def apply(self, state: GoalState) -> GoalState:
        self.state = state.model_copy(deep=True)
        return self.state.model_copy(deep=True)

    def record_progress(
        self,
        words_delta: int,
        time_delta_seconds: float,
        was_correct: bool,
        now: Optional[datetime] = None,
        experience_delta: int = 0,
    ) -> GoalState:
        return self.apply(
            self.preview_progress(words_delta, time_delta_seconds, was_correct, now, experience_delta)
        )

    def update_targets(self, words_target: int, time_target_seconds: int) -> GoalState:
        if words_target < 1 or time_target_seconds < 0:
            raise ValueError("words_target must be >= 1 and time_target_seconds >= 0")
        updated = self.state.model_copy(
            update={"words_target": words_target, "time_target_seconds": time_target_seconds}
        )
        # Raising a target later in the day does not revoke a completed goal.
        if goals_met(updated):
            updated.goals_completed_today = True
        self.state = updated
        return self.state.model_copy(deep=True)

    def progress_ratios(self) -> Tuple[float, float]:
        """Words and time progress in percent, capped at 100."""
        state = self.state
        words_pct = min(100.0, state.words_reviewed_today / state.words_target * 100)
        if state.time_target_seconds <= 0:
            time_pct = 100.0
        else:
            time_pct = min(100.0, state.time_spent_today_seconds / state.time_target_seconds * 100)
        return words_pct, time_pct
