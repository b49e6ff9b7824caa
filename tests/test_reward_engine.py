import pytest

from vocab_srs.gamification.reward_engine import RewardEngine
from vocab_srs.gamification.reward_rules import (
    build_reward_ladder,
    compute_level,
    xp_for_next_level,
)


@pytest.fixture()
def engine():
    return RewardEngine()


def test_default_ladder_ids_and_order():
    ids = [reward.id for reward in build_reward_ladder()]
    assert ids == [
        "streak_3",
        "streak_7",
        "streak_14",
        "streak_30",
        "streak_50",
        "streak_100",
        "streak_365",
        "xp_100",
        "xp_500",
        "xp_1000",
        "xp_2500",
        "xp_5000",
    ]


def test_streak_reward_is_emitted_exactly_once(engine):
    unlocked: set[str] = set()

    first = engine.evaluate(3, 0, unlocked)
    assert [reward.id for reward in first] == ["streak_3"]
    assert unlocked == {"streak_3"}

    for _ in range(5):
        assert engine.evaluate(3, 0, unlocked) == []


def test_several_thresholds_unlock_together_in_ladder_order(engine):
    unlocked: list[str] = []
    rewards = engine.evaluate(8, 650, unlocked)
    assert [reward.id for reward in rewards] == ["streak_3", "streak_7", "xp_100", "xp_500"]
    assert unlocked == ["streak_3", "streak_7", "xp_100", "xp_500"]


def test_already_unlocked_ids_are_skipped(engine):
    unlocked = ["streak_3", "xp_100"]
    rewards = engine.evaluate(7, 100, unlocked)
    assert [reward.id for reward in rewards] == ["streak_7"]


def test_nothing_below_thresholds(engine):
    unlocked: set[str] = set()
    assert engine.evaluate(2, 99, unlocked) == []
    assert unlocked == set()


def test_custom_ladder():
    engine = RewardEngine(build_reward_ladder([2], [10]))
    rewards = engine.evaluate(2, 10, set())
    assert [(r.id, r.threshold_type, r.threshold_value) for r in rewards] == [
        ("streak_2", "streak", 2),
        ("xp_10", "experience", 10),
    ]
    assert rewards[0].title == "2-Day Streak"


def test_catalog_marks_unlocked_rewards(engine):
    catalog = dict((reward.id, flag) for reward, flag in engine.catalog(["streak_3"]))
    assert catalog["streak_3"] is True
    assert catalog["xp_100"] is False


@pytest.mark.parametrize(
    "xp,level,next_threshold",
    [(0, 1, 100), (99, 1, 100), (100, 2, 400), (399, 2, 400), (400, 3, 900), (2500, 6, 3600)],
)
def test_levels(xp, level, next_threshold):
    assert compute_level(xp) == level
    assert xp_for_next_level(xp) == next_threshold
