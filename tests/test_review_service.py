import threading
from datetime import timedelta

import pytest

from vocab_srs.core.exceptions import InvalidRatingError, PersistenceWriteFailure
from vocab_srs.schemas.progress.goal_schema import GoalState
from vocab_srs.schemas.srs.snapshot_schema import LearnerSnapshot
from vocab_srs.services.review_service import LearnerLockRegistry, ReviewService
from tests.utils import FailingGateway, make_record


def _service(gateway, locks, now, learner_id="learner-1"):
    return ReviewService.for_learner(learner_id, gateway, now=now, locks=locks)


def test_submit_review_runs_the_whole_pipeline(gateway, locks, now):
    service = _service(gateway, locks, now)

    outcome = service.submit_review("amicus", 4, 2000, now)

    assert outcome.record.repetition_count == 1
    assert outcome.record.next_due_at == now + timedelta(days=1)
    assert outcome.session.correct_count == 1
    assert outcome.session.experience_gained == 40
    assert outcome.goal_state.words_reviewed_today == 1
    assert outcome.goal_state.time_spent_today_seconds == pytest.approx(2.0)
    assert outcome.goal_state.experience_total == 40
    assert outcome.goal_state.streak_current == 1
    assert outcome.new_rewards == []

    stored = gateway.load("learner-1")
    assert stored.records["amicus"] == outcome.record
    assert stored.goal_state == outcome.goal_state
    assert gateway.save_count == 1


def test_experience_milestone_unlocks_once_and_is_persisted(gateway, locks, now):
    service = _service(gateway, locks, now)
    service.submit_review("amicus", 5, 0, now)
    outcome = service.submit_review("bellum", 5, 0, now)

    assert [reward.id for reward in outcome.new_rewards] == ["xp_100"]
    assert "xp_100" in gateway.load("learner-1").goal_state.rewards_unlocked

    outcome = service.submit_review("civis", 5, 0, now)
    assert outcome.new_rewards == []


def test_day_streak_reward_across_three_days(gateway, locks, now):
    service = _service(gateway, locks, now)
    unlocked = []
    for offset in range(3):
        outcome = service.submit_review(f"word-{offset}", 3, 0, now + timedelta(days=offset))
        unlocked.extend(reward.id for reward in outcome.new_rewards)
    assert "streak_3" in unlocked
    assert outcome.goal_state.streak_current == 3


def test_invalid_rating_changes_nothing(gateway, locks, now):
    service = _service(gateway, locks, now)
    with pytest.raises(InvalidRatingError):
        service.submit_review("amicus", 6, 0, now)

    assert service.session_summary().answers == 0
    assert service.goals.state.words_reviewed_today == 0
    assert gateway.save_count == 0


def test_write_failure_leaves_every_component_unchanged(locks, now):
    gateway = FailingGateway(failures=1)
    service = _service(gateway, locks, now)

    with pytest.raises(PersistenceWriteFailure):
        service.submit_review("amicus", 5, 1000, now)

    assert "amicus" not in service.store
    assert service.session_summary().answers == 0
    assert service.goals.state.words_reviewed_today == 0
    assert service.goals.state.experience_total == 0

    outcome = service.submit_review("amicus", 5, 1000, now)
    assert outcome.record.repetition_count == 1
    assert outcome.session.answers == 1


def test_reload_restores_records_and_goals(gateway, locks, now):
    first = _service(gateway, locks, now)
    first.submit_review("amicus", 4, 0, now)

    second = _service(gateway, locks, now)
    assert second.get_record("amicus").repetition_count == 1
    assert second.goal_state(now).words_reviewed_today == 1
    assert second.due_items(now + timedelta(days=1)) == ["amicus"]


def test_anomalies_are_collected_on_load(gateway, locks, now):
    gateway.save(
        "learner-1",
        LearnerSnapshot(
            records={"bellum": make_record("bellum", reviewed_at=now, easiness_factor=0.9)},
            goal_state=GoalState(date_key="2024-03-15"),
        ),
    )
    service = _service(gateway, locks, now)
    assert sorted(anomaly.code for anomaly in service.anomalies) == ["clock_skew", "corrupt_record"]


def test_update_targets_is_persisted(gateway, locks, now):
    service = _service(gateway, locks, now)
    state = service.update_targets(5, 300)
    assert state.words_target == 5
    assert gateway.load("learner-1").goal_state.time_target_seconds == 300


def test_next_item_reports_reason(gateway, locks, now):
    service = _service(gateway, locks, now)
    assert service.next_item(["amicus"], now) == ("amicus", "new")


def test_lock_registry_hands_out_one_lock_per_learner():
    registry = LearnerLockRegistry()
    assert registry.get("a") is registry.get("a")
    assert registry.get("a") is not registry.get("b")


def test_concurrent_reviews_for_one_learner_are_not_lost(gateway, locks, now):
    service = _service(gateway, locks, now)
    items = [f"word-{index}" for index in range(20)]

    threads = [
        threading.Thread(target=service.submit_review, args=(item, 4, 100, now))
        for item in items
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert service.session_summary().answers == 20
    assert service.goals.state.words_reviewed_today == 20
    stored = gateway.load("learner-1")
    assert sorted(stored.records) == sorted(items)
    assert stored.goal_state.words_reviewed_today == 20


def test_services_built_before_either_submits_do_not_lose_updates(gateway, locks, now):
    first = _service(gateway, locks, now)
    second = _service(gateway, locks, now)

    first.submit_review("amicus", 5, 0, now)
    second.submit_review("bellum", 5, 0, now)

    stored = gateway.load("learner-1")
    assert sorted(stored.records) == ["amicus", "bellum"]
    assert stored.goal_state.words_reviewed_today == 2
    assert stored.goal_state.experience_total == 100
    assert stored.goal_state.rewards_unlocked == ["xp_100"]


def test_same_item_from_two_stale_services_counts_both_reviews(gateway, locks, now):
    first = _service(gateway, locks, now)
    second = _service(gateway, locks, now)

    first.submit_review("amicus", 4, 0, now)
    outcome = second.submit_review("amicus", 4, 0, now + timedelta(days=1))

    assert outcome.record.total_reviews == 2
    assert outcome.record.repetition_count == 2
    assert len(gateway.load("learner-1").records["amicus"].history) == 2


def test_update_targets_keeps_progress_written_by_another_service(gateway, locks, now):
    reviewer = _service(gateway, locks, now)
    editor = _service(gateway, locks, now)

    reviewer.submit_review("amicus", 4, 0, now)
    state = editor.update_targets(5, 300, now)

    assert state.words_reviewed_today == 1
    assert gateway.load("learner-1").goal_state.words_reviewed_today == 1
