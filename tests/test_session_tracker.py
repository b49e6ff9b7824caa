import pytest

from vocab_srs.core.exceptions import InvalidRatingError
from vocab_srs.services.session_tracker import SessionTracker


def test_correct_and_incorrect_answers_are_counted():
    tracker = SessionTracker()
    tracker.record_answer(4, 1000)
    tracker.record_answer(1, 3000)
    summary = tracker.record_answer(3, 2000)

    assert summary.correct_count == 2
    assert summary.incorrect_count == 1
    assert summary.current_streak == 1
    assert summary.answers == 3
    assert summary.accuracy == pytest.approx(200 / 3)
    assert summary.average_response_time_ms == pytest.approx(2000)


def test_experience_includes_streak_bonus_from_fifth_success():
    tracker = SessionTracker()
    gains = [tracker.record_answer(5, 0).experience_gained for _ in range(6)]

    assert gains == [50, 50, 50, 50, 75, 75]
    assert tracker.summary().experience_points == 350


def test_failure_resets_streak_and_bonus():
    tracker = SessionTracker()
    for _ in range(5):
        tracker.record_answer(4, 0)
    summary = tracker.record_answer(2, 0)
    assert summary.current_streak == 0
    assert summary.experience_gained == 20


def test_performance_trend_keeps_last_ten_ratings():
    tracker = SessionTracker()
    ratings = [0, 1, 2, 3, 4, 5, 0, 1, 2, 3, 4, 5]
    for rating in ratings:
        summary = tracker.record_answer(rating, 10)
    assert summary.performance_trend == ratings[-10:]


def test_items_studied_counts_distinct_items():
    tracker = SessionTracker()
    tracker.record_answer(4, 0, item_id="amicus")
    tracker.record_answer(2, 0, item_id="amicus")
    summary = tracker.record_answer(5, 0, item_id="bellum")
    assert summary.items_studied == 2


def test_invalid_rating_does_not_touch_counters():
    tracker = SessionTracker()
    tracker.record_answer(4, 500)
    with pytest.raises(InvalidRatingError):
        tracker.record_answer(9, 500)
    summary = tracker.summary()
    assert summary.answers == 1
    assert summary.experience_points == 40


def test_preview_does_not_mutate():
    tracker = SessionTracker()
    state, gained = tracker.preview_answer(5, 100, "amicus")
    assert gained == 50
    assert state.answers == 1
    assert tracker.summary().answers == 0


def test_reset_starts_a_fresh_session():
    tracker = SessionTracker()
    tracker.record_answer(5, 100)
    summary = tracker.reset()
    assert summary.answers == 0
    assert summary.experience_points == 0
    assert summary.accuracy == 0
    assert summary.performance_trend == []
