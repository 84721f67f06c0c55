"""Tests for screening/metrics.py"""

import pytest

from screening.metrics import compute_session_metrics
from screening.models import (
    APDResult,
    EventLog,
    InteractiveResult,
    ItemStart,
    MinigameResult,
    QuestionResponse,
)


def response(qid, correct=True, time_ms=1000, q_type="text", category="memory",
             replays=0, timestamp=None, skipped=False):
    return QuestionResponse(
        question_id=qid,
        question_type=q_type,
        category=category,
        difficulty="medium",
        response_time_ms=time_ms,
        is_correct=correct,
        audio_replays=replays,
        timestamp=timestamp if timestamp is not None else qid * 1000,
        answer_value=None if skipped else "A",
        skipped=skipped,
    )


def minigame(game_type, sequence_length=None, search_time_ms=0, completion_time_ms=0):
    return MinigameResult(
        game_type=game_type, score=1, max_score=1, accuracy=1.0,
        completion_time_ms=completion_time_ms, sequence_length=sequence_length,
        errors=0, level=1, click_count=0, search_time_ms=search_time_ms, timestamp=0,
    )


def make_log(responses=(), minigames=(), apd=(), interactive=(), item_starts=(), started_at=0):
    return EventLog(
        started_at=started_at,
        item_starts=tuple(item_starts),
        responses=tuple(responses),
        minigame_results=tuple(minigames),
        apd_results=tuple(apd),
        interactive_results=tuple(interactive),
    )


def test_empty_log_has_no_data():
    metrics = compute_session_metrics(make_log())
    assert metrics.response_metrics["mean_response_accuracy"] is None
    assert metrics.response_metrics["response_accuracy_std"] is None
    assert metrics.task_performance["task_completion_rate"] is None
    assert metrics.attention_metrics["mean_focus_duration_sec"] is None
    assert metrics.memory_metrics["max_sequence_length"] is None
    assert metrics.auditory_processing["average_audio_replays"] is None
    assert all(v is None for v in metrics.session_data["category_accuracy"].values())


def test_response_statistics():
    log = make_log([
        response(1, True, 1000),
        response(2, False, 3000),
        response(3, True, 2000),
        response(4, True, 2000),
    ])
    metrics = compute_session_metrics(log)

    assert metrics.response_metrics["mean_response_accuracy"] == 0.75
    assert metrics.response_metrics["response_accuracy_std"] == pytest.approx(0.4330127)
    assert metrics.response_metrics["mean_response_time_ms"] == 2000
    assert metrics.response_metrics["response_time_std_ms"] == 707


def test_single_sample_has_no_std():
    metrics = compute_session_metrics(make_log([response(1)]))
    assert metrics.response_metrics["response_accuracy_std"] is None
    assert metrics.response_metrics["response_time_std_ms"] is None


def test_zero_times_are_excluded_from_timing():
    metrics = compute_session_metrics(make_log([response(1, time_ms=0), response(2, time_ms=4000)]))
    assert metrics.response_metrics["mean_response_time_ms"] == 4000
    assert metrics.response_metrics["mean_response_accuracy"] == 1.0


def test_completion_rate_uses_item_starts():
    starts = [ItemStart(question_id=i, timestamp=i * 900) for i in (1, 2, 3, 4)]
    log = make_log([response(1), response(2)], item_starts=starts)
    metrics = compute_session_metrics(log)
    assert metrics.task_performance["task_completion_rate"] == 0.5
    assert metrics.session_data["total_questions"] == 4


def test_focus_duration():
    log = make_log([response(1, timestamp=10_000), response(2, timestamp=20_000)], started_at=0)
    metrics = compute_session_metrics(log)
    assert metrics.attention_metrics["mean_focus_duration_sec"] == 10.0
    assert metrics.session_data["total_session_time_ms"] == 20_000


def test_sequence_order_error_rate():
    def game(errors):
        return MinigameResult(
            game_type="sequence-memory", score=1, max_score=1, accuracy=1.0,
            completion_time_ms=0, sequence_length=3, errors=errors, level=3,
            click_count=0, search_time_ms=0, timestamp=0,
        )

    log = make_log(minigames=[game(1), game(2), minigame("find-character")])
    assert compute_session_metrics(log).memory_metrics["sequence_order_error_rate"] == 1.5
    assert compute_session_metrics(make_log()).memory_metrics["sequence_order_error_rate"] is None


def test_max_sequence_length():
    log = make_log(minigames=[
        minigame("sequence-memory", sequence_length=4),
        minigame("sequence", sequence_length=6),
        minigame("find-character", sequence_length=9),
    ])
    assert compute_session_metrics(log).memory_metrics["max_sequence_length"] == 6


def test_visual_time_pools_questions_and_search_games():
    log = make_log(
        [response(1, q_type="visual", time_ms=3000)],
        minigames=[minigame("find-character", search_time_ms=5000)],
    )
    assert compute_session_metrics(log).visual_processing["visual_search_time_ms"] == 4000


def test_auditory_pools_apd_and_audio_questions():
    apd = APDResult(test_type="memory", score=3, accuracy=0.5, audio_replays=3,
                    response_time_ms=0, words_correct=0, words_total=0, timestamp=0)
    log = make_log([response(1, correct=True, q_type="audio", replays=0)], apd=[apd])
    metrics = compute_session_metrics(log)
    assert metrics.auditory_processing["auditory_processing_accuracy"] == 0.75
    assert metrics.auditory_processing["average_audio_replays"] == 1.5


def test_motor_averages_reported_values_only():
    def section(name, laterality):
        return InteractiveResult(section=name, duration=0, completion_rate=1.0, average_accuracy=1.0,
                                 finger_counting_accuracy=None, hand_laterality_accuracy=laterality,
                                 hand_position_accuracy=None, task_results=(), timestamp=0)

    log = make_log(interactive=[section("a", 0.8), section("b", None), section("c", 0.6)])
    motor = compute_session_metrics(log).motor_coordination
    assert motor["hand_laterality_accuracy"] == pytest.approx(0.7)
    assert motor["finger_counting_accuracy"] is None


def test_skips_excluded_from_accuracy():
    log = make_log([response(1, correct=True), response(2, correct=False, skipped=True)])
    metrics = compute_session_metrics(log)
    assert metrics.response_metrics["mean_response_accuracy"] == 1.0
    assert metrics.task_performance["task_abandonment_count"] == 1
    assert metrics.session_data["skipped_questions"] == 1


def test_category_and_type_breakdown():
    log = make_log([
        response(1, True, category="dyslexia"),
        response(2, False, category="dyslexia"),
        response(3, True, category="general", q_type="visual"),
    ])
    data = compute_session_metrics(log).session_data
    assert data["category_accuracy"]["dyslexia"] == 0.5
    assert data["category_accuracy"]["general"] == 1.0
    assert data["category_accuracy"]["memory"] is None
    assert data["question_type_metrics"]["text"]["count"] == 2
    assert data["question_type_metrics"]["audio"]["accuracy"] is None


def test_idempotent():
    log = make_log([response(1), response(2, False)], minigames=[minigame("sequence", 3)])
    assert compute_session_metrics(log) == compute_session_metrics(log)


def test_record_sections_shape():
    sections = compute_session_metrics(make_log([response(1)])).to_record_sections()
    assert set(sections) == {"assessment_metrics", "quiz_session_data"}
    assert "motor_coordination" in sections["assessment_metrics"]
