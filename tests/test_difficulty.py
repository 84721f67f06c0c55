"""Tests for screening/difficulty.py"""

import pytest

from screening.difficulty import DifficultyController
from screening.models import DIFFICULTIES, difficulty_rank


def test_three_wrong_from_hard_reaches_easy():
    controller = DifficultyController()
    results = [
        controller.update_difficulty("attention", False, "hard"),
        controller.update_difficulty("attention", False),
        controller.update_difficulty("attention", False),
    ]
    assert [r.new_difficulty for r in results] == ["medium", "easy", "easy"]
    assert results[-1].category_accuracy == 0.0


def test_five_correct_from_easy_never_skips_medium():
    controller = DifficultyController()
    tiers = [controller.update_difficulty("memory", True, "easy").new_difficulty]
    for _ in range(4):
        tiers.append(controller.update_difficulty("memory", True).new_difficulty)

    # First answer: only one attempt, no escalation yet
    assert tiers == ["easy", "medium", "hard", "hard", "hard"]


def test_escalation_needs_eighty_percent_accuracy():
    controller = DifficultyController()
    controller.update_difficulty("dyslexia", False, "easy")
    update = controller.update_difficulty("dyslexia", True)
    assert update.category_accuracy == 0.5
    assert update.new_difficulty == "easy"


def test_counts_after_n_answers():
    controller = DifficultyController()
    answers = [True, False, True, True, False, False, True]
    previous = "medium"
    for answer in answers:
        update = controller.update_difficulty("dyscalculia", answer)
        assert update.new_difficulty in DIFFICULTIES
        assert abs(difficulty_rank(update.new_difficulty) - difficulty_rank(previous)) <= 1
        previous = update.new_difficulty

    perf = controller.categories["dyscalculia"]
    assert perf.total_count == len(answers)
    assert 0 <= perf.correct_count <= perf.total_count
    assert controller.questions_answered == len(answers)


def test_accuracy_is_none_before_any_attempt():
    controller = DifficultyController()
    assert controller.category_accuracy("processing") is None
    controller.update_difficulty("processing", True)
    assert controller.category_accuracy("processing") == 1.0


def test_unknown_difficulty_raises():
    controller = DifficultyController()
    with pytest.raises(ValueError):
        controller.update_difficulty("memory", True, "impossible")


def test_new_category_is_tracked_on_first_use():
    controller = DifficultyController()
    update = controller.update_difficulty("general", True)
    assert update.new_difficulty == "medium"
    assert controller.categories["general"].total_count == 1


def test_round_trip_through_dict():
    controller = DifficultyController()
    controller.update_difficulty("memory", True, "easy")
    controller.update_difficulty("memory", True)
    controller.update_difficulty("attention", False)

    restored = DifficultyController.from_dict(controller.to_dict())
    assert restored.current_difficulty("memory") == "medium"
    assert restored.current_difficulty("attention") == "easy"
    assert restored.overall_score == 2
    assert restored.questions_answered == 3


def test_from_dict_repairs_bad_state():
    restored = DifficultyController.from_dict({
        "categories": {"memory": {"correct": 9, "total": 3, "current_difficulty": "extreme"}},
    })
    perf = restored.categories["memory"]
    assert perf.correct_count == 3
    assert perf.current_difficulty == "medium"


def test_from_dict_none_gives_defaults():
    restored = DifficultyController.from_dict(None)
    assert all(p.current_difficulty == "medium" for p in restored.categories.values())
    assert len(restored.categories) == 6
