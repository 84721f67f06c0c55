"""Tests for quiz_flow.py"""

import pytest

from quiz_flow import QuizFlow, check_answer
from screening.models import Fallback, Ok, is_activity
from screening.question_bank import QuestionBankBuilder
from screening.user_record import RISK_KEYS
from conftest import make_question


class FollowUpGenerator:
    """Generation unavailable, but follow-ups succeed."""

    def __init__(self):
        self.follow_up_requests = []

    def generate_questions(self, profile, count=12):
        return Fallback(reason="generation disabled")

    def generate_follow_up(self, profile, category, difficulty):
        self.follow_up_requests.append((category, difficulty))
        return Ok({
            "type": "text",
            "category": category,
            "question": "What is 1 + 1?",
            "options": ["1", "2", "3", "4"],
            "correct_answer": "2",
            "difficulty": difficulty,
        })


class FakePredictor:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def predict(self, payload, credential):
        self.calls.append((payload, credential))
        return self.result


class FakeAnalyzer:
    def __init__(self, result=None):
        self.result = result or Ok({"primary_diagnosis": "None", "confidence": "Low"})
        self.seen = []

    def analyze(self, risk_scores):
        self.seen.append(risk_scores)
        return self.result


@pytest.fixture
def make_flow(store, clock):
    def _make(generator=None, predictor=None, analyzer=None):
        builder = QuestionBankBuilder(generator=generator, store=store)
        return QuizFlow(store, builder, predictor=predictor, analyzer=analyzer, clock=clock)
    return _make


def answer_current_correctly(flow, run):
    question = run.current
    return flow.answer(run, question.correct_answer)


# ==================== Answer Checking ====================

def test_check_answer():
    question = make_question(correct="C")
    assert check_answer(question, "C")
    assert check_answer(question, " C ")
    assert not check_answer(question, "D")
    assert not check_answer(question, None)
    assert check_answer(make_question(q_type="minigame"), None)


# ==================== Lifecycle ====================

def test_start_uses_fallback_library(make_flow, store):
    flow = make_flow()
    run = flow.start("u1")

    assert run.question_source == "fallback"
    assert run.fallback_reason
    assert run.current.id == 1
    assert run.tracker.is_active
    assert len(run.tracker.event_log().item_starts) == 1
    assert len(run.questions) == 15
    assert store.get_questions_entry("u1") is not None


def test_second_start_uses_cache(make_flow):
    flow = make_flow()
    flow.start("u1")
    run = flow.start("u1")
    assert run.question_source == "cache"


def test_correct_answer_advances(make_flow, clock, store):
    flow = make_flow()
    run = flow.start("u1")
    clock.advance(1500)

    outcome = answer_current_correctly(flow, run)

    assert outcome["is_correct"] is True
    assert outcome["new_difficulty"] == "medium"
    assert outcome["category_accuracy"] == 1.0
    assert run.cursor == 1
    assert run.tracker.event_log().responses[0].response_time_ms == 1500
    assert store.get_performance("u1")["questions_answered"] == 1
    assert store.load("u1")["assessment_metrics"]["response_metrics"]["mean_response_accuracy"] == 1.0


def test_wrong_answer_inserts_easier_follow_up(make_flow):
    generator = FollowUpGenerator()
    flow = make_flow(generator=generator)
    run = flow.start("u1")
    first = run.current
    total = len(run.questions)

    outcome = flow.answer(run, "wrong")

    assert outcome["is_correct"] is False
    assert outcome["follow_up_inserted"] is True
    assert len(run.questions) == total + 1
    assert [q.id for q in run.questions] == list(range(1, total + 2))
    follow_up = run.current
    assert follow_up.id == 2
    assert follow_up.category == first.category
    assert follow_up.config["follow_up"] is True
    assert generator.follow_up_requests == [(first.category, "easy")]


def test_wrong_follow_up_does_not_chain(make_flow):
    generator = FollowUpGenerator()
    flow = make_flow(generator=generator)
    run = flow.start("u1")
    flow.answer(run, "wrong")
    total = len(run.questions)

    outcome = flow.answer(run, "wrong again")

    assert outcome["follow_up_inserted"] is False
    assert len(run.questions) == total
    assert len(generator.follow_up_requests) == 1


def test_no_follow_up_without_generator(make_flow):
    flow = make_flow()
    run = flow.start("u1")
    total = len(run.questions)
    outcome = flow.answer(run, "wrong")
    assert outcome["follow_up_inserted"] is False
    assert len(run.questions) == total


def test_stale_follow_up_is_discarded(make_flow):
    flow = make_flow()
    run = flow.start("u1")
    token = run.version
    answer_current_correctly(flow, run)
    total = len(run.questions)

    inserted = flow.apply_follow_up(run, token, make_question(0))

    assert inserted is False
    assert len(run.questions) == total


def test_activity_is_correct_and_leaves_difficulty(make_flow, store):
    flow = make_flow()
    run = flow.start("u1")
    while not is_activity(run.current.type):
        answer_current_correctly(flow, run)
    before = store.get_performance("u1")

    outcome = flow.answer(run, "anything", {"score": 2, "max_score": 3})

    assert outcome["is_correct"] is True
    assert outcome["new_difficulty"] is None
    assert store.get_performance("u1") == before
    assert len(run.tracker.event_log().minigame_results) == 1


def test_skip(make_flow, store):
    flow = make_flow()
    run = flow.start("u1")
    outcome = flow.skip(run)

    assert outcome == {"question_id": 1, "skipped": True}
    assert run.cursor == 1
    record = store.load("u1")
    assert record["assessment_metrics"]["task_performance"]["task_abandonment_count"] == 1


def test_answer_after_last_question_raises(make_flow):
    flow = make_flow()
    run = flow.start("u1")
    while not run.is_complete:
        flow.skip(run)
    with pytest.raises(RuntimeError):
        flow.answer(run, "A")


def test_difficulty_persists_between_runs(make_flow):
    flow = make_flow()
    run = flow.start("u1")
    flow.answer(run, "wrong")
    category = run.questions[0].category

    second = flow.start("u1")
    assert second.controller.current_difficulty(category) == "easy"
    assert second.controller.categories[category].total_count == 1


# ==================== Screening ====================

def test_register_screening_invalidates_cache(make_flow, store):
    flow = make_flow()
    flow.start("u1")
    record = flow.register_screening("u1", {
        "dateOfBirth": "2019-01-01",
        "gender": "male",
        "academicDifficulties": ["math"],
        "selectedTests": ["math"],
    })

    assert record["demographic_info"]["gender"] == "male"
    assert store.get_questions_entry("u1") is None
    assert flow.profile_for("u1").focus_areas == ["dyscalculia"]

    run = flow.start("u1")
    assert not any(q.category == "dyslexia" and q.skill_tested == "phonological_awareness"
                   for q in run.questions)


# ==================== Finish ====================

def test_finish_with_model_scores(make_flow, store):
    predictor = FakePredictor(Ok({"risk_reading": 0.2, "risk_attention": 0.7}))
    analyzer = FakeAnalyzer()
    flow = make_flow(predictor=predictor, analyzer=analyzer)
    run = flow.start("u1")
    answer_current_correctly(flow, run)

    outcome = flow.finish(run)

    assert outcome["risk_source"] == "model"
    assert outcome["risk_assessment"]["risk_reading"] == 0.2
    assert outcome["risk_assessment"]["risk_attention"] == 0.7
    assert set(outcome["risk_assessment"]) == set(RISK_KEYS)
    assert outcome["analysis"]["primary_diagnosis"] == "None"
    assert outcome["metrics"]["quiz_session_data"]["completed_questions"] == 1
    assert not run.tracker.is_active

    payload, credential = predictor.calls[0]
    assert payload["mean_response_accuracy"] == 1.0
    assert credential == store.get_or_create_credential("u1")

    record = store.load("u1")
    assert record["risk_assessment"]["risk_attention"] == 0.7
    assert record["risk_assessment"]["risk_writing"] is None
    assert record["risk_assessment_source"]["source"] == "model"
    assert record["analysis"]["confidence"] == "Low"


def test_finish_falls_back_to_heuristics(make_flow, store):
    flow = make_flow(predictor=FakePredictor(Fallback(reason="unreachable: refused")),
                     analyzer=FakeAnalyzer(Fallback(reason="analysis disabled")))
    run = flow.start("u1")
    answer_current_correctly(flow, run)

    outcome = flow.finish(run)

    assert outcome["risk_source"] == "heuristic"
    assert outcome["analysis"] is None
    record = store.load("u1")
    assert record["risk_assessment_source"] == {"source": "heuristic", "reason": "unreachable: refused"}
    assert record["analysis"] is None


def test_finish_is_idempotent(make_flow):
    predictor = FakePredictor(Ok({"risk_reading": 0.2}))
    flow = make_flow(predictor=predictor)
    run = flow.start("u1")

    first = flow.finish(run)
    assert flow.finish(run) is first
    assert len(predictor.calls) == 1
    assert run.current is None


def test_partial_model_scores_clear_earlier_heuristics(make_flow, store):
    heuristic = make_flow(predictor=FakePredictor(Fallback(reason="unreachable")),
                          analyzer=FakeAnalyzer())
    run = heuristic.start("u1")
    game = make_question(category="memory", q_type="minigame", config={"game_type": "sequence"})
    run.tracker.record_response(game, "Completed", True, {"sequence_length": 2})
    heuristic.finish(run)
    assert store.load("u1")["risk_assessment"]["risk_working_memory"] == 0.5
    assert store.load("u1")["analysis"] is not None

    model = make_flow(predictor=FakePredictor(Ok({"risk_reading": 0.1})),
                      analyzer=FakeAnalyzer(Fallback(reason="analysis disabled")))
    model.finish(model.start("u1"))

    record = store.load("u1")
    assert record["risk_assessment_source"]["source"] == "model"
    assert record["risk_assessment"] == {**{key: None for key in RISK_KEYS}, "risk_reading": 0.1}
    assert record["analysis"] is None


def test_second_run_metrics_match_its_own_log(make_flow, store):
    flow = make_flow()
    first = flow.start("u1")
    answer_current_correctly(flow, first)
    flow.finish(first)

    second = flow.start("u1")
    flow.skip(second)

    stored = store.load("u1")["quiz_session_data"]
    derived = second.tracker.metrics().to_record_sections()["quiz_session_data"]
    assert stored["completed_questions"] == derived["completed_questions"] == 0
    assert stored["category_accuracy"] == derived["category_accuracy"]


def test_raw_game_data_is_normalized(make_flow):
    flow = make_flow()
    run = flow.start("u1")
    while run.current.type != "minigame":
        answer_current_correctly(flow, run)
    assert run.current.config["game_type"] == "find-character"

    flow.answer(run, "Completed", game_data={"score": 3, "total_clicks": 5, "incorrect_clicks": 2})

    result = run.tracker.event_log().minigame_results[0]
    assert result.game_type == "find-character"
    assert result.accuracy == 1.0  # target score 3 from the item config
    assert result.click_count == 5
    assert result.errors == 2


def test_explicit_extras_override_game_data(make_flow):
    flow = make_flow()
    run = flow.start("u1")
    while run.current.type != "minigame":
        answer_current_correctly(flow, run)

    flow.answer(run, "Completed", modality_extras={"accuracy": 0.25}, game_data={"score": 3})

    assert run.tracker.event_log().minigame_results[0].accuracy == 0.25
