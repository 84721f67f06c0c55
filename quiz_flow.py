"""
Quiz Flow - Orchestrates one quiz attempt end to end.

    build question set
      -> loop: present item -> record -> adapt difficulty -> maybe insert easier follow-up
      -> finish: final metrics -> risk prediction -> narrative analysis

Every collaborator failure degrades to local content; nothing here blocks
the quiz.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from redis_store import RedisStore
from screening.difficulty import DifficultyController
from screening.models import Question, is_activity
from screening.prediction_payload import build_prediction_payload
from screening.profile import LearnerProfile, build_profile
from screening.question_bank import QuestionBankBuilder, reindex
from screening.risk_heuristics import estimate_risk_scores
from screening.session_tracker import SessionTracker, normalize_game_data
from screening.user_record import full_risk_map, map_screening_form


logger = logging.getLogger(__name__)


# ==================== Run State ====================

@dataclass
class QuizRun:
    """Everything belonging to one attempt. Owned by the caller."""
    user_id: str
    profile: LearnerProfile
    questions: List[Question]
    tracker: SessionTracker
    controller: DifficultyController
    question_source: str = "live"
    fallback_reason: Optional[str] = None
    cursor: int = 0
    version: int = 0
    follow_ups_inserted: int = 0
    finished: bool = False
    outcome: Dict = field(default_factory=dict)

    @property
    def session_id(self) -> str:
        return self.tracker.session_id

    @property
    def current(self) -> Optional[Question]:
        if self.finished or self.cursor >= len(self.questions):
            return None
        return self.questions[self.cursor]

    @property
    def is_complete(self) -> bool:
        return self.cursor >= len(self.questions)

    def is_current(self, token: int) -> bool:
        """True while nothing has advanced since `token` was taken."""
        return not self.finished and token == self.version


def check_answer(question: Question, answer) -> bool:
    """Activities always count as correct; others compare by option value."""
    if is_activity(question.type):
        return True
    if answer is None:
        return False
    return str(answer).strip() == question.correct_answer


class QuizFlow:
    """Wires the engine components to the store and collaborators."""

    def __init__(self, store: RedisStore, builder: QuestionBankBuilder,
                 predictor=None, analyzer=None, clock=None):
        self.store = store
        self.builder = builder
        self.predictor = predictor
        self.analyzer = analyzer
        self.clock = clock

    # ==================== Screening ====================

    def register_screening(self, user_id: str, form: dict) -> dict:
        """
        Store the screening form and map it into the user record.

        A new form invalidates cached questions so the next quiz is rebuilt.
        """
        self.store.save_screening_form(user_id, form)
        self.store.clear_questions(user_id)
        return self.store.merge(user_id, map_screening_form(form))

    def profile_for(self, user_id: str) -> LearnerProfile:
        return build_profile(self.store.get_screening_form(user_id))

    # ==================== Lifecycle ====================

    def start(self, user_id: str, force_regenerate: bool = False) -> QuizRun:
        profile = self.profile_for(user_id)
        result = self.builder.build_question_set(user_id, profile, force_regenerate)

        tracker_kwargs = {"clock": self.clock} if self.clock else {}
        tracker = SessionTracker(user_id=user_id, store=self.store, **tracker_kwargs)

        run = QuizRun(
            user_id=user_id,
            profile=profile,
            questions=list(result.data),
            tracker=tracker,
            controller=DifficultyController.from_dict(self.store.get_performance(user_id)),
            question_source="fallback" if result.is_fallback else result.source,
            fallback_reason=result.reason if result.is_fallback else None,
        )

        tracker.start_session()
        if run.current is not None:
            tracker.start_item_timer(run.current)

        logger.info("Started quiz %s for %s with %d items (%s)",
                    run.session_id, user_id, len(run.questions), run.question_source)
        return run

    def _advance(self, run: QuizRun):
        run.cursor += 1
        run.version += 1
        if run.current is not None:
            run.tracker.start_item_timer(run.current)

    def answer(self, run: QuizRun, answer, modality_extras: Optional[dict] = None,
               game_data: Optional[dict] = None) -> dict:
        """
        Record the answer to the current item and move on.

        `game_data` is raw minigame output; it is normalized for the item's
        game type and merged under any explicit `modality_extras`.

        Knowledge items update the category's difficulty; a wrong answer asks
        for one easier follow-up, inserted right after the current item.
        """
        question = run.current
        if question is None:
            raise RuntimeError(f"Quiz {run.session_id} has no current question")

        if game_data and question.type == "minigame":
            raw = {"target_score": question.config.get("target_score"), **game_data}
            normalized = normalize_game_data(question.config.get("game_type"), raw)
            modality_extras = {**normalized, **(modality_extras or {})}

        is_correct = check_answer(question, answer)
        response = run.tracker.record_response(question, answer, is_correct, modality_extras)

        outcome = {
            "question_id": question.id,
            "is_correct": response.is_correct,
            "new_difficulty": None,
            "category_accuracy": None,
            "follow_up_inserted": False,
        }

        if not is_activity(question.type):
            update = run.controller.update_difficulty(question.category, response.is_correct)
            self.store.save_performance(run.user_id, run.controller.to_dict())
            outcome["new_difficulty"] = update.new_difficulty
            outcome["category_accuracy"] = update.category_accuracy

            if not response.is_correct and not question.config.get("follow_up"):
                outcome["follow_up_inserted"] = self._request_follow_up(run, question)

        self._advance(run)
        return outcome

    def skip(self, run: QuizRun) -> dict:
        question = run.current
        if question is None:
            raise RuntimeError(f"Quiz {run.session_id} has no current question")
        run.tracker.record_skip(question)
        self._advance(run)
        return {"question_id": question.id, "skipped": True}

    # ==================== Follow-ups ====================

    def _request_follow_up(self, run: QuizRun, question: Question) -> bool:
        token = run.version
        result = self.builder.get_easier_question(run.profile, question.category, question.difficulty)
        if result.is_fallback:
            logger.info("No follow-up for %s: %s", question.category, result.reason)
            return False
        return self.apply_follow_up(run, token, result.data)

    def apply_follow_up(self, run: QuizRun, token: int, follow_up: Question) -> bool:
        """Insert after the current item, unless the run moved on since `token`."""
        if not run.is_current(token):
            logger.info("Discarding stale follow-up for quiz %s", run.session_id)
            return False
        run.questions.insert(run.cursor + 1, follow_up)
        run.questions = reindex(run.questions)
        run.follow_ups_inserted += 1
        return True

    # ==================== Completion ====================

    def finish(self, run: QuizRun) -> dict:
        """
        Close the session, then request risk scores and a narrative.

        Prediction failures fall back to heuristic scores, tagged as such;
        analysis failures clear the stored analysis.
        """
        if run.finished:
            return run.outcome

        metrics = run.tracker.end_session()
        run.finished = True

        record = self.store.load_or_initialize(run.user_id)
        risk_scores, risk_source, risk_reason = self._predict(run.user_id, record)
        risk_scores = full_risk_map(risk_scores)
        self.store.replace(run.user_id, {
            "risk_assessment": risk_scores,
            "risk_assessment_source": {"source": risk_source, "reason": risk_reason},
        })

        analysis = None
        if self.analyzer is not None:
            result = self.analyzer.analyze(risk_scores)
            if not result.is_fallback:
                analysis = result.data
        # Cleared when this run produced none
        self.store.replace(run.user_id, {"analysis": analysis})

        run.outcome = {
            "session_id": run.session_id,
            "metrics": metrics.to_record_sections(),
            "risk_assessment": risk_scores,
            "risk_source": risk_source,
            "analysis": analysis,
        }
        logger.info("Finished quiz %s (risk source: %s)", run.session_id, risk_source)
        return run.outcome

    def _predict(self, user_id: str, record: dict):
        if self.predictor is not None:
            credential = self.store.get_or_create_credential(user_id)
            result = self.predictor.predict(build_prediction_payload(record), credential)
            if not result.is_fallback:
                return result.data, "model", None
            reason = result.reason
        else:
            reason = "no prediction service configured"

        logger.warning("Using heuristic risk scores for %s: %s", user_id, reason)
        return estimate_risk_scores(record), "heuristic", reason
