"""
Session Tracker - Records what happens during one quiz attempt.

Features:
    - Per-item response timing
    - Append-only logs (responses, minigames, auditory tests, motor tasks)
    - Completion semantics for activities (never "wrong", only done)
    - Write-through of recomputed metrics to the user-data record
"""

import logging
import time
import uuid
from typing import Callable, List, Optional

from .metrics import SessionMetrics, compute_session_metrics
from .models import (
    APDResult,
    EventLog,
    InteractiveResult,
    ItemStart,
    MinigameResult,
    Question,
    QuestionResponse,
    is_activity,
)


logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


# ==================== Result Builders ====================

def minigame_result(extras: dict, default_game_type: str, timestamp: int) -> MinigameResult:
    completion = int(extras.get("completion_time_ms") or extras.get("completion_time") or 0)
    return MinigameResult(
        game_type=extras.get("game_type") or default_game_type,
        score=extras.get("score") or 0,
        max_score=extras.get("max_score") or 0,
        accuracy=float(extras.get("accuracy") or 0.0),
        completion_time_ms=completion,
        sequence_length=extras.get("sequence_length"),
        errors=int(extras.get("errors") or 0),
        level=int(extras.get("level") or 1),
        click_count=int(extras.get("click_count") or 0),
        search_time_ms=int(extras.get("search_time_ms") or extras.get("search_time") or completion),
        timestamp=timestamp,
    )


def apd_result(extras: dict, default_test_type: str, timestamp: int) -> APDResult:
    return APDResult(
        test_type=extras.get("test_type") or default_test_type,
        score=extras.get("score") or 0,
        accuracy=float(extras.get("accuracy") or 0.0),
        audio_replays=int(extras.get("audio_replays") or 0),
        response_time_ms=int(extras.get("response_time_ms") or extras.get("response_time") or 0),
        words_correct=int(extras.get("words_correct") or 0),
        words_total=int(extras.get("words_total") or 0),
        timestamp=timestamp,
    )


def interactive_result(extras: dict, default_section: str, timestamp: int) -> InteractiveResult:
    return InteractiveResult(
        section=extras.get("section") or default_section,
        duration=extras.get("duration") or 0,
        completion_rate=float(extras.get("completion_rate") or 0.0),
        average_accuracy=float(extras.get("average_accuracy") or 0.0),
        finger_counting_accuracy=extras.get("finger_counting_accuracy"),
        hand_laterality_accuracy=extras.get("hand_laterality_accuracy"),
        hand_position_accuracy=extras.get("hand_position_accuracy"),
        task_results=tuple(extras.get("task_results") or ()),
        timestamp=timestamp,
    )


def find_character_extras(game_data: dict) -> dict:
    """Normalize raw find-character game output into minigame extras."""
    target = game_data.get("target_score") or 5
    score = game_data.get("score") or 0
    return {
        "game_type": "find-character",
        "score": score,
        "max_score": target,
        "accuracy": score / target,
        "completion_time_ms": game_data.get("completion_time") or 0,
        "search_time_ms": game_data.get("average_search_time") or 0,
        "click_count": game_data.get("total_clicks") or 0,
        "errors": game_data.get("incorrect_clicks") or 0,
    }


def sequence_memory_extras(game_data: dict) -> dict:
    """Normalize raw sequence-memory game output; reaching a level means it was passed."""
    level = game_data.get("level") or 1
    return {
        "game_type": "sequence-memory",
        "score": level,
        "max_score": level,
        "accuracy": 1.0,
        "completion_time_ms": game_data.get("completion_time") or 0,
        "sequence_length": level,
        "level": level,
        "errors": game_data.get("errors") or 0,
    }


GAME_NORMALIZERS = {
    "find-character": find_character_extras,
    "sequence": sequence_memory_extras,
    "sequence-memory": sequence_memory_extras,
}


def normalize_game_data(game_type: str, game_data: dict) -> dict:
    """Minigame extras from raw game output; unknown games pass through as-is."""
    normalizer = GAME_NORMALIZERS.get(game_type)
    if normalizer is None:
        return dict(game_data)
    return normalizer(game_data)


# ==================== Tracker ====================

class SessionTracker:
    """
    Owns the event logs of one quiz attempt.

    Each instance is independent; nothing lives at module level. When a store
    and user id are attached, every recorded event is followed by a metrics
    recomputation written into the user's record, replacing the previous
    session's derived sections.
    """

    def __init__(self, user_id: Optional[str] = None, store=None,
                 clock: Callable[[], int] = now_ms, session_id: Optional[str] = None):
        self.user_id = user_id
        self.store = store
        self.clock = clock
        self.session_id = session_id or uuid.uuid4().hex[:8]

        self.started_at: Optional[int] = None
        self.ended_at: Optional[int] = None
        self._item_started_at: Optional[int] = None
        self._item_starts: List[ItemStart] = []
        self._responses: List[QuestionResponse] = []
        self._minigames: List[MinigameResult] = []
        self._apd: List[APDResult] = []
        self._interactive: List[InteractiveResult] = []

    # ==================== Lifecycle ====================

    @property
    def is_active(self) -> bool:
        return self.started_at is not None and self.ended_at is None

    def start_session(self) -> int:
        """Reset all logs and stamp the start time. Once per attempt."""
        if self.started_at is not None:
            raise RuntimeError(f"Session {self.session_id} was already started")

        self.started_at = self.clock()
        self.ended_at = None
        self._item_started_at = None
        self._item_starts = []
        self._responses = []
        self._minigames = []
        self._apd = []
        self._interactive = []

        self._write_through()
        logger.info("Quiz session %s started", self.session_id)
        return self.started_at

    def end_session(self) -> SessionMetrics:
        """Finalize: compute and persist the last metrics, stop accepting events."""
        self._require_active()
        metrics = self._write_through()
        self.ended_at = self.clock()
        logger.info("Quiz session %s ended after %d responses", self.session_id, len(self._responses))
        return metrics

    # ==================== Recording ====================

    def _require_active(self):
        if not self.is_active:
            raise RuntimeError(f"Session {self.session_id} is not active")

    def start_item_timer(self, item: Question) -> None:
        self._require_active()
        self._item_started_at = self.clock()
        self._item_starts.append(ItemStart(question_id=item.id, timestamp=self._item_started_at))

    def _elapsed(self, now: int) -> int:
        if self._item_started_at is None:
            return 0
        return max(0, now - self._item_started_at)

    def record_response(self, item: Question, answer, is_correct: bool,
                        modality_extras: Optional[dict] = None) -> QuestionResponse:
        """
        Append a response for `item`.

        Activities are stored as correct whatever the caller says, and also
        get a modality-specific result built from `modality_extras`.
        """
        self._require_active()
        extras = modality_extras or {}
        now = self.clock()
        activity = is_activity(item.type)

        response = QuestionResponse(
            question_id=item.id,
            question_type=item.type,
            category=item.category,
            difficulty=item.difficulty,
            response_time_ms=self._elapsed(now),
            is_correct=True if activity else bool(is_correct),
            audio_replays=int(extras.get("audio_replays") or 0),
            timestamp=now,
            answer_value="complex_data" if isinstance(answer, (dict, list)) else answer,
        )
        self._responses.append(response)
        self._item_started_at = None

        if item.type == "minigame":
            self._minigames.append(minigame_result(extras, item.config.get("game_type", "unknown"), now))
        elif item.type == "apd-test":
            self._apd.append(apd_result(extras, item.config.get("apd_test_type", "unknown"), now))
        elif item.type == "interactive-assessment":
            self._interactive.append(interactive_result(extras, item.config.get("section", "unknown"), now))

        logger.debug("Recorded response %s", response)
        self._write_through()
        return response

    def record_skip(self, item: Question) -> QuestionResponse:
        """An explicit skip counts toward abandonment, not accuracy."""
        self._require_active()
        now = self.clock()
        response = QuestionResponse(
            question_id=item.id,
            question_type=item.type,
            category=item.category,
            difficulty=item.difficulty,
            response_time_ms=self._elapsed(now),
            is_correct=False,
            audio_replays=0,
            timestamp=now,
            answer_value=None,
            skipped=True,
        )
        self._responses.append(response)
        self._item_started_at = None
        self._write_through()
        return response

    # ==================== Views ====================

    def event_log(self) -> EventLog:
        return EventLog(
            started_at=self.started_at,
            item_starts=tuple(self._item_starts),
            responses=tuple(self._responses),
            minigame_results=tuple(self._minigames),
            apd_results=tuple(self._apd),
            interactive_results=tuple(self._interactive),
        )

    def metrics(self) -> SessionMetrics:
        return compute_session_metrics(self.event_log())

    def stats(self) -> dict:
        answered = [r for r in self._responses if not r.skipped]
        return {
            "questions_answered": len(answered),
            "correct_answers": sum(1 for r in answered if r.is_correct),
            "minigames_played": len(self._minigames),
            "apd_tests_taken": len(self._apd),
            "interactive_completed": len(self._interactive),
            "session_duration_ms": (self.clock() - self.started_at) if self.started_at else 0,
        }

    def _write_through(self) -> SessionMetrics:
        metrics = self.metrics()
        if self.store is not None and self.user_id is not None:
            sections = metrics.to_record_sections()
            sections["quiz_session_data"]["session_id"] = self.session_id
            self.store.replace(self.user_id, sections)
        return metrics
