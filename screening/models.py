"""
Models - Shared data types for the adaptive screening quiz.

Contains:
    - Question: immutable assessment item
    - CategoryPerformance: per-category adaptive state
    - QuestionResponse / MinigameResult / APDResult / InteractiveResult: append-only events
    - Ok / Fallback: tagged result for collaborator calls
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar, Union


# ==================== Vocabulary ====================

QUESTION_TYPES = ("text", "audio", "visual", "minigame", "apd-test", "interactive-assessment")
ACTIVITY_TYPES = ("minigame", "apd-test", "interactive-assessment")

DIFFICULTIES = ("easy", "medium", "hard")
DEFAULT_DIFFICULTY = "medium"

SCREENING_CATEGORIES = (
    "dyslexia",
    "dyscalculia",
    "attention",
    "memory",
    "visual-spatial",
    "processing",
)

COMPLETION_MARKER = "Completed"
OPTION_COUNT = 4


def is_activity(question_type: str) -> bool:
    """Activities are completion-only: they have no wrong outcome."""
    return question_type in ACTIVITY_TYPES


# ==================== Questions ====================

@dataclass(frozen=True)
class Question:
    """A single assessment item. Never mutated after generation."""
    id: int
    type: str
    category: str
    skill_tested: str
    prompt: str
    options: Tuple[str, ...]
    correct_answer: str
    difficulty: str = DEFAULT_DIFFICULTY
    config: Dict[str, Any] = field(default_factory=dict, hash=False, compare=True)

    def with_id(self, new_id: int) -> "Question":
        return Question(
            id=new_id,
            type=self.type,
            category=self.category,
            skill_tested=self.skill_tested,
            prompt=self.prompt,
            options=self.options,
            correct_answer=self.correct_answer,
            difficulty=self.difficulty,
            config=dict(self.config),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "category": self.category,
            "skill_tested": self.skill_tested,
            "question": self.prompt,
            "options": list(self.options),
            "correct_answer": self.correct_answer,
            "difficulty": self.difficulty,
            "config": dict(self.config),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=int(data["id"]),
            type=data.get("type", "text"),
            category=data.get("category", "general"),
            skill_tested=data.get("skill_tested", "cognitive"),
            prompt=data.get("question", ""),
            options=tuple(data.get("options", ())),
            correct_answer=data.get("correct_answer", ""),
            difficulty=data.get("difficulty", DEFAULT_DIFFICULTY),
            config=dict(data.get("config") or {}),
        )


# ==================== Adaptive State ====================

@dataclass
class CategoryPerformance:
    """Running tally and current difficulty tier for one screening category."""
    category: str
    correct_count: int = 0
    total_count: int = 0
    current_difficulty: str = DEFAULT_DIFFICULTY

    @property
    def accuracy(self) -> Optional[float]:
        if self.total_count == 0:
            return None
        return self.correct_count / self.total_count


# ==================== Events ====================

@dataclass(frozen=True)
class QuestionResponse:
    """One answered or skipped item."""
    question_id: int
    question_type: str
    category: str
    difficulty: str
    response_time_ms: int
    is_correct: bool
    audio_replays: int
    timestamp: int
    answer_value: Any = None
    skipped: bool = False


@dataclass(frozen=True)
class MinigameResult:
    game_type: str = "unknown"
    score: float = 0
    max_score: float = 0
    accuracy: float = 0.0
    completion_time_ms: int = 0
    sequence_length: Optional[int] = None
    errors: int = 0
    level: int = 1
    click_count: int = 0
    search_time_ms: int = 0
    timestamp: int = 0


@dataclass(frozen=True)
class APDResult:
    """Outcome of one auditory-processing test."""
    test_type: str = "unknown"
    score: float = 0
    accuracy: float = 0.0
    audio_replays: int = 0
    response_time_ms: int = 0
    words_correct: int = 0
    words_total: int = 0
    timestamp: int = 0


@dataclass(frozen=True)
class InteractiveResult:
    """Outcome of one camera-based motor assessment section."""
    section: str = "unknown"
    duration: float = 0
    completion_rate: float = 0.0
    average_accuracy: float = 0.0
    finger_counting_accuracy: Optional[float] = None
    hand_laterality_accuracy: Optional[float] = None
    hand_position_accuracy: Optional[float] = None
    task_results: Tuple[Any, ...] = ()
    timestamp: int = 0


@dataclass(frozen=True)
class ItemStart:
    question_id: int
    timestamp: int


@dataclass(frozen=True)
class EventLog:
    """Immutable snapshot of everything recorded in a session."""
    started_at: Optional[int] = None
    item_starts: Tuple[ItemStart, ...] = ()
    responses: Tuple[QuestionResponse, ...] = ()
    minigame_results: Tuple[MinigameResult, ...] = ()
    apd_results: Tuple[APDResult, ...] = ()
    interactive_results: Tuple[InteractiveResult, ...] = ()

    def to_dict(self) -> dict:
        return asdict(self)


# ==================== Collaborator Results ====================

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Live data from a collaborator (or a fresh cache entry)."""
    data: T
    source: str = "live"

    @property
    def is_fallback(self) -> bool:
        return False


@dataclass(frozen=True)
class Fallback(Generic[T]):
    """Locally substituted data; `reason` says why the live path was skipped."""
    reason: str
    data: Optional[T] = None

    @property
    def is_fallback(self) -> bool:
        return True


Result = Union[Ok[T], Fallback[T]]


def easier(difficulty: str) -> str:
    """One tier down, bottoming out at easy."""
    return "medium" if difficulty == "hard" else "easy"


def harder(difficulty: str) -> str:
    """One tier up, topping out at hard."""
    return "hard" if difficulty in ("medium", "hard") else "medium"


def difficulty_rank(difficulty: str) -> int:
    return DIFFICULTIES.index(difficulty)


def questions_to_dicts(questions: List[Question]) -> List[dict]:
    return [q.to_dict() for q in questions]
