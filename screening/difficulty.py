"""
Difficulty Controller - Per-category easy/medium/hard state machine.

Rules:
    - Wrong answer: step down one tier (easy stays easy)
    - Right answer: step up one tier only once the category has at least
      2 attempts and cumulative accuracy >= 0.8 (hard stays hard)
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .models import (
    DEFAULT_DIFFICULTY,
    DIFFICULTIES,
    SCREENING_CATEGORIES,
    CategoryPerformance,
    easier,
    harder,
)


@dataclass(frozen=True)
class DifficultyUpdate:
    new_difficulty: str
    category_accuracy: float


class DifficultyController:
    """Holds one CategoryPerformance per category for a single learner."""

    ESCALATION_ACCURACY = 0.8
    MIN_ATTEMPTS = 2

    def __init__(self):
        self.categories: Dict[str, CategoryPerformance] = {
            c: CategoryPerformance(category=c) for c in SCREENING_CATEGORIES
        }
        self.questions_answered = 0

    def _get_or_create(self, category: str) -> CategoryPerformance:
        if category not in self.categories:
            self.categories[category] = CategoryPerformance(category=category)
        return self.categories[category]

    def current_difficulty(self, category: str) -> str:
        return self._get_or_create(category).current_difficulty

    def update_difficulty(self, category: str, is_correct: bool,
                          current_difficulty: Optional[str] = None) -> DifficultyUpdate:
        """
        Count the answer and move the category at most one tier.

        `current_difficulty` is the tier of the item just answered; when not
        given, the category's stored tier is used.
        """
        perf = self._get_or_create(category)
        current = current_difficulty or perf.current_difficulty
        if current not in DIFFICULTIES:
            raise ValueError(f"Unknown difficulty: {current}")

        perf.total_count += 1
        if is_correct:
            perf.correct_count += 1

        accuracy = perf.correct_count / perf.total_count

        if not is_correct:
            new_difficulty = easier(current)
        elif accuracy >= self.ESCALATION_ACCURACY and perf.total_count >= self.MIN_ATTEMPTS:
            new_difficulty = harder(current)
        else:
            new_difficulty = current

        perf.current_difficulty = new_difficulty
        self.questions_answered += 1

        return DifficultyUpdate(new_difficulty=new_difficulty, category_accuracy=accuracy)

    @property
    def overall_score(self) -> int:
        return sum(p.correct_count for p in self.categories.values())

    def category_accuracy(self, category: str) -> Optional[float]:
        return self._get_or_create(category).accuracy

    # ==================== Serialization ====================

    def to_dict(self) -> dict:
        """Serialize state for the store."""
        return {
            "categories": {
                cid: {
                    "correct": p.correct_count,
                    "total": p.total_count,
                    "current_difficulty": p.current_difficulty,
                }
                for cid, p in self.categories.items()
            },
            "overall_score": self.overall_score,
            "questions_answered": self.questions_answered,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "DifficultyController":
        controller = cls()
        if not data:
            return controller
        for cid, p_data in data.get("categories", {}).items():
            total = max(0, int(p_data.get("total", 0)))
            correct = max(0, min(total, int(p_data.get("correct", 0))))
            difficulty = p_data.get("current_difficulty", DEFAULT_DIFFICULTY)
            controller.categories[cid] = CategoryPerformance(
                category=cid,
                correct_count=correct,
                total_count=total,
                current_difficulty=difficulty if difficulty in DIFFICULTIES else DEFAULT_DIFFICULTY,
            )
        controller.questions_answered = int(data.get("questions_answered", 0))
        return controller
