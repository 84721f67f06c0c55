"""
Learner Profile - Personalization inputs derived from the screening form.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from .models import SCREENING_CATEGORIES


DEFAULT_AGE_YEARS = 8
MIN_AGE_YEARS = 6
MAX_AGE_YEARS = 12

DEFAULT_GRADE_LEVEL = 2
GRADE_LEVELS = {
    "preschool": 0,
    "kindergarten": 0,
    "1": 1,
    "2": 2,
    "3": 3,
    "4": 4,
    "5": 5,
    "6+": 6,
}

# Used when the form reports nothing that maps to a focus area.
DEFAULT_FOCUS_AREAS = [c for c in SCREENING_CATEGORIES if c != "processing"]


@dataclass
class LearnerProfile:
    """Who the quiz is for. Drives question generation and fallback selection."""
    age_months: Optional[int] = None
    grade_level: int = DEFAULT_GRADE_LEVEL
    focus_areas: List[str] = field(default_factory=lambda: list(DEFAULT_FOCUS_AREAS))
    base_difficulty: str = "medium"
    gender: str = "prefer-not-to-say"
    learning_experience: str = "similar"
    family_history: List[str] = field(default_factory=list)
    child_name: str = "there"

    @property
    def age_years(self) -> int:
        """Age in whole years, clamped to the supported 6-12 range."""
        if self.age_months is None:
            return DEFAULT_AGE_YEARS
        return max(MIN_AGE_YEARS, min(MAX_AGE_YEARS, self.age_months // 12))

    def describe(self) -> str:
        grade = "Preschool/Kindergarten" if self.grade_level == 0 else f"Grade {self.grade_level}"
        history = ", ".join(self.family_history) if self.family_history else "None reported"
        return (
            f"- Age: {self.age_years} years old\n"
            f"- Grade Level: {grade}\n"
            f"- Gender: {self.gender}\n"
            f"- Learning Experience vs Peers: {self.learning_experience}\n"
            f"- Focus Areas: {', '.join(self.focus_areas)}\n"
            f"- Family History of LD: {history}\n"
            f"- Base Difficulty: {self.base_difficulty}"
        )

    def to_dict(self) -> dict:
        return {
            "age_months": self.age_months,
            "age_years": self.age_years,
            "grade_level": self.grade_level,
            "focus_areas": list(self.focus_areas),
            "base_difficulty": self.base_difficulty,
        }


# ==================== Form Mapping ====================

def age_in_months(date_of_birth, today: Optional[date] = None) -> Optional[int]:
    """Whole months between a YYYY-MM-DD birth date and today."""
    if not date_of_birth:
        return None
    if isinstance(date_of_birth, str):
        try:
            birth = datetime.strptime(date_of_birth[:10], "%Y-%m-%d").date()
        except ValueError:
            return None
    else:
        birth = date_of_birth
    today = today or date.today()
    months = (today.year - birth.year) * 12 + (today.month - birth.month)
    if today.day < birth.day:
        months -= 1
    return max(0, months)


def grade_level(current_grade: Optional[str]) -> int:
    if current_grade is None:
        return DEFAULT_GRADE_LEVEL
    return GRADE_LEVELS.get(str(current_grade), DEFAULT_GRADE_LEVEL)


def focus_areas(academic_difficulties: List[str], selected_tests: List[str]) -> List[str]:
    areas = []
    if "reading" in academic_difficulties or "reading" in selected_tests:
        areas.append("dyslexia")
    if "math" in academic_difficulties or "math" in selected_tests:
        areas.append("dyscalculia")
    if "attention" in academic_difficulties or "following-instructions" in academic_difficulties:
        areas.append("attention")
    if "memory" in academic_difficulties:
        areas.append("memory")
    if "visual" in selected_tests:
        areas.append("visual-spatial")
    return areas or list(DEFAULT_FOCUS_AREAS)


def base_difficulty(learning_experience: str) -> str:
    if learning_experience in ("much-slower", "highly-variable"):
        return "easy"
    return "medium"


def build_profile(form: Optional[dict], today: Optional[date] = None) -> LearnerProfile:
    """
    Map a screening form to a LearnerProfile.

    A missing form is a first visit, not an error: defaults apply.
    """
    if not form:
        return LearnerProfile()

    difficulties = form.get("academicDifficulties")
    difficulties = difficulties if isinstance(difficulties, list) else []
    tests = form.get("selectedTests")
    tests = tests if isinstance(tests, list) else ["reading", "math", "visual"]
    family = form.get("familyLearningDifficulty")
    family = family if isinstance(family, list) else []
    experience = form.get("learningExperience") or "similar"
    full_name = (form.get("fullName") or "").strip()

    return LearnerProfile(
        age_months=age_in_months(form.get("dateOfBirth"), today),
        grade_level=grade_level(form.get("currentGrade")),
        focus_areas=focus_areas(difficulties, tests),
        base_difficulty=base_difficulty(experience),
        gender=form.get("gender") or "prefer-not-to-say",
        learning_experience=experience,
        family_history=family,
        child_name=full_name.split(" ")[0] if full_name else "there",
    )
