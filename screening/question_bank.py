"""
Question Bank Builder - Assembles the ordered item list for one quiz attempt.

Features:
    - Personalized generation with a built-in fallback library
    - Repair of malformed generated items (exactly 4 unique options)
    - Embedded minigames and auditory tests at fixed offsets
    - One-hour question cache per user
"""

import logging
from typing import List, Optional

from .models import (
    DEFAULT_DIFFICULTY,
    DIFFICULTIES,
    OPTION_COUNT,
    QUESTION_TYPES,
    Fallback,
    Ok,
    Question,
    Result,
    easier,
    is_activity,
    questions_to_dicts,
)
from .profile import LearnerProfile
from .question_library import ACTIVITY_SCHEDULE, activity_question, fallback_questions


logger = logging.getLogger(__name__)


CORE_QUESTION_COUNT = 12
PLACEHOLDER_OPTIONS = ("Option A", "Option B", "Option C", "Option D")


# ==================== Repair ====================

def repair_options(raw_options) -> tuple:
    """Deduplicate (order kept), truncate to 4, pad with placeholders if short."""
    options: List[str] = []
    if isinstance(raw_options, (list, tuple)):
        for opt in raw_options:
            if opt is None:
                continue
            text = str(opt).strip()
            if text and text not in options:
                options.append(text)

    options = options[:OPTION_COUNT]
    for placeholder in PLACEHOLDER_OPTIONS:
        if len(options) >= OPTION_COUNT:
            break
        if placeholder not in options:
            options.append(placeholder)
    return tuple(options)


def repair_question(raw, question_id: int) -> Optional[Question]:
    """
    Turn one generated item into a valid Question.

    Returns None for items that are not mappings at all.
    """
    if not isinstance(raw, dict):
        return None

    q_type = raw.get("type")
    if q_type not in QUESTION_TYPES or is_activity(q_type):
        # Activities are only ever injected by the builder itself.
        q_type = "text"

    options = repair_options(raw.get("options"))
    correct = raw.get("correct_answer", raw.get("correctAnswer"))
    correct = str(correct).strip() if correct is not None else None
    if correct not in options:
        correct = options[0]

    difficulty = raw.get("difficulty")
    if difficulty not in DIFFICULTIES:
        difficulty = DEFAULT_DIFFICULTY

    prompt = raw.get("question") or raw.get("prompt") or "Question not available"

    return Question(
        id=question_id,
        type=q_type,
        category=raw.get("category") or "general",
        skill_tested=raw.get("skill_tested") or "cognitive",
        prompt=str(prompt),
        options=options,
        correct_answer=correct,
        difficulty=difficulty,
        config=dict(raw.get("config") or {}),
    )


def repair_questions(raw_items: list) -> List[Question]:
    questions = []
    for raw in raw_items:
        question = repair_question(raw, len(questions) + 1)
        if question is not None:
            questions.append(question)
    return questions


# ==================== Activity Injection ====================

def inject_activities(questions: List[Question]) -> List[Question]:
    """
    Splice the embedded activities into the list and re-index.

    Each activity goes in at its offset, or at the end when the list is
    shorter than that. Ids are reassigned 1..n afterwards.
    """
    items = list(questions)
    for offset, template in ACTIVITY_SCHEDULE:
        activity = activity_question(template)
        if len(items) >= offset:
            items.insert(offset, activity)
        else:
            items.append(activity)
    return reindex(items)


def reindex(questions: List[Question]) -> List[Question]:
    return [q.with_id(i + 1) for i, q in enumerate(questions)]


# ==================== Builder ====================

class QuestionBankBuilder:
    """
    Builds and caches the personalized item list.

    `store` is optional: without one there is no caching.
    """

    def __init__(self, generator=None, store=None, cache_ttl_seconds: int = 3600):
        self.generator = generator
        self.store = store
        self.cache_ttl_seconds = cache_ttl_seconds

    def build_question_set(self, user_id: str, profile: LearnerProfile,
                           force_regenerate: bool = False) -> Result[List[Question]]:
        """
        Return the ordered question set for a user.

        Always non-empty. Ok(source="cache") on a cache hit, Ok(source="live")
        for generated items, Fallback(reason) when the fixed library was used.
        """
        if not force_regenerate and self.store is not None:
            cached = self.store.get_stored_questions(user_id, self.cache_ttl_seconds)
            if cached:
                logger.info("Using cached questions for %s", user_id)
                return Ok([Question.from_dict(q) for q in cached], source="cache")

        generated = self._generate(profile)
        if generated.is_fallback:
            logger.warning("Using fallback questions for %s: %s", user_id, generated.reason)
            core = fallback_questions(profile.age_years, profile.focus_areas)
        else:
            core = generated.data

        questions = inject_activities(core)
        if self.store is not None:
            self.store.save_questions(user_id, questions_to_dicts(questions))

        logger.info("Built %d questions for %s (including activities)", len(questions), user_id)
        if generated.is_fallback:
            return Fallback(reason=generated.reason, data=questions)
        return Ok(questions)

    def _generate(self, profile: LearnerProfile) -> Result[List[Question]]:
        if self.generator is None:
            return Fallback(reason="no generator configured")

        result = self.generator.generate_questions(profile, CORE_QUESTION_COUNT)
        if result.is_fallback:
            return result

        questions = repair_questions(result.data)
        if not questions:
            return Fallback(reason="generated items could not be repaired")
        return Ok(questions)

    def get_easier_question(self, profile: LearnerProfile, category: str,
                            current_difficulty: str) -> Result[Question]:
        """One question a tier below `current_difficulty`, if the generator can supply it."""
        if self.generator is None:
            return Fallback(reason="no generator configured")

        target = easier(current_difficulty)
        result = self.generator.generate_follow_up(profile, category, target)
        if result.is_fallback:
            return result

        question = repair_question(result.data, 0)
        if question is None:
            return Fallback(reason="follow-up could not be repaired")
        # Keep the requested tier and category even if the model drifted.
        return Ok(Question(
            id=0,
            type=question.type,
            category=category,
            skill_tested=question.skill_tested,
            prompt=question.prompt,
            options=question.options,
            correct_answer=question.correct_answer,
            difficulty=target,
            config={**question.config, "follow_up": True},
        ))
