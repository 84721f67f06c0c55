"""
Question Generator - LLM-backed personalized question creation.

Features:
    - Profile-aware prompt (age, grade, focus areas, base difficulty)
    - Easier follow-up question after a wrong answer
    - Tolerant JSON parsing (Markdown code fences stripped)
    - Never raises: failures come back as Fallback results
"""

import json
import logging
import random
import time
from typing import List, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from config import settings
from screening.models import Fallback, Ok, Result
from screening.profile import LearnerProfile


logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are an educational psychologist creating a PERSONALIZED learning "
    "disability screening assessment for a child. You answer with JSON only."
)

# Per-category guidance, keyed by focus area.
CATEGORY_GUIDANCE = {
    "dyslexia": """DYSLEXIA SCREENING (3 questions for age {age}):
- For ages 6-7: Letter sounds, simple rhyming, letter matching
- For ages 8-9: Word families, syllable counting, simple spelling
- For ages 10-12: Complex spelling, reading comprehension, phoneme manipulation
Difficulties: 1 easy, 1 medium, 1 {top}""",
    "dyscalculia": """DYSCALCULIA/MATH SCREENING (3 questions for age {age}):
- For ages 6-7: Counting, number recognition, simple addition (1-10)
- For ages 8-9: Addition/subtraction (1-100), simple patterns, basic multiplication
- For ages 10-12: Multi-step problems, fractions, word problems
Difficulties: 1 easy, 1 medium, 1 {top}""",
    "attention": """ATTENTION/FOLLOWING INSTRUCTIONS (2 questions):
- Multi-step directions appropriate for age {age}
- Detail-oriented tasks
Difficulties: based on {base}""",
    "memory": """WORKING MEMORY (2 questions):
- Sequence patterns for age {age}
- Information retention
Difficulties: based on {base}""",
    "visual-spatial": """VISUAL-SPATIAL (2 questions):
- Shape recognition, patterns
- Spatial relationships for age {age}
Difficulties: based on {base}""",
}


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` block if the model added one."""
    cleaned = text.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]
    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]
    return cleaned.strip()


class QuestionGenerator:
    """
    Generates questions with a chat model.

    The model is created lazily so a disabled generator never needs API
    credentials. Tests pass any object with an `invoke(messages)` method.
    """

    def __init__(self, llm=None, enabled: Optional[bool] = None,
                 model: Optional[str] = None, temperature: Optional[float] = None):
        self.enabled = settings.question_generation_enabled if enabled is None else enabled
        self.model = model or settings.openai_model
        self.temperature = settings.openai_temperature if temperature is None else temperature
        self._llm = llm

    @property
    def llm(self):
        if self._llm is None:
            from langchain_openai import ChatOpenAI
            self._llm = ChatOpenAI(model=self.model, temperature=self.temperature)
        return self._llm

    # ==================== Prompts ====================

    def build_question_prompt(self, profile: LearnerProfile, count: int) -> str:
        age = profile.age_years
        top = "easy" if profile.base_difficulty == "easy" else "hard"
        seed = f"{time.time():.0f}-{random.randint(0, 999)}"

        guidance = "\n\n".join(
            CATEGORY_GUIDANCE[area].format(age=age, top=top, base=profile.base_difficulty)
            for area in profile.focus_areas
            if area in CATEGORY_GUIDANCE
        )

        return f"""CHILD PROFILE:
{profile.describe()}

RANDOM SEED: {seed} (Use this to ensure unique questions)

GENERATE {count} UNIQUE QUESTIONS tailored to this child's age ({age}) and grade ({profile.grade_level}).

QUESTION DISTRIBUTION (adapt complexity to age {age}):
{guidance}

JSON FORMAT REQUIRED:
[
  {{
    "id": 1,
    "type": "text",
    "category": "<dyslexia|dyscalculia|attention|memory|visual-spatial|processing>",
    "skill_tested": "<specific skill name>",
    "question": "<age-appropriate question for {age} year old>",
    "options": ["option1", "option2", "option3", "option4"],
    "correct_answer": "<exact match to one option>",
    "difficulty": "<easy|medium|hard>"
  }}
]

CRITICAL RULES:
1. Questions MUST be appropriate for a {age}-year-old in grade {profile.grade_level}
2. Use simple, child-friendly language
3. Each question has EXACTLY 4 options
4. correct_answer MUST exactly match one option
5. Mix "text" and "visual" types
6. DO NOT use emojis in questions or answers.

Return ONLY the JSON array, no other text."""

    def build_follow_up_prompt(self, profile: LearnerProfile, category: str, difficulty: str) -> str:
        return f"""Generate 1 {difficulty} difficulty question for a {profile.age_years}-year-old child.
Category: {category}
This is a follow-up question after the child got a previous question wrong.
CRITICAL: DO NOT use emojis in the question or options.

Return ONLY valid JSON:
{{
    "type": "text",
    "category": "{category}",
    "skill_tested": "<specific skill>",
    "question": "<simpler question for {category}>",
    "options": ["opt1", "opt2", "opt3", "opt4"],
    "correct_answer": "<exact match to one option>",
    "difficulty": "{difficulty}"
}}"""

    # ==================== Generation ====================

    def _ask(self, prompt: str):
        messages = [SystemMessage(content=SYSTEM_PROMPT), HumanMessage(content=prompt)]
        response = self.llm.invoke(messages)
        return json.loads(strip_code_fences(response.content))

    def generate_questions(self, profile: LearnerProfile, count: int = 12) -> Result[List[dict]]:
        """Ask the model for `count` raw question dicts."""
        if not self.enabled:
            return Fallback(reason="generation disabled")

        logger.info("Generating %d questions for age=%s grade=%s focus=%s",
                    count, profile.age_years, profile.grade_level, profile.focus_areas)
        try:
            payload = self._ask(self.build_question_prompt(profile, count))
        except Exception as e:
            logger.warning("Question generation failed: %s", e)
            return Fallback(reason=f"generation failed: {e}")

        if not isinstance(payload, list) or not payload:
            logger.warning("Question generation returned %s instead of a list", type(payload).__name__)
            return Fallback(reason="generation returned no question list")

        return Ok(payload)

    def generate_follow_up(self, profile: LearnerProfile, category: str,
                           difficulty: str) -> Result[dict]:
        """Ask the model for one easier question in the same category."""
        if not self.enabled:
            return Fallback(reason="generation disabled")

        try:
            payload = self._ask(self.build_follow_up_prompt(profile, category, difficulty))
        except Exception as e:
            logger.warning("Follow-up generation failed for %s: %s", category, e)
            return Fallback(reason=f"generation failed: {e}")

        if not isinstance(payload, dict):
            return Fallback(reason="generation returned no question object")

        return Ok(payload)
