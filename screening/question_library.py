"""
Question Library - Built-in items used when personalized generation is unavailable.

Two age tiers (7 and under, 8 and over) cover every screening category, so a
quiz can always be assembled without the generator. Also holds the templates
for the embedded activities (minigames, auditory-processing tests).
"""

from typing import Dict, List

from .models import COMPLETION_MARKER, Question


YOUNG_AGE_LIMIT = 7


# ==================== Fixed Items ====================

# Keyed by tier: "young" (age <= 7) and "older" (age > 7).
COUNTING_ITEMS: Dict[str, dict] = {
    "young": {
        "type": "text",
        "category": "dyscalculia",
        "skill_tested": "counting",
        "question": "How many apples are there? apple, apple, apple, apple, apple",
        "options": ["3", "4", "5", "6"],
        "correct_answer": "5",
        "difficulty": "easy",
    },
    "older": {
        "type": "text",
        "category": "dyscalculia",
        "skill_tested": "number_sequencing",
        "question": "What number comes next: 5, 10, 15, 20, ___?",
        "options": ["22", "25", "30", "21"],
        "correct_answer": "25",
        "difficulty": "easy",
    },
}

READING_ITEMS: List[dict] = [
    {
        "type": "text",
        "category": "dyslexia",
        "skill_tested": "phonological_awareness",
        "question": "Which word rhymes with 'cat'?",
        "options": ["Dog", "Hat", "Cup", "Tree"],
        "correct_answer": "Hat",
        "difficulty": "easy",
    },
    {
        "type": "text",
        "category": "dyslexia",
        "skill_tested": "letter_recognition",
        "question": "Look at these letters: b b d b. Which letter is different?",
        "options": ["b", "d", "p", "q"],
        "correct_answer": "d",
        "difficulty": "easy",
    },
]

ATTENTION_ITEMS: Dict[str, dict] = {
    "young": {
        "type": "text",
        "category": "attention",
        "skill_tested": "multi_step_processing",
        "question": "First count to 3, then add 2 more. How many?",
        "options": ["4", "5", "6", "7"],
        "correct_answer": "5",
        "difficulty": "medium",
    },
    "older": {
        "type": "text",
        "category": "attention",
        "skill_tested": "multi_step_processing",
        "question": "First add 5 + 3, then multiply by 2. What is the answer?",
        "options": ["16", "13", "11", "10"],
        "correct_answer": "16",
        "difficulty": "medium",
    },
}

SPATIAL_ITEMS: Dict[str, dict] = {
    "young": {
        "type": "text",
        "category": "visual-spatial",
        "skill_tested": "spatial_reasoning",
        "question": "If you turn around completely, which way are you facing?",
        "options": ["Same direction", "Opposite direction", "Left", "Right"],
        "correct_answer": "Same direction",
        "difficulty": "medium",
    },
    "older": {
        "type": "text",
        "category": "visual-spatial",
        "skill_tested": "spatial_reasoning",
        "question": "If you are facing North and turn right, which direction are you facing?",
        "options": ["South", "East", "West", "North"],
        "correct_answer": "East",
        "difficulty": "medium",
    },
}

SHARED_ITEMS: List[dict] = [
    {
        "type": "text",
        "category": "dyscalculia",
        "skill_tested": "number_sense",
        "question": "Which number is bigger: 47 or 74?",
        "options": ["47", "74", "They are the same", "Cannot tell"],
        "correct_answer": "74",
        "difficulty": "easy",
    },
    {
        "type": "text",
        "category": "memory",
        "skill_tested": "sequence_recall",
        "question": "If the pattern is RED, BLUE, RED, BLUE, what comes next?",
        "options": ["GREEN", "RED", "YELLOW", "BLUE"],
        "correct_answer": "RED",
        "difficulty": "easy",
    },
    {
        "type": "visual",
        "category": "visual-spatial",
        "skill_tested": "shape_recognition",
        "question": "Which shape has 4 equal sides and 4 corners?",
        "options": ["Triangle", "Square", "Circle", "Pentagon"],
        "correct_answer": "Square",
        "difficulty": "easy",
    },
    {
        "type": "text",
        "category": "dyslexia",
        "skill_tested": "word_recognition",
        "question": "Which word is spelled correctly?",
        "options": ["Freind", "Friend", "Frend", "Fryend"],
        "correct_answer": "Friend",
        "difficulty": "medium",
    },
    {
        "type": "text",
        "category": "processing",
        "skill_tested": "categorization",
        "question": "Which one does NOT belong with the others?",
        "options": ["Apple", "Banana", "Carrot", "Orange"],
        "correct_answer": "Carrot",
        "difficulty": "easy",
    },
]


# ==================== Embedded Activities ====================

# (insert offset, template) pairs, applied in order.
ACTIVITY_SCHEDULE: List[tuple] = [
    (3, {
        "type": "minigame",
        "category": "attention",
        "skill_tested": "Visual Attention",
        "question": "Find the hidden character!",
        "config": {"game_type": "find-character", "target_score": 3},
    }),
    (6, {
        "type": "apd-test",
        "category": "processing",
        "skill_tested": "Sound Discrimination",
        "question": "Sound Discrimination Test",
        "config": {"apd_test_type": "discrimination"},
    }),
    (9, {
        "type": "apd-test",
        "category": "processing",
        "skill_tested": "Auditory Memory",
        "question": "Auditory Memory Test",
        "config": {"apd_test_type": "memory"},
    }),
    (12, {
        "type": "minigame",
        "category": "memory",
        "skill_tested": "Working Memory",
        "question": "Watch the pattern and repeat it!",
        "config": {"game_type": "sequence"},
    }),
    (14, {
        "type": "apd-test",
        "category": "processing",
        "skill_tested": "Word Recognition",
        "question": "Word Recognition Test",
        "config": {"apd_test_type": "words"},
    }),
]


def _tier(age_years: int) -> str:
    return "young" if age_years <= YOUNG_AGE_LIMIT else "older"


def _to_question(item: dict, question_id: int) -> Question:
    return Question(
        id=question_id,
        type=item["type"],
        category=item["category"],
        skill_tested=item["skill_tested"],
        prompt=item["question"],
        options=tuple(item["options"]),
        correct_answer=item["correct_answer"],
        difficulty=item["difficulty"],
        config=dict(item.get("config", {})),
    )


def activity_question(template: dict, question_id: int = 0) -> Question:
    """Build a completion-only activity item from a template."""
    return Question(
        id=question_id,
        type=template["type"],
        category=template["category"],
        skill_tested=template["skill_tested"],
        prompt=template["question"],
        options=(COMPLETION_MARKER,),
        correct_answer=COMPLETION_MARKER,
        difficulty=template.get("difficulty", "medium"),
        config=dict(template.get("config", {})),
    )


def fallback_questions(age_years: int, focus_areas: List[str]) -> List[Question]:
    """
    Fixed question set for an age tier.

    Math and reading openers are only added when the focus areas ask for them
    (or when no focus area is given); the remaining items are always included.
    """
    tier = _tier(age_years)
    items: List[dict] = []

    if not focus_areas or "dyscalculia" in focus_areas:
        items.append(COUNTING_ITEMS[tier])

    if not focus_areas or "dyslexia" in focus_areas:
        items.extend(READING_ITEMS)

    items.append(SHARED_ITEMS[0])
    items.append(ATTENTION_ITEMS[tier])
    items.extend(SHARED_ITEMS[1:])
    items.append(SPATIAL_ITEMS[tier])

    return [_to_question(item, i + 1) for i, item in enumerate(items)]
