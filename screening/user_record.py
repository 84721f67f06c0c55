"""
User Record - Shape of the persisted user-data document and how it is updated.

Sections:
    demographic_info, developmental_history, sensory_health, family_history,
    assessment_metrics, risk_assessment, quiz_session_data, analysis
"""

import copy
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

from .profile import age_in_months


RISK_KEYS = (
    "risk_reading",
    "risk_writing",
    "risk_attention",
    "risk_working_memory",
    "risk_expressive_language",
    "risk_receptive_language",
    "risk_visual_processing",
    "risk_motor_coordination",
)

EDUCATIONAL_SETTINGS = (
    "not-enrolled", "daycare", "preschool-kindergarten", "school", "homeschooling", "other",
)

MULTILINGUAL_EXPOSURE = {
    "0": "Monolingual",
    "1": "Minimal",
    "2": "Moderate",
    "3": "High",
    "4": "Native bilingual",
}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_user_id() -> str:
    return f"user_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def initialize_user_data(user_id: Optional[str] = None) -> dict:
    """Empty record with every section present and every metric unset."""
    return {
        "user_id": user_id or generate_user_id(),
        "timestamp": utc_timestamp(),
        "demographic_info": {
            "primary_language": None,
            "schooling_type": None,
            "gender": None,
            "age_months": None,
        },
        "developmental_history": {
            "multilingualExposure": None,
            "multilingual_exposure": None,
            "birthHistory": None,
            "age_first_word_months": None,
            "age_first_sentence_months": None,
            "history_speech_therapy": 0,
            "history_motor_delay": 0,
        },
        "sensory_health": {
            "hearingStatus": None,
            "hearing_concerns": 0,
            "visionStatus": None,
            "vision_concerns": 0,
        },
        "family_history": {
            "family_learning_difficulty": 0,
            "family_adhd": None,
        },
        "assessment_metrics": {
            "response_metrics": {
                "mean_response_accuracy": None,
                "response_accuracy_std": None,
                "mean_response_time_ms": None,
                "response_time_std_ms": None,
            },
            "task_performance": {
                "task_completion_rate": None,
                "task_abandonment_count": 0,
                "instruction_follow_accuracy": None,
            },
            "attention_metrics": {
                "mean_focus_duration_sec": None,
                "attention_dropoff_slope": None,
                "attention_span_average": None,
                "random_interaction_rate": None,
            },
            "memory_metrics": {
                "max_sequence_length": None,
                "sequence_order_error_rate": None,
            },
            "visual_processing": {
                "visual_search_time_ms": None,
                "left_right_confusion_rate": None,
                "pref_visual": None,
            },
            "auditory_processing": {
                "auditory_processing_accuracy": None,
                "average_audio_replays": None,
                "pref_auditory": None,
            },
            "motor_coordination": {
                "finger_counting_accuracy": None,
                "hand_laterality_accuracy": None,
                "hand_position_accuracy": None,
            },
            "speech_metrics": {
                "speech_rate_wpm": None,
                "hesitation_frequency": 0,
            },
            "reading_metrics": {
                "reading_speed_wpm": None,
                "reading_accuracy": None,
                "letter_reversal_rate": None,
                "audio_text_mismatch_rate": None,
            },
        },
        "risk_assessment": {key: None for key in RISK_KEYS},
        "quiz_session_data": {},
        "analysis": None,
    }


def merge_sections(record: dict, partial: dict) -> dict:
    """
    Merge `partial` into a copy of `record`, key by key.

    Nested mappings are merged recursively, so an update to one sub-section
    keeps every field it does not mention. Anything else is replaced.
    """
    merged = copy.deepcopy(record)
    for key, value in partial.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_sections(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def replace_sections(record: dict, derived: dict) -> dict:
    """
    Write derived sections into a copy of `record` as whole values.

    Each `assessment_metrics` sub-section is replaced on its own, so the
    sub-sections nobody derives (speech, reading) are kept. Every other
    top-level key is replaced outright.
    """
    updated = copy.deepcopy(record)
    for key, value in derived.items():
        if key == "assessment_metrics" and isinstance(value, dict):
            metrics = updated.get(key) or {}
            for sub_section, sub_value in value.items():
                metrics[sub_section] = copy.deepcopy(sub_value)
            updated[key] = metrics
        else:
            updated[key] = copy.deepcopy(value)
    return updated


def full_risk_map(risk_scores: dict) -> dict:
    """Every known risk key present; keys the scores leave out are None."""
    risks = {key: None for key in RISK_KEYS}
    risks.update(risk_scores)
    return risks


# ==================== Screening Form ====================

def _int_or(value, default):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def map_screening_form(form: dict) -> dict:
    """Partial record (demographics, history, sensory, family) from a screening form."""
    hearing = form.get("hearingStatus")
    vision = form.get("visionStatus")
    family = form.get("familyLearningDifficulty") or []
    exposure = form.get("multilingualExposure")
    setting = form.get("educationalSetting")

    return {
        "demographic_info": {
            "primary_language": form.get("primaryLanguage") or "english",
            "gender": form.get("gender"),
            "age_months": age_in_months(form.get("dateOfBirth")),
            "schooling_type": setting if setting in EDUCATIONAL_SETTINGS else None,
        },
        "developmental_history": {
            "multilingualExposure": MULTILINGUAL_EXPOSURE.get(str(exposure)) if exposure is not None else None,
            "multilingual_exposure": _int_or(exposure, None),
            "birthHistory": form.get("birthHistory"),
            "age_first_word_months": _int_or(form.get("ageFirstWordMonths"), None),
            "age_first_sentence_months": _int_or(form.get("ageFirstSentenceMonths"), None),
            "history_speech_therapy": _int_or(form.get("historySpeechTherapy"), 0),
            "history_motor_delay": _int_or(form.get("historyMotorDelay"), 0),
        },
        "sensory_health": {
            "hearingStatus": hearing,
            "hearing_concerns": 1 if hearing in ("concerns", "diagnosed", "not-tested") else 0,
            "visionStatus": vision,
            "vision_concerns": 1 if vision in ("concerns", "not-tested") else 0,
        },
        "family_history": {
            "family_learning_difficulty": 1 if family and "no-history" not in family else 0,
            "family_adhd": form.get("familyADHD") or "no-history",
        },
    }


def summarize(record: Optional[dict]) -> Optional[dict]:
    """Short dashboard view of a record."""
    if not record:
        return None
    response_metrics = record.get("assessment_metrics", {}).get("response_metrics", {})
    risks = record.get("risk_assessment", {})
    return {
        "user_id": record.get("user_id"),
        "last_updated": record.get("timestamp"),
        "age_months": record.get("demographic_info", {}).get("age_months"),
        "gender": record.get("demographic_info", {}).get("gender"),
        "has_assessment_data": any(v is not None for v in response_metrics.values()),
        "has_risk_scores": any(v is not None for v in risks.values()),
    }
