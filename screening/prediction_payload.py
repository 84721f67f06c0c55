"""
Prediction Payload - Flattens a user-data record into the predictor's request.

Categorical fields are encoded to small integers with a fixed lookup table.
Missing values stay None so the model can impute them.
"""

from typing import Dict, Optional


CATEGORICAL_MAPPINGS: Dict[str, Dict[str, int]] = {
    "primary_language": {
        "english": 0,
    },
    "schooling_type": {
        "not-enrolled": 0,
        "daycare": 1,
        "preschool-kindergarten": 2,
        "school": 3,
        "homeschooling": 4,
        "other": 5,
    },
    "gender": {
        "male": 0,
        "female": 1,
        "other": 2,
        "prefer-not-to-say": 3,
    },
    "multilingualExposure": {
        "Monolingual": 0,
        "Minimal": 1,
        "Moderate": 2,
        "High": 3,
        "Native bilingual": 4,
    },
    "birthHistory": {
        "full-term": 0,
        "preterm": 1,
        "nicu": 2,
        "complications": 3,
        "unknown": 4,
    },
    "hearingStatus": {
        "normal": 0,
        "tested-normal": 0,
        "concerns": 1,
        "diagnosed": 2,
        "not-tested": 3,
    },
    "visionStatus": {
        "normal": 0,
        "tested-normal": 0,
        "glasses": 1,
        "concerns": 2,
        "not-tested": 3,
    },
    "family_adhd": {
        "no-history": 0,
        "one-parent": 1,
        "both-parents": 2,
        "siblings": 3,
        "unsure": 4,
    },
}

# (payload field, record section, sub-section or None, default when missing)
PASSTHROUGH_FIELDS = [
    ("age_months", "demographic_info", None, None),
    ("multilingual_exposure", "developmental_history", None, 0),
    ("age_first_word_months", "developmental_history", None, None),
    ("age_first_sentence_months", "developmental_history", None, None),
    ("history_speech_therapy", "developmental_history", None, 0),
    ("history_motor_delay", "developmental_history", None, 0),
    ("hearing_concerns", "sensory_health", None, 0),
    ("vision_concerns", "sensory_health", None, 0),
    ("family_learning_difficulty", "family_history", None, 0),
    ("mean_response_accuracy", "assessment_metrics", "response_metrics", None),
    ("response_accuracy_std", "assessment_metrics", "response_metrics", None),
    ("mean_response_time_ms", "assessment_metrics", "response_metrics", None),
    ("response_time_std_ms", "assessment_metrics", "response_metrics", None),
    ("task_completion_rate", "assessment_metrics", "task_performance", None),
    ("task_abandonment_count", "assessment_metrics", "task_performance", 0),
    ("instruction_follow_accuracy", "assessment_metrics", "task_performance", None),
    ("mean_focus_duration_sec", "assessment_metrics", "attention_metrics", None),
    ("attention_span_average", "assessment_metrics", "attention_metrics", None),
    ("random_interaction_rate", "assessment_metrics", "attention_metrics", None),
    ("max_sequence_length", "assessment_metrics", "memory_metrics", None),
    ("visual_search_time_ms", "assessment_metrics", "visual_processing", None),
    ("auditory_processing_accuracy", "assessment_metrics", "auditory_processing", None),
    ("average_audio_replays", "assessment_metrics", "auditory_processing", 0),
    ("pref_auditory", "assessment_metrics", "auditory_processing", None),
    ("hand_laterality_accuracy", "assessment_metrics", "motor_coordination", None),
    ("finger_counting_accuracy", "assessment_metrics", "motor_coordination", None),
    ("hand_position_accuracy", "assessment_metrics", "motor_coordination", None),
]

# (payload field, record section)
CATEGORICAL_FIELDS = [
    ("primary_language", "demographic_info"),
    ("schooling_type", "demographic_info"),
    ("gender", "demographic_info"),
    ("multilingualExposure", "developmental_history"),
    ("birthHistory", "developmental_history"),
    ("hearingStatus", "sensory_health"),
    ("visionStatus", "sensory_health"),
    ("family_adhd", "family_history"),
]


def encode_categorical(field: str, value) -> Optional[int]:
    """Integer code for a categorical value, None when unknown or unset."""
    if value is None or field not in CATEGORICAL_MAPPINGS:
        return None
    return CATEGORICAL_MAPPINGS[field].get(value)


def _lookup(record: dict, section: str, sub_section: Optional[str], name: str):
    data = record.get(section) or {}
    if sub_section is not None:
        data = data.get(sub_section) or {}
    return data.get(name)


def build_prediction_payload(record: dict) -> dict:
    """Flat key/value request for the prediction service."""
    if not record:
        raise ValueError("No user data provided")

    payload = {}
    for name, section in CATEGORICAL_FIELDS:
        payload[name] = encode_categorical(name, _lookup(record, section, None, name))

    for name, section, sub_section, default in PASSTHROUGH_FIELDS:
        value = _lookup(record, section, sub_section, name)
        payload[name] = default if value is None else value

    return payload
