"""
Risk Heuristics - Placeholder threshold rules for offline risk estimates.

Only used when the prediction service cannot be reached. The thresholds have
no empirical basis; results are always stored tagged as a fallback.
"""

from typing import Dict, Optional


def _metrics(record: dict, section: str) -> dict:
    return (record.get("assessment_metrics") or {}).get(section) or {}


def _exceeds(value, threshold) -> bool:
    return value is not None and value > threshold


def _below(value, threshold) -> bool:
    return value is not None and value < threshold


def reading_risk(record: dict) -> Optional[float]:
    m = _metrics(record, "reading_metrics")
    if m.get("reading_accuracy") is None:
        return None
    risk = 0.0
    if _below(m.get("reading_accuracy"), 0.7):
        risk += 0.4
    if _below(m.get("reading_speed_wpm"), 80):
        risk += 0.3
    if _exceeds(m.get("letter_reversal_rate"), 0.1):
        risk += 0.3
    return min(risk, 1.0)


def attention_risk(record: dict) -> Optional[float]:
    m = _metrics(record, "attention_metrics")
    if m.get("mean_focus_duration_sec") is None:
        return None
    risk = 0.0
    if _below(m.get("mean_focus_duration_sec"), 60):
        risk += 0.4
    if _below(m.get("attention_dropoff_slope"), -0.5):
        risk += 0.3
    if _exceeds(m.get("random_interaction_rate"), 0.3):
        risk += 0.3
    return min(risk, 1.0)


def memory_risk(record: dict) -> Optional[float]:
    m = _metrics(record, "memory_metrics")
    if m.get("max_sequence_length") is None:
        return None
    risk = 0.0
    if _below(m.get("max_sequence_length"), 4):
        risk += 0.5
    if _exceeds(m.get("sequence_order_error_rate"), 0.3):
        risk += 0.5
    return min(risk, 1.0)


def expressive_language_risk(record: dict) -> Optional[float]:
    m = _metrics(record, "speech_metrics")
    if m.get("speech_rate_wpm") is None:
        return None
    risk = 0.0
    if _below(m.get("speech_rate_wpm"), 60):
        risk += 0.5
    if _exceeds(m.get("hesitation_frequency"), 20):
        risk += 0.5
    return min(risk, 1.0)


def receptive_language_risk(record: dict) -> Optional[float]:
    m = _metrics(record, "auditory_processing")
    if m.get("auditory_processing_accuracy") is None:
        return None
    risk = 0.0
    if _below(m.get("auditory_processing_accuracy"), 0.7):
        risk += 0.6
    if _exceeds(m.get("average_audio_replays"), 3):
        risk += 0.4
    return min(risk, 1.0)


def visual_processing_risk(record: dict) -> Optional[float]:
    m = _metrics(record, "visual_processing")
    if m.get("visual_search_time_ms") is None:
        return None
    risk = 0.0
    if _exceeds(m.get("visual_search_time_ms"), 5000):
        risk += 0.5
    if _exceeds(m.get("left_right_confusion_rate"), 0.2):
        risk += 0.5
    return min(risk, 1.0)


def estimate_risk_scores(record: dict) -> Dict[str, Optional[float]]:
    """
    Heuristic risk per domain; None where the record lacks the inputs.

    Writing and motor coordination have no rules and stay None.
    """
    return {
        "risk_reading": reading_risk(record),
        "risk_writing": None,
        "risk_attention": attention_risk(record),
        "risk_working_memory": memory_risk(record),
        "risk_expressive_language": expressive_language_risk(record),
        "risk_receptive_language": receptive_language_risk(record),
        "risk_visual_processing": visual_processing_risk(record),
        "risk_motor_coordination": None,
    }
