"""
Metrics Aggregator - Folds a session's event log into summary statistics.

compute_session_metrics() is a pure function of the EventLog: nothing is
counted incrementally, so replaying the same log always gives the same
numbers. Every ratio with an empty denominator is None ("insufficient
data"), never 0 and never NaN.
"""

import statistics
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .models import QUESTION_TYPES, SCREENING_CATEGORIES, EventLog, QuestionResponse


SEQUENCE_GAMES = ("sequence", "sequence-memory")
VISUAL_SEARCH_GAMES = ("find-character", "visual-search")
MOTOR_FIELDS = ("finger_counting_accuracy", "hand_laterality_accuracy", "hand_position_accuracy")


@dataclass(frozen=True)
class SessionMetrics:
    """Derived summary, grouped the way the user-data record stores it."""
    response_metrics: Dict = field(default_factory=dict)
    task_performance: Dict = field(default_factory=dict)
    attention_metrics: Dict = field(default_factory=dict)
    memory_metrics: Dict = field(default_factory=dict)
    visual_processing: Dict = field(default_factory=dict)
    auditory_processing: Dict = field(default_factory=dict)
    motor_coordination: Dict = field(default_factory=dict)
    session_data: Dict = field(default_factory=dict)

    def to_record_sections(self) -> dict:
        """Partial user-data record, ready for RedisStore.merge()."""
        return {
            "assessment_metrics": {
                "response_metrics": dict(self.response_metrics),
                "task_performance": dict(self.task_performance),
                "attention_metrics": dict(self.attention_metrics),
                "memory_metrics": dict(self.memory_metrics),
                "visual_processing": dict(self.visual_processing),
                "auditory_processing": dict(self.auditory_processing),
                "motor_coordination": dict(self.motor_coordination),
            },
            "quiz_session_data": dict(self.session_data),
        }


# ==================== Helpers ====================

def _mean(values: List[float]) -> Optional[float]:
    return statistics.fmean(values) if values else None


def _pstdev(values: List[float]) -> Optional[float]:
    """Population standard deviation; needs at least two samples."""
    return statistics.pstdev(values) if len(values) > 1 else None


def _round(value: Optional[float], digits: Optional[int] = None) -> Optional[float]:
    if value is None:
        return None
    return round(value, digits) if digits is not None else round(value)


def _ratio(numerator: int, denominator: int) -> Optional[float]:
    return numerator / denominator if denominator else None


def _accuracy(responses: Iterable[QuestionResponse]) -> Optional[float]:
    responses = list(responses)
    return _ratio(sum(1 for r in responses if r.is_correct), len(responses))


def _last_event_time(log: EventLog) -> Optional[int]:
    stamps = [s.timestamp for s in log.item_starts]
    stamps += [r.timestamp for r in log.responses]
    stamps += [m.timestamp for m in log.minigame_results]
    stamps += [a.timestamp for a in log.apd_results]
    stamps += [i.timestamp for i in log.interactive_results]
    return max(stamps) if stamps else None


# ==================== Aggregation ====================

def compute_session_metrics(log: EventLog) -> SessionMetrics:
    """Rebuild every session metric from the raw event log."""
    answered = [r for r in log.responses if not r.skipped]
    skipped = [r for r in log.responses if r.skipped]

    # Response metrics
    accuracies = [1.0 if r.is_correct else 0.0 for r in answered]
    times = [r.response_time_ms for r in answered if r.response_time_ms > 0]
    mean_accuracy = _mean(accuracies)

    response_metrics = {
        "mean_response_accuracy": mean_accuracy,
        "response_accuracy_std": _pstdev(accuracies),
        "mean_response_time_ms": _round(_mean(times)),
        "response_time_std_ms": _round(_pstdev(times)),
    }

    # Task performance
    attempted = max(len(log.item_starts), len(log.responses))
    task_performance = {
        "task_completion_rate": _ratio(len(answered), attempted),
        "task_abandonment_count": len(skipped),
        "instruction_follow_accuracy": mean_accuracy,
    }

    # Attention: seconds of session per completed item
    last = _last_event_time(log)
    total_session_ms = (last - log.started_at) if (log.started_at is not None and last is not None) else 0
    total_session_ms = max(0, total_session_ms)
    focus_sec = total_session_ms / len(answered) / 1000 if (times and answered) else None
    attention_metrics = {
        "mean_focus_duration_sec": focus_sec,
        "attention_dropoff_slope": None,
        "attention_span_average": focus_sec,
        "random_interaction_rate": None,
    }

    # Memory: high-water mark across sequence games
    sequence_games = [m for m in log.minigame_results if m.game_type in SEQUENCE_GAMES]
    memory_metrics = {
        "max_sequence_length": max((m.sequence_length or 0) for m in sequence_games)
        if sequence_games else None,
        "sequence_order_error_rate": _ratio(sum(m.errors for m in sequence_games), len(sequence_games)),
    }

    # Visual: visual question times pooled with visual-search minigames
    visual_times = [r.response_time_ms for r in answered if r.question_type == "visual"]
    visual_times += [
        m.search_time_ms or m.completion_time_ms
        for m in log.minigame_results
        if m.game_type in VISUAL_SEARCH_GAMES
    ]
    visual_times = [t for t in visual_times if t and t > 0]
    visual_processing = {
        "visual_search_time_ms": _round(_mean(visual_times)),
        "left_right_confusion_rate": None,
        "pref_visual": None,
    }

    # Auditory: APD tests pooled with audio questions
    auditory = [(a.accuracy, a.audio_replays) for a in log.apd_results]
    auditory += [
        (1.0 if r.is_correct else 0.0, r.audio_replays)
        for r in answered if r.question_type == "audio"
    ]
    auditory_processing = {
        "auditory_processing_accuracy": _mean([acc for acc, _ in auditory]),
        "average_audio_replays": _round(_mean([rep for _, rep in auditory]), 1),
        "pref_auditory": None,
    }

    # Motor: average each sub-score over sections that reported it
    motor_coordination = {
        name: _mean([
            getattr(i, name) for i in log.interactive_results if getattr(i, name) is not None
        ])
        for name in MOTOR_FIELDS
    }

    # Detailed session breakdown
    type_metrics = {}
    for q_type in QUESTION_TYPES:
        of_type = [r for r in answered if r.question_type == q_type]
        type_times = [r.response_time_ms for r in of_type if r.response_time_ms > 0]
        type_metrics[q_type] = {
            "accuracy": _accuracy(of_type),
            "avg_time": _mean(type_times),
            "count": len(of_type),
        }

    categories = list(SCREENING_CATEGORIES)
    categories += sorted({r.category for r in answered} - set(categories))
    category_accuracy = {
        c: _accuracy(r for r in answered if r.category == c) for c in categories
    }

    session_data = {
        "total_session_time_ms": total_session_ms,
        "total_questions": attempted,
        "completed_questions": len(answered),
        "skipped_questions": len(skipped),
        "question_type_metrics": type_metrics,
        "category_accuracy": category_accuracy,
    }

    return SessionMetrics(
        response_metrics=response_metrics,
        task_performance=task_performance,
        attention_metrics=attention_metrics,
        memory_metrics=memory_metrics,
        visual_processing=visual_processing,
        auditory_processing=auditory_processing,
        motor_coordination=motor_coordination,
        session_data=session_data,
    )
