"""
Screening module - Adaptive quiz engine core.

Components:
    - question_bank: Personalized question set with fallback library
    - session_tracker: Per-attempt event logs and response timing
    - difficulty: Per-category easy/medium/hard controller
    - metrics: Pure aggregation of event logs into session metrics
    - user_record: Persisted user-data document shape and merging
    - prediction_payload: Flattened request for the risk predictor
    - risk_heuristics: Offline placeholder risk estimates
"""

from .models import Question, CategoryPerformance, QuestionResponse, EventLog, Ok, Fallback
from .profile import LearnerProfile, build_profile
from .question_bank import QuestionBankBuilder
from .session_tracker import SessionTracker
from .difficulty import DifficultyController, DifficultyUpdate
from .metrics import SessionMetrics, compute_session_metrics

__all__ = [
    "Question",
    "CategoryPerformance",
    "QuestionResponse",
    "EventLog",
    "Ok",
    "Fallback",
    "LearnerProfile",
    "build_profile",
    "QuestionBankBuilder",
    "SessionTracker",
    "DifficultyController",
    "DifficultyUpdate",
    "SessionMetrics",
    "compute_session_metrics",
]
