"""
Services module - Clients for external collaborators.

Components:
    - question_generator: LLM personalized questions and follow-ups
    - narrative_analysis: LLM diagnosis/recommendation summary
    - prediction_client: HTTP client for the risk-prediction service
"""

from .question_generator import QuestionGenerator
from .narrative_analysis import NarrativeAnalyzer, risk_level_description
from .prediction_client import PredictionClient

__all__ = [
    "QuestionGenerator",
    "NarrativeAnalyzer",
    "risk_level_description",
    "PredictionClient",
]
