"""
Narrative Analysis - LLM summary of risk scores for parents.

Purely additive: the quiz and dashboard work without it.
"""

import json
import logging
import re
from typing import Dict, Optional

from langchain_core.messages import HumanMessage, SystemMessage

from config import settings
from screening.models import Fallback, Ok, Result


logger = logging.getLogger(__name__)


SYSTEM_PROMPT = (
    "You are a child psychologist specializing in learning disabilities. "
    "Be empathetic and supportive, and remember this is a screening tool, "
    "not a formal diagnosis."
)

ANALYSIS_TEMPLATE = """Analyze the following screening assessment results for a child:

RISK ASSESSMENT SCORES:
{scores}

Based on these scores, provide:

1. PRIMARY DIAGNOSIS: What learning disability or condition is most likely? (Choose from: Dyslexia, Dysgraphia, Dyscalculia, ADHD, Working Memory Difficulty, Language Processing Difficulty, Visual Processing Difficulty, Dyspraxia, or combination)

2. CONFIDENCE LEVEL: Your confidence in this diagnosis (Low/Moderate/High)

3. DETAILED ANALYSIS: A 2-3 paragraph explanation of the patterns in the scores, the child's strengths and challenges, and secondary concerns.

4. SPECIFIC RECOMMENDATIONS: 5-7 actionable recommendations covering home strategies, educational accommodations, professional support, and activities.

Format your response as JSON with this structure:
{{
  "primary_diagnosis": "condition name",
  "confidence": "Low|Moderate|High",
  "analysis": "detailed paragraph analysis",
  "key_findings": ["finding 1", "finding 2", "finding 3"],
  "recommendations": ["recommendation 1", "recommendation 2"]
}}"""


def format_risk_scores(risk_scores: Dict[str, Optional[float]]) -> str:
    """One "label: NN%" line per known score."""
    lines = []
    for key, value in risk_scores.items():
        if value is None:
            continue
        label = key.replace("risk_", "").replace("_", " ")
        lines.append(f"{label}: {round(value * 100)}%")
    return "\n".join(lines)


def risk_level_description(percent: float) -> dict:
    if percent < 30:
        return {
            "level": "Low Risk",
            "description": "The assessment indicates low risk in the evaluated areas. "
                           "Continue monitoring development.",
        }
    elif percent < 60:
        return {
            "level": "Moderate Risk",
            "description": "Some areas show moderate risk. Consider consultation with a "
                           "learning specialist for further evaluation.",
        }
    return {
        "level": "Elevated Risk",
        "description": "Multiple areas show elevated risk. We recommend professional "
                       "evaluation and support.",
    }


class NarrativeAnalyzer:
    """Turns a risk-score map into a diagnosis/analysis/recommendation bundle."""

    def __init__(self, llm=None, enabled: Optional[bool] = None,
                 model: Optional[str] = None, temperature: float = 0.7):
        self.enabled = settings.analysis_enabled if enabled is None else enabled
        self.model = model or settings.openai_model
        self.temperature = temperature
        self._llm = llm

    @property
    def llm(self):
        if self._llm is None:
            from langchain_openai import ChatOpenAI
            self._llm = ChatOpenAI(model=self.model, temperature=self.temperature)
        return self._llm

    def analyze(self, risk_scores: Dict[str, Optional[float]]) -> Result[dict]:
        if not self.enabled:
            return Fallback(reason="analysis disabled")

        summary = format_risk_scores(risk_scores)
        if not summary:
            return Fallback(reason="no risk scores to analyze")

        messages = [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(content=ANALYSIS_TEMPLATE.format(scores=summary)),
        ]
        try:
            text = self.llm.invoke(messages).content
        except Exception as e:
            logger.warning("Narrative analysis failed: %s", e)
            return Fallback(reason=f"analysis failed: {e}")

        match = re.search(r"\{[\s\S]*\}", text)
        if match:
            try:
                return Ok(json.loads(match.group(0)))
            except ValueError:
                pass

        logger.warning("Could not parse JSON from narrative analysis, using raw text")
        return Ok({
            "primary_diagnosis": "Analysis Available",
            "confidence": "Moderate",
            "analysis": text,
            "key_findings": [],
            "recommendations": [],
        })
