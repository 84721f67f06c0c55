"""
Prediction Client - HTTP client for the external risk-prediction service.

Endpoints used:
    GET  /health           - liveness
    POST /predict          - risk scores for a flattened record
"""

import logging
from typing import Dict, Optional

import requests

from config import settings
from screening.models import Fallback, Ok, Result


logger = logging.getLogger(__name__)


class PredictionClient:
    """
    Thin wrapper around the prediction service.

    Never raises on transport or server problems: every call returns Ok with
    the decoded JSON or Fallback with the reason.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.predictor_url).rstrip("/")
        self.timeout = settings.predictor_timeout if timeout is None else timeout
        self.http = session or requests.Session()

    def _request(self, method: str, path: str, payload: Optional[Dict] = None) -> Result[Dict]:
        url = f"{self.base_url}{path}"
        try:
            response = self.http.request(method, url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning("Prediction service %s %s unreachable: %s", method, path, e)
            return Fallback(reason=f"unreachable: {e}")

        if not response.ok:
            detail = ""
            try:
                detail = response.json().get("error", "")
            except ValueError:
                pass
            logger.warning("Prediction service %s %s returned %s %s",
                           method, path, response.status_code, detail)
            return Fallback(reason=detail or f"status {response.status_code}")

        try:
            return Ok(response.json())
        except ValueError as e:
            logger.warning("Prediction service %s %s returned invalid JSON: %s", method, path, e)
            return Fallback(reason="invalid JSON response")

    def check_health(self) -> Result[Dict]:
        return self._request("GET", "/health")

    def predict(self, payload: Dict, credential: str) -> Result[Dict[str, float]]:
        """
        Send the flattened record; returns the service's risk-score map.

        Scores outside [0, 1] or non-numeric are dropped.
        """
        result = self._request("POST", "/predict", {**payload, "credential": credential})
        if result.is_fallback:
            return result

        data = result.data
        scores = data.get("predictions", data) if isinstance(data, dict) else None
        if not isinstance(scores, dict):
            return Fallback(reason="prediction response has no score map")

        risk_scores = {}
        for name, value in scores.items():
            if isinstance(value, (int, float)) and not isinstance(value, bool) and 0.0 <= value <= 1.0:
                risk_scores[name] = float(value)
        if not risk_scores:
            return Fallback(reason="prediction response has no usable scores")

        logger.info("Received %d risk scores", len(risk_scores))
        return Ok(risk_scores)
