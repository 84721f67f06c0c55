"""
Redis Store - User-data record, question cache, and adaptive state.

Key Structure:
    user:{user_id}:record      -> String (JSON user-data record)
    user:{user_id}:questions   -> String (JSON {questions, generated_at})
    user:{user_id}:performance -> String (JSON category performance)
    user:{user_id}:screening   -> String (JSON screening form)
    user:{user_id}:credential  -> String (predictor credential)
"""

import json
import logging
import time
import uuid
from typing import Callable, Dict, List, Optional

import redis

from config import settings
from screening.user_record import initialize_user_data, merge_sections, replace_sections, utc_timestamp


logger = logging.getLogger(__name__)


class RedisStore:
    def __init__(self, client=None, clock: Callable[[], float] = time.time):
        """
        Connect to Redis using settings, unless a client is passed in.

        `clock` returns seconds and is only used for question-cache freshness.
        """
        self.client = client or redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            password=settings.redis_password,
            db=settings.redis_db,
            decode_responses=True  # Return strings instead of bytes
        )
        self.clock = clock

    # ==================== Key Builders ====================

    def _record_key(self, user_id: str) -> str:
        return f"user:{user_id}:record"

    def _questions_key(self, user_id: str) -> str:
        return f"user:{user_id}:questions"

    def _performance_key(self, user_id: str) -> str:
        return f"user:{user_id}:performance"

    def _screening_key(self, user_id: str) -> str:
        return f"user:{user_id}:screening"

    def _credential_key(self, user_id: str) -> str:
        return f"user:{user_id}:credential"

    def _get_json(self, key: str):
        raw = self.client.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding unreadable JSON at %s", key)
            return None

    def _set_json(self, key: str, value) -> None:
        self.client.set(key, json.dumps(value))

    # ==================== User Record ====================

    def load(self, user_id: str) -> Optional[Dict]:
        """
        Read the user-data record.

        Returns None on first visit; that is a normal state.
        """
        return self._get_json(self._record_key(user_id))

    def load_or_initialize(self, user_id: str) -> Dict:
        """Stored record, or a default-shaped one (not yet saved)."""
        return self.load(user_id) or initialize_user_data(user_id)

    def save(self, user_id: str, record: Dict) -> Dict:
        """Write the whole record, stamping a fresh update time."""
        record = dict(record)
        record["user_id"] = user_id
        record["timestamp"] = utc_timestamp()
        self._set_json(self._record_key(user_id), record)
        return record

    def merge(self, user_id: str, partial: Dict) -> Dict:
        """
        Merge a partial update into the stored record and save it.

        Sections are merged key by key, so one component's update never
        erases fields another component wrote.
        """
        record = merge_sections(self.load_or_initialize(user_id), partial)
        return self.save(user_id, record)

    def replace(self, user_id: str, derived: Dict) -> Dict:
        """
        Overwrite derived sections (metrics, risks, analysis) as whole values.

        Keys left over from an earlier session never survive into the new
        values; the other sections of the record are untouched.
        """
        record = replace_sections(self.load_or_initialize(user_id), derived)
        return self.save(user_id, record)

    def delete_user(self, user_id: str):
        """
        Delete all data for a user (for testing/cleanup).
        """
        self.client.delete(
            self._record_key(user_id),
            self._questions_key(user_id),
            self._performance_key(user_id),
            self._screening_key(user_id),
            self._credential_key(user_id),
        )

    # ==================== Question Cache ====================

    def save_questions(self, user_id: str, questions: List[Dict]) -> float:
        """Store a generated question set; returns its generation time."""
        generated_at = self.clock()
        self._set_json(self._questions_key(user_id), {
            "questions": questions,
            "generated_at": generated_at,
        })
        return generated_at

    def get_questions_entry(self, user_id: str) -> Optional[Dict]:
        return self._get_json(self._questions_key(user_id))

    def get_stored_questions(self, user_id: str, max_age_seconds: float) -> Optional[List[Dict]]:
        """Cached questions if generated within `max_age_seconds`, else None."""
        entry = self.get_questions_entry(user_id)
        if not entry or not entry.get("generated_at"):
            return None
        if self.clock() - entry["generated_at"] >= max_age_seconds:
            return None
        return entry.get("questions") or None

    def clear_questions(self, user_id: str):
        """Force regeneration on the next request."""
        self.client.delete(self._questions_key(user_id))

    # ==================== Category Performance ====================

    def get_performance(self, user_id: str) -> Optional[Dict]:
        return self._get_json(self._performance_key(user_id))

    def save_performance(self, user_id: str, performance: Dict):
        self._set_json(self._performance_key(user_id), performance)

    # ==================== Screening Form ====================

    def get_screening_form(self, user_id: str) -> Optional[Dict]:
        return self._get_json(self._screening_key(user_id))

    def save_screening_form(self, user_id: str, form: Dict):
        self._set_json(self._screening_key(user_id), form)

    # ==================== Predictor Credential ====================

    def get_or_create_credential(self, user_id: str) -> str:
        """Stable credential the prediction service uses to key its session."""
        key = self._credential_key(user_id)
        credential = self.client.get(key)
        if not credential:
            credential = f"cred_{int(self.clock() * 1000)}_{uuid.uuid4().hex[:9]}"
            self.client.set(key, credential)
        return credential
