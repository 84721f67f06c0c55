"""
Configuration - Environment-driven settings for the screening engine.

All values come from environment variables (optionally via a .env file).
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env
load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings, read once from the environment."""
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    openai_model: str = "gpt-4o-mini"
    openai_temperature: float = 1.0
    question_generation_enabled: bool = False
    analysis_enabled: bool = False

    predictor_url: str = "http://localhost:5000"
    predictor_timeout: float = 10.0

    question_cache_ttl_seconds: int = 3600
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            redis_host=os.getenv("REDIS_HOST", "localhost"),
            redis_port=int(os.getenv("REDIS_PORT", 6379)),
            redis_password=os.getenv("REDIS_PASSWORD", None),
            redis_db=int(os.getenv("REDIS_DB", 0)),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_temperature=float(os.getenv("OPENAI_TEMPERATURE", 1.0)),
            question_generation_enabled=_env_bool("QUESTION_GENERATION_ENABLED", False),
            analysis_enabled=_env_bool("ANALYSIS_ENABLED", False),
            predictor_url=os.getenv("PREDICTOR_URL", "http://localhost:5000").rstrip("/"),
            predictor_timeout=float(os.getenv("PREDICTOR_TIMEOUT", 10.0)),
            question_cache_ttl_seconds=int(os.getenv("QUESTION_CACHE_TTL_SECONDS", 3600)),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Set up root logging once for the API process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


settings = Settings.from_env()
