"""
Runtime configuration loaded from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

load_dotenv()
load_dotenv('../.env')  # Also try parent directory


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """Engine settings. Every field can be overridden through the environment."""
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"
    llm_timeout_seconds: float = 30.0

    # Dialogue thresholds
    assessment_min_questions: int = 5
    assessment_confidence_threshold: int = 60
    wellness_min_responses: int = 2
    wellness_trigger_percent: int = 25

    # Persistence
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    table_prefix: str = ""

    # Auth
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"

    frontend_origins: list = field(default_factory=lambda: ["http://localhost:5173"])

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_service_key)

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("FRONTEND_URL", "http://localhost:5173")
        return cls(
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            llm_timeout_seconds=_float_env("LLM_TIMEOUT_SECONDS", 30.0),
            assessment_min_questions=_int_env("ASSESSMENT_MIN_QUESTIONS", 5),
            assessment_confidence_threshold=_int_env("ASSESSMENT_CONFIDENCE_THRESHOLD", 60),
            wellness_min_responses=_int_env("WELLNESS_MIN_RESPONSES", 2),
            wellness_trigger_percent=_int_env("WELLNESS_TRIGGER_PERCENT", 25),
            supabase_url=os.getenv("SUPABASE_URL"),
            supabase_service_key=os.getenv("SUPABASE_SERVICE_KEY"),
            table_prefix=os.getenv("TABLE_PREFIX", ""),
            jwt_secret=os.getenv("JWT_SECRET"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            frontend_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create Settings singleton"""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
