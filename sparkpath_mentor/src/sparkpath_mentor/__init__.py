"""
SparkPath Mentor - conversational assessment and wellness-check engine.
"""

from sparkpath_mentor.errors import (
    SessionEngineError,
    UpstreamUnavailable,
    PersistenceFailure,
    NoActiveSession,
    ValidationFailure,
    Unauthorized,
    RecordNotFound,
)
from sparkpath_mentor.session_engine import SessionEngine

__all__ = [
    "SessionEngine",
    "SessionEngineError",
    "UpstreamUnavailable",
    "PersistenceFailure",
    "NoActiveSession",
    "ValidationFailure",
    "Unauthorized",
    "RecordNotFound",
]
