"""
Session State Data Model

Ephemeral per-connection dialogue state for one assessment or wellness check.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class SessionKind(str, Enum):
    ASSESSMENT = "assessment"
    WELLNESS = "wellness"


class DialogueStage(str, Enum):
    """Stages shared by both dialogue state machines."""
    GREETING = "greeting"
    QUESTIONING = "questioning"  # Assessment: asking career questions
    CHECKING = "checking"  # Wellness: probing course satisfaction
    CONCLUDING = "concluding"
    TERMINAL = "terminal"


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def new_session_id() -> str:
    return str(uuid.uuid4())


@dataclass
class DialogueSession:
    """Minimal dialogue state for one live connection."""
    user_id: str
    kind: SessionKind
    session_id: str = field(default_factory=new_session_id)
    course_id: Optional[str] = None
    stage: DialogueStage = DialogueStage.GREETING
    # Ordered turns, replayed into prompts: [{"role": "user", "message": "..."}]
    transcript: List[Dict[str, str]] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    last_updated: datetime = field(default_factory=datetime.now)

    @property
    def turn_count(self) -> int:
        """Number of user turns so far."""
        return count_user_turns(self.transcript)

    @property
    def chat_id(self) -> str:
        return f"{self.user_id}#{self.session_id}"

    def commit(self, transcript: List[Dict[str, str]], stage: DialogueStage):
        """Apply a successful transition."""
        self.transcript = transcript
        self.stage = stage
        self.last_updated = datetime.now()


def count_user_turns(transcript: List[Dict[str, str]]) -> int:
    return sum(1 for turn in transcript if turn["role"] == Role.USER.value)


def make_turn(role: Role, message: str) -> Dict[str, str]:
    return {"role": role.value, "message": message}
