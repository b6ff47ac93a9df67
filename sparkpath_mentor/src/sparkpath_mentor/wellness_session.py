"""
Wellness Check Dialogue

State machine: GREETING -> CHECKING -> CONCLUDING -> TERMINAL.
Two answers from the student, then the conversation is classified and the
course progress record is marked as checked.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sparkpath_mentor import prompts
from sparkpath_mentor.config import Settings, get_settings
from sparkpath_mentor.events import TransitionResult, assistant_message, wellness_complete
from sparkpath_mentor.llm_gateway import LLMGateway
from sparkpath_mentor.record_store import RecordStore, Tables
from sparkpath_mentor.response_parser import WellnessAnalysis, parse_wellness_outcome
from sparkpath_mentor.session_state import (
    DialogueSession,
    DialogueStage,
    Role,
    count_user_turns,
    make_turn,
)
from sparkpath_mentor.transcript_logger import TranscriptLogger

logger = logging.getLogger(__name__)


def progress_id(user_id: str, course_id: str) -> str:
    return f"{user_id}#{course_id}"


def needs_wellness_check(progress: Optional[Dict[str, Any]], trigger_percent: int = 25) -> bool:
    """True once a course is far enough along and has not been checked yet."""
    if not progress:
        return False
    return (
        progress.get("percentComplete", 0) >= trigger_percent
        and not progress.get("wellnessCheckCompleted", False)
    )


class WellnessCheckFlow:
    """Drives one course wellness check."""

    def __init__(
        self,
        gateway: LLMGateway,
        transcripts: TranscriptLogger,
        store: RecordStore,
        settings: Optional[Settings] = None,
    ):
        self.gateway = gateway
        self.transcripts = transcripts
        self.store = store
        self.settings = settings or get_settings()

    async def start(self, session: DialogueSession) -> TransitionResult:
        greeting = await self.gateway.complete(
            prompts.WELLNESS_GREETING_PROMPT,
            prompts.WELLNESS_CHECK_SYSTEM_PROMPT,
            200,
        )
        await self.transcripts.append(
            session, Role.ASSISTANT, greeting, {"courseId": session.course_id}
        )
        session.commit(
            session.transcript + [make_turn(Role.ASSISTANT, greeting)],
            DialogueStage.CHECKING,
        )
        logger.info(
            f"💬 [Wellness] Check {session.session_id} started for "
            f"{session.user_id} on course {session.course_id}"
        )
        return TransitionResult(events=[assistant_message(greeting)])

    async def handle_response(self, session: DialogueSession, message: str) -> TransitionResult:
        transcript = session.transcript + [make_turn(Role.USER, message)]
        await self.transcripts.append(
            session, Role.USER, message, {"courseId": session.course_id}
        )

        if count_user_turns(transcript) >= self.settings.wellness_min_responses:
            return await self._conclude(session, transcript)

        follow_up = await self.gateway.complete(
            prompts.wellness_follow_up_prompt(transcript),
            prompts.WELLNESS_CHECK_SYSTEM_PROMPT,
            300,
        )
        await self.transcripts.append(
            session, Role.ASSISTANT, follow_up, {"courseId": session.course_id}
        )
        session.commit(transcript + [make_turn(Role.ASSISTANT, follow_up)], DialogueStage.CHECKING)
        return TransitionResult(events=[assistant_message(follow_up)])

    async def analyze(self, transcript: List[Dict[str, str]]) -> WellnessAnalysis:
        text = await self.gateway.complete(prompts.wellness_analysis_prompt(transcript))
        return parse_wellness_outcome(text)

    async def _conclude(
        self, session: DialogueSession, transcript: List[Dict[str, str]]
    ) -> TransitionResult:
        analysis = await self.analyze(transcript)

        # A plain field set, so replaying it after a failure leaves the same record
        await self.store.update(
            Tables.USER_PROGRESS,
            {"progressId": progress_id(session.user_id, session.course_id)},
            {
                "userId": session.user_id,
                "courseId": session.course_id,
                "wellnessCheckCompleted": True,
                "wellnessOutcome": analysis.outcome.value,
                "lastAccessedAt": datetime.now(timezone.utc).isoformat(),
            },
        )

        session.commit(transcript, DialogueStage.TERMINAL)
        logger.info(
            f"✅ [Wellness] {session.session_id} complete: outcome={analysis.outcome.value}"
        )
        return TransitionResult(
            events=[
                wellness_complete(
                    analysis.outcome.value, analysis.reasoning, analysis.recommendation
                )
            ],
            finished=True,
        )
