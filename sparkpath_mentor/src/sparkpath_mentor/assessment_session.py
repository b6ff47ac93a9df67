"""
Career Assessment Dialogue

State machine: GREETING -> QUESTIONING -> CONCLUDING -> TERMINAL.

After the minimum number of answers every further answer triggers an
analysis; the assessment concludes only when the LLM names one of the fixed
categories with confidence above the threshold. Otherwise another question
is asked. The number of questions has no upper bound.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sparkpath_mentor import prompts
from sparkpath_mentor.config import Settings, get_settings
from sparkpath_mentor.events import (
    TransitionResult,
    assessment_complete,
    assistant_message,
)
from sparkpath_mentor.llm_gateway import LLMGateway
from sparkpath_mentor.record_store import RecordStore, Tables
from sparkpath_mentor.response_parser import (
    CategoryAnalysis,
    parse_category_analysis,
    parse_subcategory_list,
)
from sparkpath_mentor.session_state import (
    DialogueSession,
    DialogueStage,
    Role,
    count_user_turns,
    make_turn,
)
from sparkpath_mentor.taxonomy import resolve_category, subcategories_for
from sparkpath_mentor.transcript_logger import TranscriptLogger

logger = logging.getLogger(__name__)

# Questions the system prompt promises; beyond this each extension is logged
EXPECTED_MAX_QUESTIONS = 7

ASSESSMENT_ID_NAMESPACE = uuid.UUID("6f1c2a4e-9b7d-4c3e-8a51-2d0f7e9b4c18")


def assessment_id_for(session_id: str) -> str:
    """One assessment id per session, so a retried conclusion overwrites its own record."""
    return str(uuid.uuid5(ASSESSMENT_ID_NAMESPACE, session_id))


class AssessmentFlow:
    """Drives one career assessment session."""

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
        """Greeting: ask the opening question."""
        greeting = await self.gateway.complete(
            prompts.ASSESSMENT_GREETING_PROMPT,
            prompts.CAREER_ASSESSMENT_SYSTEM_PROMPT,
            200,
        )
        await self.transcripts.append(session, Role.ASSISTANT, greeting, {"questionNumber": 1})

        session.commit(
            session.transcript + [make_turn(Role.ASSISTANT, greeting)],
            DialogueStage.QUESTIONING,
        )
        logger.info(f"🎯 [Assessment] Session {session.session_id} started for {session.user_id}")
        return TransitionResult(events=[assistant_message(greeting, 1)])

    async def handle_answer(self, session: DialogueSession, message: str) -> TransitionResult:
        """
        Questioning/Concluding: record the answer, then either conclude or ask again.

        Nothing is committed to `session` unless the whole step succeeds.
        """
        transcript = session.transcript + [make_turn(Role.USER, message)]
        turn_count = count_user_turns(transcript)

        await self.transcripts.append(session, Role.USER, message, {"questionNumber": turn_count})

        if turn_count >= self.settings.assessment_min_questions:
            result = await self._try_conclude(session, transcript, turn_count)
            if result is not None:
                return result
            if turn_count >= EXPECTED_MAX_QUESTIONS:
                logger.warning(
                    f"⚠️ [Assessment] Session {session.session_id} still inconclusive "
                    f"after {turn_count} answers, asking another question"
                )

        return await self._ask_next(session, transcript, turn_count)

    async def _ask_next(
        self, session: DialogueSession, transcript: List[Dict[str, str]], turn_count: int
    ) -> TransitionResult:
        question_number = turn_count + 1
        question = await self.gateway.complete(
            prompts.next_question_prompt(transcript, question_number),
            prompts.CAREER_ASSESSMENT_SYSTEM_PROMPT,
            300,
        )
        await self.transcripts.append(
            session, Role.ASSISTANT, question, {"questionNumber": question_number}
        )

        session.commit(transcript + [make_turn(Role.ASSISTANT, question)], DialogueStage.QUESTIONING)
        return TransitionResult(events=[assistant_message(question, question_number)])

    async def analyze(self, transcript: List[Dict[str, str]]) -> CategoryAnalysis:
        text = await self.gateway.complete(prompts.category_analysis_prompt(transcript))
        return parse_category_analysis(text)

    async def _try_conclude(
        self, session: DialogueSession, transcript: List[Dict[str, str]], turn_count: int
    ) -> Optional[TransitionResult]:
        """Concluding: returns None when the confidence gate fails."""
        analysis = await self.analyze(transcript)
        category = resolve_category(analysis.category)

        logger.info(
            f"🔍 [Assessment] Analysis for {session.session_id}: "
            f"category={analysis.category!r} confidence={analysis.confidence}"
        )

        if category is None or analysis.confidence <= self.settings.assessment_confidence_threshold:
            return None

        subcategories = await self.recommend_subcategories(category, transcript)

        assessment_id = assessment_id_for(session.session_id)
        record = {
            "assessmentId": assessment_id,
            "userId": session.user_id,
            "sessionId": session.session_id,
            "questions": transcript,
            "recommendedCategory": category,
            "recommendedSubcategories": subcategories,
            "selectedSubcategories": [],
            "completedAt": datetime.now(timezone.utc).isoformat(),
        }
        await self.store.put(Tables.ASSESSMENTS, record)

        summary = prompts.recommendation_message(category, analysis.reasoning, subcategories)
        await self.transcripts.append(
            session,
            Role.ASSISTANT,
            summary,
            {"questionNumber": turn_count + 1, "recommendation": True},
        )

        session.commit(transcript + [make_turn(Role.ASSISTANT, summary)], DialogueStage.TERMINAL)
        logger.info(
            f"✅ [Assessment] {session.session_id} complete: {category} -> {subcategories}"
        )
        return TransitionResult(
            events=[assessment_complete(category, subcategories, analysis.reasoning, assessment_id)],
            finished=True,
        )

    async def recommend_subcategories(
        self, category: str, transcript: List[Dict[str, str]]
    ) -> List[str]:
        """Ask for 3-5 subcategories and keep only those in the category's fixed list."""
        allowed = subcategories_for(category)
        user_responses = "\n".join(
            turn["message"] for turn in transcript if turn["role"] == Role.USER.value
        )
        text = await self.gateway.complete(
            prompts.subcategory_prompt(category, user_responses, allowed), None, 500
        )
        return parse_subcategory_list(text, allowed)
