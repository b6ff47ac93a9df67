"""
Session Engine

Dispatches duplex-channel events to the assessment and wellness-check
state machines.

Each connection's events are handled one at a time, in arrival order, under
that connection's lock; different connections run concurrently. Failures
are reported as `error` events and leave the session as it was.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from sparkpath_mentor import events
from sparkpath_mentor.assessment_session import AssessmentFlow
from sparkpath_mentor.config import Settings, get_settings
from sparkpath_mentor.errors import NoActiveSession, SessionEngineError
from sparkpath_mentor.events import OutboundEvent, TransitionResult, parse_inbound
from sparkpath_mentor.llm_gateway import LLMGateway
from sparkpath_mentor.record_store import RecordStore
from sparkpath_mentor.session_registry import SessionRegistry
from sparkpath_mentor.session_state import DialogueSession, SessionKind
from sparkpath_mentor.transcript_logger import TranscriptLogger
from sparkpath_mentor.wellness_session import WellnessCheckFlow

logger = logging.getLogger(__name__)

Emitter = Callable[[OutboundEvent], Awaitable[None]]

FAILURE_MESSAGES = {
    events.START_ASSESSMENT: "Failed to start assessment",
    events.USER_MESSAGE: "Failed to process message",
    events.START_WELLNESS_CHECK: "Failed to start wellness check",
    events.WELLNESS_RESPONSE: "Failed to process wellness response",
}


class SessionEngine:
    """Routes inbound events for every live connection."""

    def __init__(
        self,
        gateway: LLMGateway,
        store: RecordStore,
        registry: Optional[SessionRegistry] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_settings()
        self.gateway = gateway
        self.store = store
        self.registry = registry if registry is not None else SessionRegistry()
        self.transcripts = TranscriptLogger(store)
        self.assessment = AssessmentFlow(gateway, self.transcripts, store, self.settings)
        self.wellness = WellnessCheckFlow(gateway, self.transcripts, store, self.settings)

    async def handle_event(
        self,
        connection_id: str,
        event: str,
        data: Optional[Dict[str, Any]],
        emit: Emitter,
    ):
        """
        Process one inbound event and emit the resulting outbound events.

        Args:
            connection_id: Transport-level connection identifier
            event: Inbound event name
            data: Event payload
            emit: Coroutine sending one outbound event to this connection
        """
        async with self.registry.lock_for(connection_id):
            try:
                result = await self._dispatch(connection_id, event, data)
            except SessionEngineError as e:
                logger.warning(f"⚠️ [SessionEngine] {event} on {connection_id} failed: {e}")
                message = e.user_message or FAILURE_MESSAGES.get(event, "Failed to process event")
                await emit(events.error(message))
                return
            except Exception as e:
                logger.error(
                    f"❌ [SessionEngine] Unexpected error handling {event} on {connection_id}: {e}",
                    exc_info=e,
                )
                await emit(events.error(FAILURE_MESSAGES.get(event, "Failed to process event")))
                return

            if result.finished:
                self._end_session(connection_id)
            for outbound in result.events:
                await emit(outbound)

    async def _dispatch(
        self, connection_id: str, event: str, data: Optional[Dict[str, Any]]
    ) -> TransitionResult:
        payload = parse_inbound(event, data)

        if event == events.START_ASSESSMENT:
            return await self._start(
                connection_id, SessionKind.ASSESSMENT, payload.userId, None, self.assessment.start
            )

        if event == events.START_WELLNESS_CHECK:
            return await self._start(
                connection_id,
                SessionKind.WELLNESS,
                payload.userId,
                payload.courseId,
                self.wellness.start,
            )

        if event == events.USER_MESSAGE:
            session = self._active_session(connection_id, SessionKind.ASSESSMENT)
            return await self.assessment.handle_answer(session, payload.message)

        # events.WELLNESS_RESPONSE
        session = self._active_session(connection_id, SessionKind.WELLNESS)
        return await self.wellness.handle_response(session, payload.message)

    async def _start(self, connection_id, kind, user_id, course_id, greet) -> TransitionResult:
        previous = self.registry.get(connection_id)
        session = self.registry.create(connection_id, kind, user_id, course_id)
        try:
            result = await greet(session)
        except Exception:
            self.transcripts.forget(session.chat_id)
            self.registry.restore(connection_id, previous)
            raise
        if previous is not None:
            self.transcripts.forget(previous.chat_id)
        return result

    def _active_session(self, connection_id: str, kind: SessionKind) -> DialogueSession:
        session = self.registry.get(connection_id)
        if session is None:
            raise NoActiveSession(f"No session for connection {connection_id}")
        if session.kind != kind:
            raise NoActiveSession(
                f"Connection {connection_id} has a {session.kind.value} session, not {kind.value}"
            )
        return session

    def _end_session(self, connection_id: str):
        session = self.registry.get(connection_id)
        if session is not None:
            self.transcripts.forget(session.chat_id)
        self.registry.delete(connection_id)

    def disconnect(self, connection_id: str):
        """Drop whatever session the closed connection had."""
        self._end_session(connection_id)
        self.registry.release(connection_id)
        logger.info(f"🔌 [SessionEngine] Connection {connection_id} closed")
