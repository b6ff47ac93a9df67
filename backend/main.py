"""
FastAPI Backend for SparkPath Mentor

Provides:
- WebSocket chat channel for the career assessment and wellness checks
- JWT authentication
- Supabase persistence (in-memory fallback for local development)
- Subcategory confirmation, chat history and story matching endpoints
"""

from fastapi import FastAPI, HTTPException, Depends, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Optional, List
import os
import sys
import json
import uuid
import asyncio
import logging
import signal

# Add the sparkpath_mentor package to Python path
backend_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(backend_dir)

package_src = os.path.join(project_root, 'sparkpath_mentor', 'src')
if os.path.exists(package_src) and package_src not in sys.path:
    sys.path.insert(0, package_src)

from lib.logger import setup_logging, get_logger

setup_logging(level=logging.INFO, use_colors=True)

logger = get_logger("backend.main")
socket_logger = get_logger("backend.socket")

from lib.supabase_client import get_supabase_client, supabase_configured
from lib.auth import get_current_user, verify_token

from sparkpath_mentor.assessment_records import AssessmentRecords
from sparkpath_mentor.config import get_settings
from sparkpath_mentor.errors import Unauthorized, ValidationFailure, RecordNotFound, SessionEngineError
from sparkpath_mentor.events import OutboundEvent, error as error_event
from sparkpath_mentor.llm_gateway import LLMGateway
from sparkpath_mentor.pathways import PathwayPlanner
from sparkpath_mentor.record_store import (
    RecordStore,
    InMemoryRecordStore,
    SupabaseRecordStore,
    Tables,
)
from sparkpath_mentor.session_engine import SessionEngine
from sparkpath_mentor.story_ranking import rank_success_stories
from sparkpath_mentor.taxonomy import CATEGORY_SUBCATEGORIES
from sparkpath_mentor.wellness_session import needs_wellness_check, progress_id

# Singletons, created on first use so the module imports without credentials
_record_store: Optional[RecordStore] = None
_gateway: Optional[LLMGateway] = None
_session_engine: Optional[SessionEngine] = None


def get_record_store() -> RecordStore:
    """Get or create the record store (Supabase when configured)."""
    global _record_store
    if _record_store is None:
        settings = get_settings()
        if supabase_configured():
            _record_store = SupabaseRecordStore(get_supabase_client(), settings.table_prefix)
        else:
            logger.warning("Supabase not configured - records are kept in memory only")
            _record_store = InMemoryRecordStore(settings.table_prefix)
    return _record_store


def get_gateway() -> LLMGateway:
    global _gateway
    if _gateway is None:
        _gateway = LLMGateway(get_settings())
    return _gateway


def get_session_engine() -> SessionEngine:
    """Get or create singleton SessionEngine (owns the live session registry)."""
    global _session_engine
    if _session_engine is None:
        _session_engine = SessionEngine(get_gateway(), get_record_store(), settings=get_settings())
    return _session_engine


app = FastAPI(
    title="SparkPath Mentor API",
    description="Career assessment and wellness-check chat for SparkPath",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().frontend_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ==================== Pydantic Models ====================

class SaveSubcategoriesRequest(BaseModel):
    assessmentId: str
    selectedSubcategories: List[str]


class PathwayOverrideRequest(BaseModel):
    newCategory: str
    newSubcategory: str
    advisorNotes: Optional[str] = None


class WellnessStatus(BaseModel):
    progressId: str
    courseId: str
    percentComplete: int = 0
    wellnessCheckCompleted: bool = False
    wellnessOutcome: Optional[str] = None
    needsWellnessCheck: bool = False


# ==================== API Endpoints ====================

@app.get("/")
async def root():
    """Health check endpoint."""
    engine = _session_engine
    return {
        "status": "ok",
        "service": "SparkPath Mentor API",
        "version": "1.0.0",
        "supabase_configured": supabase_configured(),
        "active_sessions": len(engine.registry) if engine else 0,
    }


@app.get("/api/taxonomy")
async def get_taxonomy():
    """Fixed category -> subcategory table (used by the advisor override screen)."""
    return {"categories": CATEGORY_SUBCATEGORIES}


@app.get("/api/chat/history/{session_id}")
async def get_chat_history(session_id: str, user: dict = Depends(get_current_user)):
    """Get chat history for one of the caller's sessions"""
    engine = get_session_engine()
    try:
        messages = await engine.transcripts.history(user["userId"], session_id)
    except SessionEngineError as e:
        logger.error("Failed to load chat history", error=e, data={"session_id": session_id})
        raise HTTPException(status_code=500, detail="Failed to get chat history")
    return {"messages": messages}


@app.post("/api/chat/save-subcategories")
async def save_subcategories(request: SaveSubcategoriesRequest, user: dict = Depends(get_current_user)):
    """Save the subcategories the user picked after the assessment"""
    records = AssessmentRecords(get_record_store())
    try:
        await records.save_selected_subcategories(
            user["userId"], request.assessmentId, request.selectedSubcategories
        )
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionEngineError as e:
        logger.error("Failed to save subcategories", error=e)
        raise HTTPException(status_code=500, detail="Failed to save subcategories")
    return {"success": True}


@app.get("/api/assessments")
async def get_assessments(user: dict = Depends(get_current_user)):
    """All completed assessments for the current user, newest first"""
    records = AssessmentRecords(get_record_store())
    try:
        return {"assessments": await records.for_user(user["userId"])}
    except SessionEngineError as e:
        logger.error("Failed to load assessments", error=e)
        raise HTTPException(status_code=500, detail="Failed to get assessments")


@app.get("/api/progress/{course_id}/wellness", response_model=WellnessStatus)
async def get_wellness_status(course_id: str, user: dict = Depends(get_current_user)):
    """Whether the caller is due a wellness check for a course"""
    settings = get_settings()
    key = progress_id(user["userId"], course_id)
    try:
        progress = await get_record_store().get(Tables.USER_PROGRESS, {"progressId": key})
    except SessionEngineError as e:
        logger.error("Failed to load progress", error=e, data={"progress_id": key})
        raise HTTPException(status_code=500, detail="Failed to get progress")

    progress = progress or {}
    return WellnessStatus(
        progressId=key,
        courseId=course_id,
        percentComplete=progress.get("percentComplete", 0),
        wellnessCheckCompleted=progress.get("wellnessCheckCompleted", False),
        wellnessOutcome=progress.get("wellnessOutcome"),
        needsWellnessCheck=needs_wellness_check(progress, settings.wellness_trigger_percent),
    )


@app.get("/api/pathway/{user_id}")
async def get_pathway(user_id: str, user: dict = Depends(get_current_user)):
    """Get or generate the career pathway for a user"""
    planner = PathwayPlanner(get_gateway(), get_record_store())
    try:
        pathway = await planner.for_user(user_id)
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionEngineError as e:
        logger.error("Failed to get pathway", error=e, data={"user_id": user_id})
        raise HTTPException(status_code=500, detail="Failed to get career pathway")
    return {"pathway": pathway}


@app.put("/api/pathway/{pathway_id}/override")
async def override_pathway(
    pathway_id: str, request: PathwayOverrideRequest, user: dict = Depends(get_current_user)
):
    """Career advisor override: move the user to another category/subcategory"""
    planner = PathwayPlanner(get_gateway(), get_record_store())
    try:
        pathway = await planner.override(
            pathway_id, request.newCategory, request.newSubcategory, request.advisorNotes
        )
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SessionEngineError as e:
        logger.error("Failed to override pathway", error=e, data={"pathway_id": pathway_id})
        raise HTTPException(status_code=500, detail="Failed to override pathway")
    logger.info(f"Pathway {pathway_id} overridden by {user['userId']}")
    return {"success": True, "pathway": pathway}


@app.get("/api/stories/matched")
async def get_matched_stories(user: dict = Depends(get_current_user)):
    """Success stories ranked for the current user's profile"""
    store = get_record_store()
    try:
        profile = await store.get(Tables.USERS, {"userId": user["userId"]})
        if not profile:
            raise HTTPException(status_code=404, detail="User not found")

        stories = await store.scan(Tables.SUCCESS_STORIES)
    except SessionEngineError as e:
        logger.error("Failed to load success stories", error=e)
        raise HTTPException(status_code=500, detail="Failed to get success stories")

    if profile.get("category"):
        stories = [s for s in stories if s.get("category") == profile["category"]]

    ranked = await rank_success_stories(get_gateway(), stories, profile)
    return {"stories": ranked}


# ==================== Chat Socket ====================

@app.websocket("/ws/chat")
async def chat_socket(websocket: WebSocket, token: Optional[str] = None):
    """
    Duplex chat channel.

    Frames are JSON objects {"event": name, "data": {...}} in both directions.
    Each inbound frame is handled in its own task; the engine serialises the
    tasks of one connection so they apply in arrival order.
    """
    try:
        identity = verify_token(token)
    except Unauthorized as e:
        socket_logger.warning("Rejected chat socket", data={"reason": str(e)})
        await websocket.close(code=1008)
        return

    try:
        engine = get_session_engine()
    except ValueError as e:
        socket_logger.error("Chat engine unavailable", error=e)
        await websocket.close(code=1011)
        return

    await websocket.accept()
    connection_id = str(uuid.uuid4())
    send_lock = asyncio.Lock()
    pending: set = set()

    socket_logger.info(f"Client connected: {connection_id}", data={"user_id": identity["userId"]})

    async def emit(outbound: OutboundEvent):
        socket_logger.event("out", outbound.event, connection_id)
        async with send_lock:
            try:
                await websocket.send_json(outbound.to_frame())
            except (WebSocketDisconnect, RuntimeError) as e:
                socket_logger.warning(f"Dropped {outbound.event} for closed connection", data={"error": str(e)})

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except json.JSONDecodeError:
                await emit(error_event("Frames must be JSON"))
                continue

            if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                await emit(error_event("Frames must look like {\"event\": ..., \"data\": {...}}"))
                continue

            event, data = frame["event"], frame.get("data") or {}
            socket_logger.event("in", event, connection_id)

            task = asyncio.create_task(engine.handle_event(connection_id, event, data, emit))
            pending.add(task)
            task.add_done_callback(pending.discard)
    except WebSocketDisconnect:
        pass
    finally:
        for task in list(pending):
            task.cancel()
        engine.disconnect(connection_id)
        socket_logger.info(f"Client disconnected: {connection_id}")


@app.on_event("startup")
async def startup_event():
    """Startup event - build the engine so configuration errors surface early."""
    settings = get_settings()
    logger.section("SPARKPATH MENTOR STARTUP", {
        "model": settings.openai_model,
        "supabase": supabase_configured(),
        "llm_timeout_seconds": settings.llm_timeout_seconds,
    })
    if settings.openai_api_key:
        engine = get_session_engine()
        logger.success("Session engine ready", {"store": type(engine.store).__name__})
    else:
        logger.warning("OPENAI_API_KEY not set - chat socket will fail until it is configured")


if __name__ == "__main__":
    import uvicorn

    def handle_exit(*args):
        """Handle graceful shutdown."""
        logger.section("SERVER SHUTDOWN", {"reason": "signal received"})
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_exit)
    signal.signal(signal.SIGTERM, handle_exit)

    try:
        uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
    except KeyboardInterrupt:
        logger.info("🛑 Server stopped.")
        sys.exit(0)
