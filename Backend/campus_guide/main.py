# campus_guide/main.py
import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from openai import AsyncAzureOpenAI

from .badges import catalog_badges
from .campus import get_university, list_events, list_universities, search_faq
from .config import Settings, load_settings
from .db import create_pool, ensure_schema
from .deps import (
    get_chat_store,
    get_current_user_id,
    get_engine,
    get_llm,
    get_processor,
    get_settings,
)
from .exceptions import AuthenticationRequired, StoreUnavailable
from .interactions import InteractionProcessor
from .llm import create_llm_client, generate_event_summary, generate_response
from .progress import ProgressEngine
from .progress_store import ProgressStore
from .schemas import (
    Badge,
    CampusEvent,
    ChatCreate,
    ChatMessage,
    ChatPost,
    ChatReply,
    ChatSummary,
    ContextSummary,
    EventSummary,
    FaqItem,
    InteractionResult,
    LeaderboardEntry,
    UniversitySummary,
    UserProgress,
)
from .storage import ChatStore
from .utils import extract_topics

logger = logging.getLogger(__name__)

PROGRESS_NOT_SAVED = "Your progress could not be saved this time. Please try again later."
CHAT_NOT_SAVED = "This conversation could not be saved. Your messages may be missing from history."


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    app = FastAPI(title="Campus Guide Backend")
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=False,  # must be False when using "*"
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def on_startup():
        """
        Build the pool, store, engine and AI client for this process.
        A failing schema check is logged; the app still starts.
        """
        logging.basicConfig(level=settings.log_level)

        pool = create_pool(settings.db_url)
        await pool.open(wait=False)
        app.state.pool = pool

        engine = ProgressEngine(ProgressStore(pool))
        app.state.engine = engine
        app.state.processor = InteractionProcessor(engine)
        app.state.chat_store = ChatStore(pool)
        app.state.llm = create_llm_client(settings)

        try:
            await ensure_schema(pool)
        except Exception as e:
            logger.exception(
                "ensure_schema failed on startup, continuing without crash: %s", e
            )

    @app.on_event("shutdown")
    async def on_shutdown():
        pool = getattr(app.state, "pool", None)
        if pool is not None:
            await pool.close()
        llm = getattr(app.state, "llm", None)
        if llm is not None:
            await llm.close()

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailable):
        logger.error("Store unavailable on %s: %s", request.url.path, exc)
        return JSONResponse(
            status_code=503,
            content={
                "error": "db_unavailable",
                "message": "Temporary database issue. Please try again in a moment.",
            },
        )

    @app.exception_handler(AuthenticationRequired)
    async def auth_required_handler(request: Request, exc: AuthenticationRequired):
        return JSONResponse(
            status_code=401,
            content={"error": "auth_required", "message": str(exc)},
        )

    app.include_router(router)
    return app


router = APIRouter()


@router.get("/debug/ping")
def ping():
    return {"status": "alive"}


# -------------------------------------------------------------------
# Universities + FAQ
# -------------------------------------------------------------------
@router.get("/api/universities", response_model=List[UniversitySummary])
def universities_api():
    return list_universities()


@router.get("/api/universities/{university_id}/faq", response_model=List[FaqItem])
def faq_api(university_id: str, q: str = ""):
    return search_faq(university_id, q)


@router.get("/api/universities/{university_id}/events", response_model=List[CampusEvent])
def events_api(university_id: str):
    return list_events(university_id)


@router.get("/api/universities/{university_id}/events/summary", response_model=EventSummary)
async def events_summary_api(
    university_id: str,
    llm: Optional[AsyncAzureOpenAI] = Depends(get_llm),
    settings: Settings = Depends(get_settings),
):
    university = get_university(university_id)
    events = list_events(university["id"])
    summary = await generate_event_summary(
        llm, settings.gpt_deployment, university, events
    )
    return EventSummary(university_id=university["id"], summary=summary, events=events)


@router.get("/api/badges", response_model=List[Badge])
def badges_api():
    return catalog_badges()


# -------------------------------------------------------------------
# Progress
# -------------------------------------------------------------------
@router.get("/api/progress", response_model=UserProgress)
async def progress_api(
    user_id: Optional[str] = Depends(get_current_user_id),
    engine: ProgressEngine = Depends(get_engine),
):
    return await engine.get_progress(user_id)


@router.get("/api/progress/summary", response_model=ContextSummary)
async def progress_summary_api(
    user_id: Optional[str] = Depends(get_current_user_id),
    engine: ProgressEngine = Depends(get_engine),
):
    return ContextSummary(summary=await engine.generate_context_summary(user_id))


@router.post("/api/progress/reset")
async def reset_progress_api(
    user_id: Optional[str] = Depends(get_current_user_id),
    engine: ProgressEngine = Depends(get_engine),
):
    await engine.reset_progress(user_id)
    return {"ok": True}


@router.get("/api/leaderboard", response_model=List[LeaderboardEntry])
async def leaderboard_api(
    limit: Optional[int] = None,
    engine: ProgressEngine = Depends(get_engine),
    settings: Settings = Depends(get_settings),
):
    if limit is None:
        limit = settings.leaderboard_limit
    if limit < 1 or limit > 100:
        raise HTTPException(400, "limit must be between 1 and 100")
    return await engine.get_leaderboard(limit)


# -------------------------------------------------------------------
# Saved chats (signed-in users only)
# -------------------------------------------------------------------
def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise AuthenticationRequired()
    return user_id


@router.get("/api/chats", response_model=List[ChatSummary])
async def list_chats_api(
    user_id: Optional[str] = Depends(get_current_user_id),
    chats: ChatStore = Depends(get_chat_store),
):
    """List chats for the signed-in user, most recently active first."""
    return await chats.list_chats(_require_user(user_id))


@router.post("/api/chats", response_model=ChatSummary)
async def create_chat_api(
    body: ChatCreate,
    user_id: Optional[str] = Depends(get_current_user_id),
    chats: ChatStore = Depends(get_chat_store),
):
    university = get_university(body.university_id)
    return await chats.create_chat(_require_user(user_id), university["id"], body.title)


@router.get("/api/chats/{chat_id}", response_model=List[ChatMessage])
async def get_chat_api(
    chat_id: UUID,
    user_id: Optional[str] = Depends(get_current_user_id),
    chats: ChatStore = Depends(get_chat_store),
):
    if not await chats.chat_exists(chat_id, _require_user(user_id)):
        raise HTTPException(404, "Chat not found")
    return await chats.get_chat(chat_id)


@router.delete("/api/chats/{chat_id}")
async def delete_chat_api(
    chat_id: UUID,
    user_id: Optional[str] = Depends(get_current_user_id),
    chats: ChatStore = Depends(get_chat_store),
):
    if not await chats.delete_chat(chat_id, _require_user(user_id)):
        raise HTTPException(404, "Chat not found")
    return {"ok": True}


# -------------------------------------------------------------------
# Chat with the campus guide (+ progress tracking)
# -------------------------------------------------------------------
@router.post("/api/chat", response_model=ChatReply)
async def chat_api(
    body: ChatPost,
    user_id: Optional[str] = Depends(get_current_user_id),
    engine: ProgressEngine = Depends(get_engine),
    processor: InteractionProcessor = Depends(get_processor),
    chats: ChatStore = Depends(get_chat_store),
    llm: Optional[AsyncAzureOpenAI] = Depends(get_llm),
    settings: Settings = Depends(get_settings),
):
    user_msg = (body.message or "").strip()
    if not user_msg:
        raise HTTPException(400, "Empty message")

    university = get_university(body.university_id)
    warnings: List[str] = []

    # 1) Saved chat: ownership check, then memory from the store.
    # Guests and unsaved chats use the history sent by the client.
    chat_id = body.chat_id
    history = body.history
    if chat_id is not None:
        if not await chats.chat_exists(chat_id, _require_user(user_id)):
            raise HTTPException(404, "Chat not found")
        try:
            history = await chats.get_last_messages(chat_id, settings.memory_last_turns)
        except StoreUnavailable as e:
            logger.error("Could not load memory for chat %s: %s", chat_id, e)

    # 2) Ground the persona in the student's progress
    user_context = await engine.generate_context_summary(user_id)

    # 3) Call LLM
    result = await generate_response(
        llm,
        settings.gpt_deployment,
        university,
        user_msg,
        history,
        user_context,
        history_limit=settings.memory_last_turns,
    )

    # 4) Save both sides of the exchange
    if chat_id is not None:
        try:
            await chats.append_message(chat_id, "user", user_msg)
            await chats.append_message(chat_id, "ai", result["text"])
        except StoreUnavailable as e:
            logger.error("Could not save messages for chat %s: %s", chat_id, e)
            warnings.append(CHAT_NOT_SAVED)

    # 5) Progress: count the message and record its topics
    topics = extract_topics(user_msg)
    try:
        outcome = await processor.process_interaction(user_id, user_msg, topics)
    except StoreUnavailable as e:
        logger.error("Could not record interaction for %s: %s", user_id, e)
        outcome = InteractionResult()
        warnings.append(PROGRESS_NOT_SAVED)

    return ChatReply(
        chat_id=chat_id,
        reply=result["text"],
        map_location=result["map_location"],
        topics=topics,
        newly_unlocked_badges=outcome.newly_unlocked_badges,
        leveled_up=outcome.leveled_up,
        warning=" ".join(warnings) or None,
    )


app = create_app()
