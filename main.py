import inspect
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

import aiosqlite
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from openai import AsyncOpenAI

from dal.message_dal import MessageDAL
from routes.chat_route import router as chat_router
from routes.realtime_ws import router as realtime_router
from services.airline.adapters import AirlineApiClient
from services.flow.dispatcher import ActionDispatcher
from services.flow.orchestrator import Orchestrator
from services.flow.session_registry import SessionRegistry
from services.openai.intent_classifier import IntentClassifier
from services.openai.response_composer import ResponseComposer
from services.transcript_store import TranscriptStore
from utils.database_init import AsyncDatabaseInitializer
from utils.settings import Settings

load_dotenv()  # Load environment variables from .env file if present


async def _open_transcript_store(settings: Settings) -> TranscriptStore:
    """Return a transcript store, or a disabled one when the database is unusable."""
    try:
        db_initializer = AsyncDatabaseInitializer(
            settings.database_dir, reset_on_start=settings.database_reset_on_start
        )
        await db_initializer.ensure_database()
    except (RuntimeError, OSError, aiosqlite.Error) as exc:
        logging.warning("Transcript store disabled, conversations stay in memory: %s", exc)
        return TranscriptStore(None)
    logging.info("Transcript store ready at %s", db_initializer.db_path)
    return TranscriptStore(MessageDAL(db_initializer))


def _create_openai_client() -> Optional[AsyncOpenAI]:
    if not os.getenv("OPENAI_API_KEY"):
        logging.warning("OPENAI_API_KEY is not set; replies fall back to canned text")
        return None
    try:
        return AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc


async def _close_quietly(client) -> None:
    aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
    if aclose is None:
        return
    try:
        if inspect.iscoroutinefunction(aclose):
            await aclose()
        else:
            result = aclose()
            if inspect.isawaitable(result):
                await result
    except Exception as exc:
        # Shutdown errors must not mask the reason the app is stopping.
        logging.warning("Error closing %s: %s", type(client).__name__, exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the SQLite transcript store (disabled if DATABASE_DIR is unusable)
      - the OpenAI async client used for classification and replies
      - the partner airline API client
    and attach the resulting orchestrator to `app.state`.
    """
    settings: Settings = app.state.settings
    store = await _open_transcript_store(settings)
    openai_client = _create_openai_client()
    airline_client = AirlineApiClient(settings)

    registry = SessionRegistry(
        store,
        history_limit=settings.history_limit,
        idle_timeout=settings.rest_session_idle_seconds,
        max_idle_sessions=settings.rest_session_limit,
    )
    app.state.openai_client = openai_client
    app.state.airline_client = airline_client
    app.state.orchestrator = Orchestrator(
        registry=registry,
        classifier=IntentClassifier(openai_client, model=settings.openai_model),
        dispatcher=ActionDispatcher(airline_client),
        composer=ResponseComposer(openai_client, model=settings.openai_model),
    )

    try:
        yield
    finally:
        await _close_quietly(airline_client)
        if openai_client is not None:
            await _close_quietly(openai_client)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    settings = settings or Settings.from_env()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(lifespan=lifespan)
    app.state.settings = settings

    @app.get("/health")
    async def health(request: Request):
        """
        Report liveness and whether the transcript store is persisting messages.
        """
        orchestrator = getattr(request.app.state, "orchestrator", None)
        store_enabled = bool(orchestrator and orchestrator.registry.store.enabled)
        return {"status": "OK", "message": "API Gateway is running", "store_enabled": store_enabled}

    # Register application routers
    app.include_router(chat_router)
    app.include_router(realtime_router)

    return app


app = create_app()
