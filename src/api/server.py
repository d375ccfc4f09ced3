# src/api/server.py
"""
Order Agent - Web Chat Transport

server.py responsibilities:
- HTTP chat endpoints (start / message) for the web chat tester
- Session lifecycle through an injected SessionStore (one lock per session)
- Store config load (StoreManager) and per-store SessionController cache
- Ticket hand-off on confirmation (pricing + kitchen text + TicketRepo)

All dialogue logic lives in SessionController.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

# .env must be loaded before settings reads the environment
load_dotenv()

from . import settings  # noqa: E402
from .catalog import build_index  # noqa: E402
from .models.ticket import ticket_from_session  # noqa: E402
from .parser.ai_interpreter import AIInterpreter  # noqa: E402
from .parser.types import Intent  # noqa: E402
from .pricing import price  # noqa: E402
from .services.openai_client import OpenAIClient  # noqa: E402
from .session_controller import SessionController  # noqa: E402
from .session_store import InMemorySessionStore, SessionStore  # noqa: E402
from .store_manager import StoreConfig, StoreConfigError, StoreManager, StoreNotFoundError  # noqa: E402
from .telemetry import TelemetryContext, TelemetryEmitter, get_telemetry_emitter  # noqa: E402
from .ticket_formatter import format_for_kitchen  # noqa: E402
from src.db.ticket_repo import InMemoryTicketRepo, TicketRepo, create_ticket_repo  # noqa: E402

# --------------------------------------------------
# Logging (configured once)
# --------------------------------------------------
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger("order-agent")

MSG_EMPTY_TEXT = "Sorry, I didn't catch that. Please say it again."
MSG_NO_SESSION = "Session not found. Call /api/chat/start first."


class ChatStartRequest(BaseModel):
    to: Optional[str] = None


class ChatMessageRequest(BaseModel):
    sessionId: str
    text: Optional[str] = ""


def _default_ai_interpreter() -> Optional[AIInterpreter]:
    if not settings.AI_INTERPRETER_ENABLED:
        return None
    if not settings.OPENAI_API_KEY:
        logger.warning("AI_INTERPRETER_ENABLED but OPENAI_API_KEY missing; using rules only.")
        return None
    client = OpenAIClient(
        api_key=settings.OPENAI_API_KEY,
        chat_model=settings.OPENAI_CHAT_MODEL,
        timeout_s=settings.AI_TIMEOUT_SEC,
    )
    return AIInterpreter(client, timeout_s=settings.AI_TIMEOUT_SEC)


def create_app(
    *,
    store_manager: Optional[StoreManager] = None,
    session_store: Optional[SessionStore] = None,
    ticket_repo: Optional[TicketRepo] = None,
    ai_interpreter: Optional[AIInterpreter] = None,
    telemetry: Optional[TelemetryEmitter] = None,
) -> FastAPI:
    stores = store_manager or StoreManager(settings.STORES_DIR)
    sessions: SessionStore = session_store or InMemorySessionStore(ttl_seconds=settings.SESSION_TTL_SECONDS)
    ai = ai_interpreter if ai_interpreter is not None else _default_ai_interpreter()
    emitter = telemetry or get_telemetry_emitter()
    controllers: Dict[str, SessionController] = {}
    repo_holder: Dict[str, TicketRepo] = {"repo": ticket_repo or InMemoryTicketRepo()}

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("[startup] stores=%d ai_interpreter=%s", len(stores.all_stores()), bool(ai))
        if ticket_repo is None and settings.DATABASE_URL:
            repo_holder["repo"] = await create_ticket_repo(settings.DATABASE_URL, schema=settings.TICKETS_SCHEMA)
        logger.info("[startup] DATABASE_URL set=%s", bool(settings.DATABASE_URL))
        yield
        # only the client this app created
        if ai_interpreter is None and ai is not None:
            await ai.client.close()

    app = FastAPI(lifespan=lifespan)

    # --------------------------------------------------
    # Helpers
    # --------------------------------------------------
    def controller_for(cfg: StoreConfig) -> SessionController:
        ctl = controllers.get(cfg.store_id)
        if ctl is None:
            try:
                ctl = SessionController(cfg)
            except StoreConfigError as e:
                logger.error("store %s cannot take orders: %s", cfg.store_id, e)
                raise HTTPException(status_code=503, detail=str(e))
            controllers[cfg.store_id] = ctl
        return ctl

    def store_or_404(store_id: str) -> StoreConfig:
        cfg = stores.get_store(store_id)
        if cfg is None:
            raise HTTPException(status_code=404, detail=f"Store not found: {store_id}")
        return cfg

    # --------------------------------------------------
    # Routes
    # --------------------------------------------------
    @app.get("/")
    async def root() -> Dict[str, Any]:
        return {"ok": True, "service": "order-agent"}

    @app.post("/api/chat/start")
    async def chat_start(body: ChatStartRequest) -> Dict[str, Any]:
        to = (body.to or settings.DEFAULT_STORE_TO or "").strip()
        try:
            cfg = stores.require_store_by_phone(to)
        except StoreNotFoundError:
            raise HTTPException(status_code=404, detail="Store not found for this 'to' value.")

        ctl = controller_for(cfg)
        sessions.evict_expired()

        session_id = f"chat_{uuid.uuid4().hex}"
        sessions.put(session_id, ctl.new_session(session_id, caller="web"))
        logger.info("[%s] chat started store=%s", session_id, cfg.store_id)
        return {"sessionId": session_id, "message": ctl.greeting()}

    @app.post("/api/chat/message")
    async def chat_message(body: ChatMessageRequest) -> Dict[str, Any]:
        sid = (body.sessionId or "").strip()

        async with sessions.lock(sid):
            session = sessions.get(sid)
            if session is None:
                raise HTTPException(status_code=400, detail=MSG_NO_SESSION)

            cfg = store_or_404(session.store_id)
            ctl = controller_for(cfg)

            text = (body.text or "").strip()
            if not text:
                return {"message": MSG_EMPTY_TEXT, "done": False, "session": session.to_dict()}

            interpretation = None
            if ai is not None:
                r = await ai.interpret(ctl.index, cfg, session, text)
                if r.intent != Intent.NONE:
                    interpretation = r

            result = ctl.handle_turn(session, text, interpretation)
            ctx = TelemetryContext(session_id=sid, store_id=cfg.store_id)
            if not result.understood:
                emitter.emit_match_failed(
                    ctx=ctx,
                    utterance=text,
                    awaiting=session.awaiting.type.value if session.awaiting else None,
                )

            payload: Dict[str, Any] = {
                "message": result.reply,
                "done": session.completed,
                "session": session.to_dict(),
            }

            if not session.completed:
                sessions.put(sid, session)
                return payload

            breakdown = price(cfg, session)
            emitter.emit_price_skipped(ctx=ctx, skipped=breakdown.skipped)
            ticket = await repo_holder["repo"].create_ticket(ticket_from_session(cfg, session, breakdown))
            kitchen = format_for_kitchen(ticket)
            logger.info("[%s] ticket %s total=%s\n%s", sid, ticket.id, ticket.total, kitchen)

            payload["ticket"] = {**ticket.to_dict(), "kitchenText": kitchen}
            sessions.delete(sid)
            return payload

    @app.get("/api/stores/{store_id}/tickets")
    async def list_tickets(store_id: str) -> List[Dict[str, Any]]:
        cfg = store_or_404(store_id)
        tickets = await repo_holder["repo"].list_by_store(cfg.store_id)
        return [t.to_dict() for t in tickets]

    @app.get("/api/stores/{store_id}/tickets/{ticket_id}")
    async def get_ticket(store_id: str, ticket_id: int) -> Dict[str, Any]:
        cfg = store_or_404(store_id)
        t = await repo_holder["repo"].get_ticket(cfg.store_id, ticket_id)
        if t is None:
            raise HTTPException(status_code=404, detail=f"Ticket not found: {ticket_id}")
        return {**t.to_dict(), "kitchenText": format_for_kitchen(t)}

    @app.get("/api/stores/{store_id}/menu")
    async def store_menu(store_id: str) -> Dict[str, Any]:
        cfg = store_or_404(store_id)
        menu: Dict[str, List[str]] = {}
        for e in build_index(cfg):
            menu.setdefault(e.kind, []).append(e.name)
        return {
            "storeId": cfg.store_id,
            "name": cfg.name,
            "sizes": list(cfg.supported_sizes),
            "menu": menu,
        }

    return app


app = create_app()
