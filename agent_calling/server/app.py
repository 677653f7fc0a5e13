"""
HTTP server for the voice call page and its two relays.

Routes:
- GET  /          the browser page
- POST /api/chat  chat relay, always 200 with a message
- POST /api/tts   speech relay, audio/mpeg or 501/500 plain text
- GET  /health    liveness and which relays are configured
"""

from importlib import resources
from typing import List, Optional

import structlog
from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool

from ..config.settings import Settings, settings as default_settings
from ..core.models import ConversationMessage
from ..errors import SpeechNotConfiguredError, SpeechUpstreamError
from ..relays.chat import GENERIC_FALLBACK, ChatRelay
from ..relays.speech import AUDIO_MEDIA_TYPE, SpeechRelay


logger = structlog.get_logger()
router = APIRouter()


class ChatRequest(BaseModel):
    messages: List[ConversationMessage]


class ChatResponse(BaseModel):
    message: str


class SpeechRequest(BaseModel):
    text: str


@router.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    page = resources.files("agent_calling.server").joinpath("static/index.html")
    return HTMLResponse(page.read_text(encoding="utf-8"))


@router.post("/api/chat", response_model=ChatResponse)
async def chat(request: Request) -> ChatResponse:
    """Chat relay. Never answers with an error status."""
    relay: ChatRelay = request.app.state.chat_relay

    try:
        payload = ChatRequest.model_validate(await request.json())
    except ValueError as e:
        logger.warning("Invalid chat request", error=str(e))
        return ChatResponse(message=GENERIC_FALLBACK)

    logger.debug("Chat request", message_count=len(payload.messages))
    message = await relay.reply(payload.messages)
    return ChatResponse(message=message)


@router.post("/api/tts")
async def tts(request: Request) -> Response:
    """Speech relay. 501 when unconfigured, 500 when ElevenLabs fails."""
    relay: SpeechRelay = request.app.state.speech_relay

    try:
        payload = SpeechRequest.model_validate(await request.json())
        # The ElevenLabs client is synchronous
        audio = await run_in_threadpool(relay.synthesize, payload.text)
    except (SpeechNotConfiguredError, SpeechUpstreamError) as e:
        logger.warning("TTS request failed", status_code=e.status_code, error=str(e))
        return PlainTextResponse(e.body, status_code=e.status_code)
    except ValueError as e:
        logger.warning("Invalid TTS request", error=str(e))
        return PlainTextResponse(SpeechUpstreamError.body, status_code=500)

    return Response(content=audio, media_type=AUDIO_MEDIA_TYPE)


@router.get("/health")
async def health(request: Request) -> dict:
    return {
        "status": "ok",
        "component": "agent_calling",
        "chat_configured": request.app.state.chat_relay.configured,
        "tts_configured": request.app.state.speech_relay.configured,
    }


def create_app(
    settings: Optional[Settings] = None,
    chat_relay: Optional[ChatRelay] = None,
    speech_relay: Optional[SpeechRelay] = None,
) -> FastAPI:
    """Build the application; relays default to ones built from ``settings``."""
    settings = settings or default_settings

    app = FastAPI(title="AI Agent Calling")
    app.state.settings = settings
    app.state.chat_relay = chat_relay or ChatRelay.from_settings(settings)
    app.state.speech_relay = speech_relay or SpeechRelay.from_settings(settings)
    app.include_router(router)

    logger.info(
        "Application created",
        chat_configured=app.state.chat_relay.configured,
        tts_configured=app.state.speech_relay.configured,
    )
    return app
