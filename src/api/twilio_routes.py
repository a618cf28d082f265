"""Twilio ConversationRelay integration.

This module provides:
- TwiML webhook that connects an incoming call to ConversationRelay.
- The ConversationRelay WebSocket, which carries transcribed prompts in and
  assistant text tokens out. Speech recognition and synthesis stay on Twilio.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, Response, WebSocket, WebSocketDisconnect
from twilio.twiml.voice_response import Connect, ConversationRelay, VoiceResponse

from api.dependencies import get_router
from config.settings import Settings, get_settings
from relay.emitter import FragmentEmitter
from relay.router import SessionEventRouter
from relay.schemas import parse_inbound_event
from relay.session import CallSession

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/twilio", tags=["twilio"])


def _twiml_response(xml: str) -> Response:
    # Twilio expects application/xml
    return Response(content=xml, media_type="application/xml")


def _to_ws_url(http_url: str) -> str:
    if http_url.startswith("https://"):
        return "wss://" + http_url.removeprefix("https://")
    if http_url.startswith("http://"):
        return "ws://" + http_url.removeprefix("http://")
    return http_url


def _relay_ws_url(request: Request) -> str:
    settings = get_settings()
    if settings.public_base_url:
        return _to_ws_url(f"{settings.public_base_url.rstrip('/')}/api/twilio/ws")
    # Fallback to request host. This may not work behind proxies; prefer PUBLIC_BASE_URL.
    return _to_ws_url(str(request.url_for("conversation_relay_ws")))


def elevenlabs_voice(settings: Settings) -> str | None:
    """Render the ElevenLabs voice as ``<id>-<model>-<speed>_<stability>_<similarity>``."""

    if not settings.elevenlabs_voice_id:
        return None
    voice = settings.elevenlabs_voice_id
    if not settings.elevenlabs_model:
        return voice
    voice = f"{voice}-{settings.elevenlabs_model}"
    tuning = (
        settings.elevenlabs_speed,
        settings.elevenlabs_stability,
        settings.elevenlabs_similarity,
    )
    if all(tuning):
        voice = f"{voice}-{'_'.join(tuning)}"
    return voice


def _twiml_conversation_relay(*, ws_url: str, settings: Settings) -> str:
    attributes: dict[str, str] = {
        "url": ws_url,
        "welcome_greeting": settings.welcome_greeting,
    }
    voice = elevenlabs_voice(settings)
    if voice:
        attributes["tts_provider"] = "ElevenLabs"
        attributes["voice"] = voice
    if settings.elevenlabs_text_normalization:
        attributes["elevenlabs_text_normalization"] = settings.elevenlabs_text_normalization
    if settings.conversational_intelligence_sid:
        attributes["intelligence_service"] = settings.conversational_intelligence_sid

    connect = Connect()
    connect.append(ConversationRelay(**attributes))
    response = VoiceResponse()
    response.append(connect)
    return str(response)


@router.api_route("/twiml", methods=["GET", "POST"])
async def conversation_relay_twiml(request: Request) -> Response:
    """TwiML webhook that hands the call over to ConversationRelay."""

    settings = get_settings()
    return _twiml_response(
        _twiml_conversation_relay(ws_url=_relay_ws_url(request), settings=settings)
    )


@router.websocket("/ws")
async def conversation_relay_ws(
    websocket: WebSocket,
    relay: SessionEventRouter = Depends(get_router),
) -> None:
    await websocket.accept()
    session = CallSession(emitter=FragmentEmitter(websocket.send_text))
    try:
        while True:
            message = await websocket.receive_text()
            try:
                event = parse_inbound_event(message)
            except ValueError as exc:
                LOGGER.warning("Dropping malformed ConversationRelay message: %s", exc)
                continue
            if event is None:
                continue
            await relay.dispatch(session, event)
    except WebSocketDisconnect:
        LOGGER.info("WebSocket connection closed for %s", session.call_sid)
    finally:
        await relay.disconnect(session)
