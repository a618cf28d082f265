"""Entry point for the ConversationRelay voice assistant service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from api.routes import router as api_router
from api.twilio_routes import elevenlabs_voice
from config.settings import get_settings

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    base = (settings.public_base_url or f"http://localhost:{settings.port}").rstrip("/")
    LOGGER.info("TwiML endpoint: %s/api/twilio/twiml", base)
    LOGGER.info("WebSocket endpoint: %s/api/twilio/ws", base)
    LOGGER.info("AI model: %s (%s)", settings.llm_model, settings.llm_provider)
    LOGGER.info("Voice: %s", elevenlabs_voice(settings) or "ConversationRelay default")
    LOGGER.info("Streaming: %s", "enabled" if settings.use_streaming else "disabled")
    yield


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(
    title="ConversationRelay Voice Assistant",
    description="Relays Twilio ConversationRelay calls to a language model, token by token.",
    lifespan=lifespan,
)
app.include_router(api_router, prefix="/api")


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
