"""Shared FastAPI dependencies.

Separated to avoid circular imports between route modules.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING

from config.settings import get_settings

if TYPE_CHECKING:  # pragma: no cover
    from relay.router import SessionEventRouter


@lru_cache(maxsize=1)
def _router_factory() -> SessionEventRouter:
    # Lazy import so the app can start (and be tested) without LLM credentials.
    from llm.factory import build_llm_client
    from relay.generator import GenerationMode, ResponseGenerator
    from relay.router import SessionEventRouter
    from relay.store import ConversationStore

    settings = get_settings()
    generator = ResponseGenerator(
        build_llm_client(),
        mode=GenerationMode.STREAMING if settings.use_streaming else GenerationMode.BATCH,
        temperature=settings.llm_temperature,
    )
    return SessionEventRouter(
        ConversationStore(),
        generator,
        system_prompt=settings.system_prompt,
    )


def get_router() -> SessionEventRouter:
    return _router_factory()
