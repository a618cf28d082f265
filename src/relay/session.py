"""Per-connection call session record."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum

from relay.emitter import FragmentEmitter
from relay.generator import Generation


class SessionState(str, Enum):
    ACTIVE = "active"
    AWAITING_RESPONSE = "awaiting_response"
    TERMINATED = "terminated"


@dataclass(slots=True)
class CallSession:
    """State owned by one ConversationRelay WebSocket connection.

    ``state`` is ``None`` until a ``setup`` message binds the connection to a
    call SID. ``generation`` and ``task`` track the single in-flight turn.
    """

    emitter: FragmentEmitter
    call_sid: str | None = None
    state: SessionState | None = None
    generation: Generation | None = None
    task: asyncio.Task | None = None
