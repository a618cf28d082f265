"""Outbound framing of generated text for ConversationRelay."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from contextlib import aclosing

from relay.errors import BackendError
from relay.generator import Generation, GenerationStatus
from relay.schemas import TextToken

SendText = Callable[[str], Awaitable[None]]


class FragmentEmitter:
    """Serializes fragments into ``{"type": "text", ...}`` messages for one connection."""

    def __init__(self, send_text: SendText) -> None:
        self._send_text = send_text
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop sending; the transport is gone."""

        self._closed = True

    async def emit(self, token: str, *, last: bool) -> bool:
        if self._closed:
            return False
        await self._send_text(TextToken(token=token, last=last).model_dump_json())
        return True

    async def relay(self, generation: Generation) -> None:
        """Forward every fragment of ``generation`` and close the turn.

        The end-of-turn marker follows a completed or failed generation exactly
        once and is never sent for a cancelled one. ``BackendError`` is
        re-raised after the marker so the caller can skip the history update.
        """

        try:
            async with aclosing(generation.fragments()) as fragments:
                async for fragment in fragments:
                    if generation.cancelled:
                        return
                    await self.emit(fragment, last=False)
        except BackendError:
            await self.emit("", last=True)
            raise

        if generation.status is GenerationStatus.COMPLETED:
            await self.emit("", last=True)
