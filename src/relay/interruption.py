"""Barge-in handling: cancel whatever the assistant is still saying."""

from __future__ import annotations

import asyncio
import logging

from relay.generator import GenerationStatus
from relay.session import CallSession, SessionState

LOGGER = logging.getLogger(__name__)


class InterruptionController:
    async def interrupt(self, session: CallSession, *, force: bool = False) -> bool:
        """Cancel the in-flight turn, if any, and wait for it to unwind.

        Returns True when a running generation was cancelled. A generation that
        already completed or failed is left to send its end-of-turn marker and
        record its reply; ``force`` cancels it anyway (the transport is gone).
        Interrupting a silent session is a no-op.
        """

        generation, task = session.generation, session.task
        session.generation = None
        session.task = None

        cancelled = False
        if generation is not None and generation.status is GenerationStatus.RUNNING:
            cancelled = generation.cancel()
        if task is not None and not task.done():
            if cancelled or force or generation is None:
                task.cancel()
            # asyncio.wait never raises the task's CancelledError into our caller.
            await asyncio.wait([task])
        if session.state is SessionState.AWAITING_RESPONSE:
            session.state = SessionState.ACTIVE

        if cancelled:
            LOGGER.info(
                "Cancelled response for %s after %d characters",
                session.call_sid,
                len(generation.text),
            )
        return cancelled
