"""Session state machine driven by inbound ConversationRelay events."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from relay.errors import BackendError, DuplicateSessionError, RelayError, SessionNotFoundError
from relay.generator import Generation, GenerationStatus, ResponseGenerator
from relay.interruption import InterruptionController
from relay.schemas import ErrorEvent, InboundEvent, InterruptEvent, Message, PromptEvent, SetupEvent
from relay.session import CallSession, SessionState
from relay.store import ConversationStore

LOGGER = logging.getLogger(__name__)


class SessionEventRouter:
    """Routes transport events for every connection of the process.

    One router is shared by all connections; each connection passes its own
    ``CallSession``. Events for one session must be dispatched one at a time,
    while each reply runs as a separate task so that an ``interrupt`` or a
    disconnect can be acted on mid-response.
    """

    def __init__(
        self,
        store: ConversationStore,
        generator: ResponseGenerator,
        *,
        system_prompt: str,
        interruptions: InterruptionController | None = None,
    ) -> None:
        self.store = store
        self._generator = generator
        self._system_prompt = system_prompt
        self._interruptions = interruptions or InterruptionController()
        self._handlers: dict[str, Callable[[CallSession, InboundEvent], Awaitable[None]]] = {
            "setup": self._on_setup,
            "prompt": self._on_prompt,
            "interrupt": self._on_interrupt,
            "error": self._on_error,
        }

    async def dispatch(self, session: CallSession, event: InboundEvent) -> None:
        handler = self._handlers.get(event.type)
        if handler is None:
            LOGGER.debug("Ignoring event %r for %s", event.type, session.call_sid)
            return

        try:
            await handler(session, event)
        except DuplicateSessionError as exc:
            LOGGER.warning("Rejected setup: %s", exc.detail)
        except SessionNotFoundError as exc:
            LOGGER.warning("Dropped %s event: %s", event.type, exc.detail)

    async def disconnect(self, session: CallSession) -> None:
        """Tear the session down; safe to call for a connection that never set up."""

        session.emitter.close()
        await self._interruptions.interrupt(session, force=True)
        if session.call_sid is not None:
            await self.store.delete(session.call_sid)
            LOGGER.info("Call ended: %s", session.call_sid)
        session.state = SessionState.TERMINATED

    async def _on_setup(self, session: CallSession, event: SetupEvent) -> None:
        if session.call_sid is not None:
            raise DuplicateSessionError(
                f"Connection is already bound to {session.call_sid}, ignoring setup for {event.call_sid}."
            )

        await self.store.create(event.call_sid, Message(role="system", content=self._system_prompt))
        session.call_sid = event.call_sid
        session.state = SessionState.ACTIVE
        LOGGER.info("Call setup: %s (from=%s, to=%s)", event.call_sid, event.from_number, event.to_number)

    async def _on_prompt(self, session: CallSession, event: PromptEvent) -> None:
        call_sid = self._require_call(session)
        if not event.last:
            # Partial prompts are not supported; only the final transcript starts a turn.
            LOGGER.debug("Ignoring partial prompt on %s: %s", call_sid, event.voice_prompt)
            return

        # A new utterance supersedes whatever is still being said.
        await self._interruptions.interrupt(session)
        await self.store.append(call_sid, Message(role="user", content=event.voice_prompt))
        LOGGER.info("User prompt on %s: %s", call_sid, event.voice_prompt)

        history = await self.store.get(call_sid)
        generation = self._generator.generate(history)
        session.generation = generation
        session.state = SessionState.AWAITING_RESPONSE
        session.task = asyncio.create_task(
            self._complete_turn(session, call_sid, generation),
            name=f"turn:{call_sid}",
        )

    async def _on_interrupt(self, session: CallSession, event: InterruptEvent) -> None:
        call_sid = self._require_call(session)
        LOGGER.info(
            "Call interrupted: %s (heard %r after %s ms)",
            call_sid,
            event.utterance_until_interrupt,
            event.duration_until_interrupt_ms,
        )
        await self._interruptions.interrupt(session)

    async def _on_error(self, session: CallSession, event: ErrorEvent) -> None:
        LOGGER.warning("ConversationRelay reported an error on %s: %s", session.call_sid, event.description)

    def _require_call(self, session: CallSession) -> str:
        call_sid = session.call_sid
        if call_sid is None:
            raise SessionNotFoundError("Connection has not completed setup.")
        if call_sid not in self.store:
            raise SessionNotFoundError(f"Session {call_sid} not found.")
        return call_sid

    async def _complete_turn(self, session: CallSession, call_sid: str, generation: Generation) -> None:
        try:
            await session.emitter.relay(generation)
            if generation.status is not GenerationStatus.COMPLETED:
                return
            await self.store.append(call_sid, Message(role="assistant", content=generation.text))
            LOGGER.info("AI response on %s: %s", call_sid, generation.text)
        except BackendError as exc:
            LOGGER.error("Response generation failed for %s: %s", call_sid, exc.detail)
        except RelayError as exc:
            LOGGER.warning("Dropped response for %s: %s", call_sid, exc.detail)
        except Exception:
            LOGGER.exception("Streaming response failed for %s", call_sid)
        finally:
            if session.generation is generation:
                session.generation = None
                session.task = None
                if session.state is SessionState.AWAITING_RESPONSE:
                    session.state = SessionState.ACTIVE
