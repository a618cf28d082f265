"""In-memory conversation histories keyed by call SID."""

from __future__ import annotations

import asyncio

from relay.errors import DuplicateSessionError, SessionNotFoundError
from relay.schemas import Message


class ConversationStore:
    """In-memory store for per-call conversation histories.

    Mutations are serialized per call SID; different calls never wait on each
    other. Note: This is a single-process store. Histories are lost on restart,
    which is fine since they mean nothing outside the live call.
    """

    def __init__(self) -> None:
        self._histories: dict[str, list[Message]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, call_sid: object) -> bool:
        return call_sid in self._histories

    def __len__(self) -> int:
        return len(self._histories)

    def _lock(self, call_sid: str) -> asyncio.Lock:
        return self._locks.setdefault(call_sid, asyncio.Lock())

    def _require(self, call_sid: str) -> None:
        # Checked before taking the lock so unknown SIDs never allocate one.
        if call_sid not in self._histories:
            raise SessionNotFoundError(f"Session {call_sid} not found.")

    async def create(self, call_sid: str, system_message: Message) -> None:
        if system_message.role != "system":
            raise ValueError("A history must start with a system message.")

        async with self._lock(call_sid):
            if call_sid in self._histories:
                raise DuplicateSessionError(f"Session {call_sid} already exists.")
            self._histories[call_sid] = [system_message]

    async def get(self, call_sid: str) -> tuple[Message, ...]:
        """Return a read-only snapshot of the history."""

        self._require(call_sid)
        async with self._lock(call_sid):
            history = self._histories.get(call_sid)
            if history is None:
                raise SessionNotFoundError(f"Session {call_sid} not found.")
            return tuple(history)

    async def append(self, call_sid: str, message: Message) -> None:
        self._require(call_sid)
        async with self._lock(call_sid):
            history = self._histories.get(call_sid)
            if history is None:
                raise SessionNotFoundError(f"Session {call_sid} not found.")
            history.append(message)

    async def delete(self, call_sid: str) -> bool:
        """Drop the history; returns False if there was nothing to drop."""

        async with self._lock(call_sid):
            removed = self._histories.pop(call_sid, None) is not None
        self._locks.pop(call_sid, None)
        return removed
