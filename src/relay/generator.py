"""Assistant reply generation on top of a configured LLM client."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing
from enum import Enum

from llm.base import BaseLLMClient
from relay.errors import BackendError, EmptyResponseError
from relay.schemas import Message


class GenerationMode(str, Enum):
    STREAMING = "streaming"
    BATCH = "batch"


class GenerationStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class Generation:
    """A single assistant reply being produced for a snapshot of history.

    ``fragments()`` yields non-empty text slices in backend order. Batch mode
    yields the whole reply as one slice. Once cancelled, nothing further is
    yielded and the backend stream is closed.
    """

    def __init__(
        self,
        llm: BaseLLMClient,
        history: Sequence[Message],
        mode: GenerationMode,
        *,
        temperature: float | None = None,
    ) -> None:
        if not history or history[0].role != "system":
            raise ValueError("History must start with a system message.")

        self.mode = mode
        self.status = GenerationStatus.RUNNING
        self.error: BackendError | None = None
        self._llm = llm
        self._history = tuple(history)
        self._temperature = temperature
        self._parts: list[str] = []

    @property
    def text(self) -> str:
        return "".join(self._parts)

    @property
    def cancelled(self) -> bool:
        return self.status is GenerationStatus.CANCELLED

    def cancel(self) -> bool:
        if self.status is not GenerationStatus.RUNNING:
            return False
        self.status = GenerationStatus.CANCELLED
        return True

    async def fragments(self) -> AsyncIterator[str]:
        messages = [message.as_llm_message() for message in self._history]

        try:
            if self.mode is GenerationMode.BATCH:
                source = self._batch(messages)
            else:
                source = self._llm.stream_chat(messages, temperature=self._temperature)

            async with aclosing(source) as chunks:
                async for chunk in chunks:
                    if self.status is not GenerationStatus.RUNNING:
                        return
                    if not chunk:
                        continue
                    self._parts.append(chunk)
                    yield chunk
        except (asyncio.CancelledError, GeneratorExit):
            self.cancel()
            raise
        except BackendError as exc:
            self._fail(exc)
            raise
        except Exception as exc:
            error = BackendError(f"{type(exc).__name__}: {exc}")
            self._fail(error)
            raise error from exc

        if self.status is not GenerationStatus.RUNNING:
            return
        if not self.text.strip():
            error = EmptyResponseError()
            self._fail(error)
            raise error
        self.status = GenerationStatus.COMPLETED

    async def _batch(self, messages: list[dict[str, str]]) -> AsyncIterator[str]:
        yield await self._llm.chat(messages, temperature=self._temperature)

    def _fail(self, error: BackendError) -> None:
        self.status = GenerationStatus.FAILED
        self.error = error


class ResponseGenerator:
    """Owns the single integration point with the model backend."""

    def __init__(
        self,
        llm: BaseLLMClient,
        *,
        mode: GenerationMode = GenerationMode.STREAMING,
        temperature: float | None = None,
    ) -> None:
        self._llm = llm
        self.mode = mode
        self._temperature = temperature

    def generate(
        self,
        history: Sequence[Message],
        mode: GenerationMode | None = None,
    ) -> Generation:
        return Generation(
            self._llm,
            history,
            mode or self.mode,
            temperature=self._temperature,
        )
