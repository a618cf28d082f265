"""Pydantic schemas for conversation history and ConversationRelay messages."""

from __future__ import annotations

import json
import logging
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

LOGGER = logging.getLogger(__name__)

Role = Literal["system", "user", "assistant"]


class Message(BaseModel):
    """One entry of a call's conversation history."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str

    def as_llm_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


class _InboundEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SetupEvent(_InboundEvent):
    type: Literal["setup"] = "setup"
    call_sid: str = Field(alias="callSid", min_length=1)
    session_id: str | None = Field(default=None, alias="sessionId")
    from_number: str | None = Field(default=None, alias="from")
    to_number: str | None = Field(default=None, alias="to")
    direction: str | None = None
    custom_parameters: dict[str, Any] = Field(default_factory=dict, alias="customParameters")


class PromptEvent(_InboundEvent):
    type: Literal["prompt"] = "prompt"
    voice_prompt: str = Field(alias="voicePrompt")
    lang: str | None = None
    last: bool = True


class InterruptEvent(_InboundEvent):
    type: Literal["interrupt"] = "interrupt"
    utterance_until_interrupt: str | None = Field(default=None, alias="utteranceUntilInterrupt")
    # Only logged; kept loose so an odd value never drops the barge-in.
    duration_until_interrupt_ms: float | str | None = Field(default=None, alias="durationUntilInterruptMs")


class ErrorEvent(_InboundEvent):
    type: Literal["error"] = "error"
    description: str | None = None


InboundEvent = Union[SetupEvent, PromptEvent, InterruptEvent, ErrorEvent]

_EVENT_TYPES: dict[str, type[_InboundEvent]] = {
    "setup": SetupEvent,
    "prompt": PromptEvent,
    "interrupt": InterruptEvent,
    "error": ErrorEvent,
}


class TextToken(BaseModel):
    """Outbound text message; Twilio speaks ``token`` and ends the turn on ``last``."""

    type: Literal["text"] = "text"
    token: str
    last: bool


def parse_inbound_event(text: str) -> InboundEvent | None:
    """Parse one WebSocket text frame.

    Returns ``None`` for message types we do not act on. Raises ``ValueError``
    for malformed JSON or a known type with invalid fields.
    """

    message = json.loads(text)
    if not isinstance(message, dict):
        raise ValueError("ConversationRelay message must be a JSON object.")

    event_type = str(message.get("type") or "")
    model = _EVENT_TYPES.get(event_type)
    if model is None:
        LOGGER.debug("Ignoring ConversationRelay message of type %r", event_type)
        return None
    return model.model_validate(message)
