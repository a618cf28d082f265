"""Domain-specific exceptions for the call session engine.

These exceptions are safe to import from API layers without pulling in an LLM SDK.
"""

from __future__ import annotations


class RelayError(Exception):
    default_detail: str = "Relay error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class DuplicateSessionError(RelayError):
    default_detail = "A session already exists for this call."


class SessionNotFoundError(RelayError):
    default_detail = "No active session for this call."


class BackendError(RelayError):
    default_detail = "LLM request failed."


class EmptyResponseError(BackendError):
    default_detail = "LLM returned no content."
