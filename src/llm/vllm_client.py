"""Client for self-hosted vLLM or TGI compatible inference endpoints."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Iterable
from typing import Any, List

import httpx

from config.settings import get_settings
from llm.base import BaseLLMClient

LOGGER = logging.getLogger(__name__)

_SSE_PREFIX = "data:"
_SSE_DONE = "[DONE]"


class VLLMClient(BaseLLMClient):
    """Minimal client for a self-hosted OpenAI-compatible inference server."""

    def __init__(
        self,
        *,
        endpoint: str | None = None,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        endpoint = endpoint or settings.llm_endpoint
        if not endpoint:
            raise ValueError("Self-hosted LLM endpoint must be configured.")

        self._endpoint = endpoint.rstrip("/")
        self._model = model or settings.llm_model
        self._api_key = api_key if api_key is not None else settings.llm_api_key
        self._timeout = timeout or settings.llm_timeout_seconds
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _payload(self, messages: Iterable[dict[str, str]], temperature: float | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": list(messages),
        }
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    async def chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        temperature: float | None = None,
    ) -> str:
        async with self._http_client() as client:
            response = await client.post(
                f"{self._endpoint}/v1/chat/completions",
                json=self._payload(messages, temperature),
                headers=self._headers(),
            )

        response.raise_for_status()
        data = response.json()
        choices: List[dict] = data.get("choices", [])
        if not choices:
            raise RuntimeError("LLM response contains no choices.")
        return choices[0]["message"].get("content") or ""

    async def stream_chat(
        self,
        messages: Iterable[dict[str, str]],
        *,
        temperature: float | None = None,
    ) -> AsyncIterator[str]:
        payload = self._payload(messages, temperature)
        payload["stream"] = True

        async with self._http_client() as client:
            async with client.stream(
                "POST",
                f"{self._endpoint}/v1/chat/completions",
                json=payload,
                headers=self._headers(),
            ) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.startswith(_SSE_PREFIX):
                        continue
                    data = line[len(_SSE_PREFIX):].strip()
                    if data == _SSE_DONE:
                        break
                    chunk = _delta_content(json.loads(data))
                    if chunk:
                        yield chunk


def _delta_content(event: dict[str, Any]) -> str | None:
    choices = event.get("choices") or []
    if not choices:
        return None
    delta = choices[0].get("delta") or {}
    return delta.get("content")
