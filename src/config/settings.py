"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful voice assistant. Speak naturally, avoid emojis and special characters."
)
DEFAULT_WELCOME_GREETING = (
    "Hi! I'm your AI voice assistant powered by Twilio's ConversationRelay, "
    "ElevenLabs and OpenAI. How can I help you?"
)


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080)
    public_base_url: str | None = Field(
        default=None,
        description="Public base URL Twilio reaches us on (e.g. https://<ngrok>.ngrok-free.app).",
    )

    # LLM connectivity
    llm_provider: Literal["openai", "self_hosted_vllm"] = Field(default="openai")
    llm_endpoint: str | None = Field(
        default=None,
        description="Base URL for a self-hosted server, or an OpenAI-compatible proxy.",
    )
    llm_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("llm_api_key", "openai_api_key"),
    )
    llm_model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("llm_model", "openai_model"),
    )
    llm_temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    llm_timeout_seconds: float = Field(
        default=90.0,
        description="HTTP timeout used by the self-hosted client only.",
    )

    # Conversation
    use_streaming: bool = Field(
        default=True,
        description="Stream tokens to Twilio as they arrive; false waits for the full reply.",
    )
    system_prompt: str = Field(default=DEFAULT_SYSTEM_PROMPT)
    welcome_greeting: str = Field(default=DEFAULT_WELCOME_GREETING)

    # ElevenLabs voice (rendered into the ConversationRelay voice attribute)
    elevenlabs_voice_id: str | None = Field(default=None)
    elevenlabs_model: str | None = Field(default=None)
    elevenlabs_speed: str | None = Field(default=None)
    elevenlabs_stability: str | None = Field(default=None)
    elevenlabs_similarity: str | None = Field(default=None)
    elevenlabs_text_normalization: str | None = Field(default=None)

    # Twilio Conversational Intelligence (optional)
    conversational_intelligence_sid: str | None = Field(default=None)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
