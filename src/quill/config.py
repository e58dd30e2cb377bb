"""Configuration management for Quill."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from quill.errors import ApiKeyNotConfiguredError, ConfigurationError, InvalidModelFormatError

DEFAULT_MODEL = "openrouter:qwen/qwen3-coder-next"
KEYED_PROVIDERS = ("openrouter", "openai", "anthropic", "gemini", "xai", "groq", "mistral", "deepseek")

AgentName = Literal["router", "inquiry", "writer", "suggestor"]
AGENTS: tuple[AgentName, ...] = ("router", "inquiry", "writer", "suggestor")


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="QUILL_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Model Configuration
    model: str = Field(default=DEFAULT_MODEL, description="Default model in provider:model form")
    router_model: str | None = Field(None, description="Model used to classify user intent")
    inquiry_model: str | None = Field(None, description="Model used to ask clarifying questions")
    writer_model: str | None = Field(None, description="Model used to write code")
    suggestor_model: str | None = Field(None, description="Model used to suggest follow-ups")
    api_key: str | None = Field(None, description="API key for the LLM provider")
    api_base: str | None = Field(None, description="Optional API base URL")
    max_tokens: int = Field(default=4096, ge=1, description="Maximum tokens for responses")
    timeout_seconds: int | None = Field(default=90, ge=1, description="Timeout between model events in seconds")

    # Exchange Configuration
    max_messages: int = Field(default=10, ge=1, description="Turns retained for model calls")
    max_attempts: int = Field(default=3, ge=1, description="Generation attempts before giving up")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")

    def model_for(self, agent: AgentName) -> str:
        """Return the effective provider:model string for one agent."""
        override = getattr(self, f"{agent}_model")
        return override or self.model

    def resolved_api_key_for(self, agent: AgentName) -> str | None:
        """Key for one agent's provider.

        `api_key` belongs to the default model's provider. An agent whose
        override points at another provider reads `<PROVIDER>_API_KEY` only.
        """
        return self._key_for_provider(self.model_for(agent).partition(":")[0])

    def _key_for_provider(self, provider: str) -> str | None:
        default_provider = self.model.partition(":")[0]
        if self.api_key and provider.casefold() == default_provider.casefold():
            return self.api_key
        return os.getenv(f"{provider.upper()}_API_KEY") or None


def load_settings(workspace: Path | None = None) -> Settings:
    """Load settings, reading `<workspace>/.env` when present.

    Raises:
        ConfigurationError: when a value is out of range or malformed.
    """
    env_file = workspace / ".env" if workspace is not None else Path(".env")
    try:
        settings = Settings(_env_file=env_file if env_file.is_file() else None)  # type: ignore[call-arg]
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc
    _validate_models(settings)
    return settings


def require_api_key(settings: Settings) -> None:
    """Fail fast when any agent uses a keyed provider without a key."""
    for agent in AGENTS:
        provider, _, _ = settings.model_for(agent).partition(":")
        if provider.casefold() in KEYED_PROVIDERS and not settings.resolved_api_key_for(agent):
            same_provider = provider.casefold() == settings.model.partition(":")[0].casefold()
            hint = "QUILL_API_KEY" if same_provider else f"{provider.upper()}_API_KEY"
            raise ApiKeyNotConfiguredError(
                f"API key not configured for provider '{provider}' ({agent} agent). "
                f"Set {hint} in your environment or .env file."
            )


def _validate_models(settings: Settings) -> None:
    for agent in AGENTS:
        model = settings.model_for(agent)
        provider, separator, name = model.partition(":")
        if not separator or not provider or not name:
            raise InvalidModelFormatError(f"model for {agent} must be provider:model, got {model!r}")
