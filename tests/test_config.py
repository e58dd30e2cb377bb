from pathlib import Path

import pytest

from quill.config import DEFAULT_MODEL, Settings, load_settings, require_api_key
from quill.errors import ApiKeyNotConfiguredError, ConfigurationError, InvalidModelFormatError


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "QUILL_MODEL",
        "QUILL_WRITER_MODEL",
        "QUILL_API_KEY",
        "QUILL_MAX_ATTEMPTS",
        "QUILL_MAX_MESSAGES",
        "OPENROUTER_API_KEY",
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path: Path) -> None:
    settings = load_settings(tmp_path)

    assert settings.model == DEFAULT_MODEL
    assert settings.max_messages == 10
    assert settings.max_attempts == 3
    assert settings.model_for("writer") == DEFAULT_MODEL


def test_workspace_env_file_and_agent_override(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "QUILL_MAX_ATTEMPTS=7\nQUILL_WRITER_MODEL=groq:llama3-70b-8192\n",
        encoding="utf-8",
    )

    settings = load_settings(tmp_path)

    assert settings.max_attempts == 7
    assert settings.model_for("writer") == "groq:llama3-70b-8192"
    assert settings.model_for("router") == DEFAULT_MODEL


def test_model_without_provider_is_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUILL_MODEL", "gpt-4o")

    with pytest.raises(InvalidModelFormatError):
        load_settings(tmp_path)


def test_out_of_range_values_are_configuration_errors(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("QUILL_MAX_ATTEMPTS", "0")

    with pytest.raises(ConfigurationError):
        load_settings(tmp_path)


def test_api_key_resolution(monkeypatch: pytest.MonkeyPatch) -> None:
    settings = Settings(_env_file=None)  # type: ignore[call-arg]
    with pytest.raises(ApiKeyNotConfiguredError):
        require_api_key(settings)

    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-provider")
    assert settings.resolved_api_key_for("writer") == "sk-provider"
    require_api_key(settings)

    explicit = Settings(_env_file=None, api_key="sk-explicit")  # type: ignore[call-arg]
    assert explicit.resolved_api_key_for("router") == "sk-explicit"


def test_local_provider_needs_no_key() -> None:
    require_api_key(Settings(_env_file=None, model="ollama:llama3"))  # type: ignore[call-arg]


def test_agent_override_uses_its_own_provider_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "anthropic-key")
    settings = Settings(  # type: ignore[call-arg]
        _env_file=None,
        model="openrouter:qwen/x",
        writer_model="anthropic:claude-x",
    )

    assert settings.resolved_api_key_for("writer") == "anthropic-key"
    assert settings.resolved_api_key_for("router") == "or-key"
    require_api_key(settings)


def test_explicit_key_is_not_sent_to_another_provider() -> None:
    settings = Settings(  # type: ignore[call-arg]
        _env_file=None,
        model="openrouter:qwen/x",
        writer_model="anthropic:claude-x",
        api_key="or-explicit",
    )

    assert settings.resolved_api_key_for("router") == "or-explicit"
    assert settings.resolved_api_key_for("writer") is None
    with pytest.raises(ApiKeyNotConfiguredError, match="ANTHROPIC_API_KEY"):
        require_api_key(settings)


def test_keyed_override_on_local_default_needs_a_key() -> None:
    settings = Settings(_env_file=None, model="ollama:llama3", writer_model="openai:gpt-4o")  # type: ignore[call-arg]

    with pytest.raises(ApiKeyNotConfiguredError, match="writer"):
        require_api_key(settings)
