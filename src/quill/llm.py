"""Model collaborators and the Republic-backed client."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any, ClassVar, Literal, Protocol

from loguru import logger
from republic import LLM

from quill.config import AgentName, Settings

EventKind = Literal["text", "tool_call", "tool_result", "error"]


@dataclass(frozen=True)
class ModelEvent:
    """One event of a model stream, in arrival order."""

    kind: EventKind
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def text(cls, delta: str) -> ModelEvent:
        return cls("text", {"delta": delta})

    @classmethod
    def tool_call(cls, call: Any) -> ModelEvent:
        return cls("tool_call", {"call": call})

    @classmethod
    def tool_result(cls, result: Any) -> ModelEvent:
        return cls("tool_result", {"result": result})

    @classmethod
    def error(cls, kind: str, message: str) -> ModelEvent:
        return cls("error", {"kind": kind, "message": message})

    @property
    def delta(self) -> str:
        delta = self.data.get("delta")
        return delta if isinstance(delta, str) else ""


class ModelClient(Protocol):
    """Generate-from-conversation contract every agent talks to."""

    def stream(self, *, system_prompt: str, messages: list[dict[str, Any]]) -> AsyncIterator[ModelEvent]: ...

    async def complete(self, *, system_prompt: str, messages: list[dict[str, Any]]) -> str: ...


class RepublicModelClient:
    """Adapts `republic.LLM` streaming events to `ModelEvent`."""

    DEFAULT_HEADERS: ClassVar[dict[str, str]] = {"X-Title": "Quill"}

    def __init__(self, llm: LLM, *, max_tokens: int, timeout_seconds: float | None = None) -> None:
        self._llm = llm
        self._max_tokens = max_tokens
        self._timeout_seconds = timeout_seconds

    async def stream(self, *, system_prompt: str, messages: list[dict[str, Any]]) -> AsyncIterator[ModelEvent]:
        saw_error = False
        try:
            events = await asyncio.wait_for(
                self._llm.stream_events_async(
                    system_prompt=system_prompt,
                    messages=messages,
                    max_tokens=self._max_tokens,
                    extra_headers=self.DEFAULT_HEADERS,
                ),
                self._timeout_seconds,
            )
            iterator = aiter(events)
            while True:
                try:
                    event = await asyncio.wait_for(anext(iterator), self._timeout_seconds)
                except StopAsyncIteration:
                    break
                kind = getattr(event, "kind", None)
                if kind == "final":
                    break
                converted = _convert_event(kind, getattr(event, "data", None))
                if converted is None:
                    continue
                saw_error = saw_error or converted.kind == "error"
                yield converted
        except TimeoutError:
            logger.warning("model.stream.timeout seconds={}", self._timeout_seconds)
            yield ModelEvent.error("model_timeout", f"no response within {self._timeout_seconds}s")
            return
        except Exception as exc:
            logger.exception("model.stream.error")
            yield ModelEvent.error("model_call_error", str(exc))
            return

        stream_error = getattr(events, "error", None)
        if stream_error is not None and not saw_error:
            yield ModelEvent.error(*_split_stream_error(stream_error))

    async def complete(self, *, system_prompt: str, messages: list[dict[str, Any]]) -> str:
        async with asyncio.timeout(self._timeout_seconds):
            result = await self._llm.chat_async(
                system_prompt=system_prompt,
                messages=messages,
                max_tokens=self._max_tokens,
                extra_headers=self.DEFAULT_HEADERS,
            )
        return result if isinstance(result, str) else str(result or "")


def build_model_client(settings: Settings, agent: AgentName) -> RepublicModelClient:
    """Build the client one agent talks to."""
    llm = LLM(
        settings.model_for(agent),
        api_key=settings.resolved_api_key_for(agent),
        api_base=settings.api_base,
    )
    return RepublicModelClient(llm, max_tokens=settings.max_tokens, timeout_seconds=settings.timeout_seconds)


def _convert_event(kind: object, data: object) -> ModelEvent | None:
    if not isinstance(data, dict):
        return None
    if kind == "text":
        delta = data.get("delta")
        return ModelEvent.text(delta) if isinstance(delta, str) else None
    if kind == "tool_call":
        return ModelEvent.tool_call(data.get("call"))
    if kind == "tool_result":
        return ModelEvent.tool_result(data.get("result"))
    if kind == "error":
        error_kind = data.get("kind")
        message = data.get("message")
        return ModelEvent.error(
            error_kind if isinstance(error_kind, str) else "unknown",
            message if isinstance(message, str) else "unknown",
        )
    return None


def _split_stream_error(error: object) -> tuple[str, str]:
    kind = getattr(error, "kind", None)
    kind_value = getattr(kind, "value", kind)
    message = getattr(error, "message", None)
    return (
        kind_value if isinstance(kind_value, str) else "stream_error",
        message if isinstance(message, str) else str(error),
    )
