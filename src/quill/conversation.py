"""Conversation turns and the per-exchange conversation state."""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Literal, Protocol

from quill.errors import InvalidStateError

Role = Literal["user", "assistant", "system", "function", "tool"]
DEFAULT_MAX_TURNS = 10


@dataclass(frozen=True)
class Turn:
    """One role-tagged message of the transcript."""

    role: Role
    content: str | tuple[dict[str, Any], ...]
    id: str | None = None
    name: str | None = None

    @classmethod
    def user(cls, content: str) -> Turn:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> Turn:
        return cls(role="assistant", content=content)

    @classmethod
    def assistant_parts(cls, text: str, tool_calls: Sequence[dict[str, Any]] = ()) -> Turn:
        parts: list[dict[str, Any]] = [{"type": "text", "text": text}]
        parts.extend({"type": "tool_call", "call": call} for call in tool_calls)
        return cls(role="assistant", content=tuple(parts))

    @classmethod
    def tool_results(cls, results: Sequence[Any]) -> Turn:
        return cls(role="tool", content=tuple({"type": "tool_result", "result": result} for result in results))

    @property
    def text(self) -> str:
        if isinstance(self.content, str):
            return self.content
        return "".join(str(part.get("text", "")) for part in self.content if part.get("type") == "text")

    def to_message(self) -> dict[str, Any]:
        """Render the turn as a chat-completions message."""
        message: dict[str, Any] = {"role": self.role, "content": self.text}
        if self.name:
            message["name"] = self.name
        if isinstance(self.content, str):
            return message

        calls = [part["call"] for part in self.content if part.get("type") == "tool_call"]
        if calls:
            message["tool_calls"] = calls
        results = [part["result"] for part in self.content if part.get("type") == "tool_result"]
        if results:
            message["content"] = json.dumps(results, ensure_ascii=False, default=str)
        return message


class Transcript(Protocol):
    """Read/append handle agents receive; only the orchestrator commits."""

    def window(self) -> list[Turn]: ...

    def messages(self) -> list[dict[str, Any]]: ...

    def append(self, turn: Turn) -> None: ...


class ConversationState:
    """Turns owned by one exchange.

    The durable transcript keeps the full history the caller handed in plus
    the user turn and the final assistant turn. The working transcript is
    what agents read and append to while the exchange runs; model calls only
    ever see its most recent `max_turns` entries.
    """

    def __init__(self, turns: Iterable[Turn] = (), *, max_turns: int = DEFAULT_MAX_TURNS) -> None:
        if max_turns < 1:
            raise ValueError("max_turns must be at least 1")
        self._max_turns = max_turns
        self._durable: list[Turn] = list(turns)
        self._working: list[Turn] = self._durable[-max_turns:]
        self._committed: tuple[Turn, ...] | None = None

    @property
    def max_turns(self) -> int:
        return self._max_turns

    @property
    def turns(self) -> tuple[Turn, ...]:
        """Durable transcript, committed or not."""
        if self._committed is not None:
            return self._committed
        return tuple(self._durable)

    @property
    def committed(self) -> bool:
        return self._committed is not None

    def window(self) -> list[Turn]:
        return self._working[-self._max_turns :]

    def messages(self) -> list[dict[str, Any]]:
        return [turn.to_message() for turn in self.window()]

    def add_user_turn(self, turn: Turn) -> None:
        self._ensure_open("add_user_turn")
        self._durable.append(turn)
        self._working.append(turn)

    def append(self, turn: Turn) -> None:
        self._ensure_open("append")
        self._working.append(turn)

    def commit(self, final: Turn | None = None) -> tuple[Turn, ...]:
        """Freeze the durable transcript, optionally ending with `final`."""
        self._ensure_open("commit")
        if final is not None:
            self._durable.append(final)
        self._committed = tuple(self._durable)
        return self._committed

    def _ensure_open(self, operation: str) -> None:
        if self._committed is not None:
            raise InvalidStateError(f"conversation is already committed; {operation} rejected")
