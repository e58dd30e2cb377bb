from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import pytest

from quill.agents import DecisionAgent, InquiryAgent, SuggestionAgent, WriterAgent
from quill.llm import ModelEvent
from quill.orchestrator import Orchestrator


@dataclass
class ScriptedModelClient:
    """Replays one scripted event list per `stream` call."""

    streams: list[list[ModelEvent]] = field(default_factory=list)
    completions: list[str | Exception] = field(default_factory=list)
    gate: asyncio.Event | None = None
    stream_calls: list[tuple[str, list[dict[str, Any]]]] = field(default_factory=list)
    complete_calls: list[tuple[str, list[dict[str, Any]]]] = field(default_factory=list)

    async def stream(self, *, system_prompt: str, messages: list[dict[str, Any]]) -> AsyncIterator[ModelEvent]:
        self.stream_calls.append((system_prompt, messages))
        events = self.streams.pop(0) if self.streams else []
        if self.gate is not None:
            await self.gate.wait()
        for event in events:
            yield event
            await asyncio.sleep(0)

    async def complete(self, *, system_prompt: str, messages: list[dict[str, Any]]) -> str:
        self.complete_calls.append((system_prompt, messages))
        result = self.completions.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@dataclass
class Clients:
    decision: ScriptedModelClient
    inquiry: ScriptedModelClient
    writer: ScriptedModelClient
    suggestor: ScriptedModelClient


MakeClient = Callable[..., ScriptedModelClient]


@pytest.fixture
def make_client() -> MakeClient:
    def _make(
        *,
        streams: Iterable[Iterable[ModelEvent]] = (),
        completions: Iterable[str | Exception] = (),
    ) -> ScriptedModelClient:
        return ScriptedModelClient(streams=[list(events) for events in streams], completions=list(completions))

    return _make


@pytest.fixture
def clients(make_client: MakeClient) -> Clients:
    return Clients(
        decision=make_client(completions=['{"next": "proceed"}']),
        inquiry=make_client(),
        writer=make_client(),
        suggestor=make_client(streams=[[ModelEvent.text("Add pausing\nAdd role-based minting\n")]]),
    )


@pytest.fixture
def build_orchestrator(clients: Clients) -> Callable[..., Orchestrator]:
    def _build(*, max_turns: int = 10, max_attempts: int = 3) -> Orchestrator:
        return Orchestrator(
            decision=DecisionAgent(clients.decision),
            inquiry=InquiryAgent(clients.inquiry),
            writer=WriterAgent(clients.writer),
            suggestor=SuggestionAgent(clients.suggestor),
            max_turns=max_turns,
            max_attempts=max_attempts,
        )

    return _build
