"""Exchange orchestration: classify, then inquire or write code."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Mapping, Sequence
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Literal

from loguru import logger

from quill.agents import (
    PROCEED,
    DecisionAgent,
    GenerationAttempt,
    Inquiry,
    InquiryAgent,
    SuggestionAgent,
    WriterAgent,
)
from quill.config import Settings, require_api_key
from quill.conversation import DEFAULT_MAX_TURNS, ConversationState, Turn
from quill.errors import GenerationExhaustedError, InvalidStateError
from quill.llm import build_model_client
from quill.progress import ProgressLog
from quill.streamable import StreamableUI, StreamableValue, StreamView
from quill.ui import FollowupPanel, Notice, Section, Spinner

SKIP_CONTENT = '{"action": "skip"}'
THINKING_MESSAGE = "Assistant thinking..."
DEFAULT_MAX_ATTEMPTS = 3

OutcomeStatus = Literal["inquiry", "completed", "failed", "cancelled"]

_exchange_context: ContextVar[int] = ContextVar("exchange")


def current_exchange() -> str:
    """Get the id of the exchange running in this task."""
    exchange_id = _exchange_context.get(None)
    if exchange_id is None:
        return "-"
    return str(exchange_id)


class _ExchangeClock:
    """Millisecond timestamps, strictly increasing within a process."""

    def __init__(self) -> None:
        self._last = 0

    def next_id(self) -> int:
        self._last = max(time.time_ns() // 1_000_000, self._last + 1)
        return self._last


_clock = _ExchangeClock()


@dataclass(frozen=True)
class ExchangeOutcome:
    """Terminal result of one exchange."""

    status: OutcomeStatus
    text: str = ""
    attempts: int = 0
    error_occurred: bool = False
    error: str | None = None
    inquiry: Inquiry | None = None


@dataclass
class Exchange:
    """Live handles returned to the caller of `submit`."""

    id: int
    is_generating: StreamView[bool]
    component: StreamView[tuple[Any, ...]]
    is_collapsed: StreamView[bool]
    code: StreamView[str]
    outcome: StreamView[ExchangeOutcome | None]
    conversation: ConversationState
    _task: asyncio.Task[None] = field(repr=False)

    def cancel(self) -> bool:
        """Ask the running exchange to stop at its next suspension point."""
        return self._task.cancel()

    async def wait(self) -> ExchangeOutcome:
        """Wait for the exchange to finish and return its outcome."""
        outcome = await self.outcome.wait()
        if outcome is None:
            raise InvalidStateError(f"exchange {self.id} finished without an outcome")
        return outcome


@dataclass
class _ExchangeRun:
    id: int
    skip: bool
    conversation: ConversationState
    ui: StreamableUI = field(default_factory=lambda: StreamableUI(name="component"))
    is_generating: StreamableValue[bool] = field(default_factory=lambda: StreamableValue(True, name="is_generating"))
    is_collapsed: StreamableValue[bool] = field(default_factory=lambda: StreamableValue(False, name="is_collapsed"))
    code: StreamableValue[str] = field(default_factory=lambda: StreamableValue("", name="code"))
    outcome: StreamableValue[ExchangeOutcome | None] = field(
        default_factory=lambda: StreamableValue(None, name="outcome")
    )

    def __post_init__(self) -> None:
        self.progress = ProgressLog(self.ui, self.code)

    def finish(self, outcome: ExchangeOutcome, final: Turn | None) -> None:
        """Close every stream still open, commit, and publish the outcome."""
        if not self.is_generating.is_done:
            self.is_generating.done(False)
        if not self.is_collapsed.is_done:
            self.is_collapsed.done(False)
        if not self.ui.is_done:
            self.ui.done()
        if not self.code.is_done:
            self.code.done()
        if not self.conversation.committed:
            self.conversation.commit(final)
        if not self.outcome.is_done:
            self.outcome.done(outcome)
            logger.info("exchange.finish status={} attempts={}", outcome.status, outcome.attempts)

    def on_task_done(self, task: asyncio.Task[None]) -> None:
        # A task cancelled before its first step never runs its own cleanup.
        if not self.outcome.is_done:
            self.finish(ExchangeOutcome(status="cancelled"), final=None)


class Orchestrator:
    """Runs one exchange per submission as a detached task."""

    def __init__(
        self,
        *,
        decision: DecisionAgent,
        inquiry: InquiryAgent,
        writer: WriterAgent,
        suggestor: SuggestionAgent,
        max_turns: int = DEFAULT_MAX_TURNS,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._decision = decision
        self._inquiry = inquiry
        self._writer = writer
        self._suggestor = suggestor
        self._max_turns = max_turns
        self._max_attempts = max_attempts

    @classmethod
    def from_settings(cls, settings: Settings) -> Orchestrator:
        require_api_key(settings)
        return cls(
            decision=DecisionAgent(build_model_client(settings, "router")),
            inquiry=InquiryAgent(build_model_client(settings, "inquiry")),
            writer=WriterAgent(build_model_client(settings, "writer")),
            suggestor=SuggestionAgent(build_model_client(settings, "suggestor")),
            max_turns=settings.max_messages,
            max_attempts=settings.max_attempts,
        )

    def submit(
        self,
        history: Sequence[Turn] = (),
        form: Mapping[str, Any] | None = None,
        *,
        skip: bool = False,
    ) -> Exchange:
        """Start one exchange and return its live handles immediately.

        Must be called with a running event loop. `history` is the committed
        transcript of earlier exchanges; the caller persists
        `exchange.conversation.turns` once the outcome resolves.
        """
        conversation = ConversationState(history, max_turns=self._max_turns)
        content = _user_content(form, skip=skip)
        if content is not None:
            conversation.add_user_turn(Turn.user(content))

        run = _ExchangeRun(id=_clock.next_id(), skip=skip, conversation=conversation)
        task = asyncio.create_task(self._run(run), name=f"quill-exchange-{run.id}")
        task.add_done_callback(run.on_task_done)
        return Exchange(
            id=run.id,
            is_generating=run.is_generating.view,
            component=run.ui.view,
            is_collapsed=run.is_collapsed.view,
            code=run.code.view,
            outcome=run.outcome.view,
            conversation=conversation,
            _task=task,
        )

    async def _run(self, run: _ExchangeRun) -> None:
        token = _exchange_context.set(run.id)
        logger.info("exchange.start skip={} turns={}", run.skip, len(run.conversation.window()))
        try:
            await self._process(run)
        except asyncio.CancelledError:
            logger.warning("exchange.cancelled")
            run.finish(ExchangeOutcome(status="cancelled", text=run.code.value), final=None)
            raise
        except Exception as exc:
            logger.exception("exchange.error")
            if not run.ui.is_done:
                run.progress.update(Notice(f"Something went wrong: {exc}"))
            run.finish(ExchangeOutcome(status="failed", error=str(exc)), final=None)
        finally:
            _exchange_context.reset(token)

    async def _process(self, run: _ExchangeRun) -> None:
        decision = PROCEED
        if not run.skip:
            decision = await self._decision.classify(run.conversation) or PROCEED

        if decision.next == "inquire":
            inquiry = await self._inquiry.inquire(run.progress, run.conversation)
            run.finish(
                ExchangeOutcome(status="inquiry", text=inquiry.question, inquiry=inquiry),
                final=Turn.assistant(f"inquiry: {inquiry.question}"),
            )
            return

        run.is_collapsed.done(True)
        run.progress.update(Spinner(THINKING_MESSAGE))

        try:
            attempt, attempts = await self._generate(run)
        except GenerationExhaustedError as exc:
            logger.error("generation.exhausted attempts={}", exc.attempts)
            run.progress.update(Notice("The assistant did not produce any code. Please try again."))
            run.finish(ExchangeOutcome(status="failed", attempts=exc.attempts, error=str(exc)), final=None)
            return

        if not attempt.error_occurred:
            await self._suggestor.suggest(run.progress, run.conversation)
            run.progress.append(Section("Follow-up", FollowupPanel()))

        run.finish(
            ExchangeOutcome(
                status="completed",
                text=attempt.text,
                attempts=attempts,
                error_occurred=attempt.error_occurred,
            ),
            final=Turn.assistant(attempt.text),
        )

    async def _generate(self, run: _ExchangeRun) -> tuple[GenerationAttempt, int]:
        for number in range(1, self._max_attempts + 1):
            if number > 1:
                run.progress.update(Spinner(THINKING_MESSAGE))
            logger.info("generation.attempt attempt={}", number)
            attempt = await self._writer.attempt(run.progress, run.conversation)
            if attempt.text:
                return attempt, number
            logger.warning("generation.empty attempt={}", number)
        raise GenerationExhaustedError(self._max_attempts)


def _user_content(form: Mapping[str, Any] | None, *, skip: bool) -> str | None:
    if skip:
        return SKIP_CONTENT
    if form:
        return json.dumps(dict(form), ensure_ascii=False)
    return None
