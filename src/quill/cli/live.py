"""Live terminal view of a running exchange."""

from __future__ import annotations

import asyncio

from rich.live import Live

from quill.conversation import Turn
from quill.orchestrator import Exchange, ExchangeOutcome, Orchestrator

from .render import Renderer, render_component

FOLLOW_POLL_SECONDS = 0.1
REFRESH_PER_SECOND = 12


async def follow_exchange(exchange: Exchange, renderer: Renderer) -> ExchangeOutcome:
    """Render the exchange's UI stream until its outcome resolves."""
    with Live(
        render_component(exchange.component.value),
        console=renderer.console,
        refresh_per_second=REFRESH_PER_SECOND,
    ) as live:
        while not exchange.outcome.done:
            live.update(render_component(exchange.component.value))
            await asyncio.sleep(FOLLOW_POLL_SECONDS)
        live.update(render_component(exchange.component.value))
    return await exchange.wait()


class InteractiveCli:
    """Prompt loop that keeps the committed transcript between exchanges."""

    def __init__(self, orchestrator: Orchestrator, renderer: Renderer) -> None:
        self._orchestrator = orchestrator
        self._renderer = renderer
        self._history: tuple[Turn, ...] = ()

    @property
    def history(self) -> tuple[Turn, ...]:
        return self._history

    async def run(self) -> None:
        while True:
            try:
                raw = await self._renderer.get_user_input()
            except (KeyboardInterrupt, EOFError):
                self._renderer.info("Goodbye!")
                return
            if not await self.handle_line(raw):
                self._renderer.info("Goodbye!")
                return

    async def handle_line(self, raw: str) -> bool:
        """Handle one input line; return False when the user asked to quit."""
        line = raw.strip()
        if not line:
            return True
        if line in {"/quit", "/exit"}:
            return False
        if line == "/reset":
            self._history = ()
            self._renderer.info("[dim]Conversation cleared.[/dim]")
            return True

        if line == "/skip":
            exchange = self._orchestrator.submit(self._history, skip=True)
        else:
            exchange = self._orchestrator.submit(self._history, {"input": line})
        try:
            outcome = await follow_exchange(exchange, self._renderer)
        except asyncio.CancelledError:
            exchange.cancel()
            raise
        self._history = exchange.conversation.turns
        if outcome.status == "failed":
            self._renderer.error(outcome.error or "generation failed")
        return True
