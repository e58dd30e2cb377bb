"""CLI main module for Quill."""

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import typer

from quill.cli.live import InteractiveCli, follow_exchange
from quill.cli.render import Renderer, strip_fence
from quill.config import load_settings
from quill.errors import ConfigurationError
from quill.logging_utils import configure_logging
from quill.orchestrator import ExchangeOutcome, Orchestrator

app = typer.Typer(
    name="quill",
    help="Describe a smart contract, get Solidity.",
    add_completion=False,
    rich_markup_mode="rich",
)

WorkspaceOption = Annotated[Optional[Path], typer.Option("--workspace", "-w", help="Directory holding .env")]
ModelOption = Annotated[Optional[str], typer.Option("--model", "-m", help="Override provider:model")]


def build_orchestrator(workspace: Path, *, model: str | None = None) -> tuple[Orchestrator, str]:
    """Build an orchestrator from workspace settings."""
    settings = load_settings(workspace)
    if model:
        settings = settings.model_copy(update={"model": model})
    configure_logging(profile="chat", level=settings.log_level)
    return Orchestrator.from_settings(settings), settings.model


def _startup(renderer: Renderer, workspace: Path | None, model: str | None) -> tuple[Orchestrator, str]:
    try:
        return build_orchestrator(workspace or Path.cwd(), model=model)
    except ConfigurationError as exc:
        renderer.error(str(exc))
        raise typer.Exit(1) from exc


@app.command()
def chat(workspace: WorkspaceOption = None, model: ModelOption = None) -> None:
    """Start an interactive session."""
    renderer = Renderer()
    orchestrator, resolved_model = _startup(renderer, workspace, model)
    renderer.welcome(resolved_model)
    asyncio.run(InteractiveCli(orchestrator, renderer).run())


@app.command()
def run(
    prompt: Annotated[str, typer.Argument(help="What the contract should do")] = "",
    skip: Annotated[bool, typer.Option("--skip", help="Write code without asking questions")] = False,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Write the code to this file")] = None,
    workspace: WorkspaceOption = None,
    model: ModelOption = None,
) -> None:
    """Run a single exchange."""
    renderer = Renderer()
    orchestrator, _ = _startup(renderer, workspace, model)
    if not prompt and not skip:
        renderer.error("Provide a prompt or pass --skip.")
        raise typer.Exit(2)

    outcome = asyncio.run(_run_once(orchestrator, renderer, prompt, skip=skip))
    if outcome.status == "failed":
        renderer.error(outcome.error or "generation failed")
        raise typer.Exit(1)
    if outcome.status == "inquiry":
        return
    if output is None:
        renderer.code(outcome.text)
        return
    output.write_text(strip_fence(outcome.text) + "\n", encoding="utf-8")
    renderer.info(f"Wrote [cyan]{output}[/cyan]")


async def _run_once(orchestrator: Orchestrator, renderer: Renderer, prompt: str, *, skip: bool) -> ExchangeOutcome:
    if skip:
        exchange = orchestrator.submit(skip=True)
    else:
        renderer.user_message(prompt)
        exchange = orchestrator.submit(form={"input": prompt})
    return await follow_exchange(exchange, renderer)


if __name__ == "__main__":
    app()
