"""CLI renderer for Quill."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console, Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.spinner import Spinner as RichSpinner
from rich.syntax import Syntax
from rich.text import Text

from quill.ui import CodeBlock, FollowupPanel, Notice, Question, Section, Spinner, Suggestions

FENCE = "```"


class Renderer:
    """CLI renderer using Rich for terminal output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()
        self._prompt_session: PromptSession[str] | None = None
        self._print_lock = threading.Lock()

    def info(self, message: str) -> None:
        """Render an info message."""
        self._print(message)

    def error(self, message: str) -> None:
        """Render an error message."""
        self._print(f"[bold red]Error:[/bold red] {message}")

    def welcome(self, model: str) -> None:
        self._print("[bold blue]Quill[/bold blue] - describe a contract, get Solidity.")
        self._print(f"[bold]Model:[/bold] [magenta]{model}[/magenta]")
        self._print("[dim]/skip writes code without questions, /reset clears the conversation, /quit exits.[/dim]")

    def user_message(self, message: str) -> None:
        self._print(f"[bold cyan]You:[/bold cyan] {message}")

    def code(self, text: str) -> None:
        self.console.print(Syntax(strip_fence(text), "solidity", word_wrap=True))

    async def get_user_input(self) -> str:
        """Prompt user for input."""
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        with patch_stdout(raw=True):
            return await self._prompt_session.prompt_async("> ")

    def _print(self, message: str) -> None:
        with self._print_lock:
            self.console.print(message)


def render_component(nodes: Iterable[object]) -> RenderableType:
    """Render the current UI stream value."""
    return Group(*(render_node(node) for node in nodes))


def render_node(node: object) -> RenderableType:
    match node:
        case Spinner(message=message):
            return RichSpinner("dots", text=Text(message, style="dim"))
        case Section(title=title, body=body):
            return Panel(render_node(body), title=title, title_align="left")
        case CodeBlock(code=code, language=language):
            return Syntax(strip_fence(code.value) or " ", language, word_wrap=True)
        case Question(text=text, options=options):
            lines = [Text(text, style="bold")]
            lines.extend(Text(f"  {index}. {option}") for index, option in enumerate(options, start=1))
            return Group(*lines)
        case Suggestions(items=items):
            return Group(*(Text(f"- {item}", style="cyan") for item in items)) if items else Text("...", style="dim")
        case FollowupPanel(placeholder=placeholder):
            return Text(placeholder, style="dim")
        case Notice(message=message, level=level):
            return Text(message, style="bold red" if level == "error" else "yellow")
        case None:
            return Text("")
        case _:
            return Markdown(str(node))


def strip_fence(text: str) -> str:
    """Drop the surrounding markdown fence of a code answer, even while it is still open."""
    lines = text.strip("\n").splitlines()
    if lines and lines[0].startswith(FENCE):
        lines = lines[1:]
    if lines and lines[-1].strip() == FENCE:
        lines = lines[:-1]
    return "\n".join(lines)
