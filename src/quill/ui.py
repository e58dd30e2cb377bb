"""Opaque UI nodes handed to the rendering layer.

The orchestration core only places these in a UI stream; it never looks
inside them. The terminal renderer in `quill.cli.render` gives them a face.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from quill.streamable import StreamView


@dataclass(frozen=True)
class Spinner:
    message: str


@dataclass(frozen=True)
class Section:
    title: str
    body: object = None


@dataclass(frozen=True)
class CodeBlock:
    """Code that keeps growing while the writer streams."""

    code: StreamView[str]
    language: str = "solidity"


@dataclass(frozen=True)
class Question:
    text: str
    options: tuple[str, ...] = ()


@dataclass(frozen=True)
class Suggestions:
    items: tuple[str, ...] = ()


@dataclass(frozen=True)
class FollowupPanel:
    placeholder: str = "Ask a follow-up question..."


@dataclass(frozen=True)
class Notice:
    message: str
    level: Literal["info", "error"] = "error"


Node = Spinner | Section | CodeBlock | Question | Suggestions | FollowupPanel | Notice
