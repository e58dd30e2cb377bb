"""Ordered progress log fanned out to the UI and code-text projections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from loguru import logger

from quill.streamable import StreamableUI, StreamableValue, StreamView

EntryKind = Literal["ui.update", "ui.append", "code"]


@dataclass(frozen=True)
class ProgressEntry:
    seq: int
    kind: EntryKind
    payload: Any


class ProgressLog:
    """Single write handle for everything an exchange shows while it runs.

    Each call records one entry and applies it to its projection before
    returning, so the UI tree and the code text observe one total order.
    """

    def __init__(self, ui: StreamableUI, code: StreamableValue[str]) -> None:
        self._ui = ui
        self._code = code
        self._entries: list[ProgressEntry] = []

    @property
    def entries(self) -> tuple[ProgressEntry, ...]:
        return tuple(self._entries)

    @property
    def code_view(self) -> StreamView[str]:
        return self._code.view

    def update(self, node: Any) -> None:
        self._ui.update(node)
        self._record("ui.update", node)

    def append(self, node: Any) -> None:
        self._ui.append(node)
        self._record("ui.append", node)

    def clear(self) -> None:
        """Drop the newest UI slot, leaving earlier sections in place."""
        self.update(None)

    def code(self, text: str) -> None:
        self._code.update(text)
        self._record("code", text)

    def _record(self, kind: EntryKind, payload: Any) -> None:
        entry = ProgressEntry(seq=len(self._entries), kind=kind, payload=payload)
        self._entries.append(entry)
        logger.trace("progress.entry seq={} kind={}", entry.seq, kind)
