"""Follow-up suggestion agent."""

from __future__ import annotations

import re

from loguru import logger

from quill.agents.prompts import SUGGESTOR_INSTRUCTIONS
from quill.conversation import Transcript
from quill.llm import ModelClient
from quill.progress import ProgressLog
from quill.ui import Section, Suggestions

LIST_MARKER_RE = re.compile(r"^\s*(?:[-*]|\d+[.)])\s*")
MAX_SUGGESTIONS = 5


class SuggestionAgent:
    """Streams related follow-up requests into a new UI section."""

    def __init__(self, client: ModelClient, *, instructions: str = SUGGESTOR_INSTRUCTIONS) -> None:
        self._client = client
        self._instructions = instructions

    async def suggest(self, progress: ProgressLog, transcript: Transcript) -> list[str]:
        items: list[str] = []
        pending = ""
        progress.append(Section("Related", Suggestions()))

        def publish() -> None:
            progress.update(Section("Related", Suggestions(tuple(items))))

        try:
            async for event in self._client.stream(system_prompt=self._instructions, messages=transcript.messages()):
                if event.kind == "error":
                    logger.warning(
                        "suggestor.stream.error kind={} message={}", event.data.get("kind"), event.data.get("message")
                    )
                    break
                if event.kind != "text":
                    continue
                pending += event.delta
                *lines, pending = pending.split("\n")
                if _collect(items, lines):
                    publish()
        except Exception:
            logger.exception("suggestor.call.error")

        if _collect(items, [pending]):
            publish()
        return items


def _collect(items: list[str], lines: list[str]) -> bool:
    added = False
    for line in lines:
        suggestion = LIST_MARKER_RE.sub("", line).strip()
        if suggestion and len(items) < MAX_SUGGESTIONS:
            items.append(suggestion)
            added = True
    return added
