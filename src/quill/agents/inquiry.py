"""Clarifying-question agent."""

from __future__ import annotations

from loguru import logger
from pydantic import BaseModel, Field

from quill.agents.prompts import INQUIRY_INSTRUCTIONS
from quill.conversation import Transcript
from quill.llm import ModelClient
from quill.progress import ProgressLog
from quill.ui import Question

OPTION_PREFIXES = ("- ", "* ")
FALLBACK_QUESTION = "Could you describe the contract you need in more detail?"


class Inquiry(BaseModel):
    """One clarifying question with optional answer choices."""

    question: str
    options: list[str] = Field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> Inquiry:
        question = ""
        options: list[str] = []
        for raw_line in text.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            if not question:
                question = line
                continue
            if line.startswith(OPTION_PREFIXES):
                option = line[2:].strip()
                if option:
                    options.append(option)
        return cls(question=question, options=options)


class InquiryAgent:
    """Streams one clarifying question into the UI."""

    def __init__(self, client: ModelClient, *, instructions: str = INQUIRY_INSTRUCTIONS) -> None:
        self._client = client
        self._instructions = instructions

    async def inquire(self, progress: ProgressLog, transcript: Transcript) -> Inquiry:
        buffer = ""
        async for event in self._client.stream(system_prompt=self._instructions, messages=transcript.messages()):
            if event.kind == "error":
                logger.warning("inquiry.stream.error kind={} message={}", event.data.get("kind"), event.data.get("message"))
                continue
            if event.kind != "text" or not event.delta:
                continue
            buffer += event.delta
            partial = Inquiry.from_text(buffer)
            progress.update(Question(text=partial.question, options=tuple(partial.options)))

        inquiry = Inquiry.from_text(buffer)
        if not inquiry.question:
            logger.warning("inquiry.empty")
            inquiry = Inquiry(question=FALLBACK_QUESTION)
            progress.update(Question(text=inquiry.question))
        return inquiry
