"""Code-writing agent: one streamed generation attempt."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from loguru import logger

from quill.agents.prompts import WRITER_INSTRUCTIONS
from quill.conversation import Transcript, Turn
from quill.llm import ModelClient
from quill.progress import ProgressLog
from quill.ui import CodeBlock, Section, Spinner

ERROR_NOTICE = "\nError occurred while executing the tool"
GENERATING_MESSAGE = "Generating code..."


@dataclass(frozen=True)
class GenerationAttempt:
    """Result of consuming one model stream."""

    text: str
    tool_calls: tuple[Any, ...] = ()
    tool_results: tuple[Any, ...] = ()
    error_occurred: bool = False


class WriterAgent:
    """Streams code text into the progress log and records the attempt."""

    def __init__(self, client: ModelClient, *, instructions: str = WRITER_INSTRUCTIONS) -> None:
        self._client = client
        self._instructions = instructions

    async def attempt(self, progress: ProgressLog, transcript: Transcript) -> GenerationAttempt:
        buffer = ""
        section_shown = False
        tool_calls: list[Any] = []
        tool_results: list[Any] = []
        error_occurred = False

        def emit(fragment: str) -> None:
            nonlocal buffer, section_shown
            if not section_shown:
                # The spinner becomes the replace target; the code section stays put.
                progress.update(Section("Code", CodeBlock(progress.code_view)))
                progress.append(Spinner(GENERATING_MESSAGE))
                section_shown = True
            buffer += fragment
            progress.code(buffer)

        async for event in self._client.stream(system_prompt=self._instructions, messages=transcript.messages()):
            match event.kind:
                case "text":
                    if event.delta:
                        emit(event.delta)
                case "tool_call":
                    tool_calls.append(event.data.get("call"))
                case "tool_result":
                    tool_results.append(event.data.get("result"))
                case "error":
                    logger.warning(
                        "writer.stream.error kind={} message={}", event.data.get("kind"), event.data.get("message")
                    )
                    error_occurred = True
                    emit(ERROR_NOTICE)

        progress.clear()

        transcript.append(Turn.assistant_parts(buffer, tool_calls))
        if tool_results:
            transcript.append(Turn.tool_results(tool_results))

        logger.info(
            "writer.attempt.finish chars={} tool_calls={} tool_results={} error={}",
            len(buffer),
            len(tool_calls),
            len(tool_results),
            error_occurred,
        )
        return GenerationAttempt(
            text=buffer,
            tool_calls=tuple(tool_calls),
            tool_results=tuple(tool_results),
            error_occurred=error_occurred,
        )
