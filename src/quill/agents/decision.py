"""Intent classification: ask a question first or write code now."""

from __future__ import annotations

import json
from typing import Literal

from loguru import logger
from pydantic import BaseModel, ValidationError

from quill.agents.prompts import ROUTER_INSTRUCTIONS
from quill.conversation import Transcript
from quill.llm import ModelClient

_DECODER = json.JSONDecoder()


class Decision(BaseModel):
    """Routing decision for one exchange."""

    next: Literal["proceed", "inquire"]


PROCEED = Decision(next="proceed")


class DecisionAgent:
    """Classifies user intent with one model call."""

    def __init__(self, client: ModelClient, *, instructions: str = ROUTER_INSTRUCTIONS) -> None:
        self._client = client
        self._instructions = instructions

    async def classify(self, transcript: Transcript) -> Decision | None:
        """Return the decision, or None when the model gave no usable answer."""
        try:
            raw = await self._client.complete(system_prompt=self._instructions, messages=transcript.messages())
        except Exception:
            logger.exception("decision.call.error")
            return None

        decision = parse_decision(raw)
        if decision is None:
            logger.warning("decision.unparsed raw={!r}", raw[:200])
            return None
        logger.info("decision.result next={}", decision.next)
        return decision


def parse_decision(raw: str) -> Decision | None:
    """Return the first JSON object in `raw` that is a valid decision."""
    start = raw.find("{")
    while start != -1:
        try:
            payload, _ = _DECODER.raw_decode(raw, start)
            return Decision.model_validate(payload)
        except (ValueError, ValidationError):
            start = raw.find("{", start + 1)
    return None
