"""Agents wired together by the orchestrator."""

from .decision import PROCEED, Decision, DecisionAgent
from .inquiry import Inquiry, InquiryAgent
from .suggestor import SuggestionAgent
from .writer import GenerationAttempt, WriterAgent

__all__ = [
    "PROCEED",
    "Decision",
    "DecisionAgent",
    "GenerationAttempt",
    "Inquiry",
    "InquiryAgent",
    "SuggestionAgent",
    "WriterAgent",
]
