"""Quill - conversational smart contract writer."""

from .conversation import ConversationState, Turn
from .orchestrator import Exchange, ExchangeOutcome, Orchestrator

__version__ = "0.1.0"

__all__ = ["ConversationState", "Exchange", "ExchangeOutcome", "Orchestrator", "Turn"]
