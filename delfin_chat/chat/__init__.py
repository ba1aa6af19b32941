"""Conversation state and turn orchestration.

Responsibilities:
    - Message list state for one chat session
    - Send, retry, clear and cancel of turns
    - Merging streamed fragments into the in-flight assistant message
    - Converting provider failures into a conversation-level error

Presentation code subscribes to state snapshots and calls the actions;
it holds no conversation logic of its own.
"""

from delfin_chat.chat.controller import (
    NO_RESPONSE_FALLBACK,
    ChatController,
    default_provider_factory,
)
from delfin_chat.llm.cancellation import CancellationToken

__all__ = [
    "NO_RESPONSE_FALLBACK",
    "CancellationToken",
    "ChatController",
    "default_provider_factory",
]
