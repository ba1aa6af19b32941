"""Pydantic models for chat state.

Models:
    - Message: One user or assistant turn
    - ImageAttachment: Validated, base64-encoded image on a user message
    - ChatState: Snapshot of the conversation for the view layer
    - TurnStatus: Lifecycle of the in-flight turn
"""

from delfin_chat.models.schemas import (
    MAX_IMAGE_SIZE,
    ChatState,
    ImageAttachment,
    Message,
    Role,
    TurnStatus,
    generate_id,
)

__all__ = [
    "MAX_IMAGE_SIZE",
    "ChatState",
    "ImageAttachment",
    "Message",
    "Role",
    "TurnStatus",
    "generate_id",
]
