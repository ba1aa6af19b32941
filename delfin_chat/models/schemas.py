import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB


def generate_id() -> str:
    """Return a fresh opaque identifier for messages and attachments."""
    return uuid.uuid4().hex


class Role(str, Enum):
    """Speaker of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class TurnStatus(str, Enum):
    """Lifecycle of the in-flight turn."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    SETTLED = "settled"
    ABORTED = "aborted"
    ERRORED = "errored"


class ImageAttachment(BaseModel):
    """An image attached to a user message.

    Attributes:
        id: Opaque attachment identifier.
        name: Original file name.
        mime_type: MIME type, always ``image/*``.
        size_bytes: Size of the decoded image.
        base64_data: Image bytes, base64 encoded without a data URL prefix.
        preview_url: Full ``data:`` URL used for thumbnails.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    name: str
    mime_type: str
    size_bytes: int = Field(ge=0, le=MAX_IMAGE_SIZE)
    base64_data: str
    preview_url: str

    @field_validator("mime_type")
    @classmethod
    def validate_mime_type(cls, v: str) -> str:
        """Only image MIME types are accepted."""
        if not v.startswith("image/"):
            raise ValueError(f"Unsupported attachment type: {v}")
        return v


class Message(BaseModel):
    """A single chat message.

    Messages are frozen. The in-flight assistant reply is updated by
    swapping in a copy made with ``model_copy(update=...)``.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=generate_id)
    role: Role
    content: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    images: list[ImageAttachment] | None = None
    is_loading: bool = False

    @classmethod
    def user(cls, content: str, images: list[ImageAttachment] | None = None) -> "Message":
        return cls(role=Role.USER, content=content, images=images or None)

    @classmethod
    def placeholder(cls) -> "Message":
        """Loading assistant message shown until the first fragment arrives."""
        return cls(role=Role.ASSISTANT, is_loading=True)


class ChatState(BaseModel):
    """Snapshot of a conversation handed to observers.

    Attributes:
        messages: Messages in conversation order.
        is_loading: Whether a turn is in flight.
        error: Message of the last failed turn, if any.
        status: Status of the current or most recent turn.
    """

    model_config = ConfigDict(frozen=True)

    messages: list[Message] = Field(default_factory=list)
    is_loading: bool = False
    error: str | None = None
    status: TurnStatus = TurnStatus.IDLE
