"""Provider contract and uniform wire messages.

Every provider receives the whole conversation as a list of ``LLMMessage``
and yields the assistant reply as plain text fragments.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from typing import Literal

from pydantic import BaseModel, ConfigDict

from delfin_chat.llm.cancellation import CancellationToken
from delfin_chat.models.schemas import Message


class ConfigurationError(Exception):
    """Raised when a provider cannot be configured (missing key, unknown type)."""

    pass


class ProviderNotFoundError(LookupError):
    """Raised when a provider type is not registered."""

    pass


class ProviderError(Exception):
    """Raised when a provider fails while producing a response.

    Attributes:
        provider: Name of the failing provider.
        detail: Description of the failure.
    """

    def __init__(self, provider: str, detail: str) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider} error: {detail}")


class TransportError(ProviderError):
    """Raised on network failures and non-2xx HTTP responses."""

    pass


class LLMImage(BaseModel):
    """Inline image payload in a uniform message."""

    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: str  # base64, no data URL prefix


class LLMMessage(BaseModel):
    """Provider-agnostic representation of one conversation turn."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"]
    content: str
    images: list[LLMImage] | None = None

    @classmethod
    def from_message(cls, message: Message) -> "LLMMessage":
        images = None
        if message.images:
            images = [
                LLMImage(mime_type=image.mime_type, data=image.base64_data)
                for image in message.images
            ]
        return cls(role=message.role.value, content=message.content, images=images)


class LLMProvider(ABC):
    """Base class for all LLM providers.

    Providers are stateless with respect to the conversation: the full
    history is passed on every call.
    """

    name: str

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True when the required credentials are present."""

    @abstractmethod
    def generate_streaming_response(
        self,
        messages: list[LLMMessage],
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """Stream the assistant reply for a conversation.

        Args:
            messages: The entire conversation so far, oldest first.
            cancel_token: Stops the stream silently once cancelled.

        Yields:
            Text fragments as the backend produces them.

        Raises:
            ProviderError: On transport, parse or backend errors.
        """
