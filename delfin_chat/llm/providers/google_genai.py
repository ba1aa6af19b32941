"""Google GenAI provider for Gemini and Gemma models."""

import base64
import binascii
import logging
from collections.abc import AsyncIterator

from google import genai
from google.genai import types

from delfin_chat.llm.base import (
    ConfigurationError,
    LLMMessage,
    LLMProvider,
    ProviderError,
)
from delfin_chat.llm.cancellation import CancellationToken
from delfin_chat.llm.config import ProviderConfig
from delfin_chat.llm.prompts import (
    MATH_TURN_INSTRUCTION,
    conversation_text,
    detect_math_content,
)

logger = logging.getLogger(__name__)


class GoogleGenAIProvider(LLMProvider):
    """Provider backed by the google-genai SDK.

    Transport is delegated to ``genai.Client``; responses are consumed from
    the SDK's async content stream.
    """

    name = "google-genai"
    DEFAULT_MODEL = "gemma-3-27b-it"

    def __init__(self, config: ProviderConfig) -> None:
        if not config.api_key:
            raise ConfigurationError("Google GenAI API key is required")

        self.model = config.model or self.DEFAULT_MODEL
        self.system_prompt = config.system_prompt
        self.client = genai.Client(api_key=config.api_key)

    def is_configured(self) -> bool:
        return self.client is not None

    def build_contents(self, messages: list[LLMMessage]) -> list[types.Content]:
        """Convert uniform messages to GenAI contents.

        Text comes first in each turn, followed by inline images in order.
        A LaTeX formatting turn is prepended when the conversation looks
        mathematical. System messages go to the system instruction instead.
        """
        contents: list[types.Content] = []
        for msg in messages:
            if msg.role == "system":
                continue

            parts: list[types.Part] = []
            if msg.content:
                parts.append(types.Part.from_text(text=msg.content))
            for image in msg.images or []:
                try:
                    data = base64.b64decode(image.data, validate=True)
                except (binascii.Error, ValueError) as e:
                    raise ProviderError(self.name, f"Invalid image data: {e}") from e
                parts.append(types.Part.from_bytes(data=data, mime_type=image.mime_type))

            role = "user" if msg.role == "user" else "model"
            contents.append(types.Content(role=role, parts=parts))

        if detect_math_content(conversation_text(messages)):
            contents.insert(
                0,
                types.Content(
                    role="model",
                    parts=[types.Part.from_text(text=MATH_TURN_INSTRUCTION)],
                ),
            )

        return contents

    def build_config(self, messages: list[LLMMessage]) -> types.GenerateContentConfig | None:
        instructions = [m.content for m in messages if m.role == "system" and m.content]
        if self.system_prompt:
            instructions.insert(0, self.system_prompt)
        if not instructions:
            return None
        return types.GenerateContentConfig(system_instruction="\n\n".join(instructions))

    async def generate_streaming_response(
        self,
        messages: list[LLMMessage],
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """Stream a reply from the GenAI API, skipping empty chunks."""
        contents = self.build_contents(messages)
        config = self.build_config(messages)

        try:
            stream = await self.client.aio.models.generate_content_stream(
                model=self.model,
                contents=contents,
                config=config,
            )

            async for chunk in stream:
                if cancel_token is not None and cancel_token.cancelled:
                    return
                if chunk.text:
                    yield chunk.text

        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"Error generating response from {self.name}: {e}")
            raise ProviderError(self.name, str(e)) from e
