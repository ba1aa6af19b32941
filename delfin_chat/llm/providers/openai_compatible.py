"""OpenAI-compatible provider speaking the chat completions SSE protocol.

Uses httpx directly instead of a vendor SDK so that any server exposing
``POST /chat/completions`` with ``stream: true`` can be targeted through
``base_url``.
"""

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from delfin_chat.llm.base import (
    ConfigurationError,
    LLMMessage,
    LLMProvider,
    ProviderError,
    TransportError,
)
from delfin_chat.llm.cancellation import CancellationToken
from delfin_chat.llm.config import ProviderConfig
from delfin_chat.llm.prompts import (
    MATH_SYSTEM_INSTRUCTION,
    conversation_text,
    detect_math_content,
)

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSELineBuffer:
    """Splits incrementally decoded text into complete lines.

    A trailing line without a newline is held until more text arrives.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, text: str) -> list[str]:
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        return [line.rstrip("\r") for line in lines]

    @property
    def pending(self) -> str:
        return self._buffer


def parse_delta(payload: str) -> str | None:
    """Extract ``choices[0].delta.content`` from an SSE data payload.

    Returns None for payloads that are not valid JSON or carry no content.
    """
    try:
        data = json.loads(payload)
        content = data["choices"][0]["delta"].get("content")
    except (json.JSONDecodeError, KeyError, IndexError, TypeError, AttributeError):
        logger.debug(f"Skipping unparseable stream line: {payload[:80]!r}")
        return None
    return content if isinstance(content, str) and content else None


class OpenAIProvider(LLMProvider):
    """Provider for OpenAI and OpenAI-compatible chat completion APIs."""

    name = "openai"
    DEFAULT_MODEL = "gpt-4"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    def __init__(
        self,
        config: ProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not config.api_key:
            raise ConfigurationError("OpenAI API key is required")

        self.api_key = config.api_key
        self.model = config.model or self.DEFAULT_MODEL
        self.base_url = (config.base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.system_prompt = config.system_prompt
        self.timeout = config.timeout
        self._transport = transport

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_messages(self, messages: list[LLMMessage]) -> list[dict[str, Any]]:
        """Convert uniform messages to the chat completions format.

        Turns without images use plain string content. Turns with images use
        a list of text and image_url parts, text first.
        """
        wire: list[dict[str, Any]] = []
        for msg in messages:
            if not msg.images:
                wire.append({"role": msg.role, "content": msg.content})
                continue

            content: list[dict[str, Any]] = []
            if msg.content:
                content.append({"type": "text", "text": msg.content})
            for image in msg.images:
                content.append(
                    {
                        "type": "image_url",
                        "image_url": {"url": f"data:{image.mime_type};base64,{image.data}"},
                    }
                )
            wire.append({"role": msg.role, "content": content})

        if detect_math_content(conversation_text(messages)):
            wire.insert(0, {"role": "system", "content": MATH_SYSTEM_INSTRUCTION})
        if self.system_prompt:
            wire.insert(0, {"role": "system", "content": self.system_prompt})

        return wire

    async def generate_streaming_response(
        self,
        messages: list[LLMMessage],
        cancel_token: CancellationToken | None = None,
    ) -> AsyncIterator[str]:
        """Stream a reply from ``{base_url}/chat/completions``.

        The stream ends at the ``[DONE]`` sentinel; anything after it in the
        body is ignored. Malformed data lines are skipped.
        """
        payload = {
            "model": self.model,
            "messages": self.build_messages(messages),
            "stream": True,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                async with client.stream(
                    "POST",
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers=headers,
                ) as response:
                    if not response.is_success:
                        raise TransportError(
                            self.name,
                            f"API error: {response.status_code} {response.reason_phrase}",
                        )

                    buffer = SSELineBuffer()
                    async for text in response.aiter_text():
                        for line in buffer.feed(text):
                            if not line.startswith(DATA_PREFIX):
                                continue
                            data = line[len(DATA_PREFIX):]
                            if data == DONE_SENTINEL:
                                return
                            content = parse_delta(data)
                            if content is None:
                                continue
                            if cancel_token is not None and cancel_token.cancelled:
                                return
                            yield content

        except ProviderError as e:
            logger.error(f"Error generating response from {self.name}: {e}")
            raise
        except httpx.HTTPError as e:
            logger.error(f"Error generating response from {self.name}: {e}")
            raise TransportError(self.name, str(e) or type(e).__name__) from e
        except Exception as e:
            logger.error(f"Error generating response from {self.name}: {e}")
            raise ProviderError(self.name, str(e)) from e
