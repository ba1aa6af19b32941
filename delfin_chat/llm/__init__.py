"""LLM provider abstraction and streaming pipeline.

Responsibilities:
    - Uniform message format shared by all providers
    - Provider implementations for Google GenAI and OpenAI-compatible APIs
    - Provider registry and environment-based configuration
    - Cooperative cancellation of in-flight streams

Providers are stateless: the full conversation is sent on every call.
"""

from delfin_chat.llm.base import (
    ConfigurationError,
    LLMImage,
    LLMMessage,
    LLMProvider,
    ProviderError,
    ProviderNotFoundError,
    TransportError,
)
from delfin_chat.llm.cancellation import CancellationToken
from delfin_chat.llm.config import ProviderConfig, get_provider_config, get_provider_type
from delfin_chat.llm.registry import (
    LLMServiceFactory,
    ProviderRegistry,
    create_default_registry,
)

__all__ = [
    "CancellationToken",
    "ConfigurationError",
    "LLMImage",
    "LLMMessage",
    "LLMProvider",
    "LLMServiceFactory",
    "ProviderConfig",
    "ProviderError",
    "ProviderNotFoundError",
    "ProviderRegistry",
    "TransportError",
    "create_default_registry",
    "get_provider_config",
    "get_provider_type",
]
