"""Provider registry and environment-driven factory.

The registry is an ordinary object: build one with ``create_default_registry``
and pass it where it is needed instead of relying on module-level state.
"""

import logging
import os
from collections.abc import Callable, Mapping

from delfin_chat.llm.base import LLMProvider, ProviderNotFoundError
from delfin_chat.llm.config import ProviderConfig, get_provider_config, get_provider_type
from delfin_chat.llm.providers import GoogleGenAIProvider, OpenAIProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderConfig], LLMProvider]


class ProviderRegistry:
    """Maps provider types to factories."""

    def __init__(self) -> None:
        self._factories: dict[str, ProviderFactory] = {}

    def register(self, provider_type: str, factory: ProviderFactory) -> None:
        """Register a factory for a provider type, replacing any existing one."""
        if provider_type in self._factories:
            logger.debug(f"Overriding provider factory: {provider_type}")
        self._factories[provider_type] = factory

    def create(self, provider_type: str, config: ProviderConfig) -> LLMProvider:
        """Create a provider instance.

        Raises:
            ProviderNotFoundError: If provider_type is not registered.
        """
        factory = self._factories.get(provider_type)
        if factory is None:
            raise ProviderNotFoundError(
                f"LLM provider type '{provider_type}' is not registered"
            )
        return factory(config)

    def get_available_providers(self) -> list[str]:
        return list(self._factories)


def create_default_registry() -> ProviderRegistry:
    """Return a registry with the built-in providers registered."""
    registry = ProviderRegistry()
    registry.register(GoogleGenAIProvider.name, GoogleGenAIProvider)
    registry.register(OpenAIProvider.name, OpenAIProvider)
    return registry


class LLMServiceFactory:
    """Creates providers from environment configuration.

    Args:
        registry: Registry to create providers from.
        environ: Variables to read. Defaults to ``os.environ``.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self.registry = registry
        self._environ = os.environ if environ is None else environ

    def provider_type(self) -> str:
        return get_provider_type(self._environ)

    def create_from_environment(self) -> LLMProvider:
        """Create the provider selected by LLM_PROVIDER.

        Raises:
            ConfigurationError: If the type has no environment configuration
                or its API key is missing.
            ProviderNotFoundError: If the type is not registered.
        """
        provider_type = self.provider_type()
        config = get_provider_config(provider_type, self._environ)
        provider = self.registry.create(provider_type, config)
        logger.info(f"Created LLM provider: {provider.name} (model: {config.model})")
        return provider

    def create(self, provider_type: str, config: ProviderConfig) -> LLMProvider:
        return self.registry.create(provider_type, config)

    def get_available_providers(self) -> list[str]:
        return self.registry.get_available_providers()
