"""Provider configuration with environment variable loading.

Pydantic-based configuration for LLM providers. Each provider type has an
entry in ``CONFIG_BUILDERS`` that reads its settings from the environment,
so supporting a new type is a table addition rather than a new branch.
"""

import os
from collections.abc import Callable, Mapping

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from delfin_chat.llm.base import ConfigurationError
from delfin_chat.llm.prompts import load_system_prompt

# Load environment variables from .env file
load_dotenv()

DEFAULT_PROVIDER_TYPE = "google-genai"
DEFAULT_GENAI_MODEL = "gemini-2.5-flash"
DEFAULT_OPENAI_MODEL = "gpt-4"


class ProviderConfig(BaseModel):
    """Configuration for a single LLM provider.

    Immutable once built. Vendor-specific keys are accepted as extra fields.

    Attributes:
        api_key: API key for model access (may be empty; providers reject it).
        model: Model identifier, None for the provider default.
        base_url: API base URL, None for the provider default.
        system_prompt: Optional system instruction sent with every request.
        timeout: Transport timeout in seconds.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    api_key: str = ""
    model: str | None = None
    base_url: str | None = None
    system_prompt: str | None = None
    timeout: float = Field(default=60.0, gt=0)

    @field_validator("api_key")
    @classmethod
    def strip_api_key(cls, v: str) -> str:
        """Strip surrounding whitespace from the key."""
        return v.strip()

    @field_validator("model", "base_url", "system_prompt")
    @classmethod
    def empty_to_none(cls, v: str | None) -> str | None:
        """Treat blank optional settings as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()


ConfigBuilder = Callable[[Mapping[str, str]], ProviderConfig]


def _google_genai_config(environ: Mapping[str, str]) -> ProviderConfig:
    return ProviderConfig(
        api_key=environ.get("GENAI_API_KEY", ""),
        model=environ.get("GENAI_MODEL") or DEFAULT_GENAI_MODEL,
        system_prompt=load_system_prompt(environ.get("SYSTEM_PROMPT_PATH")),
    )


def _openai_config(environ: Mapping[str, str]) -> ProviderConfig:
    return ProviderConfig(
        api_key=environ.get("OPENAI_API_KEY", ""),
        model=environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
        base_url=environ.get("OPENAI_BASE_URL"),
    )


CONFIG_BUILDERS: dict[str, ConfigBuilder] = {
    "google-genai": _google_genai_config,
    "openai": _openai_config,
}


def get_provider_type(environ: Mapping[str, str] | None = None) -> str:
    """Return the provider type selected by LLM_PROVIDER."""
    environ = os.environ if environ is None else environ
    return (environ.get("LLM_PROVIDER") or DEFAULT_PROVIDER_TYPE).strip()


def get_provider_config(
    provider_type: str,
    environ: Mapping[str, str] | None = None,
) -> ProviderConfig:
    """Build provider configuration from environment.

    Args:
        provider_type: Registered provider type, e.g. "openai".
        environ: Variables to read. Defaults to ``os.environ``.

    Returns:
        Configured ProviderConfig instance.

    Raises:
        ConfigurationError: If the type has no environment configuration.
    """
    environ = os.environ if environ is None else environ
    builder = CONFIG_BUILDERS.get(provider_type)
    if builder is None:
        raise ConfigurationError(
            f"No environment configuration available for provider: {provider_type}"
        )
    return builder(environ)
