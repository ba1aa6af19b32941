"""Built-in LLM provider implementations."""

from delfin_chat.llm.providers.google_genai import GoogleGenAIProvider
from delfin_chat.llm.providers.openai_compatible import OpenAIProvider, SSELineBuffer

__all__ = ["GoogleGenAIProvider", "OpenAIProvider", "SSELineBuffer"]
