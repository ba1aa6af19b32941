"""Delfin Chat - browser chat UI for streaming LLM replies.

Combines NiceGUI for the chat page, FastAPI as its host, httpx and the
google-genai SDK for model access, and Pydantic for data validation.

Components:
    - llm: Provider abstraction, registry and streaming clients
    - chat: Conversation controller with send, retry and cancel
    - attachments: Image validation and encoding
    - models: Message and state schemas
    - api: Application factory and health endpoint
    - ui: Web interface for chat interactions
"""

__version__ = "0.1.0"
