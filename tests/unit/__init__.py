"""Unit tests for individual components in isolation.

Coverage:
    - llm/: Config, registry, prompts and both providers
    - chat/: Controller turn lifecycle, retry and cancellation
    - attachments/: Image validation and encoding
"""
