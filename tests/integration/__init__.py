"""Integration tests for components working together.

Coverage:
    - Controller driving the OpenAI-compatible provider over SSE
    - Environment-driven provider creation through the registry
    - Health endpoint of the FastAPI host
"""
