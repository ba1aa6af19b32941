"""Test package for Delfin Chat.

Structure:
    - unit/: Provider, registry, controller and attachment tests
    - integration/: Full turns through controller, registry and provider,
      and the FastAPI host

Remote APIs are replaced by httpx MockTransport or patched SDK clients,
so no API keys are needed.
"""
