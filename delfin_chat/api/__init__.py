"""HTTP host for the chat UI.

Endpoints:
    - GET /health: Service health and registered providers
    - GET /: NiceGUI chat page (mounted by delfin_chat.main)
"""

from delfin_chat.api.app import create_app

__all__ = ["create_app"]
