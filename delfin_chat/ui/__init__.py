"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Message display with per-fragment streaming updates
    - Image attachment picker with previews
    - Error banner with retry and dismiss
    - New chat button

Contains no conversation logic. Renders ChatController snapshots and
forwards user actions to it.
"""
