"""
Boundary layer for external system integrations.

Handles all interactions with external systems (the session/message
database and the upstream chat-completion providers).
"""
