"""HTTP API module."""

from mcp_assistant.api.routes import (
    API_KEY_MASK,
    ASSISTANT_KEY,
    REPOSITORY_KEY,
    SECRET_STORE_KEY,
    SETTINGS_KEY,
    setup_routes,
)

__all__ = [
    "API_KEY_MASK",
    "ASSISTANT_KEY",
    "REPOSITORY_KEY",
    "SECRET_STORE_KEY",
    "SETTINGS_KEY",
    "setup_routes",
]
