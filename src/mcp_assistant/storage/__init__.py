"""Local storage for the API key and conversation history."""

from mcp_assistant.storage.conversations import ConversationRepository
from mcp_assistant.storage.models import ConversationItem
from mcp_assistant.storage.secrets import FileSecretStore, SecretStore

__all__ = ["ConversationRepository", "ConversationItem", "FileSecretStore", "SecretStore"]
