"""Anthropic Messages API client with MCP server support."""

from mcp_assistant.client.client import MCPClient
from mcp_assistant.client.models import Answer, MessagesRequest, MessagesResponse

__all__ = ["MCPClient", "Answer", "MessagesRequest", "MessagesResponse"]
