"""Wire models for the Anthropic Messages API with MCP servers."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str
    content: str


class MCPServer(BaseModel):
    """A URL-addressed MCP server the model may call while answering."""

    model_config = ConfigDict(frozen=True)

    type: str = "url"
    url: str
    name: str


class MessagesRequest(BaseModel):
    """Body of POST /messages."""

    model_config = ConfigDict(frozen=True)

    model: str
    max_tokens: int
    messages: list[Message]
    mcp_servers: list[MCPServer]


class ToolUse(BaseModel):
    id: str
    name: str
    input: dict[str, Any]


class ToolResult(BaseModel):
    tool_use_id: str
    content: str


class ContentBlock(BaseModel):
    """One block of response content: text, tool_use or tool_result."""

    type: str
    text: str | None = None
    tool_use: ToolUse | None = None
    tool_result: ToolResult | None = None
    # tool_result blocks may also carry their content inline
    content: str | list[dict[str, Any]] | None = None


class Usage(BaseModel):
    input_tokens: int
    output_tokens: int


class APIErrorBlock(BaseModel):
    type: str
    message: str


class MessagesResponse(BaseModel):
    """Parsed response from /messages. Unknown fields are ignored."""

    id: str | None = None
    type: str | None = None
    role: str | None = None
    content: list[ContentBlock] = []
    model: str | None = None
    stop_reason: str | None = None
    usage: Usage | None = None
    error: APIErrorBlock | None = None


AnswerSource = Literal["text", "tool_result", "api_error", "raw", "empty"]


class Answer(BaseModel):
    """Plain-text answer extracted from one call, plus where it came from."""

    text: str
    source: AnswerSource
    model: str | None = None
    stop_reason: str | None = None
    usage: Usage | None = None
