"""Turn parsed /messages responses into a single answer string."""

from pydantic import ValidationError

from mcp_assistant.client.models import Answer, ContentBlock, MessagesResponse

NO_ANSWER = "回答を取得できませんでした。"
EMPTY_TOOL_RESULT = "ツール実行結果が空です。"

_TEXT_SEPARATOR = "\n\n"


def decode_response(body: str) -> MessagesResponse | None:
    """Parse a raw body into a MessagesResponse.

    Returns None when the body is not a valid response document, so the
    caller can fall back to the raw text.
    """
    try:
        return MessagesResponse.model_validate_json(body)
    except ValidationError:
        return None


def format_api_error(response: MessagesResponse) -> str:
    return f"API Error: {response.error.type} - {response.error.message}"


def _tool_result_text(block: ContentBlock) -> str | None:
    if block.tool_result is not None:
        return block.tool_result.content
    if isinstance(block.content, list):
        parts = [item.get("text") for item in block.content if item.get("type") == "text"]
        return _TEXT_SEPARATOR.join(p for p in parts if p)
    return block.content


def extract_answer(response: MessagesResponse) -> Answer:
    """Extract the answer text from a parsed response.

    Priority: error block, then all non-empty text blocks joined by a
    blank line, then the first tool_result block, then NO_ANSWER.
    """
    meta = {
        "model": response.model,
        "stop_reason": response.stop_reason,
        "usage": response.usage,
    }

    if response.error is not None:
        return Answer(text=format_api_error(response), source="api_error", **meta)

    texts = [
        block.text
        for block in response.content
        if block.type == "text" and block.text
    ]
    if texts:
        return Answer(text=_TEXT_SEPARATOR.join(texts), source="text", **meta)

    for block in response.content:
        if block.type == "tool_result":
            text = _tool_result_text(block) or EMPTY_TOOL_RESULT
            return Answer(text=text, source="tool_result", **meta)

    return Answer(text=NO_ANSWER, source="empty", **meta)


def answer_from_body(body: str) -> Answer:
    """Decode a body and extract its answer, keeping unparseable bodies as-is."""
    response = decode_response(body)
    if response is None:
        if not body.strip():
            return Answer(text=NO_ANSWER, source="empty")
        return Answer(text=body, source="raw")
    return extract_answer(response)
