"""Pytest fixtures for mcp-assistant tests."""

import json
import os
from unittest.mock import patch

import httpx
import pytest

from mcp_assistant.config import Settings
from mcp_assistant.storage.conversations import ConversationRepository
from mcp_assistant.storage.secrets import FileSecretStore


@pytest.fixture
def mock_env_vars(tmp_path):
    """Mock environment variables for testing."""
    env_vars = {
        "ANTHROPIC_BASE_URL": "https://api.test/v1",
        "DATA_DIR": str(tmp_path / "data"),
        "HOST": "127.0.0.1",
        "PORT": "8080",
        "LOG_LEVEL": "DEBUG",
        "RETRY_INITIAL_DELAY": "0",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        yield env_vars


@pytest.fixture
def settings(mock_env_vars) -> Settings:
    """Create Settings instance with mocked environment."""
    return Settings(_env_file=None)


@pytest.fixture
def secret_store(settings):
    return FileSecretStore(settings.secret_path)


@pytest.fixture
def repository():
    repo = ConversationRepository(":memory:")
    yield repo
    repo.close()


def messages_body(*blocks, **fields) -> str:
    """Build a /messages response body with the given content blocks."""
    payload = {
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-5-sonnet-20241022",
        "stop_reason": "end_turn",
        "content": list(blocks),
        "usage": {"input_tokens": 12, "output_tokens": 34},
    }
    payload.update(fields)
    return json.dumps(payload, ensure_ascii=False)


class RecordingTransport(httpx.AsyncBaseTransport):
    """Transport that replays canned responses and records requests.

    Each item in ``responses`` is an httpx.Response or an exception to raise.
    """

    def __init__(self, responses):
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []
        self.closed = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True
