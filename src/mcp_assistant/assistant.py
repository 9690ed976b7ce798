"""Question answering flow: credential check, API call, persistence."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from mcp_assistant.client.client import MCPClient
from mcp_assistant.config import Settings
from mcp_assistant.errors import AppError, ErrorKind, MissingAPIKeyError, classify
from mcp_assistant.storage.conversations import ConversationRepository
from mcp_assistant.storage.models import ConversationItem
from mcp_assistant.storage.secrets import SecretStore

logger = structlog.get_logger()

ClientFactory = Callable[[str], MCPClient]


class AssistantService:
    """Answers questions and records them in conversation history.

    A fresh MCPClient is built per question and closed when the call ends,
    so no connection state is shared between questions.
    """

    def __init__(
        self,
        settings: Settings,
        secret_store: SecretStore,
        repository: ConversationRepository,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._settings = settings
        self._secret_store = secret_store
        self._repository = repository
        self._client_factory = client_factory or (
            lambda api_key: MCPClient(settings, api_key)
        )

    async def answer_question(self, question: str) -> str:
        """Return the answer text for ``question``.

        Raises:
            ValueError: If the question is blank.
            AppError: For every failure, already classified.
        """
        if not question.strip():
            raise ValueError("question must not be blank")

        try:
            api_key = await self._secret_store.get_secret()
            if api_key is None:
                raise MissingAPIKeyError()

            async with self._client_factory(api_key) as client:
                answer = await client.send(question)
        except Exception as e:
            error = classify(e)
            logger.warning(
                "answer_question_failed",
                kind=error.kind.value,
                error_type=type(e).__name__,
            )
            raise error from e

        return answer.text

    async def ask(self, question: str) -> ConversationItem:
        """Answer ``question`` and persist the exchange."""
        question = question.strip()
        answer = await self.answer_question(question)
        try:
            conversation_id = await self._repository.append(question, answer)
            item = await self._repository.get(conversation_id)
        except Exception as e:
            raise classify(e) from e
        if item is None:
            raise AppError(ErrorKind.UNKNOWN, "保存した会話が見つかりません。")
        return item
