"""Client for the Anthropic Messages API with the MCP connector."""

from __future__ import annotations

import asyncio

import httpx
import structlog

from mcp_assistant.client.formatter import answer_from_body
from mcp_assistant.client.models import Answer, MCPServer, Message, MessagesRequest
from mcp_assistant.config import Settings
from mcp_assistant.errors import RequestTimeoutError
from mcp_assistant.retry import RetryPolicy, retry_with_backoff

logger = structlog.get_logger()


class MCPClient:
    """Async client that answers one question per call.

    Owns an ``httpx.AsyncClient``; use as an async context manager (or call
    ``close()``) so the connection pool is released whatever the outcome.
    """

    def __init__(
        self,
        settings: Settings,
        api_key: str,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._api_key = api_key
        self._retry_policy = retry_policy or RetryPolicy(
            max_attempts=settings.retry_max_attempts,
            initial_delay=settings.retry_initial_delay,
            max_delay=settings.retry_max_delay,
            multiplier=settings.retry_multiplier,
        )
        self._request_timeout = settings.request_timeout
        self._http_client = httpx.AsyncClient(
            base_url=settings.anthropic_base_url,
            timeout=httpx.Timeout(
                settings.socket_timeout, connect=settings.connect_timeout
            ),
            transport=transport,
        )

    async def __aenter__(self) -> MCPClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def build_request(self, question: str) -> MessagesRequest:
        return MessagesRequest(
            model=self._settings.anthropic_model,
            max_tokens=self._settings.anthropic_max_tokens,
            messages=[Message(role="user", content=question)],
            mcp_servers=[
                MCPServer(
                    type="url",
                    url=self._settings.mcp_server_url,
                    name=self._settings.mcp_server_name,
                )
            ],
        )

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self._api_key,
            "anthropic-version": self._settings.anthropic_version,
            "anthropic-beta": self._settings.anthropic_beta,
            "content-type": "application/json",
        }

    async def send(self, question: str) -> Answer:
        """Ask one question and return the extracted answer.

        Transient failures are retried per the client's RetryPolicy; the
        final failure propagates unclassified.
        """
        request = self.build_request(question)

        logger.info(
            "mcp_request_start",
            model=request.model,
            mcp_server=self._settings.mcp_server_name,
            question=question[:100],
        )

        try:
            answer = await retry_with_backoff(
                lambda: self._post(request), self._retry_policy
            )
        except Exception as e:
            logger.error("mcp_request_error", error_type=type(e).__name__)
            raise

        logger.info(
            "mcp_request_complete",
            source=answer.source,
            model=answer.model,
            answer_length=len(answer.text),
            stop_reason=answer.stop_reason,
        )
        return answer

    async def _post(self, request: MessagesRequest) -> Answer:
        """Send a single attempt."""
        try:
            response = await asyncio.wait_for(
                self._http_client.post(
                    "/messages",
                    json=request.model_dump(),
                    headers=self._headers(),
                ),
                timeout=self._request_timeout,
            )
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(self._request_timeout) from e

        logger.debug(
            "mcp_response_received",
            status_code=response.status_code,
            body_length=len(response.content),
        )
        response.raise_for_status()

        answer = answer_from_body(response.text)
        if answer.source == "raw":
            logger.warning("mcp_response_unparsed", body_preview=answer.text[:100])
        elif answer.source == "api_error":
            logger.warning("mcp_response_api_error", message=answer.text)
        return answer

    async def close(self) -> None:
        if not self._http_client.is_closed:
            await self._http_client.aclose()
