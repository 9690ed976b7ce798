"""JSON API for asking questions and managing history and the API key."""

from __future__ import annotations

import functools
import json

import structlog
from aiohttp import web

from mcp_assistant.assistant import AssistantService
from mcp_assistant.config import Settings
from mcp_assistant.errors import AppError, ErrorKind
from mcp_assistant.storage.conversations import ConversationRepository
from mcp_assistant.storage.secrets import SecretStore

logger = structlog.get_logger()

SETTINGS_KEY = web.AppKey("settings", Settings)
SECRET_STORE_KEY = web.AppKey("secret_store", SecretStore)
REPOSITORY_KEY = web.AppKey("repository", ConversationRepository)
ASSISTANT_KEY = web.AppKey("assistant", AssistantService)

API_KEY_MASK = "••••••••••••••••"

_dumps = functools.partial(json.dumps, ensure_ascii=False)

_STATUS_BY_KIND = {
    ErrorKind.API_KEY: 412,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.NETWORK: 502,
    ErrorKind.SERIALIZATION: 502,
    ErrorKind.UNKNOWN: 500,
}


def _error_response(status: int, kind: str, message: str) -> web.Response:
    return web.json_response(
        {"error": {"kind": kind, "message": message}},
        status=status,
        dumps=_dumps,
    )


def app_error_response(error: AppError) -> web.Response:
    return _error_response(_STATUS_BY_KIND[error.kind], error.kind.value, error.message)


async def _read_json(request: web.Request) -> dict:
    try:
        body = await request.json()
    # JSONDecodeError and UnicodeDecodeError are both ValueErrors
    except ValueError:
        raise web.HTTPBadRequest(text="request body must be JSON")
    if not isinstance(body, dict):
        raise web.HTTPBadRequest(text="request body must be a JSON object")
    return body


async def health(request: web.Request) -> web.Response:
    """Health check endpoint."""
    return web.json_response({"status": "healthy"})


async def ask_question(request: web.Request) -> web.Response:
    assistant: AssistantService = request.app[ASSISTANT_KEY]
    body = await _read_json(request)
    question = body.get("question")
    if not isinstance(question, str) or not question.strip():
        return _error_response(400, "validation", "質問を入力してください。")

    try:
        item = await assistant.ask(question)
    except AppError as e:
        return app_error_response(e)

    logger.info("question_answered", conversation_id=item.id)
    return web.json_response(
        item.model_dump(),
        status=201,
        dumps=_dumps,
    )


async def list_conversations(request: web.Request) -> web.Response:
    repository: ConversationRepository = request.app[REPOSITORY_KEY]
    favorites_only = request.query.get("favorites", "").lower() in ("1", "true", "yes")
    items = await repository.list(favorites_only=favorites_only)
    return web.json_response(
        [item.model_dump() for item in items],
        dumps=_dumps,
    )


async def set_favorite(request: web.Request) -> web.Response:
    repository: ConversationRepository = request.app[REPOSITORY_KEY]
    body = await _read_json(request)
    is_favorite = body.get("is_favorite")
    if not isinstance(is_favorite, bool):
        return _error_response(400, "validation", "is_favorite must be a boolean")
    await repository.set_favorite(request.match_info["conversation_id"], is_favorite)
    return web.Response(status=204)


async def delete_conversation(request: web.Request) -> web.Response:
    repository: ConversationRepository = request.app[REPOSITORY_KEY]
    await repository.delete(request.match_info["conversation_id"])
    return web.Response(status=204)


async def delete_all_conversations(request: web.Request) -> web.Response:
    repository: ConversationRepository = request.app[REPOSITORY_KEY]
    await repository.delete_all()
    return web.Response(status=204)


async def get_api_key(request: web.Request) -> web.Response:
    secret_store: SecretStore = request.app[SECRET_STORE_KEY]
    has_key = await secret_store.has_secret()
    return web.json_response({
        "has_api_key": has_key,
        "api_key": API_KEY_MASK if has_key else "",
    })


async def save_api_key(request: web.Request) -> web.Response:
    secret_store: SecretStore = request.app[SECRET_STORE_KEY]
    body = await _read_json(request)
    api_key = body.get("api_key")
    api_key = api_key.strip() if isinstance(api_key, str) else ""
    if not api_key:
        return _error_response(400, "validation", "API Keyを入力してください")
    if api_key == API_KEY_MASK:
        return _error_response(400, "validation", "新しいAPI Keyを入力してください")
    await secret_store.set_secret(api_key)
    return web.Response(status=204)


async def clear_api_key(request: web.Request) -> web.Response:
    secret_store: SecretStore = request.app[SECRET_STORE_KEY]
    await secret_store.clear_secret()
    return web.Response(status=204)


def setup_routes(app: web.Application) -> None:
    app.router.add_get("/health", health)
    app.router.add_post("/api/questions", ask_question)
    app.router.add_get("/api/conversations", list_conversations)
    app.router.add_delete("/api/conversations", delete_all_conversations)
    app.router.add_put("/api/conversations/{conversation_id}/favorite", set_favorite)
    app.router.add_delete("/api/conversations/{conversation_id}", delete_conversation)
    app.router.add_get("/api/settings/api-key", get_api_key)
    app.router.add_put("/api/settings/api-key", save_api_key)
    app.router.add_delete("/api/settings/api-key", clear_api_key)
