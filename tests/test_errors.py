"""Tests for error classification."""

import json

import httpx
import pytest
from pydantic import BaseModel, ValidationError

from mcp_assistant.errors import (
    MSG_API_KEY_MISSING,
    MSG_CONNECT_FAILED,
    MSG_SERIALIZATION,
    MSG_SOCKET_TIMEOUT,
    AppError,
    ErrorKind,
    MissingAPIKeyError,
    RequestTimeoutError,
    classify,
)


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://api.test/v1/messages")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class _Model(BaseModel):
    count: int


def test_socket_timeout_is_network():
    error = classify(httpx.ReadTimeout("idle"))
    assert error.kind is ErrorKind.NETWORK
    assert error.message == MSG_SOCKET_TIMEOUT


def test_connect_timeout_is_network():
    error = classify(httpx.ConnectTimeout("connect"))
    assert error.kind is ErrorKind.NETWORK
    assert error.message == MSG_CONNECT_FAILED


def test_request_timeout_is_network():
    assert classify(RequestTimeoutError(120.0)).kind is ErrorKind.NETWORK


@pytest.mark.parametrize("status", [401, 403])
def test_auth_statuses(status):
    assert classify(_status_error(status)).kind is ErrorKind.AUTHENTICATION


@pytest.mark.parametrize(
    ("status", "message"),
    [
        (400, "リクエストが無効です。"),
        (404, "APIエンドポイントが見つかりません。"),
        (429, "リクエストが多すぎます。しばらく待ってからお試しください。"),
        (418, "サーバーエラーが発生しました (418)"),
        (500, "サーバー内部エラーが発生しました。しばらく待ってからお試しください。"),
        (529, "サーバーエラーが発生しました (529)"),
    ],
)
def test_other_statuses_are_network(status, message):
    error = classify(_status_error(status))
    assert error.kind is ErrorKind.NETWORK
    assert error.message == message


def test_parse_failures_are_serialization():
    with pytest.raises(ValidationError) as exc_info:
        _Model(count="many")
    assert classify(exc_info.value).kind is ErrorKind.SERIALIZATION
    error = classify(json.JSONDecodeError("Expecting value", "", 0))
    assert error.kind is ErrorKind.SERIALIZATION
    assert error.message == MSG_SERIALIZATION


def test_missing_api_key():
    error = classify(MissingAPIKeyError())
    assert error.kind is ErrorKind.API_KEY
    assert error.message == MSG_API_KEY_MISSING


def test_unknown_keeps_original_message():
    error = classify(RuntimeError("disk on fire"))
    assert error.kind is ErrorKind.UNKNOWN
    assert error.message == "disk on fire"


def test_unknown_without_message_gets_default():
    assert classify(RuntimeError()).message == "予期しないエラーが発生しました"


def test_app_error_is_not_reclassified():
    original = AppError(ErrorKind.AUTHENTICATION, "nope")
    assert classify(original) is original


def test_app_error_is_read_only():
    error = AppError(ErrorKind.NETWORK, "down")
    with pytest.raises(AttributeError):
        error.kind = ErrorKind.UNKNOWN
    assert str(error) == "down"
