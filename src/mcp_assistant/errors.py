"""Closed error taxonomy for user-facing failures.

Every failure that reaches the presentation layer is an ``AppError`` whose
``kind`` is one of ``ErrorKind``. ``classify`` maps raw exceptions (httpx
transport errors, HTTP status errors, decode errors) onto that set using
explicit tables; it is total and never re-classifies an existing ``AppError``.
"""

from __future__ import annotations

import json
from enum import Enum

import httpx
from pydantic import ValidationError


class ErrorKind(str, Enum):
    NETWORK = "network"
    API_KEY = "api_key"
    AUTHENTICATION = "authentication"
    SERIALIZATION = "serialization"
    UNKNOWN = "unknown"


class AppError(Exception):
    """Terminal, classified failure carrying a user-facing message."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self._kind = kind
        self._message = message

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def message(self) -> str:
        return self._message

    def __repr__(self) -> str:
        return f"AppError(kind={self._kind.name}, message={self._message!r})"


class MissingAPIKeyError(Exception):
    """Raised before any network call when no API key is stored."""


class RequestTimeoutError(Exception):
    """Raised when a request exceeds its total time budget."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"Request timeout has expired [request_timeout={timeout}s]")
        self.timeout = timeout


MSG_SOCKET_TIMEOUT = "接続がタイムアウトしました。インターネット接続を確認してください。"
MSG_CONNECT_FAILED = "サーバーに接続できませんでした。インターネット接続を確認してください。"
MSG_REQUEST_TIMEOUT = "リクエストがタイムアウトしました。しばらく待ってからお試しください。"
MSG_NETWORK = "ネットワークエラーが発生しました。インターネット接続を確認してください。"
MSG_SERIALIZATION = "データの解析に失敗しました。"
MSG_API_KEY_MISSING = "APIキーが設定されていません。設定画面で設定してください。"
MSG_UNEXPECTED = "予期しないエラーが発生しました"

_STATUS_ERRORS: dict[int, tuple[ErrorKind, str]] = {
    400: (ErrorKind.NETWORK, "リクエストが無効です。"),
    401: (ErrorKind.AUTHENTICATION, "APIキーが無効です。設定を確認してください。"),
    403: (ErrorKind.AUTHENTICATION, "APIキーの権限が不足しています。"),
    404: (ErrorKind.NETWORK, "APIエンドポイントが見つかりません。"),
    429: (ErrorKind.NETWORK, "リクエストが多すぎます。しばらく待ってからお試しください。"),
    500: (ErrorKind.NETWORK, "サーバー内部エラーが発生しました。しばらく待ってからお試しください。"),
    502: (ErrorKind.NETWORK, "サーバーが利用できません。しばらく待ってからお試しください。"),
    503: (ErrorKind.NETWORK, "サービスが一時的に利用できません。しばらく待ってからお試しください。"),
}


def classify_status(status_code: int) -> AppError:
    """Map an HTTP error status to an AppError."""
    kind, message = _STATUS_ERRORS.get(
        status_code,
        (ErrorKind.NETWORK, f"サーバーエラーが発生しました ({status_code})"),
    )
    return AppError(kind, message)


def classify(exc: BaseException) -> AppError:
    """Map any raised failure to exactly one AppError."""
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, MissingAPIKeyError):
        return AppError(ErrorKind.API_KEY, MSG_API_KEY_MISSING)
    if isinstance(exc, (httpx.ConnectTimeout, httpx.ConnectError)):
        return AppError(ErrorKind.NETWORK, MSG_CONNECT_FAILED)
    if isinstance(exc, httpx.TimeoutException):
        return AppError(ErrorKind.NETWORK, MSG_SOCKET_TIMEOUT)
    if isinstance(exc, RequestTimeoutError):
        return AppError(ErrorKind.NETWORK, MSG_REQUEST_TIMEOUT)
    if isinstance(exc, httpx.NetworkError):
        return AppError(ErrorKind.NETWORK, MSG_NETWORK)
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_status(exc.response.status_code)
    if isinstance(exc, (ValidationError, json.JSONDecodeError)):
        return AppError(ErrorKind.SERIALIZATION, MSG_SERIALIZATION)
    return AppError(ErrorKind.UNKNOWN, str(exc) or MSG_UNEXPECTED)
