"""API key storage."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()


class SecretStore(Protocol):
    """Async storage for a single secret (the API key)."""

    async def get_secret(self) -> str | None: ...

    async def set_secret(self, value: str) -> None: ...

    async def clear_secret(self) -> None: ...

    async def has_secret(self) -> bool: ...


class FileSecretStore:
    """Keeps the API key in a file readable only by the current user.

    File access runs in a worker thread.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)

    def _read(self) -> str | None:
        if not self._path.exists():
            return None
        value = self._path.read_text(encoding="utf-8").strip()
        return value or None

    def _write(self, value: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(value)

    async def get_secret(self) -> str | None:
        return await asyncio.to_thread(self._read)

    async def set_secret(self, value: str) -> None:
        await asyncio.to_thread(self._write, value)
        logger.info("api_key_saved", path=str(self._path))

    async def clear_secret(self) -> None:
        await asyncio.to_thread(self._path.unlink, missing_ok=True)
        logger.info("api_key_cleared", path=str(self._path))

    async def has_secret(self) -> bool:
        return await self.get_secret() is not None
