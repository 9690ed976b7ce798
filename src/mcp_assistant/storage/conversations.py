"""sqlite-backed conversation history."""

from __future__ import annotations

import asyncio
import sqlite3
import threading
import time
import uuid
from pathlib import Path

import structlog

from mcp_assistant.storage.models import ConversationItem

logger = structlog.get_logger()

_SCHEMA = """
CREATE TABLE IF NOT EXISTS conversation (
    id TEXT NOT NULL PRIMARY KEY,
    question TEXT NOT NULL,
    answer TEXT NOT NULL,
    timestamp INTEGER NOT NULL,
    is_favorite INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_conversation_timestamp
ON conversation(timestamp);
"""


def _row_to_item(row: sqlite3.Row) -> ConversationItem:
    return ConversationItem(
        id=row["id"],
        question=row["question"],
        answer=row["answer"],
        timestamp=row["timestamp"],
        is_favorite=row["is_favorite"] == 1,
    )


class ConversationRepository:
    """Stores question/answer pairs with favorite flags.

    Queries run in a worker thread; a lock serializes access to the single
    sqlite connection. Writes are last-write-wins.
    """

    def __init__(self, path: str | Path):
        self._path = str(path)
        if self._path != ":memory:":
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._lock = threading.Lock()
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def _execute(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()
            self._conn.commit()
            return rows

    async def append(self, question: str, answer: str) -> str:
        """Insert a new conversation and return its id."""
        conversation_id = str(uuid.uuid4())
        timestamp = int(time.time() * 1000)
        await asyncio.to_thread(
            self._execute,
            "INSERT INTO conversation (id, question, answer, timestamp, is_favorite)"
            " VALUES (?, ?, ?, ?, 0)",
            (conversation_id, question, answer, timestamp),
        )
        logger.info(
            "conversation_inserted",
            conversation_id=conversation_id,
            question=question[:50],
            answer_length=len(answer),
        )
        return conversation_id

    async def get(self, conversation_id: str) -> ConversationItem | None:
        rows = await asyncio.to_thread(
            self._execute,
            "SELECT * FROM conversation WHERE id = ?",
            (conversation_id,),
        )
        return _row_to_item(rows[0]) if rows else None

    async def list(self, favorites_only: bool = False) -> list[ConversationItem]:
        """List conversations, newest first."""
        sql = "SELECT * FROM conversation"
        if favorites_only:
            sql += " WHERE is_favorite = 1"
        sql += " ORDER BY timestamp DESC, rowid DESC"
        rows = await asyncio.to_thread(self._execute, sql)
        return [_row_to_item(row) for row in rows]

    async def set_favorite(self, conversation_id: str, is_favorite: bool) -> None:
        await asyncio.to_thread(
            self._execute,
            "UPDATE conversation SET is_favorite = ? WHERE id = ?",
            (1 if is_favorite else 0, conversation_id),
        )
        logger.debug(
            "conversation_favorite_updated",
            conversation_id=conversation_id,
            is_favorite=is_favorite,
        )

    async def delete(self, conversation_id: str) -> None:
        await asyncio.to_thread(
            self._execute,
            "DELETE FROM conversation WHERE id = ?",
            (conversation_id,),
        )
        logger.debug("conversation_deleted", conversation_id=conversation_id)

    async def delete_all(self) -> None:
        await asyncio.to_thread(self._execute, "DELETE FROM conversation")
        logger.info("conversations_cleared")

    def close(self) -> None:
        with self._lock:
            self._conn.close()
