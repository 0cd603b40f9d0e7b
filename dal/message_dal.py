"""Async Data Access Layer for the MESSAGE table.

Provides MessageDAL with the append-only operations the transcript needs,
built on `utils.database_init.AsyncDatabaseInitializer`.
"""

from __future__ import annotations

from typing import List, Sequence

from models.session_models import Message, Sender
from utils.database_init import AsyncDatabaseInitializer


class MessageDAL:
    """Data access layer for MESSAGE records.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).
    """

    _COLUMNS = ("id", "user_id", "sender", "content", "timestamp")
    _COLUMN_LIST = ", ".join(_COLUMNS)

    def __init__(self, db_initializer: AsyncDatabaseInitializer) -> None:
        self._db = db_initializer

    async def insert_message(self, message: Message) -> bool:
        """Insert a message. Returns False if this user already has a message with the same id."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"INSERT OR IGNORE INTO MESSAGE ({self._COLUMN_LIST}) VALUES (?, ?, ?, ?, ?)",
                (
                    message.id,
                    message.user_id,
                    message.sender.value,
                    message.content,
                    message.timestamp,
                ),
            )
            await conn.commit()
            return cur.rowcount > 0

    async def recent_messages(self, user_id: str, limit: int = 20) -> List[Message]:
        """Return up to `limit` most recent messages for `user_id`, oldest first.

        Args:
            user_id: Owner of the transcript.
            limit: Maximum number of messages to return.
        """
        async with self._db.connection() as conn:
            cur = await conn.execute(
                f"SELECT {self._COLUMN_LIST} FROM MESSAGE WHERE user_id = ? ORDER BY seq DESC LIMIT ?",
                (user_id, limit),
            )
            rows = await cur.fetchall()
        return [self._row_to_message(r) for r in reversed(rows)]

    async def delete_for_user(self, user_id: str) -> int:
        """Delete every message of `user_id`. Returns the number of rows removed."""
        async with self._db.connection() as conn:
            cur = await conn.execute("DELETE FROM MESSAGE WHERE user_id = ?", (user_id,))
            await conn.commit()
            return cur.rowcount

    @staticmethod
    def _row_to_message(row: Sequence[object]) -> Message:
        """Convert a DB row tuple into a Message."""
        return Message(
            id=str(row[0]),
            user_id=str(row[1]),
            sender=Sender(row[2]),
            content=str(row[3]),
            timestamp=str(row[4]),
        )
