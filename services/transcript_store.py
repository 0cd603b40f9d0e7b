"""Best-effort durable transcript of chat messages."""

from __future__ import annotations

import logging
from typing import List, Optional

import aiosqlite

from dal.message_dal import MessageDAL
from models.session_models import Message

_STORE_ERRORS = (aiosqlite.Error, OSError, RuntimeError)


class TranscriptStore:
    """Persist and load chat messages keyed by user.

    Failures are logged and reported through return values; callers keep the
    conversation going in memory. A store built without a DAL is disabled and
    behaves as an always-empty transcript.
    """

    def __init__(self, dal: Optional[MessageDAL]) -> None:
        self._dal = dal

    @property
    def enabled(self) -> bool:
        return self._dal is not None

    async def save(self, message: Message) -> bool:
        """Persist `message`. Returns True when it was written."""
        if self._dal is None:
            return False
        try:
            inserted = await self._dal.insert_message(message)
        except _STORE_ERRORS as exc:
            logging.error("Failed to save message %s for user %s: %s", message.id, message.user_id, exc)
            return False
        if not inserted:
            logging.warning("Message %s already stored for user %s; not saved again", message.id, message.user_id)
            return False
        return True

    async def history(self, user_id: str, limit: int = 20) -> List[Message]:
        """Return up to `limit` recent messages for `user_id`, oldest first."""
        if self._dal is None:
            return []
        try:
            return await self._dal.recent_messages(user_id, limit)
        except _STORE_ERRORS as exc:
            logging.error("Failed to load history for user %s: %s", user_id, exc)
            return []

    async def delete_all(self, user_id: str) -> bool:
        """Delete the transcript of `user_id`. Returns True on success."""
        if self._dal is None:
            logging.warning("Transcript store disabled; cannot delete history for %s", user_id)
            return False
        try:
            removed = await self._dal.delete_for_user(user_id)
        except _STORE_ERRORS as exc:
            logging.error("Failed to delete history for user %s: %s", user_id, exc)
            return False
        logging.info("Deleted %s messages for user %s", removed, user_id)
        return True
