"""Registry of live chat sessions keyed by connection."""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional

from models.session_models import Message, Session
from services.transcript_store import TranscriptStore


class SessionNotFound(KeyError):
	"""No live session exists for the given session key."""


class SessionRegistry:
	"""Own the live sessions, hydrate them from the transcript, and forward appends to it.

	Sessions opened with `expire_idle=True` have no connection to close them;
	they are evicted after `idle_timeout` seconds without activity, and at most
	`max_idle_sessions` of them are kept (least recently active go first).
	In-memory history is a cache bounded to `history_limit` messages.
	"""

	def __init__(
		self,
		store: TranscriptStore,
		history_limit: int = 20,
		*,
		idle_timeout: float = 1800.0,
		max_idle_sessions: int = 1000,
		clock: Callable[[], float] = time.monotonic,
	) -> None:
		self.store = store
		self.history_limit = history_limit
		self.idle_timeout = idle_timeout
		self.max_idle_sessions = max_idle_sessions
		self._clock = clock
		self._sessions: Dict[str, Session] = {}

	async def open(self, session_key: str, user_id: str, *, expire_idle: bool = False) -> Session:
		"""Return the session for `session_key`, creating and hydrating it if needed.

		Re-opening a key that is already live returns the same session. A key
		re-identified with a different user gets a fresh session.
		"""
		self._evict_idle(keep=session_key)
		state = self._sessions.get(session_key)
		if state is not None and state.user_id == user_id:
			async with state.lock:
				state.last_active = self._clock()
				return state
		if state is not None:
			logging.info("Session %s switched user %s -> %s", session_key, state.user_id, user_id)
			self.close(session_key)

		state = Session(
			session_key=session_key,
			user_id=user_id,
			expire_idle=expire_idle,
			last_active=self._clock(),
		)
		self._sessions[session_key] = state
		self._evict_idle(keep=session_key)
		# Hold the turn lock so queued messages wait for the transcript to load.
		async with state.lock:
			loaded = await self.store.history(user_id, self.history_limit)
			known = {msg.id for msg in loaded}
			state.history[:] = loaded + [msg for msg in state.history if msg.id not in known]
			self._trim(state)
		logging.info("Opened session %s for user %s with %s messages", session_key, user_id, len(loaded))
		return state

	def get(self, session_key: str) -> Session:
		"""Return a session or raise SessionNotFound if missing."""
		state = self._sessions.get(session_key)
		if state is None:
			raise SessionNotFound(f"Session {session_key} not found")
		return state

	def close(self, session_key: str) -> Optional[Session]:
		"""Discard the in-memory session; the durable transcript is left untouched."""
		state = self._sessions.pop(session_key, None)
		if state is None:
			return None
		state.closed = True
		logging.info("Closed session %s for user %s", session_key, state.user_id)
		return state

	async def append(self, session_key: str, message: Message) -> Session:
		"""Add `message` to the session history and forward it to the transcript store."""
		state = self.get(session_key)
		state.history.append(message)
		self._trim(state)
		state.last_active = self._clock()
		if not await self.store.save(message) and self.store.enabled:
			logging.warning("Message %s kept in memory only for session %s", message.id, session_key)
		return state

	def sessions_for_user(self, user_id: str) -> List[Session]:
		"""Return every live session that belongs to `user_id`."""
		return [state for state in self._sessions.values() if state.user_id == user_id]

	def _trim(self, state: Session) -> None:
		excess = len(state.history) - self.history_limit
		if excess > 0:
			del state.history[:excess]

	def _evict_idle(self, keep: str) -> None:
		now = self._clock()
		# Sessions mid-turn hold their lock and are never evicted.
		candidates = [
			state
			for state in self._sessions.values()
			if state.expire_idle and state.session_key != keep and not state.lock.locked()
		]
		for state in candidates:
			if now - state.last_active > self.idle_timeout:
				logging.info("Evicting idle session %s", state.session_key)
				self.close(state.session_key)

		survivors = sorted((s for s in candidates if not s.closed), key=lambda s: s.last_active)
		kept = sum(1 for s in self._sessions.values() if s.expire_idle)
		for state in survivors:
			if kept <= self.max_idle_sessions:
				break
			logging.info("Evicting least recently active session %s", state.session_key)
			self.close(state.session_key)
			kept -= 1

	def __contains__(self, session_key: object) -> bool:
		return session_key in self._sessions

	def __len__(self) -> int:
		return len(self._sessions)
