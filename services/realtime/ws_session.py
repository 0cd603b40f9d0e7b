"""Dispatch realtime websocket events to the chat orchestrator."""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from fastapi import WebSocket

from models.session_models import Message
from services.flow.orchestrator import Orchestrator


class RealtimeSessionHandler:
	"""Route websocket events for a single chat connection."""

	def __init__(self, orchestrator: Orchestrator, session_key: str) -> None:
		self.orchestrator = orchestrator
		self.session_key = session_key
		self.user_id: Optional[str] = None

	async def handle(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		message_type = payload.get("type")
		try:
			if message_type == "identify":
				await self._identify(websocket, payload)
			elif message_type == "message":
				await self._message(websocket, payload)
			else:
				raise ValueError("Unsupported message type.")
		except Exception as exc:
			await self._send_error(websocket, str(exc))

	async def disconnect(self) -> None:
		"""Discard the in-memory session for this connection."""
		self.orchestrator.registry.close(self.session_key)

	async def _identify(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		user_id = str(payload.get("userId") or "").strip()
		if not user_id:
			raise ValueError("userId is required to identify.")
		self.user_id = user_id
		state = await self.orchestrator.registry.open(self.session_key, user_id)
		if state.history:
			await self._send(
				websocket,
				{"type": "history", "messages": [msg.to_dict() for msg in state.history]},
			)
		welcome = await self.orchestrator.welcome(self.session_key)
		if welcome is not None:
			await self._send(websocket, {"type": "message", "message": welcome.to_dict()})

	async def _message(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		if self.user_id is None or self.session_key not in self.orchestrator.registry:
			raise RuntimeError("Session not found; send identify first.")
		raw = payload.get("message")
		if not isinstance(raw, dict):
			raw = {"content": payload.get("content")}
		message = Message.from_dict({**raw, "sender": "user"}, user_id=self.user_id)
		if not message.content:
			raise ValueError("Message content is required.")
		reply = await self.orchestrator.handle_message(self.session_key, message)
		if reply is not None:
			await self._send(websocket, {"type": "message", "message": reply.to_dict()})

	async def _send_error(self, websocket: WebSocket, detail: str) -> None:
		await self._send(websocket, {"type": "error", "detail": detail})

	async def _send(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		await websocket.send_text(json.dumps(payload))
