"""REST mirror of the realtime chat: one request runs one user turn."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import HTTPException, Request

from models.session_models import Message, Sender
from services.flow.orchestrator import Orchestrator


def rest_session_key(user_id: str) -> str:
	"""Return the session key REST turns for `user_id` share."""
	return f"rest:{user_id}"


async def post_chat(request: Request, text: str, user_id: str) -> Dict[str, Any]:
	"""Run one turn for `user_id` and return the reply plus the session history.

	The REST session expires once idle; `history` is the bounded in-memory window.
	"""
	text = (text or "").strip()
	user_id = (user_id or "").strip()
	if not text or not user_id:
		raise HTTPException(status_code=400, detail="Missing required fields")

	orchestrator: Orchestrator = request.app.state.orchestrator
	session_key = rest_session_key(user_id)
	state = await orchestrator.registry.open(session_key, user_id, expire_idle=True)
	reply = await orchestrator.handle_message(
		session_key, Message(content=text, sender=Sender.USER, user_id=user_id)
	)
	if reply is None:
		raise HTTPException(status_code=409, detail="Chat session was closed during the request")
	return {
		"message": reply.to_dict(),
		"history": [msg.to_dict() for msg in state.history],
	}
