"""WebSocket endpoint for realtime chat."""

from __future__ import annotations

import json
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.flow.orchestrator import Orchestrator
from services.realtime.ws_session import RealtimeSessionHandler

router = APIRouter()


def _require_orchestrator(websocket: WebSocket) -> Orchestrator:
	orchestrator = getattr(websocket.app.state, "orchestrator", None)
	if orchestrator is None:
		raise HTTPException(status_code=500, detail="Chat orchestrator unavailable")
	return orchestrator


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, orchestrator: Orchestrator = Depends(_require_orchestrator)):
	"""Handle identify and message events for one chat connection."""
	await websocket.accept()
	handler = RealtimeSessionHandler(orchestrator, uuid4().hex)
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				break
			try:
				payload = json.loads(raw)
			except json.JSONDecodeError:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			if not isinstance(payload, dict):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be a JSON object"}))
				continue
			await handler.handle(websocket, payload)
	finally:
		await handler.disconnect()
