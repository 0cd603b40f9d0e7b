"""FastAPI routes for REST chat and transcript history."""

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from controllers.chat_controller import post_chat
from controllers.history_controller import delete_history, get_history

router = APIRouter()


class ChatPayload(BaseModel):
	message: str = ""
	user_id: str = Field(default="", alias="userId")


@router.post("/chat")
async def post_chat_route(request: Request, payload: ChatPayload):
	try:
		return await post_chat(request, payload.message, payload.user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/history")
async def get_history_route(request: Request, user_id: str = Query(default="", alias="userId")):
	try:
		return await get_history(request, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/history")
async def delete_history_route(request: Request, user_id: str = Query(default="", alias="userId")):
	try:
		return await delete_history(request, user_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
