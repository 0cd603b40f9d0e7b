from typing import Any, Dict, List

from fastapi import HTTPException, Request

from services.flow.orchestrator import Orchestrator


def _require_user_id(user_id: str) -> str:
    user_id = (user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=400, detail="Missing userId parameter")
    return user_id


async def get_history(request: Request, user_id: str) -> List[Dict[str, Any]]:
    """Return the stored transcript of `user_id`, oldest message first.

    Args:
        request: FastAPI Request (used to access the orchestrator on app.state).
        user_id: Owner of the transcript.

    Returns:
        Up to the configured history limit of messages in wire form.
    """
    user_id = _require_user_id(user_id)
    orchestrator: Orchestrator = request.app.state.orchestrator
    registry = orchestrator.registry
    messages = await registry.store.history(user_id, registry.history_limit)
    return [msg.to_dict() for msg in messages]


async def delete_history(request: Request, user_id: str) -> Dict[str, Any]:
    """Delete the transcript of `user_id` and reset any of their live flows.

    Raises:
        HTTPException(500) if the transcript store could not delete the history.
    """
    user_id = _require_user_id(user_id)
    orchestrator: Orchestrator = request.app.state.orchestrator
    if not await orchestrator.clear_history(user_id):
        raise HTTPException(status_code=500, detail="Failed to clear history")
    return {"message": "History cleared successfully"}
