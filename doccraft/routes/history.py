from __future__ import annotations

from fastapi import APIRouter, HTTPException

from doccraft.application import get_workflow_service

router = APIRouter(prefix="/history", tags=["history"])


@router.get("")
async def list_sessions() -> dict:
    sessions = get_workflow_service().list_sessions()
    return {"items": [session.model_dump() for session in sessions]}


@router.delete("/{session_id}")
async def remove_session(session_id: str) -> dict:
    try:
        get_workflow_service().remove_session(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="session not found") from exc
    return {"session_id": session_id, "removed": True}


@router.delete("")
async def clear_sessions() -> dict:
    get_workflow_service().clear_sessions()
    return {"items": []}
