"""Session API routes."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from mediaflow.api.deps import SessionManagerDep, get_session_or_404
from mediaflow.models.requests import SessionCreate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sessions", status_code=201)
async def create_session(body: SessionCreate, manager: SessionManagerDep) -> dict[str, Any]:
    """Open an empty editing session."""
    session = manager.create_session(name=body.name)
    return session.info()


@router.get("/sessions")
async def list_sessions(manager: SessionManagerDep) -> list[dict[str, Any]]:
    """List active sessions."""
    return manager.list_sessions()


@router.get("/sessions/{session_id}")
async def get_session(session_id: str, manager: SessionManagerDep) -> dict[str, Any]:
    """Get session details."""
    return get_session_or_404(manager, session_id).info()


@router.delete("/sessions/{session_id}")
async def delete_session(session_id: str, manager: SessionManagerDep) -> dict[str, bool]:
    """Close a session, stopping any run in progress."""
    closed = await manager.close_session(session_id)
    if not closed:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"deleted": True}
