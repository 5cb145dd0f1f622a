"""Shared route dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException

from mediaflow.models.requests import GraphState
from mediaflow.services.session import SessionManager, WorkflowSession, get_session_manager

SessionManagerDep = Annotated[SessionManager, Depends(get_session_manager)]


def get_session_or_404(manager: SessionManager, session_id: str) -> WorkflowSession:
    session = manager.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def graph_state(session: WorkflowSession) -> GraphState:
    store = session.store
    return GraphState(
        nodes=store.nodes,
        edges=store.edges,
        selected_node_id=store.selected_node_id,
        can_undo=store.can_undo,
        can_redo=store.can_redo,
    )
