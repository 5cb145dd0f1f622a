"""Graph editing API routes."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from mediaflow.api.deps import SessionManagerDep, get_session_or_404, graph_state
from mediaflow.models.changes import EdgeChange, NodeChange
from mediaflow.models.edge import Connection
from mediaflow.models.node import Node, default_node_data, merge_node_data
from mediaflow.models.requests import (
    CopyRequest,
    GraphState,
    NodeCreateRequest,
    PasteRequest,
    PasteResponse,
    SelectRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/sessions/{session_id}/graph", response_model=GraphState)
async def get_graph(session_id: str, manager: SessionManagerDep) -> GraphState:
    """Get the current nodes and edges of a session."""
    return graph_state(get_session_or_404(manager, session_id))


# ==================== Nodes ====================


@router.post("/sessions/{session_id}/nodes", response_model=Node, status_code=201)
async def add_node(
    session_id: str, body: NodeCreateRequest, manager: SessionManagerDep
) -> Node:
    """Add a node with default data for its kind, merged with ``data``."""
    session = get_session_or_404(manager, session_id)
    data = default_node_data(body.kind)
    if body.data:
        try:
            data = merge_node_data(data, body.data)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
    return session.store.add_node(body.kind, position=body.position, data=data)


@router.delete("/sessions/{session_id}/nodes/{node_id}")
async def delete_node(
    session_id: str, node_id: str, manager: SessionManagerDep
) -> dict[str, bool]:
    """Delete a node and every edge touching it."""
    session = get_session_or_404(manager, session_id)
    if not session.store.delete_node(node_id):
        raise HTTPException(status_code=404, detail="Node not found")
    return {"deleted": True}


@router.patch("/sessions/{session_id}/nodes/{node_id}/data", response_model=Node)
async def update_node_data(
    session_id: str,
    node_id: str,
    updates: dict[str, Any],
    manager: SessionManagerDep,
) -> Node:
    """Shallow-merge fields into a node's data."""
    session = get_session_or_404(manager, session_id)
    try:
        node = session.store.update_node_data(node_id, updates)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if node is None:
        raise HTTPException(status_code=404, detail="Node not found")
    return node


@router.post("/sessions/{session_id}/node-changes", response_model=GraphState)
async def apply_node_changes(
    session_id: str, changes: list[NodeChange], manager: SessionManagerDep
) -> GraphState:
    """Apply a batch of add/remove/position/select node changes."""
    session = get_session_or_404(manager, session_id)
    session.store.apply_node_changes(changes)
    return graph_state(session)


# ==================== Edges ====================


@router.post("/sessions/{session_id}/edge-changes", response_model=GraphState)
async def apply_edge_changes(
    session_id: str, changes: list[EdgeChange], manager: SessionManagerDep
) -> GraphState:
    """Apply a batch of add/remove/select edge changes."""
    session = get_session_or_404(manager, session_id)
    session.store.apply_edge_changes(changes)
    return graph_state(session)


@router.post("/sessions/{session_id}/connect", response_model=GraphState)
async def connect(
    session_id: str, connection: Connection, manager: SessionManagerDep
) -> GraphState:
    """Connect two handles if their types are compatible."""
    session = get_session_or_404(manager, session_id)
    if session.store.connect(connection) is None:
        raise HTTPException(status_code=400, detail="Connection rejected")
    return graph_state(session)


# ==================== History ====================


@router.post("/sessions/{session_id}/undo", response_model=GraphState)
async def undo(session_id: str, manager: SessionManagerDep) -> GraphState:
    session = get_session_or_404(manager, session_id)
    session.store.undo()
    return graph_state(session)


@router.post("/sessions/{session_id}/redo", response_model=GraphState)
async def redo(session_id: str, manager: SessionManagerDep) -> GraphState:
    session = get_session_or_404(manager, session_id)
    session.store.redo()
    return graph_state(session)


# ==================== Clipboard & selection ====================


@router.post("/sessions/{session_id}/copy")
async def copy_nodes(
    session_id: str, body: CopyRequest, manager: SessionManagerDep
) -> dict[str, bool]:
    """Copy the given nodes, or the currently selected ones."""
    session = get_session_or_404(manager, session_id)
    node_ids = body.node_ids
    if node_ids is None:
        node_ids = session.store.selected_node_ids()
    return {"copied": session.clipboard.copy(node_ids)}


@router.post("/sessions/{session_id}/paste", response_model=PasteResponse)
async def paste_nodes(
    session_id: str, body: PasteRequest, manager: SessionManagerDep
) -> PasteResponse:
    session = get_session_or_404(manager, session_id)
    nodes, edges = session.clipboard.paste((body.offset_x, body.offset_y))
    return PasteResponse(nodes=nodes, edges=edges)


@router.post("/sessions/{session_id}/select", response_model=GraphState)
async def select_node(
    session_id: str, body: SelectRequest, manager: SessionManagerDep
) -> GraphState:
    """Select a node, or clear the selection when ``nodeId`` is null."""
    session = get_session_or_404(manager, session_id)
    if body.node_id is None:
        session.store.clear_selection()
    elif session.store.get_node(body.node_id) is None:
        raise HTTPException(status_code=404, detail="Node not found")
    else:
        session.store.select_node(body.node_id)
    return graph_state(session)


@router.post("/sessions/{session_id}/select-all", response_model=GraphState)
async def select_all(session_id: str, manager: SessionManagerDep) -> GraphState:
    session = get_session_or_404(manager, session_id)
    session.store.select_all()
    return graph_state(session)


@router.post("/sessions/{session_id}/reset", response_model=GraphState)
async def reset_graph(session_id: str, manager: SessionManagerDep) -> GraphState:
    """Start a new, empty workflow in this session."""
    session = get_session_or_404(manager, session_id)
    if session.scheduler.is_executing:
        raise HTTPException(status_code=409, detail="Workflow is executing")
    session.store.reset()
    session.workflow_id = None
    return graph_state(session)
