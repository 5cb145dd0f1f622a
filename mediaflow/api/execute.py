"""Execution API routes."""

import logging
from dataclasses import asdict
from typing import Any

from fastapi import APIRouter, HTTPException

from mediaflow.api.deps import SessionManagerDep, get_session_or_404
from mediaflow.models.requests import ExecutionState
from mediaflow.services.session import WorkflowSession

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/sessions/{session_id}/nodes/{node_id}/can-execute")
async def can_execute(
    session_id: str, node_id: str, manager: SessionManagerDep
) -> dict[str, Any]:
    """Check whether a node's connected inputs are enough to run it."""
    session = get_session_or_404(manager, session_id)
    readiness = session.scheduler.can_execute(node_id)
    return {"canExecute": readiness.can_execute, "reason": readiness.reason}


@router.post("/sessions/{session_id}/nodes/{node_id}/execute")
async def execute_node(
    session_id: str, node_id: str, manager: SessionManagerDep
) -> dict[str, Any]:
    """Run one node and write its outputs into the graph."""
    session = get_session_or_404(manager, session_id)
    if session.store.get_node(node_id) is None:
        raise HTTPException(status_code=404, detail="Node not found")

    result = await session.scheduler.execute_node(node_id)
    return asdict(result)


@router.post("/sessions/{session_id}/execute-all")
async def execute_all(session_id: str, manager: SessionManagerDep) -> dict[str, Any]:
    """Run every executable node in dependency order.

    The request completes when the run finishes or is stopped.
    """
    session = get_session_or_404(manager, session_id)
    if session.scheduler.is_executing:
        raise HTTPException(status_code=409, detail="Workflow is already executing")

    result = await session.scheduler.execute_all()
    return {
        **result.summary(),
        "completedNodeIds": sorted(result.completed),
        "failedNodeIds": sorted(result.failed),
    }


@router.post("/sessions/{session_id}/stop", response_model=ExecutionState)
async def stop_execution(session_id: str, manager: SessionManagerDep) -> ExecutionState:
    """Stop a running workflow and clear every generating flag."""
    session = get_session_or_404(manager, session_id)
    session.scheduler.stop()
    return _execution_state(session)


@router.get("/sessions/{session_id}/execution", response_model=ExecutionState)
async def get_execution_state(
    session_id: str, manager: SessionManagerDep
) -> ExecutionState:
    return _execution_state(get_session_or_404(manager, session_id))


def _execution_state(session: WorkflowSession) -> ExecutionState:
    scheduler = session.scheduler
    return ExecutionState(
        is_executing=scheduler.is_executing,
        executing_node_ids=sorted(scheduler.executing_node_ids),
        error=scheduler.last_error,
    )
