"""Saved workflow API routes."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from mediaflow.api.deps import SessionManagerDep, get_session_or_404
from mediaflow.db.workflow_store import workflow_store
from mediaflow.models.workflow import SavedWorkflow, WorkflowSave, WorkflowSummary

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/sessions/{session_id}/save", response_model=SavedWorkflow)
async def save_session_workflow(
    session_id: str, body: WorkflowSave, manager: SessionManagerDep
) -> SavedWorkflow:
    """Save a session's graph under a name.

    Saving again with the returned id overwrites the same workflow.
    """
    session = get_session_or_404(manager, session_id)
    session.store.flush_pending_history()

    saved = await workflow_store.save_workflow(
        name=body.name,
        nodes=session.store.nodes,
        edges=session.store.edges,
        workflow_id=body.workflow_id or session.workflow_id,
    )
    session.workflow_id = saved.id
    session.tracker.workflow_id = saved.id
    session.name = saved.name
    logger.info(f"Saved workflow {saved.id} from session {session_id}")
    return saved


@router.get("/workflows", response_model=list[WorkflowSummary])
async def list_workflows() -> list[WorkflowSummary]:
    return await workflow_store.list_workflows()


@router.get("/workflows/{workflow_id}", response_model=SavedWorkflow)
async def get_workflow(workflow_id: str) -> SavedWorkflow:
    workflow = await workflow_store.get_workflow(workflow_id)
    if not workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return workflow


@router.delete("/workflows/{workflow_id}")
async def delete_workflow(workflow_id: str) -> dict[str, bool]:
    deleted = await workflow_store.delete_workflow(workflow_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return {"deleted": True}


@router.post("/workflows/{workflow_id}/open", status_code=201)
async def open_workflow(workflow_id: str, manager: SessionManagerDep) -> dict[str, Any]:
    """Open a saved workflow in a new editing session."""
    workflow = await workflow_store.get_workflow(workflow_id)
    if not workflow:
        raise HTTPException(status_code=404, detail="Workflow not found")

    session = manager.create_session(workflow_id=workflow.id, name=workflow.name)
    session.store.load(workflow.nodes, workflow.edges)
    return session.info()
