"""Pydantic models for saved workflows."""

from pydantic import BaseModel
from pydantic import Field as PydanticField

from mediaflow.models.edge import Edge
from mediaflow.models.node import Node


class WorkflowGraph(BaseModel):
    """A ``(nodes, edges)`` pair as exchanged with storage and files."""

    nodes: list[Node] = PydanticField(default_factory=list)
    edges: list[Edge] = PydanticField(default_factory=list)


class SavedWorkflow(BaseModel):
    """A named workflow stored by the persistence layer."""

    id: str
    name: str
    nodes: list[Node] = PydanticField(default_factory=list)
    edges: list[Edge] = PydanticField(default_factory=list)
    created_at: str
    updated_at: str


class WorkflowSummary(BaseModel):
    """Lightweight workflow listing entry."""

    id: str
    name: str
    node_count: int
    edge_count: int
    updated_at: str


class WorkflowSave(BaseModel):
    """Request model for saving a workflow."""

    name: str
    workflow_id: str | None = None
