"""Request and response models for the HTTP API."""

from typing import Any

from pydantic import BaseModel
from pydantic import Field as PydanticField

from mediaflow.models.edge import Edge
from mediaflow.models.node import Node, NodeKind, Position


class SessionCreate(BaseModel):
    """Request model for opening a new editing session."""

    name: str = "Untitled Workflow"


class NodeCreateRequest(BaseModel):
    """Request model for adding a node."""

    kind: NodeKind = PydanticField(alias="type")
    position: Position | None = None
    data: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}


class CopyRequest(BaseModel):
    """Request model for copying nodes. Defaults to the selected nodes."""

    node_ids: list[str] | None = PydanticField(default=None, alias="nodeIds")

    model_config = {"populate_by_name": True}


class PasteRequest(BaseModel):
    offset_x: float = PydanticField(default=50, alias="offsetX")
    offset_y: float = PydanticField(default=50, alias="offsetY")

    model_config = {"populate_by_name": True}


class SelectRequest(BaseModel):
    node_id: str | None = PydanticField(default=None, alias="nodeId")

    model_config = {"populate_by_name": True}


class GraphState(BaseModel):
    """Current graph of a session plus its history flags."""

    nodes: list[Node]
    edges: list[Edge]
    selected_node_id: str | None = PydanticField(default=None, alias="selectedNodeId")
    can_undo: bool = PydanticField(default=False, alias="canUndo")
    can_redo: bool = PydanticField(default=False, alias="canRedo")

    model_config = {"populate_by_name": True}


class PasteResponse(BaseModel):
    nodes: list[Node]
    edges: list[Edge]


class ExecutionState(BaseModel):
    """Observable execution state of a session."""

    is_executing: bool = PydanticField(alias="isExecuting")
    executing_node_ids: list[str] = PydanticField(alias="executingNodeIds")
    error: str | None = None

    model_config = {"populate_by_name": True}
