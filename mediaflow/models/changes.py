"""Pydantic models for incremental graph change-sets.

A change batch is what the canvas emits while the user edits: nodes dragged,
added, removed or (de)selected, and edges added, removed or (de)selected.
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Discriminator, Tag
from pydantic import Field as PydanticField

from mediaflow.models.edge import Edge
from mediaflow.models.node import Node, Position


def _get_change_discriminator(v: Any) -> str:
    """Discriminator function for change unions."""
    if isinstance(v, dict):
        return v.get("type", v.get("change_type", "add"))
    return getattr(v, "change_type", "add")


# =============================================================================
# Node changes
# =============================================================================


class NodeAddChange(BaseModel):
    change_type: Literal["add"] = PydanticField(default="add", alias="type")
    item: Node

    model_config = {"populate_by_name": True}


class NodeRemoveChange(BaseModel):
    change_type: Literal["remove"] = PydanticField(default="remove", alias="type")
    id: str

    model_config = {"populate_by_name": True}


class NodePositionChange(BaseModel):
    change_type: Literal["position"] = PydanticField(default="position", alias="type")
    id: str
    position: Position | None = None
    # True while the pointer is still down
    dragging: bool = False

    model_config = {"populate_by_name": True}


class NodeSelectChange(BaseModel):
    change_type: Literal["select"] = PydanticField(default="select", alias="type")
    id: str
    selected: bool

    model_config = {"populate_by_name": True}


NodeChange = Annotated[
    Annotated[NodeAddChange, Tag("add")]
    | Annotated[NodeRemoveChange, Tag("remove")]
    | Annotated[NodePositionChange, Tag("position")]
    | Annotated[NodeSelectChange, Tag("select")],
    Discriminator(_get_change_discriminator),
]


# =============================================================================
# Edge changes
# =============================================================================


class EdgeAddChange(BaseModel):
    change_type: Literal["add"] = PydanticField(default="add", alias="type")
    item: Edge

    model_config = {"populate_by_name": True}


class EdgeRemoveChange(BaseModel):
    change_type: Literal["remove"] = PydanticField(default="remove", alias="type")
    id: str

    model_config = {"populate_by_name": True}


class EdgeSelectChange(BaseModel):
    change_type: Literal["select"] = PydanticField(default="select", alias="type")
    id: str
    selected: bool

    model_config = {"populate_by_name": True}


EdgeChange = Annotated[
    Annotated[EdgeAddChange, Tag("add")]
    | Annotated[EdgeRemoveChange, Tag("remove")]
    | Annotated[EdgeSelectChange, Tag("select")],
    Discriminator(_get_change_discriminator),
]

STRUCTURAL_CHANGES = frozenset({"add", "remove"})
