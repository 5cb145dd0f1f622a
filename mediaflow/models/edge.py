"""Pydantic models for edges and handle compatibility."""

import re

from pydantic import BaseModel
from pydantic import Field as PydanticField

# Which target handle types each source handle type may feed
COMPATIBLE_HANDLES: dict[str, list[str]] = {
    "prompt": ["prompt"],
    "video": ["video", "media", "result"],
    "image": ["image", "media"],
    "result": ["result", "media"],
    "media": ["media", "video", "image", "result"],
    "audio": ["audio"],
}

# Named ports that carry a handle type other than their own name
HANDLE_ALIASES: dict[str, str] = {
    "firstFrame": "image",
    "lastFrame": "image",
    "videoIn": "video",
    "videoOut": "video",
}

_NUMERIC_SUFFIX = re.compile(r"(\d+)$")


def handle_type(handle: str | None) -> str:
    """Resolve a handle id such as ``video2`` or ``firstFrame`` to its type."""
    if not handle:
        return ""
    if handle in HANDLE_ALIASES:
        return HANDLE_ALIASES[handle]
    return _NUMERIC_SUFFIX.sub("", handle)


def handle_order(handle: str | None) -> int:
    """Sort key for same-prefix handles (``video1`` < ``video2`` < ...)."""
    if not handle:
        return 0
    match = _NUMERIC_SUFFIX.search(handle)
    if match:
        return int(match.group(1))
    if handle == "videoOut":
        return 1
    return 0


def is_compatible(source_handle: str | None, target_handle: str | None) -> bool:
    """Check whether a source handle may connect to a target handle."""
    source = handle_type(source_handle)
    target = handle_type(target_handle)
    return target in COMPATIBLE_HANDLES.get(source, [source])


class Connection(BaseModel):
    """A candidate edge proposed by the user, before validation."""

    source: str
    target: str
    source_handle: str | None = PydanticField(default=None, alias="sourceHandle")
    target_handle: str | None = PydanticField(default=None, alias="targetHandle")

    model_config = {"populate_by_name": True}


class Edge(BaseModel):
    """A typed connection from one node's output handle to another's input."""

    id: str
    source: str
    target: str
    source_handle: str | None = PydanticField(default=None, alias="sourceHandle")
    target_handle: str | None = PydanticField(default=None, alias="targetHandle")
    selected: bool = False

    model_config = {"populate_by_name": True, "frozen": True}

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id
