"""Input extraction - Read a node's effective inputs from its incoming edges.

All extractors walk inputs in edge order and the first match wins. Where both
a handle match and a node-kind match are possible, handle matches are
preferred.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from mediaflow.models.edge import Edge, handle_order, handle_type
from mediaflow.models.node import (
    VIDEO_EDITOR_KINDS,
    VIDEO_GENERATION_KINDS,
    BaseNodeData,
    Node,
    NodeKind,
)

IMAGE_HANDLES = frozenset({"image", "result"})
VIDEO_HANDLES = frozenset({"video", "result"})

IMAGE_SOURCE_KINDS = frozenset(
    {NodeKind.IMAGE_INPUT, NodeKind.FILE, NodeKind.NANO_BANANA_PRO}
)
VIDEO_SOURCE_KINDS = VIDEO_GENERATION_KINDS | VIDEO_EDITOR_KINDS | {NodeKind.VIDEO}


@dataclass(frozen=True)
class ConnectedInput:
    """One upstream node as seen from the node it feeds."""

    node_id: str
    kind: NodeKind
    source_handle: str
    target_handle: str
    data: BaseNodeData

    @property
    def source_type(self) -> str:
        return handle_type(self.source_handle)

    @property
    def image_url(self) -> str | None:
        return getattr(self.data, "image_url", None)

    @property
    def video_url(self) -> str | None:
        return getattr(self.data, "video_url", None)

    @property
    def aspect_ratio(self) -> str | None:
        return self.data.aspect_ratio


def connected_inputs(
    node_id: str, nodes: Sequence[Node], edges: Sequence[Edge]
) -> list[ConnectedInput]:
    """List the sources of every edge landing on ``node_id``, in edge order."""
    by_id = {node.id: node for node in nodes}
    inputs: list[ConnectedInput] = []
    for edge in edges:
        if edge.target != node_id:
            continue
        source = by_id.get(edge.source)
        if source is None:
            continue
        inputs.append(
            ConnectedInput(
                node_id=source.id,
                kind=source.kind,
                source_handle=edge.source_handle or "default",
                target_handle=edge.target_handle or "default",
                data=source.data,
            )
        )
    return inputs


def extract_prompt(inputs: Sequence[ConnectedInput]) -> str | None:
    """Prompt text from the first prompt handle or prompt node."""
    for item in inputs:
        if item.source_type == "prompt" or item.kind == NodeKind.PROMPT:
            return getattr(item.data, "prompt", None) or None
    return None


def _carries(item: ConnectedInput, field: str) -> bool:
    return field in type(item.data).model_fields


def extract_image_url(inputs: Sequence[ConnectedInput]) -> str | None:
    """Image reference from the first image/result handle, else image-bearing node."""
    candidates = [item for item in inputs if _carries(item, "image_url")]
    for item in candidates:
        if item.source_type in IMAGE_HANDLES:
            return item.image_url
    for item in candidates:
        if item.kind in IMAGE_SOURCE_KINDS:
            return item.image_url
    return None


def is_video_source(item: ConnectedInput) -> bool:
    if item.source_type == "video":
        return True
    if item.kind in VIDEO_SOURCE_KINDS:
        return True
    return item.kind == NodeKind.FILE and getattr(item.data, "file_type", None) == "video"


def extract_video_url(inputs: Sequence[ConnectedInput]) -> str | None:
    """Video reference from the first video/result handle, else video-bearing node."""
    candidates = [item for item in inputs if _carries(item, "video_url")]
    for item in candidates:
        if item.source_type in VIDEO_HANDLES:
            return item.video_url
    for item in candidates:
        if is_video_source(item):
            return item.video_url
    return None


def video_inputs(inputs: Sequence[ConnectedInput]) -> list[ConnectedInput]:
    """Video-bearing inputs ordered by target handle (``video1`` < ``video2``).

    The sort is stable, so inputs without a numbered handle keep edge order.
    """
    videos = [item for item in inputs if is_video_source(item)]
    return sorted(videos, key=lambda item: handle_order(item.target_handle))


def extract_frame_images(
    inputs: Sequence[ConnectedInput],
) -> tuple[str | None, str | None]:
    """First and last frame images for frame-conditioned video generation."""
    first_frame: str | None = None
    last_frame: str | None = None

    for item in inputs:
        if (
            item.target_handle in ("firstFrame", "image")
            or (item.source_type == "image" and item.target_handle != "lastFrame")
        ):
            first_frame = item.image_url
            break

    for item in inputs:
        if item.target_handle == "lastFrame":
            last_frame = item.image_url
            break

    return first_frame, last_frame


def first_aspect_ratio(inputs: Sequence[ConnectedInput]) -> str | None:
    """Aspect ratio of the first input, if it has one."""
    if inputs and inputs[0].aspect_ratio:
        return inputs[0].aspect_ratio
    return None
