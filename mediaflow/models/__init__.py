"""Pydantic models for the mediaflow workflow engine."""

from mediaflow.models.changes import (
    EdgeAddChange,
    EdgeChange,
    EdgeRemoveChange,
    EdgeSelectChange,
    NodeAddChange,
    NodeChange,
    NodePositionChange,
    NodeRemoveChange,
    NodeSelectChange,
)
from mediaflow.models.edge import (
    COMPATIBLE_HANDLES,
    Connection,
    Edge,
    handle_order,
    handle_type,
    is_compatible,
)
from mediaflow.models.execution import ExecutionResult, Readiness, RunAllResult
from mediaflow.models.node import (
    EXECUTABLE_KINDS,
    NODE_DATA_MODELS,
    VIDEO_EDITOR_KINDS,
    VIDEO_GENERATION_KINDS,
    BaseNodeData,
    FileNodeData,
    ImageInputNodeData,
    Kling25TurboNodeData,
    Kling26NodeData,
    NanoBananaProNodeData,
    Node,
    NodeData,
    NodeKind,
    OutputNodeData,
    Position,
    PromptNodeData,
    Transition,
    VideoConcatNodeData,
    VideoNodeData,
    VideoSubtitlesNodeData,
    VideoTransitionNodeData,
    VideoTrimNodeData,
    Wan26NodeData,
    default_node_data,
    merge_node_data,
)
from mediaflow.models.workflow import (
    SavedWorkflow,
    WorkflowGraph,
    WorkflowSave,
    WorkflowSummary,
)

__all__ = [
    # Nodes
    "Node",
    "NodeKind",
    "NodeData",
    "Position",
    "BaseNodeData",
    "PromptNodeData",
    "ImageInputNodeData",
    "FileNodeData",
    "VideoNodeData",
    "OutputNodeData",
    "NanoBananaProNodeData",
    "Kling26NodeData",
    "Kling25TurboNodeData",
    "Wan26NodeData",
    "VideoConcatNodeData",
    "VideoSubtitlesNodeData",
    "VideoTrimNodeData",
    "VideoTransitionNodeData",
    "Transition",
    "NODE_DATA_MODELS",
    "EXECUTABLE_KINDS",
    "VIDEO_GENERATION_KINDS",
    "VIDEO_EDITOR_KINDS",
    "default_node_data",
    "merge_node_data",
    # Edges
    "Edge",
    "Connection",
    "COMPATIBLE_HANDLES",
    "handle_type",
    "handle_order",
    "is_compatible",
    # Changes
    "NodeChange",
    "NodeAddChange",
    "NodeRemoveChange",
    "NodePositionChange",
    "NodeSelectChange",
    "EdgeChange",
    "EdgeAddChange",
    "EdgeRemoveChange",
    "EdgeSelectChange",
    # Execution
    "ExecutionResult",
    "Readiness",
    "RunAllResult",
    # Workflows
    "WorkflowGraph",
    "SavedWorkflow",
    "WorkflowSummary",
    "WorkflowSave",
]
