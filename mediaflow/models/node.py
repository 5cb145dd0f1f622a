"""Pydantic models for workflow nodes.

Each node kind has its own data model. The set of kinds is closed: a node's
``kind`` selects exactly one data model from ``NODE_DATA_MODELS``.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, model_validator
from pydantic import Field as PydanticField

# =============================================================================
# Enums
# =============================================================================


class NodeKind(str, Enum):
    """All node kinds known to the workflow engine."""

    PROMPT = "prompt"
    IMAGE_INPUT = "imageInput"
    FILE = "file"
    VIDEO = "video"
    OUTPUT = "output"
    NANO_BANANA_PRO = "nanoBananaPro"
    KLING_26 = "kling26"
    KLING_25_TURBO = "kling25Turbo"
    WAN_26 = "wan26"
    VIDEO_CONCAT = "videoConcat"
    VIDEO_SUBTITLES = "videoSubtitles"
    VIDEO_TRIM = "videoTrim"
    VIDEO_TRANSITION = "videoTransition"


EXECUTABLE_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.NANO_BANANA_PRO,
        NodeKind.KLING_26,
        NodeKind.KLING_25_TURBO,
        NodeKind.WAN_26,
        NodeKind.VIDEO_CONCAT,
        NodeKind.VIDEO_SUBTITLES,
        NodeKind.VIDEO_TRIM,
        NodeKind.VIDEO_TRANSITION,
    }
)

VIDEO_GENERATION_KINDS: frozenset[NodeKind] = frozenset(
    {NodeKind.KLING_26, NodeKind.KLING_25_TURBO, NodeKind.WAN_26}
)

VIDEO_EDITOR_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.VIDEO_CONCAT,
        NodeKind.VIDEO_SUBTITLES,
        NodeKind.VIDEO_TRIM,
        NodeKind.VIDEO_TRANSITION,
    }
)

TransitionType = Literal[
    "none",
    "fade",
    "crossfade",
    "slideLeft",
    "slideRight",
    "slideUp",
    "slideDown",
    "zoomIn",
    "zoomOut",
    "wipeLeft",
    "wipeRight",
    "blur",
    "glitch",
    "flash",
]

EditorAspectRatio = Literal["16:9", "9:16", "1:1", "4:5"]


# =============================================================================
# Node data variants
# =============================================================================


class BaseNodeData(BaseModel):
    """Fields shared by every node data variant."""

    label: str = ""
    is_generating: bool = PydanticField(default=False, alias="isGenerating")
    aspect_ratio: str | None = PydanticField(default=None, alias="aspectRatio")

    model_config = {"populate_by_name": True, "frozen": True}


class PromptNodeData(BaseNodeData):
    prompt: str = ""


class ImageInputNodeData(BaseNodeData):
    image_url: str | None = PydanticField(default=None, alias="imageUrl")


class FileNodeData(BaseNodeData):
    file_type: Literal["image", "video"] | None = PydanticField(
        default=None, alias="fileType"
    )
    image_url: str | None = PydanticField(default=None, alias="imageUrl")
    video_url: str | None = PydanticField(default=None, alias="videoUrl")
    file_name: str | None = PydanticField(default=None, alias="fileName")


class VideoNodeData(BaseNodeData):
    video_url: str | None = PydanticField(default=None, alias="videoUrl")
    file_name: str | None = PydanticField(default=None, alias="fileName")


class OutputNodeData(BaseNodeData):
    output_url: str | None = PydanticField(default=None, alias="outputUrl")


class NanoBananaProNodeData(BaseNodeData):
    """Image generation node."""

    prompt: str | None = None
    image_url: str | None = PydanticField(default=None, alias="imageUrl")
    mode: Literal["text-to-image", "image-edit"] | None = None
    resolution: Literal["1K", "2K", "4K"] | None = None
    output_format: Literal["png", "jpeg", "webp"] | None = PydanticField(
        default=None, alias="outputFormat"
    )
    num_images: int | None = PydanticField(default=None, alias="numImages")
    enable_web_search: bool | None = PydanticField(
        default=None, alias="enableWebSearch"
    )
    enable_safety_checker: bool | None = PydanticField(
        default=None, alias="enableSafetyChecker"
    )
    # Number of reference image inputs shown on the node (5-14)
    input_count: int | None = PydanticField(default=None, alias="inputCount")


class VideoGenerationNodeData(BaseNodeData):
    """Fields common to the video generation models."""

    prompt: str | None = None
    video_url: str | None = PydanticField(default=None, alias="videoUrl")
    duration: str | None = None
    cfg_scale: float | None = PydanticField(default=None, alias="cfgScale")
    negative_prompt: str | None = PydanticField(default=None, alias="negativePrompt")
    seed: int | None = None


class Kling26NodeData(VideoGenerationNodeData):
    mode: Literal["text-to-video", "image-to-video"] | None = None
    audio_enabled: bool | None = PydanticField(default=None, alias="audioEnabled")


class Kling25TurboNodeData(VideoGenerationNodeData):
    mode: Literal["text-to-video", "image-to-video"] | None = None
    special_fx: str | None = PydanticField(default=None, alias="specialFx")


class Wan26NodeData(VideoGenerationNodeData):
    mode: Literal["text-to-video", "image-to-video", "reference-to-video"] | None = None
    resolution: Literal["720p", "1080p"] | None = None
    enhance_enabled: bool | None = PydanticField(default=None, alias="enhanceEnabled")


class Transition(BaseModel):
    """A transition between two consecutive clips."""

    type: TransitionType = "none"
    duration: float = 0

    model_config = {"frozen": True}


class VideoConcatNodeData(BaseNodeData):
    video_url: str | None = PydanticField(default=None, alias="videoUrl")
    # One entry per pair of consecutive clips
    transitions: list[Transition] | None = None
    input_count: int | None = PydanticField(default=None, alias="inputCount")


class VideoSubtitlesNodeData(BaseNodeData):
    video_url: str | None = PydanticField(default=None, alias="videoUrl")
    style: Literal["classic", "tiktok", "highlight", "minimal", "neon", "karaoke"] | None = None
    position: Literal["top", "center", "bottom"] | None = None
    auto_generate: bool | None = PydanticField(default=None, alias="autoGenerate")
    transcript: str | None = None


class VideoTrimNodeData(BaseNodeData):
    video_url: str | None = PydanticField(default=None, alias="videoUrl")
    start_time: float | None = PydanticField(default=None, alias="startTime")
    end_time: float | None = PydanticField(default=None, alias="endTime")


class VideoTransitionNodeData(BaseNodeData):
    video_url: str | None = PydanticField(default=None, alias="videoUrl")
    transition_type: TransitionType | None = PydanticField(
        default=None, alias="transitionType"
    )
    duration: float | None = None
    easing: Literal["linear", "easeIn", "easeOut", "easeInOut"] | None = None


NodeData = (
    PromptNodeData
    | ImageInputNodeData
    | FileNodeData
    | VideoNodeData
    | OutputNodeData
    | NanoBananaProNodeData
    | Kling26NodeData
    | Kling25TurboNodeData
    | Wan26NodeData
    | VideoConcatNodeData
    | VideoSubtitlesNodeData
    | VideoTrimNodeData
    | VideoTransitionNodeData
)

NODE_DATA_MODELS: dict[NodeKind, type[BaseNodeData]] = {
    NodeKind.PROMPT: PromptNodeData,
    NodeKind.IMAGE_INPUT: ImageInputNodeData,
    NodeKind.FILE: FileNodeData,
    NodeKind.VIDEO: VideoNodeData,
    NodeKind.OUTPUT: OutputNodeData,
    NodeKind.NANO_BANANA_PRO: NanoBananaProNodeData,
    NodeKind.KLING_26: Kling26NodeData,
    NodeKind.KLING_25_TURBO: Kling25TurboNodeData,
    NodeKind.WAN_26: Wan26NodeData,
    NodeKind.VIDEO_CONCAT: VideoConcatNodeData,
    NodeKind.VIDEO_SUBTITLES: VideoSubtitlesNodeData,
    NodeKind.VIDEO_TRIM: VideoTrimNodeData,
    NodeKind.VIDEO_TRANSITION: VideoTransitionNodeData,
}


def _field_names(model: type[BaseModel]) -> dict[str, str]:
    """Map both aliases and attribute names to attribute names."""
    names: dict[str, str] = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def merge_node_data(data: BaseNodeData, updates: dict[str, Any]) -> BaseNodeData:
    """Shallow-merge ``updates`` into ``data`` and return a new validated instance.

    Keys may be given either as attribute names (``is_generating``) or as
    wire aliases (``isGenerating``). Unknown keys raise ``ValueError``.
    """
    names = _field_names(type(data))
    normalized: dict[str, Any] = {}
    for key, value in updates.items():
        if key not in names:
            raise ValueError(
                f"Unknown field '{key}' for {type(data).__name__}"
            )
        normalized[names[key]] = value

    merged = data.model_dump()
    merged.update(normalized)
    return type(data).model_validate(merged)


# =============================================================================
# Node
# =============================================================================


class Position(BaseModel):
    """Canvas position of a node."""

    x: float = 0
    y: float = 0

    model_config = {"frozen": True}

    def offset(self, dx: float, dy: float) -> "Position":
        return Position(x=self.x + dx, y=self.y + dy)


class Node(BaseModel):
    """A node in the workflow graph.

    Nodes are immutable; every change produces a new instance so that history
    snapshots can hold references without copying.
    """

    id: str
    kind: NodeKind = PydanticField(alias="type")
    position: Position = PydanticField(default_factory=Position)
    data: NodeData
    selected: bool = False

    model_config = {"populate_by_name": True, "frozen": True}

    @model_validator(mode="before")
    @classmethod
    def _coerce_data(cls, values: Any) -> Any:
        """Build ``data`` with the model matching ``kind``."""
        if not isinstance(values, dict):
            return values
        kind = values.get("kind", values.get("type"))
        if kind is None:
            return values
        model = NODE_DATA_MODELS[NodeKind(kind)]
        data = values.get("data")
        if data is None:
            return {**values, "data": model()}
        if isinstance(data, dict):
            return {**values, "data": model.model_validate(data)}
        return values

    @model_validator(mode="after")
    def _check_data_kind(self) -> "Node":
        expected = NODE_DATA_MODELS[self.kind]
        if type(self.data) is not expected:
            raise ValueError(
                f"Node kind '{self.kind.value}' requires {expected.__name__}, "
                f"got {type(self.data).__name__}"
            )
        return self

    @property
    def is_executable(self) -> bool:
        return self.kind in EXECUTABLE_KINDS

    def with_data(self, updates: dict[str, Any]) -> "Node":
        """Return a copy of this node with ``updates`` merged into its data."""
        return self.model_copy(update={"data": merge_node_data(self.data, updates)})


# =============================================================================
# Defaults
# =============================================================================


def default_node_data(kind: NodeKind) -> BaseNodeData:
    """Default data for a freshly added node of ``kind``."""
    if kind == NodeKind.IMAGE_INPUT:
        return ImageInputNodeData(label="Image Input")
    if kind == NodeKind.PROMPT:
        return PromptNodeData(label="Prompt", prompt="")
    if kind == NodeKind.FILE:
        return FileNodeData(label="File")
    if kind == NodeKind.VIDEO:
        return VideoNodeData(label="Video")
    if kind == NodeKind.OUTPUT:
        return OutputNodeData(label="Output")
    if kind == NodeKind.KLING_26:
        return Kling26NodeData(
            label="Kling 2.6 Pro",
            mode="text-to-video",
            duration="5",
            aspect_ratio="16:9",
            audio_enabled=True,
            cfg_scale=0.5,
        )
    if kind == NodeKind.KLING_25_TURBO:
        return Kling25TurboNodeData(
            label="Kling 2.5 Turbo",
            mode="text-to-video",
            duration="5",
            aspect_ratio="16:9",
            cfg_scale=0.5,
        )
    if kind == NodeKind.WAN_26:
        return Wan26NodeData(
            label="Wan 2.6",
            mode="text-to-video",
            duration="5",
            aspect_ratio="16:9",
            resolution="720p",
            enhance_enabled=False,
        )
    if kind == NodeKind.NANO_BANANA_PRO:
        return NanoBananaProNodeData(
            label="Nano Banana Pro",
            prompt="",
            mode="text-to-image",
            aspect_ratio="1:1",
            resolution="1K",
            output_format="png",
            num_images=1,
            enable_web_search=False,
            enable_safety_checker=True,
        )
    if kind == NodeKind.VIDEO_CONCAT:
        return VideoConcatNodeData(label="Concat", aspect_ratio="16:9")
    if kind == NodeKind.VIDEO_SUBTITLES:
        return VideoSubtitlesNodeData(
            label="Subtitles",
            aspect_ratio="9:16",
            style="tiktok",
            position="bottom",
            auto_generate=True,
        )
    if kind == NodeKind.VIDEO_TRIM:
        return VideoTrimNodeData(
            label="Trim", aspect_ratio="16:9", start_time=0, end_time=5
        )
    if kind == NodeKind.VIDEO_TRANSITION:
        return VideoTransitionNodeData(
            label="Transition",
            aspect_ratio="16:9",
            transition_type="fade",
            duration=0.5,
            easing="easeInOut",
        )
    return NODE_DATA_MODELS[kind]()
