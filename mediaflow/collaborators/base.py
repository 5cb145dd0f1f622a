"""Generation/edit collaborator interface.

A collaborator turns a normalized request into a produced media URL. The
engine only depends on this module; transports (HTTP, SDK, queue) live in
concrete subclasses.
"""

from abc import ABC, abstractmethod
from typing import Any, Literal

from pydantic import BaseModel
from pydantic import Field as PydanticField

from mediaflow.models.node import Transition


class CollaboratorError(Exception):
    """Base exception for generation/edit failures.

    The message is shown to the user as-is.
    """

    def __init__(self, message: str, service: str | None = None, retriable: bool = False):
        super().__init__(message)
        self.service = service
        self.retriable = retriable


class RateLimitError(CollaboratorError):
    """Rate limit exceeded."""

    def __init__(self, message: str, retry_after: float | None = None, **kwargs: Any):
        super().__init__(message, retriable=True, **kwargs)
        self.retry_after = retry_after


class CollaboratorTimeoutError(CollaboratorError):
    """The call did not complete within its time budget."""

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, retriable=True, **kwargs)


# =============================================================================
# Requests
# =============================================================================


class _Request(BaseModel):
    model_config = {"populate_by_name": True}

    def to_payload(self) -> dict[str, Any]:
        """Wire form: camelCase keys, unset optionals omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ImageGenerationRequest(_Request):
    prompt: str
    aspect_ratio: str = PydanticField(default="1:1", alias="aspectRatio")
    resolution: str = "1K"
    output_format: str = PydanticField(default="png", alias="outputFormat")
    num_images: int = PydanticField(default=1, alias="numImages")
    enable_web_search: bool = PydanticField(default=False, alias="enableWebSearch")
    enable_safety_checker: bool = PydanticField(
        default=True, alias="enableSafetyChecker"
    )
    image_urls: list[str] | None = PydanticField(default=None, alias="imageUrls")


class VideoGenerationRequest(_Request):
    prompt: str
    model: Literal["kling-2.6", "kling-2.5-turbo", "wan-2.6"]
    mode: str = "text-to-video"
    aspect_ratio: str = PydanticField(default="16:9", alias="aspectRatio")
    duration: str = "5"
    audio_enabled: bool | None = PydanticField(default=None, alias="audioEnabled")
    cfg_scale: float | None = PydanticField(default=None, alias="cfgScale")
    negative_prompt: str | None = PydanticField(default=None, alias="negativePrompt")
    special_fx: str | None = PydanticField(default=None, alias="specialFx")
    seed: int | None = None
    resolution: str | None = None
    enhance_enabled: bool | None = PydanticField(default=None, alias="enhanceEnabled")
    image_url: str | None = PydanticField(default=None, alias="imageUrl")
    end_image_url: str | None = PydanticField(default=None, alias="endImageUrl")


class VideoEditRequest(_Request):
    operation: Literal["concat", "trim", "transition", "subtitles"]
    aspect_ratio: str = PydanticField(default="16:9", alias="aspectRatio")
    # Single-input operations
    video_url: str | None = PydanticField(default=None, alias="videoUrl")
    # Multi-input operations, in playback order
    video_urls: list[str] | None = PydanticField(default=None, alias="videoUrls")
    transitions: list[Transition] | None = None
    transition_type: str | None = PydanticField(default=None, alias="transitionType")
    transition_duration: float | None = PydanticField(
        default=None, alias="transitionDuration"
    )
    start_time: float | None = PydanticField(default=None, alias="startTime")
    end_time: float | None = PydanticField(default=None, alias="endTime")
    style: str | None = None
    position: str | None = None
    auto_generate: bool | None = PydanticField(default=None, alias="autoGenerate")
    transcript: str | None = None


class MediaResult(BaseModel):
    """A produced media reference plus optional metadata."""

    url: str
    seed: int | None = None
    aspect_ratio: str | None = None
    raw: dict[str, Any] = PydanticField(default_factory=dict)


# =============================================================================
# Client interface
# =============================================================================


class GenerationClient(ABC):
    """Abstract generation/edit back-end.

    Implementations raise ``CollaboratorError`` (or a subclass) on failure and
    never return a result without a URL.
    """

    service: str = "generation"

    @abstractmethod
    async def generate_image(self, request: ImageGenerationRequest) -> MediaResult:
        """Generate an image from a prompt and optional reference images."""
        pass

    @abstractmethod
    async def generate_video(self, request: VideoGenerationRequest) -> MediaResult:
        """Generate a video clip from a prompt and optional frames."""
        pass

    @abstractmethod
    async def edit_video(self, request: VideoEditRequest) -> MediaResult:
        """Run an editing operation over one or more existing videos."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None
