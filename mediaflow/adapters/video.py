"""Video generation adapters (Kling 2.6, Kling 2.5 Turbo, Wan 2.6)."""

from collections.abc import Sequence
from typing import Any, ClassVar

from mediaflow.adapters.base import NodeAdapter
from mediaflow.collaborators.base import MediaResult, VideoGenerationRequest
from mediaflow.models.execution import Readiness
from mediaflow.models.node import (
    Kling25TurboNodeData,
    Kling26NodeData,
    Node,
    NodeKind,
    Wan26NodeData,
)
from mediaflow.services.input_extractor import (
    ConnectedInput,
    extract_frame_images,
    extract_image_url,
    extract_prompt,
)

DEFAULT_VIDEO_ASPECT_RATIO = "16:9"
DEFAULT_DURATION = "5"
DEFAULT_CFG_SCALE = 0.5


class VideoGenerationAdapter(NodeAdapter):
    """Shared steps for prompt-driven video models.

    Connecting an image switches the request to ``image-to-video``.
    """

    model: ClassVar[str]

    def readiness(self, node: Node, inputs: Sequence[ConnectedInput]) -> Readiness:
        if not extract_prompt(inputs):
            return Readiness(can_execute=False, reason="Connect a Prompt node")
        return Readiness(can_execute=True)

    def validate(self, node: Node, inputs: Sequence[ConnectedInput]) -> str | None:
        if not extract_prompt(inputs):
            return "No prompt provided. Connect a Prompt node."
        return None

    def base_request(
        self, node: Node, inputs: Sequence[ConnectedInput], image_url: str | None
    ) -> dict[str, Any]:
        data = node.data
        return {
            "prompt": extract_prompt(inputs),
            "model": self.model,
            "mode": "image-to-video" if image_url else data.mode or "text-to-video",
            "aspect_ratio": data.aspect_ratio or DEFAULT_VIDEO_ASPECT_RATIO,
            "duration": data.duration or DEFAULT_DURATION,
            "negative_prompt": data.negative_prompt,
            "seed": data.seed,
            "image_url": image_url,
        }

    async def call(self, request: VideoGenerationRequest) -> MediaResult:
        return await self.client.generate_video(request)

    def result_updates(
        self, node: Node, request: VideoGenerationRequest, result: MediaResult
    ) -> dict[str, Any]:
        return {
            "video_url": result.url,
            "aspect_ratio": request.aspect_ratio,
        }


class Kling26Adapter(VideoGenerationAdapter):
    kind = NodeKind.KLING_26
    model = "kling-2.6"

    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> VideoGenerationRequest:
        data: Kling26NodeData = node.data
        image_url = await self.resolve_image(
            extract_image_url(inputs), "Failed to process reference image"
        )
        return VideoGenerationRequest(
            **self.base_request(node, inputs, image_url),
            audio_enabled=data.audio_enabled if data.audio_enabled is not None else False,
            cfg_scale=data.cfg_scale if data.cfg_scale is not None else DEFAULT_CFG_SCALE,
        )


class Kling25TurboAdapter(VideoGenerationAdapter):
    """Kling 2.5 Turbo takes optional first and last frame images."""

    kind = NodeKind.KLING_25_TURBO
    model = "kling-2.5-turbo"

    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> VideoGenerationRequest:
        data: Kling25TurboNodeData = node.data
        first_frame, last_frame = extract_frame_images(inputs)
        image_url = await self.resolve_image(
            first_frame, "Failed to process first frame image"
        )
        end_image_url = await self.resolve_image(
            last_frame, "Failed to process last frame image"
        )
        return VideoGenerationRequest(
            **self.base_request(node, inputs, image_url),
            cfg_scale=data.cfg_scale if data.cfg_scale is not None else DEFAULT_CFG_SCALE,
            special_fx=data.special_fx or None,
            end_image_url=end_image_url,
        )


class Wan26Adapter(VideoGenerationAdapter):
    kind = NodeKind.WAN_26
    model = "wan-2.6"

    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> VideoGenerationRequest:
        data: Wan26NodeData = node.data
        image_url = await self.resolve_image(
            extract_image_url(inputs), "Failed to process reference image"
        )
        return VideoGenerationRequest(
            **self.base_request(node, inputs, image_url),
            resolution=data.resolution or "720p",
            enhance_enabled=bool(data.enhance_enabled),
        )
