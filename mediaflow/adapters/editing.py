"""Video editing adapters (concat, transition, trim, subtitles).

Editors take the aspect ratio of their first video input, falling back to
the node's own setting.
"""

from collections.abc import Sequence
from typing import Any

from mediaflow.adapters.base import NodeAdapter
from mediaflow.collaborators.base import MediaResult, VideoEditRequest
from mediaflow.models.execution import Readiness
from mediaflow.models.node import (
    Node,
    NodeKind,
    Transition,
    VideoConcatNodeData,
    VideoSubtitlesNodeData,
    VideoTransitionNodeData,
    VideoTrimNodeData,
)
from mediaflow.services.input_extractor import (
    ConnectedInput,
    extract_video_url,
    first_aspect_ratio,
    video_inputs,
)

NO_TRANSITION = Transition(type="none", duration=0)


def normalize_transitions(
    transitions: Sequence[Transition] | None, clip_count: int
) -> list[Transition]:
    """One transition per pair of consecutive clips, padding with no transition."""
    transitions = list(transitions or [])
    pairs = max(clip_count - 1, 0)
    return [transitions[i] if i < len(transitions) else NO_TRANSITION for i in range(pairs)]


class VideoEditAdapter(NodeAdapter):
    default_aspect_ratio = "16:9"

    def detect_aspect_ratio(self, node: Node, inputs: Sequence[ConnectedInput]) -> str:
        return (
            first_aspect_ratio(video_inputs(inputs))
            or node.data.aspect_ratio
            or self.default_aspect_ratio
        )

    async def call(self, request: VideoEditRequest) -> MediaResult:
        return await self.client.edit_video(request)

    def result_updates(
        self, node: Node, request: VideoEditRequest, result: MediaResult
    ) -> dict[str, Any]:
        return {"video_url": result.url, "aspect_ratio": request.aspect_ratio}


class _MultiInputEditAdapter(VideoEditAdapter):
    """Editors that combine several clips in target-handle order."""

    min_videos = 1

    def video_urls(self, inputs: Sequence[ConnectedInput]) -> list[str]:
        return [item.video_url for item in video_inputs(inputs) if item.video_url]


class VideoConcatAdapter(_MultiInputEditAdapter):
    kind = NodeKind.VIDEO_CONCAT

    def readiness(self, node: Node, inputs: Sequence[ConnectedInput]) -> Readiness:
        if not video_inputs(inputs):
            return Readiness(can_execute=False, reason="Connect at least one video")
        return Readiness(can_execute=True)

    def validate(self, node: Node, inputs: Sequence[ConnectedInput]) -> str | None:
        if not self.video_urls(inputs):
            return "No videos connected. Connect at least one video source."
        return None

    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> VideoEditRequest:
        data: VideoConcatNodeData = node.data
        urls = self.video_urls(inputs)
        return VideoEditRequest(
            operation="concat",
            video_urls=urls,
            transitions=normalize_transitions(data.transitions, len(urls)),
            aspect_ratio=self.detect_aspect_ratio(node, inputs),
        )

    def describe(
        self, node: Node, request: VideoEditRequest, result: MediaResult
    ) -> dict[str, Any]:
        return {
            "message": f"Video concat completed ({len(request.video_urls)} videos)",
            "videoUrl": result.url,
            "aspectRatio": request.aspect_ratio,
        }


class VideoTransitionAdapter(_MultiInputEditAdapter):
    kind = NodeKind.VIDEO_TRANSITION
    min_videos = 2

    def readiness(self, node: Node, inputs: Sequence[ConnectedInput]) -> Readiness:
        if len(video_inputs(inputs)) < self.min_videos:
            return Readiness(can_execute=False, reason="Connect at least 2 videos")
        return Readiness(can_execute=True)

    def validate(self, node: Node, inputs: Sequence[ConnectedInput]) -> str | None:
        if len(self.video_urls(inputs)) < self.min_videos:
            return "Need at least 2 videos connected for transitions."
        return None

    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> VideoEditRequest:
        data: VideoTransitionNodeData = node.data
        return VideoEditRequest(
            operation="transition",
            video_urls=self.video_urls(inputs),
            transition_type=data.transition_type or "fade",
            transition_duration=data.duration or 0.5,
            aspect_ratio=self.detect_aspect_ratio(node, inputs),
        )

    def describe(
        self, node: Node, request: VideoEditRequest, result: MediaResult
    ) -> dict[str, Any]:
        return {
            "message": (
                f"Transition completed ({request.transition_type}, "
                f"{request.transition_duration}s)"
            ),
            "videoUrl": result.url,
            "aspectRatio": request.aspect_ratio,
        }


class _SingleInputEditAdapter(VideoEditAdapter):
    def readiness(self, node: Node, inputs: Sequence[ConnectedInput]) -> Readiness:
        if not video_inputs(inputs):
            return Readiness(can_execute=False, reason="Connect a video source")
        return Readiness(can_execute=True)

    def validate(self, node: Node, inputs: Sequence[ConnectedInput]) -> str | None:
        if not extract_video_url(inputs):
            return "No video connected. Connect a video source."
        return None


class VideoTrimAdapter(_SingleInputEditAdapter):
    kind = NodeKind.VIDEO_TRIM

    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> VideoEditRequest:
        data: VideoTrimNodeData = node.data
        return VideoEditRequest(
            operation="trim",
            video_url=extract_video_url(inputs),
            start_time=data.start_time or 0,
            # Unset end trims to the end of the clip
            end_time=data.end_time or None,
            aspect_ratio=self.detect_aspect_ratio(node, inputs),
        )

    def describe(
        self, node: Node, request: VideoEditRequest, result: MediaResult
    ) -> dict[str, Any]:
        end = f"{request.end_time}s" if request.end_time is not None else "end"
        return {
            "message": f"Video trim completed ({request.start_time}s - {end})",
            "videoUrl": result.url,
            "aspectRatio": request.aspect_ratio,
        }


class VideoSubtitlesAdapter(_SingleInputEditAdapter):
    kind = NodeKind.VIDEO_SUBTITLES
    default_aspect_ratio = "9:16"

    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> VideoEditRequest:
        data: VideoSubtitlesNodeData = node.data
        return VideoEditRequest(
            operation="subtitles",
            video_url=extract_video_url(inputs),
            style=data.style or "tiktok",
            position=data.position or "bottom",
            auto_generate=data.auto_generate if data.auto_generate is not None else True,
            transcript=data.transcript,
            aspect_ratio=self.detect_aspect_ratio(node, inputs),
        )

    def describe(
        self, node: Node, request: VideoEditRequest, result: MediaResult
    ) -> dict[str, Any]:
        return {
            "message": f"Subtitles added ({request.style}, {request.position})",
            "videoUrl": result.url,
            "aspectRatio": request.aspect_ratio,
        }
