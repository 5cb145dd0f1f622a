"""Image generation adapter (Nano Banana Pro)."""

from collections.abc import Sequence
from typing import Any

from mediaflow.adapters.base import NodeAdapter
from mediaflow.collaborators.base import ImageGenerationRequest, MediaResult
from mediaflow.models.execution import Readiness
from mediaflow.models.node import NanoBananaProNodeData, Node, NodeKind
from mediaflow.services.input_extractor import (
    ConnectedInput,
    extract_image_url,
    extract_prompt,
)


class ImageGenerationAdapter(NodeAdapter):
    """Generates an image from a connected or typed prompt.

    A connected image (input, file or another generator's result) is sent as
    a reference image.
    """

    kind = NodeKind.NANO_BANANA_PRO

    def _prompt(self, node: Node, inputs: Sequence[ConnectedInput]) -> str | None:
        data: NanoBananaProNodeData = node.data
        return extract_prompt(inputs) or data.prompt or None

    def readiness(self, node: Node, inputs: Sequence[ConnectedInput]) -> Readiness:
        if not self._prompt(node, inputs):
            return Readiness(can_execute=False, reason="Connect a Prompt node")
        return Readiness(can_execute=True)

    def validate(self, node: Node, inputs: Sequence[ConnectedInput]) -> str | None:
        if not self._prompt(node, inputs):
            return "No prompt provided. Connect a Prompt node or enter a prompt."
        return None

    async def build_request(
        self, node: Node, inputs: Sequence[ConnectedInput]
    ) -> ImageGenerationRequest:
        data: NanoBananaProNodeData = node.data
        image_url = await self.resolve_image(
            extract_image_url(inputs), "Failed to process reference image"
        )
        return ImageGenerationRequest(
            prompt=self._prompt(node, inputs),
            aspect_ratio=data.aspect_ratio or "1:1",
            resolution=data.resolution or "1K",
            output_format=data.output_format or "png",
            num_images=data.num_images or 1,
            enable_web_search=bool(data.enable_web_search),
            enable_safety_checker=(
                data.enable_safety_checker
                if data.enable_safety_checker is not None
                else True
            ),
            image_urls=[image_url] if image_url else None,
        )

    async def call(self, request: ImageGenerationRequest) -> MediaResult:
        return await self.client.generate_image(request)

    def result_updates(
        self, node: Node, request: ImageGenerationRequest, result: MediaResult
    ) -> dict[str, Any]:
        return {
            "image_url": result.url,
            "aspect_ratio": result.aspect_ratio or request.aspect_ratio,
        }
