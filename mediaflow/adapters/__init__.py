"""Node execution adapters, one per executable node kind."""

from mediaflow.adapters.base import AdapterInputError, NodeAdapter
from mediaflow.adapters.editing import (
    VideoConcatAdapter,
    VideoSubtitlesAdapter,
    VideoTransitionAdapter,
    VideoTrimAdapter,
)
from mediaflow.adapters.image import ImageGenerationAdapter
from mediaflow.adapters.video import Kling25TurboAdapter, Kling26Adapter, Wan26Adapter
from mediaflow.collaborators.base import GenerationClient
from mediaflow.graph.store import GraphStore
from mediaflow.media.resolver import MediaResolver
from mediaflow.models.node import NodeKind

ADAPTER_CLASSES: dict[NodeKind, type[NodeAdapter]] = {
    adapter.kind: adapter
    for adapter in (
        ImageGenerationAdapter,
        Kling26Adapter,
        Kling25TurboAdapter,
        Wan26Adapter,
        VideoConcatAdapter,
        VideoSubtitlesAdapter,
        VideoTrimAdapter,
        VideoTransitionAdapter,
    )
}


def create_adapters(
    store: GraphStore,
    client: GenerationClient,
    resolver: MediaResolver,
) -> dict[NodeKind, NodeAdapter]:
    """Instantiate one adapter per executable kind, bound to ``store``."""
    return {
        kind: adapter_class(store, client, resolver)
        for kind, adapter_class in ADAPTER_CLASSES.items()
    }


__all__ = [
    "ADAPTER_CLASSES",
    "AdapterInputError",
    "NodeAdapter",
    "create_adapters",
    "ImageGenerationAdapter",
    "Kling26Adapter",
    "Kling25TurboAdapter",
    "Wan26Adapter",
    "VideoConcatAdapter",
    "VideoSubtitlesAdapter",
    "VideoTrimAdapter",
    "VideoTransitionAdapter",
]
