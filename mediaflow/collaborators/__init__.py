"""Generation/edit collaborators."""

from mediaflow.collaborators.base import (
    CollaboratorError,
    CollaboratorTimeoutError,
    GenerationClient,
    ImageGenerationRequest,
    MediaResult,
    RateLimitError,
    VideoEditRequest,
    VideoGenerationRequest,
)
from mediaflow.collaborators.http import HttpGenerationClient, get_generation_client

__all__ = [
    "CollaboratorError",
    "CollaboratorTimeoutError",
    "GenerationClient",
    "HttpGenerationClient",
    "ImageGenerationRequest",
    "MediaResult",
    "RateLimitError",
    "VideoEditRequest",
    "VideoGenerationRequest",
    "get_generation_client",
]
