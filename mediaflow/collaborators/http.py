"""HTTP generation client with retry logic."""

import asyncio
import logging
import os
from typing import Any

import httpx

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

logger = logging.getLogger(__name__)

GENERATION_API_URL = os.getenv("GENERATION_API_URL", "http://localhost:3000")
GENERATION_API_KEY = os.getenv("GENERATION_API_KEY")

# Default retry configuration
MAX_RETRIES = 3
RETRY_DELAY = 1.0  # seconds
RETRY_MULTIPLIER = 2.0

# Per-call time budgets
IMAGE_TIMEOUT = 120.0
VIDEO_TIMEOUT = 300.0
EDIT_TIMEOUT = 600.0

EDIT_FAILURE_MESSAGES = {
    "concat": "Video concatenation failed",
    "trim": "Video trim failed",
    "transition": "Video transition failed",
    "subtitles": "Video subtitles failed",
}


def _parse_retry_after(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _error_message(response: httpx.Response, default: str) -> str:
    """Use the body's ``error`` field when present."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return default


class HttpGenerationClient(GenerationClient):
    """Talks to the media generation API over HTTP.

    Endpoints:
        POST /api/generate-image -> {"resultUrls": [...]} or {"images": [{"url"}]}
        POST /api/generate-video -> {"videoUrl": ...}
        POST /api/video-edit     -> {"videoUrl": ...}
    """

    service = "generation-api"

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY,
    ):
        """Initialize the client.

        Args:
            base_url: API base URL. If not provided, uses GENERATION_API_URL.
            api_key: Bearer token. If not provided, uses GENERATION_API_KEY.
            client: Pre-built httpx client (its base_url is used as-is)
            max_retries: Attempts for rate-limited or 5xx responses
            retry_delay: Initial backoff in seconds
        """
        self.base_url = (base_url or GENERATION_API_URL).rstrip("/")
        self.api_key = api_key or GENERATION_API_KEY
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        if client is not None:
            self._client = client
            self._owns_client = False
        else:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(base_url=self.base_url, headers=headers)
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def generate_image(self, request: ImageGenerationRequest) -> MediaResult:
        body = await self._post_with_retry(
            "/api/generate-image",
            request.to_payload(),
            timeout=IMAGE_TIMEOUT,
            failure_message="Image generation failed",
        )
        url = None
        if body.get("resultUrls"):
            url = body["resultUrls"][0]
        elif body.get("images"):
            url = body["images"][0].get("url")
        if not url:
            raise CollaboratorError("Image generation returned no image", service=self.service)
        return MediaResult(
            url=url,
            seed=body.get("seed"),
            aspect_ratio=body.get("aspectRatio"),
            raw=body,
        )

    async def generate_video(self, request: VideoGenerationRequest) -> MediaResult:
        body = await self._post_with_retry(
            "/api/generate-video",
            request.to_payload(),
            timeout=VIDEO_TIMEOUT,
            failure_message="Video generation failed",
        )
        if not body.get("videoUrl"):
            raise CollaboratorError("Video generation returned no video", service=self.service)
        return MediaResult(
            url=body["videoUrl"],
            seed=body.get("seed"),
            aspect_ratio=body.get("aspectRatio"),
            raw=body,
        )

    async def edit_video(self, request: VideoEditRequest) -> MediaResult:
        failure_message = EDIT_FAILURE_MESSAGES[request.operation]
        body = await self._post_with_retry(
            "/api/video-edit",
            request.to_payload(),
            timeout=EDIT_TIMEOUT,
            failure_message=failure_message,
        )
        if not body.get("videoUrl"):
            raise CollaboratorError(failure_message, service=self.service)
        return MediaResult(
            url=body["videoUrl"],
            aspect_ratio=body.get("aspectRatio"),
            raw=body,
        )

    async def _post_with_retry(
        self,
        path: str,
        payload: dict[str, Any],
        timeout: float,
        failure_message: str,
    ) -> dict[str, Any]:
        """POST with exponential backoff on 429 and 5xx responses.

        Args:
            path: Endpoint path
            payload: JSON body
            timeout: Per-attempt timeout in seconds
            failure_message: Message used when the body carries no ``error``

        Returns:
            Parsed JSON body of the successful response

        Raises:
            CollaboratorError: On a non-retriable failure or after all retries
        """
        last_error: CollaboratorError | None = None
        delay = self.retry_delay

        for attempt in range(self.max_retries):
            try:
                response = await self._client.post(path, json=payload, timeout=timeout)
            except httpx.TimeoutException as e:
                raise CollaboratorTimeoutError(
                    f"{failure_message}: request timed out after {timeout:.0f}s",
                    service=self.service,
                ) from e
            except httpx.HTTPError as e:
                raise CollaboratorError(
                    f"{failure_message}: {e}", service=self.service
                ) from e

            if response.status_code == 429:
                retry_after = _parse_retry_after(response)
                last_error = RateLimitError(
                    _error_message(response, "Rate limit exceeded"),
                    retry_after=retry_after,
                    service=self.service,
                )
                wait = retry_after if retry_after is not None else delay
                logger.warning(
                    f"Rate limited (attempt {attempt + 1}/{self.max_retries}), "
                    f"retrying in {wait}s..."
                )
                if attempt + 1 < self.max_retries:
                    await asyncio.sleep(wait)
                delay *= RETRY_MULTIPLIER
                continue

            if response.status_code >= 500:
                last_error = CollaboratorError(
                    _error_message(response, failure_message),
                    service=self.service,
                    retriable=True,
                )
                logger.warning(
                    f"Server error {response.status_code} (attempt {attempt + 1}/{self.max_retries}), "
                    f"retrying in {delay}s..."
                )
                if attempt + 1 < self.max_retries:
                    await asyncio.sleep(delay)
                delay *= RETRY_MULTIPLIER
                continue

            if response.status_code >= 400:
                raise CollaboratorError(
                    _error_message(response, failure_message), service=self.service
                )

            try:
                body = response.json()
            except ValueError as e:
                raise CollaboratorError(
                    f"{failure_message}: invalid response body", service=self.service
                ) from e
            if not isinstance(body, dict):
                raise CollaboratorError(
                    f"{failure_message}: invalid response body", service=self.service
                )
            return body

        raise last_error or CollaboratorError(failure_message, service=self.service)


# Global client instance (lazy initialization)
_client: HttpGenerationClient | None = None


def get_generation_client() -> HttpGenerationClient:
    """Get or create the global HTTP generation client."""
    global _client
    if _client is None:
        _client = HttpGenerationClient()
    return _client


async def close_generation_client() -> None:
    global _client
    if _client is not None:
        await _client.close()
        _client = None
