"""Turn possibly-local media references into something a remote service can fetch.

Reference forms:
- ``http://`` / ``https://`` URLs are already reachable and pass through.
- ``data:`` URLs pass through when small enough, otherwise are recompressed.
- ``/api/files/<category>/<name>`` refers to a file under the media root.
- Any other path is fetched from the local file server.
"""

import asyncio
import logging
import os
from pathlib import Path

import httpx

from mediaflow.media.compression import (
    MAX_BASE64_SIZE,
    ImageCompressionError,
    compress_image_bytes,
    decode_data_url,
)

logger = logging.getLogger(__name__)

MEDIA_ROOT = os.getenv("MEDIAFLOW_MEDIA_ROOT", "./uploads")
LOCAL_BASE_URL = os.getenv("MEDIAFLOW_LOCAL_BASE_URL", "http://localhost:3000")
LOCAL_FILES_PREFIX = "/api/files/"
FETCH_TIMEOUT = 30.0  # seconds


class MediaConversionError(Exception):
    """A local media reference could not be turned into an inline payload."""

    def __init__(self, message: str, reference: str | None = None):
        super().__init__(message)
        self.reference = reference


def is_remote(reference: str) -> bool:
    return reference.startswith("http://") or reference.startswith("https://")


def is_inline(reference: str) -> bool:
    return reference.startswith("data:")


def is_local(reference: str) -> bool:
    return not (is_remote(reference) or is_inline(reference))


class MediaResolver:
    """Resolves image references before they are sent to a generation service."""

    def __init__(
        self,
        media_root: str | Path | None = None,
        local_base_url: str | None = None,
        max_size: int = MAX_BASE64_SIZE,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            media_root: Directory backing ``/api/files/`` URLs
            local_base_url: Base URL of the local file server for other paths
            max_size: Ceiling on the length of inline data URLs
            http_client: Optional shared client, mainly for tests
        """
        self.media_root = Path(media_root or MEDIA_ROOT)
        self.local_base_url = (local_base_url or LOCAL_BASE_URL).rstrip("/")
        self.max_size = max_size
        self._http_client = http_client

    async def resolve_image(self, reference: str | None) -> str | None:
        """Return a reference that a remote service can consume.

        Raises:
            MediaConversionError: If a local or oversized reference cannot be
                read or decoded
        """
        if not reference:
            return None

        if is_remote(reference):
            return reference

        if is_inline(reference):
            if len(reference) <= self.max_size:
                return reference
            logger.info(f"Recompressing {len(reference) // 1024}KB inline image")
            try:
                content = decode_data_url(reference)
            except ImageCompressionError as e:
                raise MediaConversionError(str(e), reference="data:") from e
            return await self._compress(content, "data:")

        if reference.startswith(LOCAL_FILES_PREFIX):
            content = await self._read_local_file(reference)
        else:
            content = await self._fetch_local_url(reference)
        return await self._compress(content, reference)

    def local_path(self, reference: str) -> Path:
        """Map an ``/api/files/...`` URL to a path inside the media root."""
        relative = reference[len(LOCAL_FILES_PREFIX) :]
        root = self.media_root.resolve()
        path = (root / relative).resolve()
        if not path.is_relative_to(root):
            raise MediaConversionError(
                "Media path escapes the media root", reference=reference
            )
        return path

    async def _read_local_file(self, reference: str) -> bytes:
        path = self.local_path(reference)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise MediaConversionError(
                f"Failed to read file: {path.name}", reference=reference
            ) from e

    async def _fetch_local_url(self, reference: str) -> bytes:
        url = f"{self.local_base_url}/{reference.lstrip('/')}"
        try:
            if self._http_client is not None:
                response = await self._http_client.get(url, timeout=FETCH_TIMEOUT)
            else:
                async with httpx.AsyncClient(timeout=FETCH_TIMEOUT) as client:
                    response = await client.get(url)
        except httpx.HTTPError as e:
            raise MediaConversionError(
                f"Failed to fetch file: {e}", reference=reference
            ) from e

        if response.status_code != 200:
            raise MediaConversionError(
                f"Failed to fetch file: {response.status_code}", reference=reference
            )
        return response.content

    async def _compress(self, content: bytes, reference: str) -> str:
        try:
            return await asyncio.to_thread(compress_image_bytes, content, self.max_size)
        except ImageCompressionError as e:
            raise MediaConversionError(str(e), reference=reference) from e
