"""
Media Ingestion

Downloads remote media with httpx while enforcing a hard size limit.

Algorithm:
1. Validate the URL scheme (http/https only)
2. GET with redirects followed (bounded by max_redirects)
3. Reject early when Content-Length already exceeds the limit
4. Stream the body, counting bytes; abort with PayloadTooLargeError the
   moment the running total passes the limit (Content-Length can lie or be
   absent)
5. Infer the MIME type from the URL extension, with a per-use default

The whole download is bounded by a single wall-clock timeout.
"""

import asyncio
from pathlib import Path
from urllib.parse import urlparse

import httpx

from lingua_cache.core.config.constants import (
    DOWNLOAD_CHUNK_SIZE,
    MEDIA_DOWNLOAD_TIMEOUT,
    MEDIA_MAX_REDIRECTS,
    Stage,
)
from lingua_cache.core.exceptions import MediaFetchError, PayloadTooLargeError, ValidationError
from lingua_cache.core.logging.logger import get_logger, log_stage
from lingua_cache.infrastructure.media.buffer import MediaBuffer, infer_mime_type

logger = get_logger(__name__)


def validate_media_url(url: str) -> str:
    """Only absolute http(s) URLs are fetched."""
    if not url or not isinstance(url, str):
        raise ValidationError("media URL is required and must be a string")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValidationError("media URL must be an absolute http(s) URL", details={"url": url})
    return url.strip()


class MediaDownloader:
    """
    Bounded HTTP downloader for images and audio.

    STAGE-3.1: Media ingestion
    """

    def __init__(
        self,
        timeout: float = MEDIA_DOWNLOAD_TIMEOUT,
        max_redirects: int = MEDIA_MAX_REDIRECTS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            timeout: Wall-clock limit for one download, in seconds
            max_redirects: Redirect hops followed before failing
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._timeout = timeout
        self._max_redirects = max_redirects
        self._transport = transport

    @classmethod
    def from_settings(cls, settings) -> "MediaDownloader":
        media = settings.media
        return cls(timeout=media.MEDIA_DOWNLOAD_TIMEOUT, max_redirects=media.MEDIA_MAX_REDIRECTS)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            follow_redirects=True,
            max_redirects=self._max_redirects,
            timeout=httpx.Timeout(self._timeout),
            transport=self._transport,
        )

    async def fetch(self, url: str, max_bytes: int, default_mime: str) -> MediaBuffer:
        """
        Download into memory (images and other small media).

        Raises:
            ValidationError: Bad URL
            PayloadTooLargeError: Body exceeds max_bytes
            MediaFetchError: Any other download failure
        """
        url = validate_media_url(url)
        chunks: list[bytes] = []

        async def _sink(chunk: bytes) -> None:
            chunks.append(chunk)

        size = await self._download(url, max_bytes, _sink)
        data = b"".join(chunks)
        log_stage(logger, Stage.MEDIA_INGEST, "Media fetched", url=url, size_bytes=size)
        return MediaBuffer.from_bytes(data, infer_mime_type(url, default_mime), source_url=url)

    async def download_to_file(
        self, url: str, directory: Path, max_bytes: int, default_mime: str
    ) -> MediaBuffer:
        """
        Stream a download to a file inside ``directory`` (long-form audio).

        The partial file is deleted on failure; the directory itself is owned
        by the caller (see media_workspace).
        """
        url = validate_media_url(url)
        mime_type = infer_mime_type(url, default_mime)
        target = directory / "download.media"

        handle = target.open("wb")
        try:
            async def _sink(chunk: bytes) -> None:
                await asyncio.to_thread(handle.write, chunk)

            size = await self._download(url, max_bytes, _sink)
        except BaseException:
            handle.close()
            target.unlink(missing_ok=True)
            raise
        handle.close()

        log_stage(
            logger, Stage.MEDIA_INGEST, "Media downloaded",
            url=url, size_mb=round(size / (1024 * 1024), 2),
        )
        return MediaBuffer.from_file(target, mime_type, source_url=url)

    async def _download(self, url: str, max_bytes: int, sink) -> int:
        try:
            return await asyncio.wait_for(self._stream(url, max_bytes, sink), timeout=self._timeout)
        except (asyncio.TimeoutError, TimeoutError) as e:
            raise MediaFetchError(
                f"Media download timed out after {self._timeout}s",
                details={"url": url, "timeout": self._timeout},
            ) from e

    async def _stream(self, url: str, max_bytes: int, sink) -> int:
        received = 0
        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    if not response.is_success:
                        raise MediaFetchError(
                            f"Failed to download media: HTTP {response.status_code}",
                            details={"url": url, "status_code": response.status_code},
                        )

                    declared = response.headers.get("content-length")
                    if declared and declared.isdigit() and int(declared) > max_bytes:
                        raise PayloadTooLargeError(
                            f"Media is {int(declared)} bytes, limit is {max_bytes}",
                            details={"url": url, "declared_bytes": int(declared), "max_bytes": max_bytes},
                        )

                    async for chunk in response.aiter_bytes(DOWNLOAD_CHUNK_SIZE):
                        received += len(chunk)
                        if received > max_bytes:
                            raise PayloadTooLargeError(
                                f"Media exceeded the {max_bytes} byte limit mid-stream",
                                details={"url": url, "received_bytes": received, "max_bytes": max_bytes},
                            )
                        await sink(chunk)
        except httpx.TooManyRedirects as e:
            raise MediaFetchError.from_exception(
                e, message=f"Too many redirects (>{self._max_redirects})", url=url
            ) from e
        except httpx.HTTPError as e:
            raise MediaFetchError.from_exception(e, message=f"Failed to download media: {e}", url=url) from e

        return received
