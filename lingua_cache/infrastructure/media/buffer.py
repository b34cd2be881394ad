"""
Media Buffers

A MediaBuffer is the transient payload passed along the
ingest → transcode → invoke chain. It is never persisted. Audio buffers are
backed by files inside a request-scoped scratch directory (see
``media_workspace``) so that a 100 MB episode is not held in memory twice;
image buffers stay in memory.
"""

import contextlib
import math
import posixpath
import shutil
import tempfile
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from lingua_cache.core.config.constants import DEFAULT_AUDIO_MIME, Stage
from lingua_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

MIME_TYPES_BY_EXTENSION: dict[str, str] = {
    # Audio
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".mp4": "audio/mp4",
    ".aac": "audio/aac",
    ".wav": "audio/wav",
    ".ogg": "audio/ogg",
    ".oga": "audio/ogg",
    ".opus": "audio/ogg",
    ".webm": "audio/webm",
    ".flac": "audio/flac",
    # Images
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def infer_mime_type(url: str, default: str) -> str:
    """
    Infer a MIME type from the URL path extension.

    Query strings and fragments are ignored, so signed CDN URLs such as
    ``.../ep1.mp3?sig=...`` still resolve to ``audio/mpeg``.
    """
    path = urlparse(url).path
    extension = posixpath.splitext(path)[1].lower()
    return MIME_TYPES_BY_EXTENSION.get(extension, default)


def encoded_payload_size(size_bytes: int) -> int:
    """Size of ``size_bytes`` raw bytes after base64 encoding."""
    return 4 * math.ceil(size_bytes / 3)


def max_inline_raw_bytes(encoded_limit: int) -> int:
    """Largest raw size whose base64 encoding still fits ``encoded_limit``."""
    return 3 * (encoded_limit // 4)


@dataclass(frozen=True)
class MediaBuffer:
    """
    Downloaded (or transcoded) media bytes.

    Exactly one of ``data`` / ``path`` is set.
    """

    size_bytes: int
    mime_type: str
    source_url: str
    data: bytes | None = None
    path: Path | None = None

    def __post_init__(self):
        if (self.data is None) == (self.path is None):
            raise ValueError("MediaBuffer needs exactly one of data or path")

    @classmethod
    def from_bytes(cls, data: bytes, mime_type: str, source_url: str = "") -> "MediaBuffer":
        return cls(size_bytes=len(data), mime_type=mime_type, source_url=source_url, data=data)

    @classmethod
    def from_file(cls, path: Path, mime_type: str, source_url: str = "") -> "MediaBuffer":
        return cls(size_bytes=path.stat().st_size, mime_type=mime_type, source_url=source_url, path=path)

    @property
    def is_audio(self) -> bool:
        return self.mime_type.startswith("audio/")

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        return self.path.read_bytes()

    def materialize(self, directory: Path, name: str = "input") -> Path:
        """Return a file path holding the bytes, writing one if needed."""
        if self.path is not None:
            return self.path
        suffix = _extension_for(self.mime_type)
        target = directory / f"{name}{suffix}"
        target.write_bytes(self.data)
        return target


def _extension_for(mime_type: str) -> str:
    for extension, mime in MIME_TYPES_BY_EXTENSION.items():
        if mime == mime_type:
            return extension
    return ".mp3" if mime_type == DEFAULT_AUDIO_MIME else ".bin"


@contextlib.asynccontextmanager
async def media_workspace(prefix: str = "lingua_media_") -> AsyncIterator[Path]:
    """
    Request-scoped scratch directory for downloads and transcodes.

    The directory and everything in it is removed on every exit path:
    success, error, timeout or cancellation.

    Usage:
        async with media_workspace() as workdir:
            audio = await downloader.download_to_file(url, workdir, ...)
    """
    workdir = Path(tempfile.mkdtemp(prefix=prefix))
    try:
        yield workdir
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        log_stage(logger, Stage.CLEANUP, "Media workspace removed", level="debug", workdir=str(workdir))
