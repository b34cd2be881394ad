"""
Media Infrastructure

- buffer: MediaBuffer, MIME inference, request-scoped scratch directory
- downloader: bounded httpx downloads
- transcoder: size-triggered FFmpeg speech transcode
"""

from lingua_cache.infrastructure.media.buffer import MediaBuffer, infer_mime_type, media_workspace
from lingua_cache.infrastructure.media.downloader import MediaDownloader
from lingua_cache.infrastructure.media.transcoder import AudioTranscoder

__all__ = ["AudioTranscoder", "MediaBuffer", "MediaDownloader", "infer_mime_type", "media_workspace"]
