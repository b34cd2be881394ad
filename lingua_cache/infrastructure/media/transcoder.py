"""
Conditional Audio Transcoder

Keeps audio payloads under the model endpoint's inline size limit.

The inline limit counts base64-encoded bytes, so the largest raw payload that
fits is three quarters of it. The effective threshold is the smaller of the
configured threshold and that raw capacity.

Decision rule:
    size_bytes <= effective threshold  → pass the buffer through unchanged
    size_bytes >  effective threshold  → re-encode with FFmpeg to a speech
                                         profile (mono, 16 kHz, 32 kbps MP3)

Speech recognition needs neither stereo nor music-grade sample rates, so the
speech profile typically shrinks a podcast episode by 4-8x while keeping it
intelligible.

A failed transcode is fatal for the request: an oversized buffer is never
passed on to the model. Neither is a re-encode that still does not fit
inline (episodes longer than roughly an hour at the speech bitrate).
"""

import asyncio
import contextlib
from pathlib import Path

from lingua_cache.core.config.constants import (
    MB,
    MODEL_INLINE_PAYLOAD_LIMIT,
    TRANSCODE_BITRATE,
    TRANSCODE_CHANNELS,
    TRANSCODE_SAMPLE_RATE,
    TRANSCODE_THRESHOLD_BYTES,
    Stage,
)
from lingua_cache.core.exceptions import PayloadTooLargeError, TranscodeError
from lingua_cache.core.logging.logger import get_logger, log_stage
from lingua_cache.infrastructure.media.buffer import (
    MediaBuffer,
    encoded_payload_size,
    max_inline_raw_bytes,
)

logger = get_logger(__name__)


def build_transcode_command(ffmpeg_binary: str, input_path: Path, output_path: Path) -> list[str]:
    """FFmpeg argv for the speech-optimized profile."""
    return [
        ffmpeg_binary,
        "-hide_banner",
        "-loglevel", "error",
        "-y",
        "-i", str(input_path),
        "-vn",
        "-ac", str(TRANSCODE_CHANNELS),
        "-ar", str(TRANSCODE_SAMPLE_RATE),
        "-b:a", TRANSCODE_BITRATE,
        "-f", "mp3",
        str(output_path),
    ]


class AudioTranscoder:
    """
    Size-triggered FFmpeg transcoder.

    STAGE-3.2: Conditional transcode
    """

    def __init__(
        self,
        threshold_bytes: int = TRANSCODE_THRESHOLD_BYTES,
        ffmpeg_binary: str = "ffmpeg",
        timeout_base: float = 30.0,
        timeout_per_mb: float = 2.0,
        inline_payload_limit: int = MODEL_INLINE_PAYLOAD_LIMIT,
    ):
        """
        Args:
            threshold_bytes: Buffers larger than this, or than the inline capacity, are transcoded
            ffmpeg_binary: FFmpeg executable name or path
            timeout_base: Fixed part of the transcode timeout (seconds)
            timeout_per_mb: Additional seconds allowed per MB of input
            inline_payload_limit: Model request limit on base64-encoded media
        """
        self._inline_limit = inline_payload_limit
        self._threshold = min(threshold_bytes, max_inline_raw_bytes(inline_payload_limit))
        self._ffmpeg = ffmpeg_binary
        self._timeout_base = timeout_base
        self._timeout_per_mb = timeout_per_mb

    @classmethod
    def from_settings(cls, settings) -> "AudioTranscoder":
        media = settings.media
        return cls(
            threshold_bytes=media.TRANSCODE_THRESHOLD_BYTES,
            ffmpeg_binary=media.FFMPEG_BINARY,
            timeout_base=media.TRANSCODE_TIMEOUT_BASE,
            timeout_per_mb=media.TRANSCODE_TIMEOUT_PER_MB,
            inline_payload_limit=settings.gemini.MODEL_INLINE_PAYLOAD_LIMIT,
        )

    @property
    def threshold_bytes(self) -> int:
        """Effective threshold, capped by what fits inline once encoded."""
        return self._threshold

    def needs_transcode(self, buffer: MediaBuffer) -> bool:
        return buffer.size_bytes > self._threshold

    def timeout_for(self, size_bytes: int) -> float:
        """Transcode time budget grows with input size."""
        return self._timeout_base + self._timeout_per_mb * (size_bytes / MB)

    async def transcode_if_needed(self, buffer: MediaBuffer, workdir: Path) -> MediaBuffer:
        """
        Return ``buffer`` itself when it is small enough, else a smaller re-encode.

        Args:
            buffer: Downloaded audio
            workdir: Request-scoped scratch directory (removed by the caller)

        Raises:
            TranscodeError: FFmpeg missing, failed, timed out, or did not shrink the audio
            PayloadTooLargeError: The re-encode is still too large to send inline
        """
        if not self.needs_transcode(buffer):
            log_stage(
                logger, Stage.TRANSCODE, "Audio within threshold, no transcode",
                size_bytes=buffer.size_bytes, threshold_bytes=self._threshold,
            )
            return buffer

        log_stage(
            logger, Stage.TRANSCODE, "Audio over threshold, transcoding",
            size_mb=round(buffer.size_bytes / MB, 2), threshold_mb=round(self._threshold / MB, 2),
        )

        input_path = buffer.materialize(workdir, name="transcode_input")
        output_path = workdir / "transcoded.mp3"
        await self._run_ffmpeg(input_path, output_path, self.timeout_for(buffer.size_bytes))

        if not output_path.exists() or output_path.stat().st_size == 0:
            raise TranscodeError("FFmpeg produced no output", details={"output": str(output_path)})

        result = MediaBuffer.from_file(output_path, "audio/mpeg", source_url=buffer.source_url)
        if result.size_bytes >= buffer.size_bytes:
            raise TranscodeError(
                "Transcoded audio is not smaller than the original",
                details={"original_bytes": buffer.size_bytes, "transcoded_bytes": result.size_bytes},
            )

        encoded = encoded_payload_size(result.size_bytes)
        if encoded > self._inline_limit:
            raise PayloadTooLargeError(
                "Audio is too long to send inline even after transcoding",
                details={
                    "transcoded_bytes": result.size_bytes,
                    "encoded_bytes": encoded,
                    "limit_bytes": self._inline_limit,
                },
            )

        log_stage(
            logger, Stage.TRANSCODE, "Transcode complete",
            original_mb=round(buffer.size_bytes / MB, 2), transcoded_mb=round(result.size_bytes / MB, 2),
        )
        return result

    async def _run_ffmpeg(self, input_path: Path, output_path: Path, timeout: float) -> None:
        cmd = build_transcode_command(self._ffmpeg, input_path, output_path)
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise TranscodeError(
                f"FFmpeg binary not found: {self._ffmpeg}", details={"ffmpeg": self._ffmpeg}
            ) from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except (asyncio.TimeoutError, TimeoutError) as e:
            await self._kill(process)
            raise TranscodeError(
                f"FFmpeg timed out after {timeout:.0f}s", details={"timeout": timeout}
            ) from e
        except asyncio.CancelledError:
            await self._kill(process)
            raise

        if process.returncode != 0:
            message = (stderr or b"").decode("utf-8", errors="replace").strip()
            tail = message.splitlines()[-1] if message else "unknown ffmpeg error"
            raise TranscodeError(
                f"FFmpeg failed: {tail}", details={"returncode": process.returncode}
            )

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()
