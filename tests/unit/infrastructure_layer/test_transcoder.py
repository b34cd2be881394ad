"""
Unit Tests for AudioTranscoder

The FFmpeg subprocess is replaced by a fake process object, so these tests
check the decision rule, the command line and the failure handling without
an ffmpeg binary.
"""

import asyncio
from pathlib import Path

import pytest

from lingua_cache.core.exceptions import PayloadTooLargeError, TranscodeError
from lingua_cache.infrastructure.media.buffer import MediaBuffer, encoded_payload_size
from lingua_cache.infrastructure.media.transcoder import AudioTranscoder, build_transcode_command

THRESHOLD = 1000


class FakeProcess:
    def __init__(self, argv, returncode=0, stderr=b"", delay=0.0, output_size=100):
        self.argv = argv
        self.returncode = None
        self.killed = False
        self._final_returncode = returncode
        self._stderr = stderr
        self._delay = delay
        self._output_size = output_size

    async def communicate(self):
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._output_size is not None:
            Path(self.argv[-1]).write_bytes(b"\x02" * self._output_size)
        self.returncode = self._final_returncode
        return b"", self._stderr

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        return self.returncode


@pytest.fixture
def fake_exec(monkeypatch):
    """Install a fake create_subprocess_exec; configure via the returned dict."""
    state = {"options": {}, "processes": [], "error": None}

    async def create_subprocess_exec(*argv, **kwargs):
        if state["error"] is not None:
            raise state["error"]
        process = FakeProcess(list(argv), **state["options"])
        state["processes"].append(process)
        return process

    monkeypatch.setattr(asyncio, "create_subprocess_exec", create_subprocess_exec)
    return state


def audio(size: int, source_url: str = "https://cdn.test/ep.mp3") -> MediaBuffer:
    return MediaBuffer.from_bytes(b"\x00" * size, "audio/mpeg", source_url=source_url)


@pytest.mark.unit
class TestDecisionRule:

    @pytest.mark.asyncio
    async def test_at_threshold_passes_through_unchanged(self, fake_exec, tmp_path):
        buffer = audio(THRESHOLD)

        result = await AudioTranscoder(threshold_bytes=THRESHOLD).transcode_if_needed(buffer, tmp_path)

        assert result is buffer
        assert result.read_bytes() == b"\x00" * THRESHOLD
        assert fake_exec["processes"] == []

    @pytest.mark.asyncio
    async def test_one_byte_over_transcodes_to_smaller(self, fake_exec, tmp_path):
        buffer = audio(THRESHOLD + 1)

        result = await AudioTranscoder(threshold_bytes=THRESHOLD).transcode_if_needed(buffer, tmp_path)

        assert result.size_bytes < buffer.size_bytes
        assert result.mime_type == "audio/mpeg"
        assert result.source_url == buffer.source_url
        assert len(fake_exec["processes"]) == 1

    @pytest.mark.asyncio
    async def test_threshold_capped_by_encoded_inline_limit(self, fake_exec, tmp_path):
        # 1200 encoded bytes hold at most 900 raw bytes
        transcoder = AudioTranscoder(threshold_bytes=THRESHOLD, inline_payload_limit=1200)

        assert transcoder.threshold_bytes == 900
        fits = audio(900)
        assert await transcoder.transcode_if_needed(fits, tmp_path) is fits
        assert fake_exec["processes"] == []

        result = await transcoder.transcode_if_needed(audio(901), tmp_path)

        assert result.size_bytes == 100
        assert len(fake_exec["processes"]) == 1

    def test_threshold_from_settings_respects_inline_limit(self, test_settings):
        transcoder = AudioTranscoder.from_settings(test_settings)

        inline_limit = test_settings.gemini.MODEL_INLINE_PAYLOAD_LIMIT
        assert transcoder.threshold_bytes == min(
            test_settings.media.TRANSCODE_THRESHOLD_BYTES, 3 * (inline_limit // 4)
        )
        assert encoded_payload_size(transcoder.threshold_bytes) <= inline_limit
        assert encoded_payload_size(transcoder.threshold_bytes + 1) > inline_limit

    def test_timeout_scales_with_size(self):
        transcoder = AudioTranscoder(timeout_base=30, timeout_per_mb=2)

        assert transcoder.timeout_for(0) == 30
        assert transcoder.timeout_for(50 * 1024 * 1024) == 130


@pytest.mark.unit
class TestCommand:

    def test_speech_profile(self):
        argv = build_transcode_command("ffmpeg", Path("/w/in.mp3"), Path("/w/out.mp3"))

        assert argv[0] == "ffmpeg"
        assert argv[argv.index("-i") + 1] == "/w/in.mp3"
        assert argv[argv.index("-ac") + 1] == "1"
        assert argv[argv.index("-ar") + 1] == "16000"
        assert argv[argv.index("-b:a") + 1] == "32k"
        assert "-vn" in argv
        assert argv[-1] == "/w/out.mp3"

    @pytest.mark.asyncio
    async def test_custom_binary_used(self, fake_exec, tmp_path):
        transcoder = AudioTranscoder(threshold_bytes=THRESHOLD, ffmpeg_binary="/opt/ffmpeg/bin/ffmpeg")

        await transcoder.transcode_if_needed(audio(THRESHOLD * 2), tmp_path)

        assert fake_exec["processes"][0].argv[0] == "/opt/ffmpeg/bin/ffmpeg"


@pytest.mark.unit
class TestFailures:
    """No silent pass-through of an oversized buffer."""

    @pytest.mark.asyncio
    async def test_nonzero_exit(self, fake_exec, tmp_path):
        fake_exec["options"] = {"returncode": 1, "stderr": b"line one\nInvalid data found", "output_size": None}

        with pytest.raises(TranscodeError) as exc_info:
            await AudioTranscoder(threshold_bytes=THRESHOLD).transcode_if_needed(audio(THRESHOLD * 2), tmp_path)
        assert "Invalid data found" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_missing_binary(self, fake_exec, tmp_path):
        fake_exec["error"] = FileNotFoundError("ffmpeg")

        with pytest.raises(TranscodeError):
            await AudioTranscoder(threshold_bytes=THRESHOLD).transcode_if_needed(audio(THRESHOLD * 2), tmp_path)

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, fake_exec, tmp_path):
        fake_exec["options"] = {"delay": 5.0}
        transcoder = AudioTranscoder(threshold_bytes=THRESHOLD, timeout_base=0.05, timeout_per_mb=0)

        with pytest.raises(TranscodeError):
            await transcoder.transcode_if_needed(audio(THRESHOLD * 2), tmp_path)
        assert fake_exec["processes"][0].killed is True

    @pytest.mark.asyncio
    async def test_empty_output(self, fake_exec, tmp_path):
        fake_exec["options"] = {"output_size": 0}

        with pytest.raises(TranscodeError):
            await AudioTranscoder(threshold_bytes=THRESHOLD).transcode_if_needed(audio(THRESHOLD * 2), tmp_path)

    @pytest.mark.asyncio
    async def test_output_not_smaller(self, fake_exec, tmp_path):
        fake_exec["options"] = {"output_size": THRESHOLD * 2}

        with pytest.raises(TranscodeError):
            await AudioTranscoder(threshold_bytes=THRESHOLD).transcode_if_needed(audio(THRESHOLD * 2), tmp_path)

    @pytest.mark.asyncio
    async def test_output_still_too_large_for_inline(self, fake_exec, tmp_path):
        fake_exec["options"] = {"output_size": 850}
        transcoder = AudioTranscoder(threshold_bytes=THRESHOLD, inline_payload_limit=1000)

        with pytest.raises(PayloadTooLargeError) as exc_info:
            await transcoder.transcode_if_needed(audio(THRESHOLD * 2), tmp_path)
        assert exc_info.value.details["encoded_bytes"] == 1136
