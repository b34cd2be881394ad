"""
Multimodal Invoker

Builds the request for each result kind, attaches media inline, calls the
model and validates the answer.

Architecture:
    MultimodalInvoker
        ├── prompts          (one template per kind)
        ├── GeminiClient     (SDK call, timeout, error mapping)
        ├── MediaDownloader  (question images)
        └── response_parser  (fence strip, JSON decode, pydantic validation)

Inline payload guard:
    Media is sent base64-encoded inside the request body, so the encoded size
    4 * ceil(n / 3) must stay under MODEL_INLINE_PAYLOAD_LIMIT. Audio reaches
    this point already transcoded; the guard catches what the transcoder
    could not shrink enough.

Image questions degrade gracefully: if the image cannot be fetched, or the
image-bearing call fails, the question is analyzed from its text alone.
"""

import asyncio

from lingua_cache.core.config.constants import (
    DEFAULT_IMAGE_MIME,
    GEMINI_AUDIO_TIMEOUT,
    GEMINI_TEXT_TIMEOUT,
    IMAGE_MAX_BYTES,
    MODEL_INLINE_PAYLOAD_LIMIT,
    TRANSCRIPT_AUDIO_LANGUAGE,
    Stage,
)
from lingua_cache.core.exceptions import (
    MediaFetchError,
    ModelAuthenticationError,
    ModelInvocationError,
    ValidationError,
)
from lingua_cache.core.logging.logger import get_logger, log_stage
from lingua_cache.infrastructure.media.buffer import MediaBuffer, encoded_payload_size
from lingua_cache.infrastructure.media.downloader import MediaDownloader
from lingua_cache.llm.gemini_client import ContentPart, GeminiClient
from lingua_cache.llm.prompts import (
    build_question_prompt,
    build_sentence_prompt,
    build_transcript_prompt,
)
from lingua_cache.llm.response_parser import parse_result
from lingua_cache.models.results import QuestionAnalysis, ResultKind, SentenceAnalysis, Transcript

logger = get_logger(__name__)


class MultimodalInvoker:
    """
    One method per result kind; each returns a validated result model.

    STAGE-4: Model invocation
    STAGE-4.1: Response validation
    """

    def __init__(
        self,
        client: GeminiClient,
        downloader: MediaDownloader,
        inline_payload_limit: int = MODEL_INLINE_PAYLOAD_LIMIT,
        text_timeout: float = GEMINI_TEXT_TIMEOUT,
        audio_timeout: float = GEMINI_AUDIO_TIMEOUT,
        image_max_bytes: int = IMAGE_MAX_BYTES,
    ):
        self._client = client
        self._downloader = downloader
        self._inline_limit = inline_payload_limit
        self._text_timeout = text_timeout
        self._audio_timeout = audio_timeout
        self._image_max_bytes = image_max_bytes

    @classmethod
    def from_settings(cls, settings, client: GeminiClient, downloader: MediaDownloader) -> "MultimodalInvoker":
        return cls(
            client,
            downloader,
            inline_payload_limit=settings.gemini.MODEL_INLINE_PAYLOAD_LIMIT,
            text_timeout=settings.gemini.GEMINI_TEXT_TIMEOUT,
            audio_timeout=settings.gemini.GEMINI_AUDIO_TIMEOUT,
            image_max_bytes=settings.media.IMAGE_MAX_BYTES,
        )

    # -------------------------------------------------------------------------
    # Inline media
    # -------------------------------------------------------------------------

    def check_inline_payload(self, buffer: MediaBuffer) -> None:
        """
        Raises:
            ModelInvocationError: Encoded media would exceed the request limit
        """
        encoded = encoded_payload_size(buffer.size_bytes)
        if encoded > self._inline_limit:
            raise ModelInvocationError(
                f"Inline media is {encoded} bytes encoded, limit is {self._inline_limit}",
                details={
                    "size_bytes": buffer.size_bytes,
                    "encoded_bytes": encoded,
                    "limit": self._inline_limit,
                },
            )

    async def _inline_part(self, buffer: MediaBuffer) -> ContentPart:
        self.check_inline_payload(buffer)
        data = buffer.data if buffer.data is not None else await asyncio.to_thread(buffer.read_bytes)
        return {"mime_type": buffer.mime_type, "data": data}

    async def _fetch_image(self, image_url: str) -> MediaBuffer | None:
        try:
            return await self._downloader.fetch(image_url, self._image_max_bytes, DEFAULT_IMAGE_MIME)
        except (MediaFetchError, ValidationError) as e:
            log_stage(
                logger, Stage.MEDIA_INGEST, "Question image unavailable, analyzing text only",
                level="warning", image_url=image_url, error=e.message,
            )
            return None

    # -------------------------------------------------------------------------
    # Result kinds
    # -------------------------------------------------------------------------

    async def analyze_question(
        self,
        question: str,
        options: list[str],
        correct_answer_index: int,
        question_type: str | None,
        language: str,
        image_url: str | None = None,
    ) -> QuestionAnalysis:
        """
        Analyze a TOPIK question, with its image when one is given.

        Raises:
            ModelInvocationError: Text-only call failed
            ModelResponseMalformed: Answer did not validate
        """
        image = await self._fetch_image(image_url) if image_url else None

        if image is not None:
            prompt = build_question_prompt(
                question, options, correct_answer_index, question_type, language, has_image=True
            )
            try:
                parts = [prompt, await self._inline_part(image)]
                raw = await self._client.generate(parts, timeout=self._text_timeout)
            except ModelAuthenticationError:
                raise
            except ModelInvocationError as e:
                log_stage(
                    logger, Stage.MODEL_INVOKE, "Image call failed, retrying text only",
                    level="warning", error=e.message,
                )
            else:
                return parse_result(ResultKind.QUESTION, raw)

        prompt = build_question_prompt(question, options, correct_answer_index, question_type, language)
        raw = await self._client.generate([prompt], timeout=self._text_timeout)
        return parse_result(ResultKind.QUESTION, raw)

    async def analyze_sentence(self, sentence: str, context: str | None, language: str) -> SentenceAnalysis:
        prompt = build_sentence_prompt(sentence, context, language)
        raw = await self._client.generate([prompt], timeout=self._text_timeout)
        return parse_result(ResultKind.SENTENCE, raw)

    async def transcribe(self, audio: MediaBuffer, language: str) -> Transcript:
        """
        Transcribe (and translate) an audio buffer.

        The buffer must already be within the inline limit; see AudioTranscoder.
        """
        parts = [build_transcript_prompt(language), await self._inline_part(audio)]
        log_stage(
            logger, Stage.MODEL_INVOKE, "Sending audio to model",
            size_bytes=audio.size_bytes, mime_type=audio.mime_type,
        )
        raw = await self._client.generate(parts, timeout=self._audio_timeout)
        return parse_result(
            ResultKind.TRANSCRIPT, raw,
            language=TRANSCRIPT_AUDIO_LANGUAGE, translation_language=language,
        )
