"""
AI Result Service

Cache-aside orchestration for question analysis, sentence analysis and
episode transcripts.

State machine (per request):

    START
      → VALIDATE → FINGERPRINT
      → L1_CHECK ──hit──────────────────────────────→ RETURN (cached)
      → L2_CHECK ──hit──→ POPULATE_L1 ──────────────→ RETURN (cached)
      → COMPUTE
          [MEDIA_INGEST → TRANSCODE?]   (transcripts only)
          INVOKE → VALIDATE_RESULT
      → PERSIST_L2 → POPULATE_L1 ───────────────────→ RETURN (fresh)

Failure policy:
- Validation, ingestion, transcode and model errors abort the request and
  propagate; nothing is written to either tier
- Cache tier failures never abort a request (TwoTierCache degrades to
  "miss" / "skip population")
- Concurrent misses for one key share a single computation (SingleFlight)

Architectural Decision: One service object per process
- Built once in the FastAPI lifespan and injected into routes, so the L1
  map, the in-flight map and the SDK clients are shared by all requests
"""

from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from lingua_cache.core.config.constants import (
    DEFAULT_AUDIO_MIME,
    DEFAULT_LANGUAGE,
    IMAGE_ONLY_QUESTION_PLACEHOLDER,
    SUPPORTED_LANGUAGES,
    Stage,
)
from lingua_cache.core.config.settings import Settings, get_settings
from lingua_cache.core.exceptions import CacheBackendError, ValidationError
from lingua_cache.core.logging.logger import get_logger, log_stage
from lingua_cache.infrastructure.cache.cache_manager import TwoTierCache
from lingua_cache.infrastructure.cache.fingerprint import (
    object_key,
    question_fingerprint,
    sentence_fingerprint,
    snapshot_object_key,
    transcript_object_key,
)
from lingua_cache.infrastructure.media.buffer import media_workspace
from lingua_cache.infrastructure.media.downloader import MediaDownloader, validate_media_url
from lingua_cache.infrastructure.media.transcoder import AudioTranscoder
from lingua_cache.llm.invoker import MultimodalInvoker
from lingua_cache.models.results import (
    CachedResult,
    QuestionAnalysis,
    ResultKind,
    SentenceAnalysis,
    StructuredResult,
    Transcript,
)
from lingua_cache.services.single_flight import SingleFlight

logger = get_logger(__name__)


# ============================================================================
# Input validation
# ============================================================================


def validate_language(language: str | None) -> str:
    """Output language tag; None or a blank string means the default."""
    if language is None or not language.strip():
        return DEFAULT_LANGUAGE
    language = language.strip()
    if language not in SUPPORTED_LANGUAGES:
        raise ValidationError(
            f"language must be one of {sorted(SUPPORTED_LANGUAGES)}",
            details={"language": language},
        )
    return language


def validate_question_input(
    question: str | None,
    options: list[str],
    correct_answer_index: int,
    image_url: str | None,
) -> tuple[str, list[str]]:
    """
    Returns:
        (question text, stripped options)

    An image-only question gets a placeholder text so its fingerprint and
    prompt are still well-formed.
    """
    if question is not None and not isinstance(question, str):
        raise ValidationError("question must be a string")
    question_text = (question or "").strip()
    if not question_text:
        if not image_url:
            raise ValidationError("question is required (unless imageUrl is provided) and must be a string")
        question_text = IMAGE_ONLY_QUESTION_PLACEHOLDER

    if not isinstance(options, list) or len(options) < 2:
        raise ValidationError("options must be an array with at least 2 items")
    if not all(isinstance(option, str) for option in options):
        raise ValidationError("options must all be strings")
    cleaned_options = [option.strip() for option in options]

    if isinstance(correct_answer_index, bool) or not isinstance(correct_answer_index, int):
        raise ValidationError("correctAnswer must be an integer")
    if not 0 <= correct_answer_index < len(cleaned_options):
        raise ValidationError(
            f"correctAnswer must be between 0 and {len(cleaned_options) - 1}",
            details={"correct_answer_index": correct_answer_index, "options": len(cleaned_options)},
        )

    return question_text, cleaned_options


# ============================================================================
# Service
# ============================================================================


class AIResultService:
    """
    Public entry point for all AI-derived results.

    Usage:
        service = AIResultService(cache, invoker, downloader, transcoder, settings)

        outcome = await service.analyze_question(
            question="다음 빈칸에 알맞은 것을 고르십시오.",
            options=["가", "나", "다", "라"],
            correct_answer_index=1,
        )
        outcome.cached       # False the first time, True afterwards
        outcome.to_response()
    """

    def __init__(
        self,
        cache: TwoTierCache,
        invoker: MultimodalInvoker,
        downloader: MediaDownloader,
        transcoder: AudioTranscoder,
        settings: Settings | None = None,
        single_flight: SingleFlight | None = None,
    ):
        settings = settings or get_settings()
        self._cache = cache
        self._invoker = invoker
        self._downloader = downloader
        self._transcoder = transcoder
        self._audio_max_bytes = settings.media.AUDIO_MAX_BYTES
        self._snapshot_ttl = settings.cache.SNAPSHOT_CACHE_TTL
        self._flight = single_flight or SingleFlight()
        self._single_flight_enabled = settings.cache.SINGLE_FLIGHT_ENABLED

    @property
    def cache(self) -> TwoTierCache:
        return self._cache

    # -------------------------------------------------------------------------
    # Public operations
    # -------------------------------------------------------------------------

    async def analyze_question(
        self,
        question: str | None,
        options: list[str],
        correct_answer_index: int,
        question_type: str | None = None,
        image_url: str | None = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> CachedResult[QuestionAnalysis]:
        """
        Explain a TOPIK question (text, optionally with an image).

        ``correct_answer_index`` is zero-based.

        Raises:
            ValidationError: Bad input
            ModelInvocationError / ModelResponseMalformed: Compute failed
        """
        language = validate_language(language)
        image_url = validate_media_url(image_url) if image_url else None
        question_text, options = validate_question_input(question, options, correct_answer_index, image_url)
        question_type = (question_type or "").strip() or None

        key = object_key(
            ResultKind.QUESTION,
            question_fingerprint(question_text, options, correct_answer_index, question_type, language, image_url),
        )
        log_stage(logger, Stage.FINGERPRINT, "Question fingerprinted", cache_key=key, language=language)

        async def compute() -> QuestionAnalysis:
            return await self._invoker.analyze_question(
                question_text, options, correct_answer_index, question_type, language, image_url=image_url
            )

        return await self._cache_aside(ResultKind.QUESTION, key, compute)

    async def analyze_sentence(
        self,
        sentence: str,
        context: str | None = None,
        language: str = DEFAULT_LANGUAGE,
    ) -> CachedResult[SentenceAnalysis]:
        """Break a sentence into vocabulary, grammar and nuance."""
        language = validate_language(language)
        if not isinstance(sentence, str) or not sentence.strip():
            raise ValidationError("sentence is required")
        sentence = sentence.strip()
        context = context.strip() if isinstance(context, str) and context.strip() else None

        key = object_key(ResultKind.SENTENCE, sentence_fingerprint(sentence, context, language))
        log_stage(logger, Stage.FINGERPRINT, "Sentence fingerprinted", cache_key=key, language=language)

        async def compute() -> SentenceAnalysis:
            return await self._invoker.analyze_sentence(sentence, context, language)

        return await self._cache_aside(ResultKind.SENTENCE, key, compute)

    async def generate_transcript(
        self,
        audio_url: str,
        episode_id: str,
        language: str = DEFAULT_LANGUAGE,
    ) -> CachedResult[Transcript]:
        """
        Transcribe an episode, keyed by its episode id.

        On a miss: download (≤ AUDIO_MAX_BYTES) → transcode if over the
        threshold → transcribe → validate. Scratch files are removed on every
        exit path.

        Raises:
            ValidationError: Bad URL, episode id or language
            PayloadTooLargeError / MediaFetchError: Download failed
            TranscodeError: Audio could not be shrunk
            ModelInvocationError / ModelResponseMalformed: Model failed
        """
        language = validate_language(language)
        audio_url = validate_media_url(audio_url)
        key = transcript_object_key(episode_id)

        async def compute() -> Transcript:
            async with media_workspace(prefix="lingua_transcript_") as workdir:
                audio = await self._downloader.download_to_file(
                    audio_url, workdir, self._audio_max_bytes, DEFAULT_AUDIO_MIME
                )
                audio = await self._transcoder.transcode_if_needed(audio, workdir)
                return await self._invoker.transcribe(audio, language)

        return await self._cache_aside(ResultKind.TRANSCRIPT, key, compute)

    async def get_cached_transcript(self, episode_id: str) -> Transcript | None:
        """Cache-only lookup; never downloads or calls the model."""
        key = transcript_object_key(episode_id)
        value, _ = await self._cache.get(key)
        if value is None:
            return None
        return self._load(ResultKind.TRANSCRIPT, key, value)

    async def invalidate_transcript(self, episode_id: str) -> bool:
        """
        Remove a transcript from both tiers.

        Returns:
            False when the object store could not be reached (L1 is cleared anyway)
        """
        key = transcript_object_key(episode_id)
        log_stage(logger, Stage.CACHE_INVALIDATION, "Invalidating transcript", episode_id=episode_id)
        return await self._cache.delete(key)

    async def publish_snapshot(self, name: str, payload: dict[str, Any], ttl_seconds: int | None = None) -> bool:
        """
        Write a self-expiring derived artifact (e.g. a trending list) to L2.

        Snapshots are read by CDN clients straight from the object store, so
        L1 is not involved. Best-effort like every other cache write.
        """
        key = snapshot_object_key(name)
        ttl = ttl_seconds or self._snapshot_ttl
        l2 = self._cache.l2
        if l2 is None:
            log_stage(logger, Stage.OBJECT_STORE, "No object store, snapshot skipped", level="warning", key=key)
            return False
        try:
            await l2.put_json_with_ttl(key, payload, ttl)
        except CacheBackendError as e:
            log_stage(
                logger, Stage.OBJECT_STORE, "Snapshot publish failed",
                level="warning", key=key, error=e.message,
            )
            return False
        log_stage(logger, Stage.CACHE_POPULATION, "Snapshot published", key=key, ttl_seconds=ttl)
        return True

    def stats(self) -> dict[str, Any]:
        return {**self._cache.stats(), "in_flight": len(self._flight)}

    async def health_check(self) -> dict[str, Any]:
        return await self._cache.health_check()

    # -------------------------------------------------------------------------
    # Cache-aside core
    # -------------------------------------------------------------------------

    async def _cache_aside(
        self,
        kind: ResultKind,
        key: str,
        compute: Callable[[], Awaitable[StructuredResult]],
    ) -> CachedResult:
        value, source = await self._cache.get(key)
        if value is not None:
            result = self._load(kind, key, value)
            if result is not None:
                return CachedResult(result=result, cached=True, source=source)

        if self._single_flight_enabled:
            result, shared = await self._flight.run(key, lambda: self._compute_and_store(kind, key, compute))
        else:
            result, shared = await self._compute_and_store(kind, key, compute), False

        return CachedResult(result=result, cached=False, source="shared" if shared else "computed")

    async def _compute_and_store(
        self,
        kind: ResultKind,
        key: str,
        compute: Callable[[], Awaitable[StructuredResult]],
    ) -> StructuredResult:
        log_stage(logger, Stage.MODEL_INVOKE, "Cache miss, computing", kind=kind.value, cache_key=key)
        result = await compute()
        # Only a fully validated result reaches this point
        await self._cache.set(key, result.to_payload())
        return result

    def _load(self, kind: ResultKind, key: str, value: dict[str, Any]) -> StructuredResult | None:
        """Validate a stored payload; an unreadable entry counts as a miss."""
        try:
            return kind.model.model_validate(value)
        except PydanticValidationError as e:
            log_stage(
                logger, Stage.L2_LOOKUP, "Stored entry failed validation, recomputing",
                level="warning", cache_key=key, errors=e.error_count(),
            )
            return None
