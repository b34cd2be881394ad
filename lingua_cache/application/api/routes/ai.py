"""
AI Routes
=========

HTTP surface over AIResultService.

    POST   /analyze-question         TOPIK question explanation
    POST   /analyze-sentence         sentence breakdown
    POST   /transcript               episode transcript (download → transcode → model)
    GET    /transcript/{episode_id}  cache-only transcript lookup
    DELETE /transcript/{episode_id}  transcript invalidation

All routes are mounted under API_BASE_PATH (default /api/ai). Domain errors
are raised, not caught here: the exception handlers in create_app turn them
into the {"success": false, "error", "code"} envelope.
"""

from fastapi import APIRouter

from lingua_cache.application.api.dependencies import AIResultServiceDep
from lingua_cache.application.api.models.ai import (
    AnalyzeQuestionRequest,
    AnalyzeSentenceRequest,
    SuccessResponse,
    TranscriptDeleteResponse,
    TranscriptLookupResponse,
    TranscriptRequest,
)
from lingua_cache.core.config.constants import Stage
from lingua_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

router = APIRouter(tags=["AI"])


# ============================================================================
# ANALYSIS
# ============================================================================


@router.post("/analyze-question", response_model=SuccessResponse)
async def analyze_question(body: AnalyzeQuestionRequest, service: AIResultServiceDep):
    """Explain why the correct option is right and the others are wrong."""
    outcome = await service.analyze_question(
        question=body.question,
        options=body.options,
        correct_answer_index=body.correct_answer,
        question_type=body.type,
        image_url=body.image_url,
        language=body.language,
    )
    return SuccessResponse(data=outcome.to_response())


@router.post("/analyze-sentence", response_model=SuccessResponse)
async def analyze_sentence(body: AnalyzeSentenceRequest, service: AIResultServiceDep):
    """Vocabulary, grammar and nuance of one sentence."""
    outcome = await service.analyze_sentence(
        sentence=body.sentence,
        context=body.context,
        language=body.language,
    )
    return SuccessResponse(data=outcome.to_response())


# ============================================================================
# TRANSCRIPTS
# ============================================================================


@router.post("/transcript", response_model=SuccessResponse)
async def generate_transcript(body: TranscriptRequest, service: AIResultServiceDep):
    """
    Generate (or return the cached) transcript of an episode.

    Long episodes can take minutes on a cache miss; concurrent requests for
    the same episode share one computation.
    """
    log_stage(logger, Stage.REQUEST_VALIDATION, "Transcript requested", episode_id=body.episode_id)
    outcome = await service.generate_transcript(
        audio_url=body.audio_url,
        episode_id=body.episode_id,
        language=body.language,
    )
    return SuccessResponse(data=outcome.to_response())


@router.get("/transcript/{episode_id}", response_model=TranscriptLookupResponse, response_model_exclude_none=True)
async def get_transcript(episode_id: str, service: AIResultServiceDep):
    """Cache-only lookup; never starts a transcription."""
    transcript = await service.get_cached_transcript(episode_id)
    if transcript is None:
        return TranscriptLookupResponse(exists=False)
    return TranscriptLookupResponse(exists=True, data=transcript.to_payload())


@router.delete("/transcript/{episode_id}", response_model=TranscriptDeleteResponse)
async def delete_transcript(episode_id: str, service: AIResultServiceDep):
    deleted = await service.invalidate_transcript(episode_id)
    message = "Transcript cache deleted" if deleted else "Transcript removed from memory; object store unavailable"
    return TranscriptDeleteResponse(message=message, deleted=deleted)
