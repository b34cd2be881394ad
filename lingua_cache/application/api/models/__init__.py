from lingua_cache.application.api.models.ai import (
    AnalyzeQuestionRequest,
    AnalyzeSentenceRequest,
    ErrorResponse,
    SuccessResponse,
    TranscriptDeleteResponse,
    TranscriptLookupResponse,
    TranscriptRequest,
)

__all__ = [
    "AnalyzeQuestionRequest",
    "AnalyzeSentenceRequest",
    "ErrorResponse",
    "SuccessResponse",
    "TranscriptDeleteResponse",
    "TranscriptLookupResponse",
    "TranscriptRequest",
]
