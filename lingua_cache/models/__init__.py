from lingua_cache.models.results import (
    CachedResult,
    GrammarPoint,
    QuestionAnalysis,
    ResultKind,
    SentenceAnalysis,
    StructuredResult,
    Transcript,
    TranscriptSegment,
    VocabularyItem,
)

__all__ = [
    "CachedResult",
    "GrammarPoint",
    "QuestionAnalysis",
    "ResultKind",
    "SentenceAnalysis",
    "StructuredResult",
    "Transcript",
    "TranscriptSegment",
    "VocabularyItem",
]
