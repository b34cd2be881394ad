"""
Structured Result Models

Explicit result types for each request kind. The remote model's JSON has no
enforced schema, so every response is parsed into one of these models right
after the call and rejected when it does not conform.

Wire format uses camelCase aliases (``keyPoint``, ``wrongOptions``,
``startSeconds`` ...) to stay compatible with the JSON already stored under
``ai-cache/`` and ``transcripts/``.
"""

from enum import Enum
from typing import Generic, Literal, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from lingua_cache.core.config.constants import (
    QUESTION_CACHE_PREFIX,
    SENTENCE_CACHE_PREFIX,
    TRANSCRIPT_AUDIO_LANGUAGE,
    TRANSCRIPT_CACHE_PREFIX,
)


class _ResultModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    def to_payload(self) -> dict:
        """JSON-compatible dict in wire (camelCase) form."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============================================================================
# Question analysis
# ============================================================================


class QuestionAnalysis(_ResultModel):
    """Explanation of a TOPIK exam question."""

    translation: str
    key_point: str = Field(alias="keyPoint")
    analysis: str
    wrong_options: dict[str, str] = Field(default_factory=dict, alias="wrongOptions")

    @field_validator("wrong_options", mode="before")
    @classmethod
    def normalize_option_keys(cls, v):
        """Option indices arrive as ints or strings; store them as 1-based strings."""
        if not isinstance(v, dict):
            raise ValueError("wrongOptions must be an object")
        normalized = {}
        for key, value in v.items():
            key_str = str(key).strip()
            if not key_str.isdigit():
                raise ValueError(f"wrongOptions key {key!r} is not an option index")
            normalized[key_str] = value
        return normalized


# ============================================================================
# Sentence analysis
# ============================================================================


class VocabularyItem(_ResultModel):
    word: str
    root: str
    meaning: str
    # Older cached payloads and some model answers use "type"
    part_of_speech: str = Field(validation_alias=AliasChoices("partOfSpeech", "part_of_speech", "type"),
                                serialization_alias="partOfSpeech")


class GrammarPoint(_ResultModel):
    structure: str
    explanation: str


class SentenceAnalysis(_ResultModel):
    """Vocabulary, grammar and nuance breakdown of one sentence."""

    vocabulary: list[VocabularyItem] = Field(default_factory=list)
    grammar: list[GrammarPoint] = Field(default_factory=list)
    nuance: str


# ============================================================================
# Transcript
# ============================================================================


class TranscriptSegment(_ResultModel):
    start_seconds: float = Field(ge=0, alias="startSeconds")
    end_seconds: float = Field(ge=0, alias="endSeconds")
    text: str
    translation: str = ""

    @model_validator(mode="after")
    def check_bounds(self):
        if self.end_seconds < self.start_seconds:
            raise ValueError(
                f"segment ends ({self.end_seconds}) before it starts ({self.start_seconds})"
            )
        return self


class Transcript(_ResultModel):
    """
    Time-aligned transcript of an audio file.

    Invariant: segments are non-overlapping and ordered by start time.
    durationSeconds falls back to the end of the last segment.

    ``language`` is the spoken language of the audio; ``translationLanguage``
    is the language the segment translations were written in.
    """

    segments: list[TranscriptSegment]
    language: str = TRANSCRIPT_AUDIO_LANGUAGE
    translation_language: str | None = Field(default=None, alias="translationLanguage")
    duration_seconds: float | None = Field(default=None, ge=0, alias="durationSeconds")

    @model_validator(mode="after")
    def check_segments(self):
        previous_end = 0.0
        for index, segment in enumerate(self.segments):
            if segment.start_seconds < previous_end:
                raise ValueError(
                    f"segment {index} starts at {segment.start_seconds} "
                    f"before previous segment ends at {previous_end}"
                )
            previous_end = segment.end_seconds

        if self.duration_seconds is None:
            # frozen model: bypass __setattr__
            object.__setattr__(self, "duration_seconds", previous_end)
        return self


StructuredResult = QuestionAnalysis | SentenceAnalysis | Transcript


# ============================================================================
# Result kinds
# ============================================================================


class ResultKind(str, Enum):
    """Request kinds, each mapped to one result model and one key namespace."""

    QUESTION = "question"
    SENTENCE = "sentence"
    TRANSCRIPT = "transcript"

    @property
    def model(self) -> type[_ResultModel]:
        return _KIND_MODELS[self]

    @property
    def namespace(self) -> str:
        return _KIND_NAMESPACES[self]


_KIND_MODELS: dict[ResultKind, type[_ResultModel]] = {
    ResultKind.QUESTION: QuestionAnalysis,
    ResultKind.SENTENCE: SentenceAnalysis,
    ResultKind.TRANSCRIPT: Transcript,
}

_KIND_NAMESPACES: dict[ResultKind, str] = {
    ResultKind.QUESTION: QUESTION_CACHE_PREFIX,
    ResultKind.SENTENCE: SENTENCE_CACHE_PREFIX,
    ResultKind.TRANSCRIPT: TRANSCRIPT_CACHE_PREFIX,
}


# ============================================================================
# Outcome envelope
# ============================================================================

ResultT = TypeVar("ResultT", QuestionAnalysis, SentenceAnalysis, Transcript)

CacheSource = Literal["l1", "l2", "computed", "shared"]


class CachedResult(BaseModel, Generic[ResultT]):
    """
    What the orchestrator hands back to callers.

    ``cached`` is True when the payload came from L1 or L2; ``source`` tells
    which tier (or "computed" / "shared" when this or a concurrent request
    ran the model).
    """

    model_config = ConfigDict(frozen=True)

    result: ResultT
    cached: bool
    source: CacheSource

    def to_response(self) -> dict:
        """Payload merged with the ``cached`` flag, as the HTTP API returns it."""
        return {**self.result.to_payload(), "cached": self.cached}
