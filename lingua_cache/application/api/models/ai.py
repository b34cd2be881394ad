"""
AI API Models
=============

Request bodies and response envelopes for the /api/ai endpoints.

The request models are deliberately lenient (most fields optional): the
business rules ("at least 2 options", "question required unless imageUrl")
live in AIResultService so that HTTP callers and in-process callers are held
to the same rules and get the same ValidationError messages.

Wire format is camelCase (correctAnswer, imageUrl, audioUrl, episodeId);
snake_case names are accepted as well.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# ============================================================================
# REQUEST MODELS
# ============================================================================


class _RequestModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class AnalyzeQuestionRequest(_RequestModel):
    """POST /api/ai/analyze-question"""

    question: str | None = Field(default=None, description="Question text (optional with imageUrl)")
    options: list[str] = Field(default_factory=list, description="Answer options, at least 2")
    correct_answer: int | None = Field(default=None, alias="correctAnswer", description="Zero-based index")
    type: str | None = Field(default=None, description="Question type, e.g. 'reading'")
    image_url: str | None = Field(default=None, alias="imageUrl")
    language: str | None = Field(default=None, description="Output language: zh, ko, en, vi")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "question": "다음 빈칸에 들어갈 가장 알맞은 것을 고르십시오.",
                "options": ["가고", "가서", "가면", "가니까"],
                "correctAnswer": 1,
                "type": "grammar",
                "language": "zh",
            }
        },
    )


class AnalyzeSentenceRequest(_RequestModel):
    """POST /api/ai/analyze-sentence"""

    sentence: str | None = None
    context: str | None = None
    language: str | None = None


class TranscriptRequest(_RequestModel):
    """POST /api/ai/transcript"""

    audio_url: str | None = Field(default=None, alias="audioUrl")
    episode_id: str | None = Field(default=None, alias="episodeId")
    language: str | None = None


# ============================================================================
# RESPONSE MODELS
# ============================================================================


class SuccessResponse(BaseModel):
    success: bool = True
    data: dict[str, Any]


class TranscriptLookupResponse(BaseModel):
    success: bool = True
    exists: bool
    data: dict[str, Any] | None = None


class TranscriptDeleteResponse(BaseModel):
    success: bool = True
    message: str
    deleted: bool


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    success: bool = False
    error: str
    code: str
