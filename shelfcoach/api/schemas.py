"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from shelfcoach.domain.entities import (
    AbandonmentReason,
    ChallengeDecision,
    CompletionFeeling,
    ConfidenceLevel,
    EmotionalState,
    Genre,
    InsightCategory,
    ReadingStatus,
    RecommendationType,
    SampleUnit,
)


# ---------------------------------------------------------------------------
# Books
# ---------------------------------------------------------------------------
class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    author: Optional[str] = Field(None, max_length=255)
    page_count: int = Field(..., gt=0)
    genre: Genre
    why_started: Optional[str] = None


class BookResponse(BaseModel):
    id: UUID
    title: str
    author: Optional[str] = None
    page_count: int
    genre: Genre
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReadingInstanceResponse(BaseModel):
    id: UUID
    book_id: UUID
    status: ReadingStatus
    current_page: int
    why_started: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookWithInstanceResponse(BaseModel):
    book: BookResponse
    active_instance: Optional[ReadingInstanceResponse] = None


class BookListResponse(BaseModel):
    books: list[BookWithInstanceResponse]
    total: int


# ---------------------------------------------------------------------------
# Reading lifecycle
# ---------------------------------------------------------------------------
class StartReadingRequest(BaseModel):
    why_started: Optional[str] = None


class ProgressUpdateRequest(BaseModel):
    current_page: int = Field(..., ge=0)


class AbandonRequest(BaseModel):
    page_abandoned: int = Field(..., gt=0)
    primary_reason: AbandonmentReason
    emotional_state: EmotionalState
    notes: Optional[str] = None


class AbandonmentEventResponse(BaseModel):
    id: UUID
    reading_instance_id: UUID
    abandoned_at: datetime
    page_abandoned: int
    percent_complete: float
    primary_reason: AbandonmentReason
    emotional_state: EmotionalState
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CompleteRequest(BaseModel):
    completion_feeling: CompletionFeeling
    almost_quit: bool = False
    almost_quit_page: Optional[int] = Field(None, gt=0)

    @model_validator(mode="after")
    def _page_only_when_almost_quit(self) -> "CompleteRequest":
        if self.almost_quit and self.almost_quit_page is None:
            raise ValueError("almost_quit_page is required when almost_quit is true")
        return self


class CompletionEventResponse(BaseModel):
    id: UUID
    reading_instance_id: UUID
    completed_at: datetime
    completion_feeling: CompletionFeeling
    almost_quit: bool
    almost_quit_page: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Coaching
# ---------------------------------------------------------------------------
class CoachingResponse(BaseModel):
    type: RecommendationType
    message: str
    confidence: ConfidenceLevel
    sample_size: int
    reasoning: str
    target_page: Optional[int] = Field(None, description="push_to_page only")
    abandonment_rate: Optional[int] = Field(None, description="quit_now only (percent)")
    typical_range: Optional[str] = Field(None, description="quit_now only, e.g. 30–40%")

    model_config = ConfigDict(from_attributes=True)


class ChallengeRequest(BaseModel):
    current_page: int = Field(..., ge=0)
    doubt_reason: str = Field(..., min_length=1)


class ChallengeResponse(BaseModel):
    id: UUID
    reading_instance_id: UUID
    challenged_at: datetime
    current_page: int
    doubt_reason: str
    system_recommendation: RecommendationType
    recommendation_details: Optional[str] = None
    user_decision: Optional[ChallengeDecision] = None

    model_config = ConfigDict(from_attributes=True)


class ChallengeWithCoachingResponse(BaseModel):
    challenge: ChallengeResponse
    coaching: CoachingResponse


class DecisionRequest(BaseModel):
    decision: ChallengeDecision


class ReadingAttemptResponse(BaseModel):
    """One reading instance with its outcome event and logged challenges."""

    instance: ReadingInstanceResponse
    abandonment: Optional[AbandonmentEventResponse] = None
    completion: Optional[CompletionEventResponse] = None
    challenges: list[ChallengeResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------
class InsightResponse(BaseModel):
    id: str
    text: str
    category: InsightCategory
    confidence: ConfidenceLevel
    sample_size: int
    unit: SampleUnit

    model_config = ConfigDict(from_attributes=True)


class InsightListResponse(BaseModel):
    insights: list[InsightResponse]
    total: int
