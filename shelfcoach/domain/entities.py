"""Domain entities for ShelfCoach."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID


# ---------------------------------------------------------------------------
# Closed vocabularies
# ---------------------------------------------------------------------------
class Genre(str, Enum):
    FICTION = "Fiction"
    MYSTERY = "Mystery"
    THRILLER = "Thriller"
    SCIENCE_FICTION = "Science Fiction"
    FANTASY = "Fantasy"
    ROMANCE = "Romance"
    LITERARY_FICTION = "Literary Fiction"
    HISTORICAL_FICTION = "Historical Fiction"
    HORROR = "Horror"
    NON_FICTION = "Non-Fiction"
    BIOGRAPHY = "Biography"
    MEMOIR = "Memoir"
    SELF_HELP = "Self-Help"
    BUSINESS = "Business"
    HISTORY = "History"
    SCIENCE = "Science"
    PHILOSOPHY = "Philosophy"
    POETRY = "Poetry"


class ReadingStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class AbandonmentReason(str, Enum):
    BORING = "boring"
    TOO_DIFFICULT = "too_difficult"
    NOT_WHAT_EXPECTED = "not_what_expected"
    WRONG_TIMING = "wrong_timing"
    BETTER_OPTION_APPEARED = "better_option_appeared"
    WRITING_STYLE = "writing_style"
    PACING_TOO_SLOW = "pacing_too_slow"
    CONTENT_UNCOMFORTABLE = "content_uncomfortable"
    OTHER = "other"


class EmotionalState(str, Enum):
    RELIEVED = "relieved"
    GUILTY = "guilty"
    NEUTRAL = "neutral"


class CompletionFeeling(str, Enum):
    GLAD = "glad"
    RELIEVED = "relieved"
    DISAPPOINTED = "disappointed"
    NEUTRAL = "neutral"


class ConfidenceLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RecommendationType(str, Enum):
    QUIT_NOW = "quit_now"
    PUSH_TO_PAGE = "push_to_page"
    INSUFFICIENT_DATA = "insufficient_data"


class InsightCategory(str, Enum):
    GENERAL = "general"
    ABANDONMENT = "abandonment"
    COMPLETION = "completion"
    GENRE = "genre"
    REASONS = "reasons"


class SampleUnit(str, Enum):
    BOOKS = "books"
    EVENTS = "events"


class ChallengeDecision(str, Enum):
    CONTINUED = "continued"
    QUIT = "quit"


# ---------------------------------------------------------------------------
# Event-store records
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Book:
    id: UUID
    title: str
    page_count: int
    genre: Genre
    author: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ReadingInstance:
    """One attempt at reading a book, from start to completion or abandonment."""

    id: UUID
    book_id: UUID
    status: ReadingStatus = ReadingStatus.IN_PROGRESS
    current_page: int = 0
    why_started: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.utcnow)
    ended_at: Optional[datetime] = None  # None while in progress


@dataclass
class AbandonmentEvent:
    id: UUID
    reading_instance_id: UUID
    page_abandoned: int
    percent_complete: float  # 0–100
    primary_reason: AbandonmentReason
    emotional_state: EmotionalState
    notes: Optional[str] = None
    abandoned_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class CompletionEvent:
    id: UUID
    reading_instance_id: UUID
    completion_feeling: CompletionFeeling
    almost_quit: bool = False
    almost_quit_page: Optional[int] = None  # only set when almost_quit
    completed_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class Challenge:
    """A logged "should I quit?" moment.

    Stores what the coaching engine said at the time and, once the reader
    has made up their mind, what they actually did.
    """

    id: UUID
    reading_instance_id: UUID
    current_page: int
    doubt_reason: str
    system_recommendation: RecommendationType
    recommendation_details: Optional[str] = None
    user_decision: Optional[ChallengeDecision] = None
    challenged_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class ReadingAttempt:
    """One reading instance together with the records hanging off it."""

    instance: ReadingInstance
    abandonment: Optional[AbandonmentEvent] = None
    completion: Optional[CompletionEvent] = None
    challenges: list[Challenge] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Engine output (ephemeral, never persisted by the engines)
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CoachingRecommendation:
    type: RecommendationType
    message: str
    confidence: ConfidenceLevel
    sample_size: int
    reasoning: str
    target_page: Optional[int] = None  # push_to_page only
    abandonment_rate: Optional[int] = None  # quit_now only, percent
    typical_range: Optional[str] = None  # quit_now only, e.g. "30–40%"


@dataclass(frozen=True)
class Insight:
    id: str
    text: str
    category: InsightCategory
    confidence: ConfidenceLevel
    sample_size: int
    unit: SampleUnit = SampleUnit.BOOKS
