"""Domain-level application service interfaces (ports).

These abstract classes define the contracts that the API layer depends on.
Concrete implementations live in ``shelfcoach/services/`` and are wired
together by the composition root in ``shelfcoach/core/dependencies.py``.

Route handlers import from ``shelfcoach.domain`` only, so every service can
be replaced with a test double via FastAPI's ``app.dependency_overrides``.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from shelfcoach.domain.entities import (
    AbandonmentEvent,
    AbandonmentReason,
    Book,
    Challenge,
    ChallengeDecision,
    CoachingRecommendation,
    CompletionEvent,
    CompletionFeeling,
    EmotionalState,
    Genre,
    Insight,
    ReadingAttempt,
    ReadingInstance,
)


class IReadingService(ABC):

    @abstractmethod
    async def add_book(
        self,
        title: str,
        page_count: int,
        genre: Genre,
        author: Optional[str] = None,
        why_started: Optional[str] = None,
    ) -> tuple[Book, ReadingInstance]:
        """Record a new book and start reading it straight away."""
        pass

    @abstractmethod
    async def get_book(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_books(self) -> list[tuple[Book, Optional[ReadingInstance]]]:
        """Every book paired with its active instance (or ``None``)."""
        pass

    @abstractmethod
    async def get_history(self, book_id: UUID) -> list[ReadingAttempt]:
        """Every attempt at the book, newest first, with its outcome and challenges."""
        pass

    @abstractmethod
    async def start_reading(
        self, book_id: UUID, why_started: Optional[str] = None
    ) -> ReadingInstance:
        pass

    @abstractmethod
    async def update_progress(self, book_id: UUID, current_page: int) -> ReadingInstance:
        pass

    @abstractmethod
    async def abandon_book(
        self,
        book_id: UUID,
        page_abandoned: int,
        primary_reason: AbandonmentReason,
        emotional_state: EmotionalState,
        notes: Optional[str] = None,
    ) -> AbandonmentEvent:
        pass

    @abstractmethod
    async def complete_book(
        self,
        book_id: UUID,
        completion_feeling: CompletionFeeling,
        almost_quit: bool = False,
        almost_quit_page: Optional[int] = None,
    ) -> CompletionEvent:
        pass


class ICoachingService(ABC):

    @abstractmethod
    async def get_recommendation(
        self, book_id: UUID, current_page: Optional[int] = None
    ) -> CoachingRecommendation:
        """Answer "should I quit this book now?" without recording anything.

        ``current_page`` defaults to the active instance's page.
        """
        pass

    @abstractmethod
    async def challenge(
        self, book_id: UUID, current_page: int, doubt_reason: str
    ) -> tuple[Challenge, CoachingRecommendation]:
        """Like ``get_recommendation`` but also logs the moment of doubt."""
        pass

    @abstractmethod
    async def record_decision(
        self, challenge_id: UUID, decision: ChallengeDecision
    ) -> Challenge:
        pass


class IInsightService(ABC):

    @abstractmethod
    async def get_insights(self) -> list[Insight]:
        pass
