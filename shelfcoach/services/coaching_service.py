"""Coaching service: loads history, runs the engine, logs challenges."""

import logging
from typing import Optional
from uuid import UUID, uuid4

from shelfcoach.domain.entities import (
    Book,
    Challenge,
    ChallengeDecision,
    CoachingRecommendation,
)
from shelfcoach.domain.repositories import (
    IBookRepository,
    IChallengeRepository,
    ICompletionRepository,
    IReadingInstanceRepository,
)
from shelfcoach.domain.services import ICoachingService
from shelfcoach.services.coaching import generate_coaching_recommendation
from shelfcoach.services.history import load_snapshot

logger = logging.getLogger(__name__)


class CoachingService(ICoachingService):

    def __init__(
        self,
        book_repository: IBookRepository,
        instance_repository: IReadingInstanceRepository,
        completion_repository: ICompletionRepository,
        challenge_repository: IChallengeRepository,
    ):
        self.book_repository = book_repository
        self.instance_repository = instance_repository
        self.completion_repository = completion_repository
        self.challenge_repository = challenge_repository

    async def get_recommendation(
        self, book_id: UUID, current_page: Optional[int] = None
    ) -> CoachingRecommendation:
        book = await self._require_book(book_id)
        if current_page is None:
            active = await self.instance_repository.get_active_for_book(book_id)
            current_page = active.current_page if active else 0
        self._check_page(book, current_page)
        return await self._recommend(book, current_page)

    async def challenge(
        self, book_id: UUID, current_page: int, doubt_reason: str
    ) -> tuple[Challenge, CoachingRecommendation]:
        book = await self._require_book(book_id)
        self._check_page(book, current_page)
        active = await self.instance_repository.get_active_for_book(book_id)
        if active is None:
            raise LookupError("No active reading instance found for this book")

        recommendation = await self._recommend(book, current_page)
        challenge = await self.challenge_repository.create(
            Challenge(
                id=uuid4(),
                reading_instance_id=active.id,
                current_page=current_page,
                doubt_reason=doubt_reason.strip(),
                system_recommendation=recommendation.type,
                recommendation_details=recommendation.message,
            )
        )
        logger.info(
            "Challenge %s logged for book %s at page %d -> %s",
            challenge.id, book_id, current_page, recommendation.type.value,
        )
        return challenge, recommendation

    async def record_decision(
        self, challenge_id: UUID, decision: ChallengeDecision
    ) -> Challenge:
        challenge = await self.challenge_repository.get_by_id(challenge_id)
        if challenge is None:
            raise LookupError("Challenge not found")
        if challenge.user_decision is not None:
            raise ValueError("A decision has already been recorded for this challenge")
        updated = await self.challenge_repository.record_decision(challenge_id, decision)
        logger.info("Challenge %s decided: %s", challenge_id, decision.value)
        return updated

    async def _recommend(self, book: Book, current_page: int) -> CoachingRecommendation:
        snapshot = await load_snapshot(
            self.book_repository,
            self.instance_repository,
            completion_repo=self.completion_repository,
        )
        return generate_coaching_recommendation(
            book,
            current_page,
            snapshot.books,
            snapshot.instances,
            snapshot.completion_events,
        )

    async def _require_book(self, book_id: UUID) -> Book:
        book = await self.book_repository.get_by_id(book_id)
        if book is None:
            raise LookupError("Book not found")
        return book

    @staticmethod
    def _check_page(book: Book, current_page: int) -> None:
        if current_page < 0 or current_page > book.page_count:
            raise ValueError(f"Page must be between 0 and {book.page_count}")
