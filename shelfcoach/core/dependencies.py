"""Dependency injection container."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from shelfcoach.domain.repositories import (
    IAbandonmentRepository,
    IBookRepository,
    IChallengeRepository,
    ICompletionRepository,
    IReadingInstanceRepository,
)
from shelfcoach.domain.services import ICoachingService, IInsightService, IReadingService
from shelfcoach.infrastructure.database.connection import get_db
from shelfcoach.infrastructure.database.repository import (
    AbandonmentRepository,
    BookRepository,
    ChallengeRepository,
    CompletionRepository,
    ReadingInstanceRepository,
)
from shelfcoach.services.coaching_service import CoachingService
from shelfcoach.services.insight_service import InsightService
from shelfcoach.services.reading_service import ReadingService


# ---------------------------------------------------------------------------
# Repository providers
# ---------------------------------------------------------------------------
async def get_book_repository(session: AsyncSession = Depends(get_db)) -> IBookRepository:
    return BookRepository(session)


async def get_instance_repository(
    session: AsyncSession = Depends(get_db),
) -> IReadingInstanceRepository:
    return ReadingInstanceRepository(session)


async def get_abandonment_repository(
    session: AsyncSession = Depends(get_db),
) -> IAbandonmentRepository:
    return AbandonmentRepository(session)


async def get_completion_repository(
    session: AsyncSession = Depends(get_db),
) -> ICompletionRepository:
    return CompletionRepository(session)


async def get_challenge_repository(
    session: AsyncSession = Depends(get_db),
) -> IChallengeRepository:
    return ChallengeRepository(session)


# ---------------------------------------------------------------------------
# Service providers
# ---------------------------------------------------------------------------
async def get_reading_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    instance_repo: IReadingInstanceRepository = Depends(get_instance_repository),
    abandonment_repo: IAbandonmentRepository = Depends(get_abandonment_repository),
    completion_repo: ICompletionRepository = Depends(get_completion_repository),
    challenge_repo: IChallengeRepository = Depends(get_challenge_repository),
) -> IReadingService:
    return ReadingService(
        book_repository=book_repo,
        instance_repository=instance_repo,
        abandonment_repository=abandonment_repo,
        completion_repository=completion_repo,
        challenge_repository=challenge_repo,
    )


async def get_coaching_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    instance_repo: IReadingInstanceRepository = Depends(get_instance_repository),
    completion_repo: ICompletionRepository = Depends(get_completion_repository),
    challenge_repo: IChallengeRepository = Depends(get_challenge_repository),
) -> ICoachingService:
    return CoachingService(
        book_repository=book_repo,
        instance_repository=instance_repo,
        completion_repository=completion_repo,
        challenge_repository=challenge_repo,
    )


async def get_insight_service(
    book_repo: IBookRepository = Depends(get_book_repository),
    instance_repo: IReadingInstanceRepository = Depends(get_instance_repository),
    abandonment_repo: IAbandonmentRepository = Depends(get_abandonment_repository),
) -> IInsightService:
    return InsightService(
        book_repository=book_repo,
        instance_repository=instance_repo,
        abandonment_repository=abandonment_repo,
    )
