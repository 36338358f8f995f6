"""Repository implementations."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shelfcoach.domain.entities import (
    AbandonmentEvent,
    AbandonmentReason,
    Book,
    Challenge,
    ChallengeDecision,
    CompletionEvent,
    CompletionFeeling,
    EmotionalState,
    Genre,
    ReadingInstance,
    ReadingStatus,
    RecommendationType,
)
from shelfcoach.domain.repositories import (
    IAbandonmentRepository,
    IBookRepository,
    IChallengeRepository,
    ICompletionRepository,
    IReadingInstanceRepository,
)
from shelfcoach.infrastructure.database.models import (
    AbandonmentEventModel,
    BookModel,
    ChallengeModel,
    CompletionEventModel,
    ReadingInstanceModel,
)


async def _persist(session: AsyncSession, model, commit: bool) -> None:
    """Commit, or only flush so the caller's next commit covers this write too."""
    if commit:
        await session.commit()
    else:
        await session.flush()
    await session.refresh(model)


# ---------------------------------------------------------------------------
# Book Repository
# ---------------------------------------------------------------------------
class BookRepository(IBookRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, book: Book) -> Book:
        db_book = BookModel(
            id=book.id,
            title=book.title,
            author=book.author,
            page_count=book.page_count,
            genre=book.genre.value,
            created_at=book.created_at,
        )
        self.session.add(db_book)
        await self.session.commit()
        await self.session.refresh(db_book)
        return self._to_entity(db_book)

    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        result = await self.session.execute(select(BookModel).where(BookModel.id == book_id))
        db_book = result.scalar_one_or_none()
        return self._to_entity(db_book) if db_book else None

    async def list_all(self) -> list[Book]:
        result = await self.session.execute(select(BookModel).order_by(BookModel.created_at))
        return [self._to_entity(b) for b in result.scalars().all()]

    @staticmethod
    def _to_entity(model: BookModel) -> Book:
        return Book(
            id=model.id,
            title=model.title,
            author=model.author,
            page_count=model.page_count,
            genre=Genre(model.genre),
            created_at=model.created_at,
        )


# ---------------------------------------------------------------------------
# Reading Instance Repository
# ---------------------------------------------------------------------------
class ReadingInstanceRepository(IReadingInstanceRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, instance: ReadingInstance) -> ReadingInstance:
        db_instance = ReadingInstanceModel(
            id=instance.id,
            book_id=instance.book_id,
            started_at=instance.started_at,
            ended_at=instance.ended_at,
            status=instance.status.value,
            why_started=instance.why_started,
            current_page=instance.current_page,
        )
        self.session.add(db_instance)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # uq_reading_instances_active_book: another attempt is already open
            await self.session.rollback()
            raise RuntimeError("This book is already being read") from e
        await self.session.refresh(db_instance)
        return self._to_entity(db_instance)

    async def list_all(self) -> list[ReadingInstance]:
        result = await self.session.execute(
            select(ReadingInstanceModel).order_by(ReadingInstanceModel.started_at)
        )
        return [self._to_entity(i) for i in result.scalars().all()]

    async def get_by_book(self, book_id: UUID) -> list[ReadingInstance]:
        result = await self.session.execute(
            select(ReadingInstanceModel)
            .where(ReadingInstanceModel.book_id == book_id)
            .order_by(ReadingInstanceModel.started_at.desc())
        )
        return [self._to_entity(i) for i in result.scalars().all()]

    async def get_active_for_book(self, book_id: UUID) -> Optional[ReadingInstance]:
        result = await self.session.execute(
            select(ReadingInstanceModel).where(
                ReadingInstanceModel.book_id == book_id,
                ReadingInstanceModel.status == ReadingStatus.IN_PROGRESS.value,
            )
        )
        db_instance = result.scalars().first()
        return self._to_entity(db_instance) if db_instance else None

    async def update_progress(self, instance_id: UUID, current_page: int) -> ReadingInstance:
        db_instance = await self._get(instance_id)
        if db_instance is None:
            raise LookupError("Reading instance not found")
        db_instance.current_page = current_page
        await self.session.commit()
        await self.session.refresh(db_instance)
        return self._to_entity(db_instance)

    async def update_status(
        self, instance_id: UUID, status: ReadingStatus, current_page: int
    ) -> ReadingInstance:
        db_instance = await self._get(instance_id)
        if db_instance is None:
            raise LookupError("Reading instance not found")
        db_instance.status = status.value
        db_instance.current_page = current_page
        db_instance.ended_at = datetime.utcnow()
        await self.session.commit()
        await self.session.refresh(db_instance)
        return self._to_entity(db_instance)

    async def _get(self, instance_id: UUID) -> Optional[ReadingInstanceModel]:
        result = await self.session.execute(
            select(ReadingInstanceModel).where(ReadingInstanceModel.id == instance_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entity(model: ReadingInstanceModel) -> ReadingInstance:
        return ReadingInstance(
            id=model.id,
            book_id=model.book_id,
            status=ReadingStatus(model.status),
            current_page=model.current_page,
            why_started=model.why_started,
            started_at=model.started_at,
            ended_at=model.ended_at,
        )


# ---------------------------------------------------------------------------
# Abandonment Repository
# ---------------------------------------------------------------------------
class AbandonmentRepository(IAbandonmentRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: AbandonmentEvent, commit: bool = True) -> AbandonmentEvent:
        db_event = AbandonmentEventModel(
            id=event.id,
            reading_instance_id=event.reading_instance_id,
            abandoned_at=event.abandoned_at,
            page_abandoned=event.page_abandoned,
            percent_complete=event.percent_complete,
            primary_reason=event.primary_reason.value,
            emotional_state=event.emotional_state.value,
            notes=event.notes,
        )
        self.session.add(db_event)
        await _persist(self.session, db_event, commit)
        return self._to_entity(db_event)

    async def list_all(self) -> list[AbandonmentEvent]:
        result = await self.session.execute(
            select(AbandonmentEventModel).order_by(AbandonmentEventModel.abandoned_at)
        )
        return [self._to_entity(e) for e in result.scalars().all()]

    async def get_by_instance(self, instance_id: UUID) -> Optional[AbandonmentEvent]:
        result = await self.session.execute(
            select(AbandonmentEventModel).where(
                AbandonmentEventModel.reading_instance_id == instance_id
            )
        )
        db_event = result.scalar_one_or_none()
        return self._to_entity(db_event) if db_event else None

    @staticmethod
    def _to_entity(model: AbandonmentEventModel) -> AbandonmentEvent:
        return AbandonmentEvent(
            id=model.id,
            reading_instance_id=model.reading_instance_id,
            page_abandoned=model.page_abandoned,
            percent_complete=model.percent_complete,
            primary_reason=AbandonmentReason(model.primary_reason),
            emotional_state=EmotionalState(model.emotional_state),
            notes=model.notes,
            abandoned_at=model.abandoned_at,
        )


# ---------------------------------------------------------------------------
# Completion Repository
# ---------------------------------------------------------------------------
class CompletionRepository(ICompletionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, event: CompletionEvent, commit: bool = True) -> CompletionEvent:
        db_event = CompletionEventModel(
            id=event.id,
            reading_instance_id=event.reading_instance_id,
            completed_at=event.completed_at,
            completion_feeling=event.completion_feeling.value,
            almost_quit=event.almost_quit,
            almost_quit_page=event.almost_quit_page,
        )
        self.session.add(db_event)
        await _persist(self.session, db_event, commit)
        return self._to_entity(db_event)

    async def list_all(self) -> list[CompletionEvent]:
        result = await self.session.execute(
            select(CompletionEventModel).order_by(CompletionEventModel.completed_at)
        )
        return [self._to_entity(e) for e in result.scalars().all()]

    async def get_by_instance(self, instance_id: UUID) -> Optional[CompletionEvent]:
        result = await self.session.execute(
            select(CompletionEventModel).where(
                CompletionEventModel.reading_instance_id == instance_id
            )
        )
        db_event = result.scalar_one_or_none()
        return self._to_entity(db_event) if db_event else None

    @staticmethod
    def _to_entity(model: CompletionEventModel) -> CompletionEvent:
        return CompletionEvent(
            id=model.id,
            reading_instance_id=model.reading_instance_id,
            completion_feeling=CompletionFeeling(model.completion_feeling),
            almost_quit=bool(model.almost_quit),
            almost_quit_page=model.almost_quit_page,
            completed_at=model.completed_at,
        )


# ---------------------------------------------------------------------------
# Challenge Repository
# ---------------------------------------------------------------------------
class ChallengeRepository(IChallengeRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, challenge: Challenge) -> Challenge:
        db_challenge = ChallengeModel(
            id=challenge.id,
            reading_instance_id=challenge.reading_instance_id,
            challenged_at=challenge.challenged_at,
            current_page=challenge.current_page,
            doubt_reason=challenge.doubt_reason,
            system_recommendation=challenge.system_recommendation.value,
            recommendation_details=challenge.recommendation_details,
            user_decision=challenge.user_decision.value if challenge.user_decision else None,
        )
        self.session.add(db_challenge)
        await self.session.commit()
        await self.session.refresh(db_challenge)
        return self._to_entity(db_challenge)

    async def get_by_id(self, challenge_id: UUID) -> Optional[Challenge]:
        db_challenge = await self._get(challenge_id)
        return self._to_entity(db_challenge) if db_challenge else None

    async def record_decision(
        self, challenge_id: UUID, decision: ChallengeDecision
    ) -> Challenge:
        db_challenge = await self._get(challenge_id)
        if db_challenge is None:
            raise LookupError("Challenge not found")
        db_challenge.user_decision = decision.value
        await self.session.commit()
        await self.session.refresh(db_challenge)
        return self._to_entity(db_challenge)

    async def list_by_instance(self, instance_id: UUID) -> list[Challenge]:
        result = await self.session.execute(
            select(ChallengeModel)
            .where(ChallengeModel.reading_instance_id == instance_id)
            .order_by(ChallengeModel.challenged_at)
        )
        return [self._to_entity(c) for c in result.scalars().all()]

    async def _get(self, challenge_id: UUID) -> Optional[ChallengeModel]:
        result = await self.session.execute(
            select(ChallengeModel).where(ChallengeModel.id == challenge_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entity(model: ChallengeModel) -> Challenge:
        return Challenge(
            id=model.id,
            reading_instance_id=model.reading_instance_id,
            current_page=model.current_page,
            doubt_reason=model.doubt_reason,
            system_recommendation=RecommendationType(model.system_recommendation),
            recommendation_details=model.recommendation_details,
            user_decision=(
                ChallengeDecision(model.user_decision) if model.user_decision else None
            ),
            challenged_at=model.challenged_at,
        )
