"""Reading lifecycle: adding books and moving reading instances along."""

import logging
from typing import Optional
from uuid import UUID, uuid4

from shelfcoach.domain.entities import (
    AbandonmentEvent,
    AbandonmentReason,
    Book,
    CompletionEvent,
    CompletionFeeling,
    EmotionalState,
    Genre,
    ReadingAttempt,
    ReadingInstance,
    ReadingStatus,
)
from shelfcoach.domain.repositories import (
    IAbandonmentRepository,
    IBookRepository,
    IChallengeRepository,
    ICompletionRepository,
    IReadingInstanceRepository,
)
from shelfcoach.domain.services import IReadingService

logger = logging.getLogger(__name__)


class ReadingService(IReadingService):
    """Owns every write to the event store.

    This is where record invariants are enforced before anything reaches
    the engines: page numbers stay within the book, a book has at most one
    in-progress instance, and instances only ever close once.
    """

    def __init__(
        self,
        book_repository: IBookRepository,
        instance_repository: IReadingInstanceRepository,
        abandonment_repository: IAbandonmentRepository,
        completion_repository: ICompletionRepository,
        challenge_repository: IChallengeRepository,
    ):
        self.book_repository = book_repository
        self.instance_repository = instance_repository
        self.abandonment_repository = abandonment_repository
        self.completion_repository = completion_repository
        self.challenge_repository = challenge_repository

    async def add_book(
        self,
        title: str,
        page_count: int,
        genre: Genre,
        author: Optional[str] = None,
        why_started: Optional[str] = None,
    ) -> tuple[Book, ReadingInstance]:
        """Create the book and immediately start an instance at page 0."""
        title = title.strip()
        if not title:
            raise ValueError("Title is required")
        if page_count <= 0:
            raise ValueError("Page count must be a positive number")

        book = await self.book_repository.create(
            Book(
                id=uuid4(),
                title=title,
                author=(author or "").strip() or None,
                page_count=page_count,
                genre=genre,
            )
        )
        instance = await self.instance_repository.create(
            ReadingInstance(id=uuid4(), book_id=book.id, why_started=why_started)
        )
        logger.info("Book added: %s (%s), instance %s started", book.id, book.title, instance.id)
        return book, instance

    async def get_book(self, book_id: UUID) -> Optional[Book]:
        return await self.book_repository.get_by_id(book_id)

    async def list_books(self) -> list[tuple[Book, Optional[ReadingInstance]]]:
        books = await self.book_repository.list_all()
        instances = await self.instance_repository.list_all()
        active: dict[UUID, ReadingInstance] = {
            i.book_id: i for i in instances if i.status == ReadingStatus.IN_PROGRESS
        }
        return [(book, active.get(book.id)) for book in books]

    async def get_history(self, book_id: UUID) -> list[ReadingAttempt]:
        await self._require_book(book_id)
        attempts: list[ReadingAttempt] = []
        for instance in await self.instance_repository.get_by_book(book_id):
            attempt = ReadingAttempt(
                instance=instance,
                challenges=await self.challenge_repository.list_by_instance(instance.id),
            )
            if instance.status == ReadingStatus.ABANDONED:
                attempt.abandonment = await self.abandonment_repository.get_by_instance(instance.id)
            elif instance.status == ReadingStatus.COMPLETED:
                attempt.completion = await self.completion_repository.get_by_instance(instance.id)
            attempts.append(attempt)
        return attempts

    async def start_reading(
        self, book_id: UUID, why_started: Optional[str] = None
    ) -> ReadingInstance:
        """Start another attempt at a book that is not currently being read."""
        await self._require_book(book_id)
        if await self.instance_repository.get_active_for_book(book_id):
            raise RuntimeError("This book is already being read")
        instance = await self.instance_repository.create(
            ReadingInstance(id=uuid4(), book_id=book_id, why_started=why_started)
        )
        logger.info("Reading restarted for book %s (instance %s)", book_id, instance.id)
        return instance

    async def update_progress(self, book_id: UUID, current_page: int) -> ReadingInstance:
        book = await self._require_book(book_id)
        if current_page < 0 or current_page > book.page_count:
            raise ValueError(f"Page must be between 0 and {book.page_count}")
        active = await self._require_active(book_id)
        return await self.instance_repository.update_progress(active.id, current_page)

    async def abandon_book(
        self,
        book_id: UUID,
        page_abandoned: int,
        primary_reason: AbandonmentReason,
        emotional_state: EmotionalState,
        notes: Optional[str] = None,
    ) -> AbandonmentEvent:
        book = await self._require_book(book_id)
        if page_abandoned <= 0 or page_abandoned > book.page_count:
            raise ValueError(f"Page must be between 1 and {book.page_count}")
        active = await self._require_active(book_id)

        # the event is committed together with the status change
        event = await self.abandonment_repository.create(
            AbandonmentEvent(
                id=uuid4(),
                reading_instance_id=active.id,
                page_abandoned=page_abandoned,
                percent_complete=min(100.0, page_abandoned / book.page_count * 100),
                primary_reason=primary_reason,
                emotional_state=emotional_state,
                notes=(notes or "").strip() or None,
            ),
            commit=False,
        )
        await self.instance_repository.update_status(
            active.id, ReadingStatus.ABANDONED, page_abandoned
        )
        logger.info(
            "Book %s abandoned at page %d (%s)", book_id, page_abandoned, primary_reason.value
        )
        return event

    async def complete_book(
        self,
        book_id: UUID,
        completion_feeling: CompletionFeeling,
        almost_quit: bool = False,
        almost_quit_page: Optional[int] = None,
    ) -> CompletionEvent:
        book = await self._require_book(book_id)
        if almost_quit:
            if almost_quit_page is None:
                raise ValueError("Tell us the page where you almost quit")
            if almost_quit_page <= 0 or almost_quit_page > book.page_count:
                raise ValueError(f"Page must be between 1 and {book.page_count}")
        else:
            almost_quit_page = None
        active = await self._require_active(book_id)

        event = await self.completion_repository.create(
            CompletionEvent(
                id=uuid4(),
                reading_instance_id=active.id,
                completion_feeling=completion_feeling,
                almost_quit=almost_quit,
                almost_quit_page=almost_quit_page,
            ),
            commit=False,
        )
        await self.instance_repository.update_status(
            active.id, ReadingStatus.COMPLETED, book.page_count
        )
        logger.info("Book %s completed (%s)", book_id, completion_feeling.value)
        return event

    async def _require_book(self, book_id: UUID) -> Book:
        book = await self.book_repository.get_by_id(book_id)
        if book is None:
            raise LookupError("Book not found")
        return book

    async def _require_active(self, book_id: UUID) -> ReadingInstance:
        active = await self.instance_repository.get_active_for_book(book_id)
        if active is None:
            logger.warning("No active reading instance for book %s", book_id)
            raise LookupError("No active reading instance found for this book")
        return active
