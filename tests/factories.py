"""Plain builders for domain records used across the tests."""

from __future__ import annotations

from datetime import datetime, timedelta
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
    ReadingInstance,
    ReadingStatus,
)

_EPOCH = datetime(2024, 1, 1)


def make_book(
    genre: Genre = Genre.FANTASY,
    page_count: int = 300,
    title: Optional[str] = None,
    book_id: Optional[UUID] = None,
) -> Book:
    book_id = book_id or uuid4()
    return Book(
        id=book_id,
        title=title or f"Book {str(book_id)[:8]}",
        page_count=page_count,
        genre=genre,
        created_at=_EPOCH,
    )


def make_instance(
    book: Book,
    status: ReadingStatus = ReadingStatus.IN_PROGRESS,
    current_page: int = 0,
) -> ReadingInstance:
    return ReadingInstance(
        id=uuid4(),
        book_id=book.id,
        status=status,
        current_page=current_page,
        started_at=_EPOCH,
        ended_at=None if status == ReadingStatus.IN_PROGRESS else _EPOCH + timedelta(days=7),
    )


def make_completion(
    instance: ReadingInstance,
    feeling: CompletionFeeling = CompletionFeeling.GLAD,
    almost_quit: bool = False,
    almost_quit_page: Optional[int] = None,
) -> CompletionEvent:
    return CompletionEvent(
        id=uuid4(),
        reading_instance_id=instance.id,
        completion_feeling=feeling,
        almost_quit=almost_quit,
        almost_quit_page=almost_quit_page,
        completed_at=_EPOCH + timedelta(days=7),
    )


def make_abandonment(
    instance: ReadingInstance,
    reason: AbandonmentReason = AbandonmentReason.BORING,
    page: int = 100,
    page_count: int = 300,
) -> AbandonmentEvent:
    return AbandonmentEvent(
        id=uuid4(),
        reading_instance_id=instance.id,
        page_abandoned=page,
        percent_complete=page / page_count * 100,
        primary_reason=reason,
        emotional_state=EmotionalState.NEUTRAL,
        abandoned_at=_EPOCH + timedelta(days=7),
    )


def genre_history(
    genre: Genre,
    abandoned: int = 0,
    completed: int = 0,
    page_count: int = 300,
    stop_page: int = 100,
) -> tuple[list[Book], list[ReadingInstance]]:
    """One book + closed instance per outcome, abandoned ones first."""
    books: list[Book] = []
    instances: list[ReadingInstance] = []
    for _ in range(abandoned):
        book = make_book(genre, page_count)
        books.append(book)
        instances.append(make_instance(book, ReadingStatus.ABANDONED, stop_page))
    for _ in range(completed):
        book = make_book(genre, page_count)
        books.append(book)
        instances.append(make_instance(book, ReadingStatus.COMPLETED, page_count))
    return books, instances
