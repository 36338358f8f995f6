"""Book API routes (library, reading lifecycle, coaching)."""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status

from shelfcoach.api.schemas import (
    AbandonmentEventResponse,
    AbandonRequest,
    BookCreate,
    BookListResponse,
    BookResponse,
    BookWithInstanceResponse,
    ChallengeRequest,
    ChallengeResponse,
    ChallengeWithCoachingResponse,
    CoachingResponse,
    CompleteRequest,
    CompletionEventResponse,
    ProgressUpdateRequest,
    ReadingAttemptResponse,
    ReadingInstanceResponse,
    StartReadingRequest,
)
from shelfcoach.core.dependencies import get_coaching_service, get_reading_service
from shelfcoach.domain.services import ICoachingService, IReadingService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/books", tags=["books"])


# ---------------------------------------------------------------------------
# Library
# ---------------------------------------------------------------------------
@router.post("/", response_model=BookWithInstanceResponse, status_code=status.HTTP_201_CREATED)
async def create_book(
    body: BookCreate,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
) -> BookWithInstanceResponse:
    """Add a book to the library and start reading it."""
    try:
        book, instance = await reading_service.add_book(
            title=body.title,
            page_count=body.page_count,
            genre=body.genre,
            author=body.author,
            why_started=body.why_started,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return BookWithInstanceResponse(
        book=BookResponse.model_validate(book),
        active_instance=ReadingInstanceResponse.model_validate(instance),
    )


@router.get("/", response_model=BookListResponse)
async def list_books(
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
) -> BookListResponse:
    """List every book with its in-progress reading instance, if any."""
    rows = await reading_service.list_books()
    return BookListResponse(
        books=[
            BookWithInstanceResponse(
                book=BookResponse.model_validate(book),
                active_instance=(
                    ReadingInstanceResponse.model_validate(active) if active else None
                ),
            )
            for book, active in rows
        ],
        total=len(rows),
    )


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: UUID,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
) -> BookResponse:
    """Get a book by ID."""
    book = await reading_service.get_book(book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    return BookResponse.model_validate(book)


@router.get("/{book_id}/instances", response_model=list[ReadingAttemptResponse])
async def get_reading_history(
    book_id: UUID,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
) -> list[ReadingAttemptResponse]:
    """Every attempt at reading this book, newest first.

    Closed attempts carry their abandonment or completion record, and every
    attempt lists the challenges logged while it was open.
    """
    try:
        attempts = await reading_service.get_history(book_id)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return [ReadingAttemptResponse.model_validate(a) for a in attempts]


# ---------------------------------------------------------------------------
# Reading lifecycle
# ---------------------------------------------------------------------------
@router.post(
    "/{book_id}/start",
    response_model=ReadingInstanceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def start_reading(
    book_id: UUID,
    body: StartReadingRequest,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
) -> ReadingInstanceResponse:
    """Start another attempt at a book."""
    try:
        instance = await reading_service.start_reading(book_id, why_started=body.why_started)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return ReadingInstanceResponse.model_validate(instance)


@router.patch("/{book_id}/progress", response_model=ReadingInstanceResponse)
async def update_progress(
    book_id: UUID,
    body: ProgressUpdateRequest,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
) -> ReadingInstanceResponse:
    try:
        instance = await reading_service.update_progress(book_id, body.current_page)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ReadingInstanceResponse.model_validate(instance)


@router.post(
    "/{book_id}/abandon",
    response_model=AbandonmentEventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def abandon_book(
    book_id: UUID,
    body: AbandonRequest,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
) -> AbandonmentEventResponse:
    """Stop reading: closes the active instance and records why."""
    try:
        event = await reading_service.abandon_book(
            book_id,
            page_abandoned=body.page_abandoned,
            primary_reason=body.primary_reason,
            emotional_state=body.emotional_state,
            notes=body.notes,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return AbandonmentEventResponse.model_validate(event)


@router.post(
    "/{book_id}/complete",
    response_model=CompletionEventResponse,
    status_code=status.HTTP_201_CREATED,
)
async def complete_book(
    book_id: UUID,
    body: CompleteRequest,
    reading_service: Annotated[IReadingService, Depends(get_reading_service)],
) -> CompletionEventResponse:
    """Finish a book: closes the active instance and records how it felt."""
    try:
        event = await reading_service.complete_book(
            book_id,
            completion_feeling=body.completion_feeling,
            almost_quit=body.almost_quit,
            almost_quit_page=body.almost_quit_page,
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CompletionEventResponse.model_validate(event)


# ---------------------------------------------------------------------------
# Coaching
# ---------------------------------------------------------------------------
@router.get("/{book_id}/coaching", response_model=CoachingResponse)
async def get_coaching(
    book_id: UUID,
    coaching_service: Annotated[ICoachingService, Depends(get_coaching_service)],
    current_page: Optional[int] = None,
) -> CoachingResponse:
    """Should I quit this book now?

    Answers from the reader's history with books of the same genre:
      - quit_now when most of them were abandoned
      - push_to_page when the reader has pushed through doubt before
      - insufficient_data otherwise

    ``current_page`` defaults to the page of the active reading instance.
    """
    try:
        recommendation = await coaching_service.get_recommendation(book_id, current_page)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return CoachingResponse.model_validate(recommendation)


@router.post(
    "/{book_id}/challenges",
    response_model=ChallengeWithCoachingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def challenge_book(
    book_id: UUID,
    body: ChallengeRequest,
    coaching_service: Annotated[ICoachingService, Depends(get_coaching_service)],
) -> ChallengeWithCoachingResponse:
    """Log a moment of doubt and return the coaching for it."""
    try:
        challenge, recommendation = await coaching_service.challenge(
            book_id, body.current_page, body.doubt_reason
        )
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ChallengeWithCoachingResponse(
        challenge=ChallengeResponse.model_validate(challenge),
        coaching=CoachingResponse.model_validate(recommendation),
    )
