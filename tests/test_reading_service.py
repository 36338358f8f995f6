from __future__ import annotations

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from shelfcoach.domain.entities import (
    AbandonmentReason,
    ChallengeDecision,
    CompletionFeeling,
    ConfidenceLevel,
    EmotionalState,
    Genre,
    ReadingInstance,
    ReadingStatus,
    RecommendationType,
)
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
from tests.factories import make_abandonment


@pytest.fixture()
def reading(session) -> ReadingService:
    return ReadingService(
        BookRepository(session),
        ReadingInstanceRepository(session),
        AbandonmentRepository(session),
        CompletionRepository(session),
        ChallengeRepository(session),
    )


@pytest.fixture()
def coaching(session) -> CoachingService:
    return CoachingService(
        BookRepository(session),
        ReadingInstanceRepository(session),
        CompletionRepository(session),
        ChallengeRepository(session),
    )


@pytest.fixture()
def insights(session) -> InsightService:
    return InsightService(
        BookRepository(session),
        ReadingInstanceRepository(session),
        AbandonmentRepository(session),
    )


async def _abandoned(reading: ReadingService, genre: Genre, page: int = 100) -> None:
    book, _ = await reading.add_book("Dropped", 300, genre)
    await reading.abandon_book(book.id, page, AbandonmentReason.BORING, EmotionalState.RELIEVED)


# ---------------------------------------------------------------------------
# Reading lifecycle
# ---------------------------------------------------------------------------
async def test_add_book_starts_reading(reading: ReadingService) -> None:
    book, instance = await reading.add_book("  Dune  ", 412, Genre.SCIENCE_FICTION, author=" ")

    assert book.title == "Dune"
    assert book.author is None
    assert instance.book_id == book.id
    assert instance.status == ReadingStatus.IN_PROGRESS
    assert instance.current_page == 0
    assert instance.ended_at is None


@pytest.mark.parametrize(("title", "pages"), [("   ", 100), ("Dune", 0), ("Dune", -3)])
async def test_add_book_rejects_bad_input(reading: ReadingService, title: str, pages: int) -> None:
    with pytest.raises(ValueError):
        await reading.add_book(title, pages, Genre.FANTASY)


async def test_progress_stays_within_the_book(reading: ReadingService) -> None:
    book, _ = await reading.add_book("Emma", 200, Genre.ROMANCE)

    updated = await reading.update_progress(book.id, 120)
    assert updated.current_page == 120

    with pytest.raises(ValueError):
        await reading.update_progress(book.id, 201)


async def test_abandon_closes_the_instance(reading: ReadingService) -> None:
    book, instance = await reading.add_book("Ulysses", 800, Genre.LITERARY_FICTION)

    event = await reading.abandon_book(
        book.id, 200, AbandonmentReason.TOO_DIFFICULT, EmotionalState.GUILTY, notes=" dense "
    )

    assert event.reading_instance_id == instance.id
    assert event.percent_complete == pytest.approx(25.0)
    assert event.notes == "dense"
    [attempt] = await reading.get_history(book.id)
    closed = attempt.instance
    assert closed.status == ReadingStatus.ABANDONED
    assert closed.current_page == 200
    assert closed.ended_at is not None


@pytest.mark.parametrize("page", [0, 301])
async def test_abandon_page_must_be_inside_the_book(reading: ReadingService, page: int) -> None:
    book, _ = await reading.add_book("Dropped", 300, Genre.FANTASY)

    with pytest.raises(ValueError):
        await reading.abandon_book(book.id, page, AbandonmentReason.OTHER, EmotionalState.NEUTRAL)


async def test_closed_instance_cannot_be_closed_again(reading: ReadingService) -> None:
    book, _ = await reading.add_book("Dropped", 300, Genre.FANTASY)
    await reading.abandon_book(book.id, 10, AbandonmentReason.OTHER, EmotionalState.NEUTRAL)

    with pytest.raises(LookupError):
        await reading.complete_book(book.id, CompletionFeeling.GLAD)


async def test_complete_moves_to_last_page(reading: ReadingService) -> None:
    book, _ = await reading.add_book("Rebecca", 380, Genre.MYSTERY)

    event = await reading.complete_book(
        book.id, CompletionFeeling.GLAD, almost_quit=True, almost_quit_page=90
    )

    assert event.almost_quit_page == 90
    [attempt] = await reading.get_history(book.id)
    closed = attempt.instance
    assert closed.status == ReadingStatus.COMPLETED
    assert closed.current_page == 380


async def test_almost_quit_page_dropped_when_not_almost_quit(reading: ReadingService) -> None:
    book, _ = await reading.add_book("Rebecca", 380, Genre.MYSTERY)

    event = await reading.complete_book(book.id, CompletionFeeling.NEUTRAL, almost_quit_page=90)

    assert event.almost_quit is False
    assert event.almost_quit_page is None


async def test_almost_quit_requires_a_page(reading: ReadingService) -> None:
    book, _ = await reading.add_book("Rebecca", 380, Genre.MYSTERY)

    with pytest.raises(ValueError):
        await reading.complete_book(book.id, CompletionFeeling.GLAD, almost_quit=True)


async def test_start_reading_again(reading: ReadingService) -> None:
    book, first = await reading.add_book("Dropped", 300, Genre.FANTASY)

    with pytest.raises(RuntimeError):
        await reading.start_reading(book.id)

    await reading.abandon_book(book.id, 50, AbandonmentReason.WRONG_TIMING, EmotionalState.NEUTRAL)
    second = await reading.start_reading(book.id, why_started="second try")

    assert second.id != first.id
    assert second.why_started == "second try"
    history = await reading.get_history(book.id)
    assert [a.instance.id for a in history] == [second.id, first.id]


async def test_list_books_attaches_only_active_instances(reading: ReadingService) -> None:
    active_book, active = await reading.add_book("Reading", 100, Genre.POETRY)
    await _abandoned(reading, Genre.POETRY)

    rows = dict((book.id, instance) for book, instance in await reading.list_books())

    assert len(rows) == 2
    assert rows[active_book.id].id == active.id
    assert [i for i in rows.values() if i is None] == [None]


async def test_unknown_book_raises_lookup_error(reading: ReadingService) -> None:
    with pytest.raises(LookupError):
        await reading.get_history(uuid4())
    with pytest.raises(LookupError):
        await reading.update_progress(uuid4(), 1)
    assert await reading.get_book(uuid4()) is None


async def test_history_carries_outcomes_and_challenges(
    reading: ReadingService, coaching: CoachingService
) -> None:
    book, first = await reading.add_book("Dropped", 300, Genre.FANTASY)
    challenge, _ = await coaching.challenge(book.id, 80, "dragging")
    await reading.abandon_book(book.id, 90, AbandonmentReason.PACING_TOO_SLOW, EmotionalState.GUILTY)
    await reading.start_reading(book.id)
    await reading.complete_book(book.id, CompletionFeeling.GLAD, almost_quit=True, almost_quit_page=90)

    latest, earliest = await reading.get_history(book.id)

    assert latest.completion is not None
    assert latest.completion.almost_quit_page == 90
    assert latest.abandonment is None
    assert latest.challenges == []

    assert earliest.instance.id == first.id
    assert earliest.abandonment is not None
    assert earliest.abandonment.primary_reason == AbandonmentReason.PACING_TOO_SLOW
    assert earliest.completion is None
    assert [c.id for c in earliest.challenges] == [challenge.id]


async def test_database_allows_one_open_attempt_per_book(
    reading: ReadingService, session
) -> None:
    book, _ = await reading.add_book("Dropped", 300, Genre.FANTASY)
    instances = ReadingInstanceRepository(session)

    with pytest.raises(RuntimeError):
        await instances.create(ReadingInstance(id=uuid4(), book_id=book.id))

    [attempt] = await reading.get_history(book.id)
    assert attempt.instance.status == ReadingStatus.IN_PROGRESS


async def test_restart_race_is_rejected(reading: ReadingService, monkeypatch) -> None:
    book, _ = await reading.add_book("Dropped", 300, Genre.FANTASY)
    await reading.abandon_book(book.id, 20, AbandonmentReason.OTHER, EmotionalState.NEUTRAL)
    await reading.start_reading(book.id)

    # a concurrent request that checked before the first restart was committed
    async def _nothing_active(book_id):
        return None

    monkeypatch.setattr(reading.instance_repository, "get_active_for_book", _nothing_active)
    with pytest.raises(RuntimeError):
        await reading.start_reading(book.id)

    history = await reading.get_history(book.id)
    assert [a.instance.status for a in history].count(ReadingStatus.IN_PROGRESS) == 1


class _BrokenCloseRepository(ReadingInstanceRepository):
    async def update_status(self, instance_id, status, current_page):
        raise OSError("connection dropped")


async def test_event_is_not_kept_when_closing_fails(session, session_maker) -> None:
    reading = ReadingService(
        BookRepository(session),
        _BrokenCloseRepository(session),
        AbandonmentRepository(session),
        CompletionRepository(session),
        ChallengeRepository(session),
    )
    book, _ = await reading.add_book("Dropped", 300, Genre.FANTASY)

    with pytest.raises(OSError):
        await reading.abandon_book(book.id, 20, AbandonmentReason.OTHER, EmotionalState.NEUTRAL)

    async with session_maker() as other:
        assert await AbandonmentRepository(other).list_all() == []
        active = await ReadingInstanceRepository(other).get_active_for_book(book.id)
    assert active is not None


async def test_events_must_reference_a_stored_instance(session) -> None:
    stray = ReadingInstance(id=uuid4(), book_id=uuid4(), status=ReadingStatus.ABANDONED)

    with pytest.raises(IntegrityError):
        await AbandonmentRepository(session).create(make_abandonment(stray))


# ---------------------------------------------------------------------------
# Coaching and challenges
# ---------------------------------------------------------------------------
async def test_coaching_reads_persisted_history(
    reading: ReadingService, coaching: CoachingService
) -> None:
    for _ in range(5):
        await _abandoned(reading, Genre.HORROR)
    book, _ = await reading.add_book("Current", 300, Genre.HORROR)
    await reading.update_progress(book.id, 150)

    rec = await coaching.get_recommendation(book.id)

    assert rec.type == RecommendationType.QUIT_NOW
    assert rec.abandonment_rate == 100
    assert rec.sample_size == 5
    assert rec.confidence == ConfidenceLevel.MEDIUM
    assert "You're currently at 50%" in rec.message


async def test_coaching_page_must_be_inside_the_book(
    reading: ReadingService, coaching: CoachingService
) -> None:
    book, _ = await reading.add_book("Current", 300, Genre.HORROR)

    with pytest.raises(ValueError):
        await coaching.get_recommendation(book.id, 301)
    with pytest.raises(LookupError):
        await coaching.get_recommendation(uuid4())


async def test_challenge_is_logged_and_decided_once(
    reading: ReadingService, coaching: CoachingService
) -> None:
    book, instance = await reading.add_book("Current", 300, Genre.HORROR)

    challenge, rec = await coaching.challenge(book.id, 40, "  slow start ")

    assert rec.type == RecommendationType.INSUFFICIENT_DATA
    assert challenge.reading_instance_id == instance.id
    assert challenge.doubt_reason == "slow start"
    assert challenge.system_recommendation == rec.type
    assert challenge.recommendation_details == rec.message
    assert challenge.user_decision is None

    decided = await coaching.record_decision(challenge.id, ChallengeDecision.CONTINUED)
    assert decided.user_decision == ChallengeDecision.CONTINUED

    with pytest.raises(ValueError):
        await coaching.record_decision(challenge.id, ChallengeDecision.QUIT)
    with pytest.raises(LookupError):
        await coaching.record_decision(uuid4(), ChallengeDecision.QUIT)


async def test_challenge_needs_an_active_instance(
    reading: ReadingService, coaching: CoachingService
) -> None:
    book, _ = await reading.add_book("Dropped", 300, Genre.FANTASY)
    await reading.abandon_book(book.id, 10, AbandonmentReason.OTHER, EmotionalState.NEUTRAL)

    with pytest.raises(LookupError):
        await coaching.challenge(book.id, 10, "why bother")


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------
async def test_insights_from_persisted_history(
    reading: ReadingService, insights: InsightService
) -> None:
    for _ in range(5):
        await _abandoned(reading, Genre.THRILLER, page=150)

    result = await insights.get_insights()

    assert [i.id for i in result] == ["overall-outcomes", "abandonment-timing", "top-reasons"]
    assert "50–60%" in result[1].text
    assert result[2].text.startswith("When stopping books, your most common reasons are: boring (5)")
