"""Coaching engine: "should I quit this book now?"

The answer comes from the reader's own history with books of the same
genre.  Rules are evaluated in order and the first one whose guard holds
produces the recommendation:

  1. Too few books logged overall          -> insufficient_data
  2. Too few books in this genre           -> insufficient_data
  3. Most similar books were abandoned     -> quit_now
  4. Reader pushed through doubt before    -> push_to_page
  5. (fallback) history is not decisive    -> insufficient_data

Quit-now outranks push-to-page: when both would qualify the
abandonment pattern wins.

The engine is a pure function over an in-memory snapshot.  It performs no
I/O and never raises for thin data.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from typing import Callable, Sequence
from uuid import UUID

from shelfcoach.domain.entities import (
    Book,
    CoachingRecommendation,
    CompletionEvent,
    CompletionFeeling,
    ConfidenceLevel,
    ReadingInstance,
    ReadingStatus,
    RecommendationType,
)
from shelfcoach.services.statistics import (
    find_similar,
    grade_confidence,
    mean_percent,
    percentage_range,
    progress_percent,
    round_half_up,
)

logger = logging.getLogger(__name__)

MIN_TOTAL_BOOKS = 5
MIN_SIMILAR_BOOKS = 3
QUIT_NOW_ABANDONMENT_RATE = 70.0
MIN_PUSH_THROUGHS = 2
PUSH_TARGET_OFFSET = 15.0  # percentage points past the usual doubt point


@dataclass
class CoachingContext:
    """Everything the rules look at, derived lazily from the snapshot."""

    book: Book
    current_page: int
    all_books: Sequence[Book]
    all_instances: Sequence[ReadingInstance]
    completion_events: Sequence[CompletionEvent]

    @property
    def genre(self) -> str:
        return self.book.genre.value

    @property
    def total_books(self) -> int:
        return len(self.all_books)

    @property
    def current_progress(self) -> int:
        return progress_percent(self.current_page, self.book.page_count)

    @cached_property
    def similar(self) -> list[tuple[Book, ReadingInstance]]:
        return find_similar(self.book, self.all_books, self.all_instances)

    @cached_property
    def abandoned(self) -> list[tuple[Book, ReadingInstance]]:
        return [item for item in self.similar if item[1].status == ReadingStatus.ABANDONED]

    @cached_property
    def completed(self) -> list[tuple[Book, ReadingInstance]]:
        return [item for item in self.similar if item[1].status == ReadingStatus.COMPLETED]

    @cached_property
    def abandonment_rate(self) -> float:
        if not self.similar:
            return 0.0
        return len(self.abandoned) * 100 / len(self.similar)

    @cached_property
    def push_throughs(self) -> list[tuple[Book, CompletionEvent]]:
        """Completed similar books the reader nearly quit and was glad to finish."""
        events: dict[UUID, CompletionEvent] = {}
        for event in self.completion_events:
            events.setdefault(event.reading_instance_id, event)

        result: list[tuple[Book, CompletionEvent]] = []
        for book, instance in self.completed:
            event = events.get(instance.id)
            if (
                event is not None
                and event.almost_quit
                and event.completion_feeling == CompletionFeeling.GLAD
                and event.almost_quit_page is not None
            ):
                result.append((book, event))
        return result

    @cached_property
    def doubt_point(self) -> tuple[float, int]:
        """Average percentage at which push-throughs nearly stopped."""
        return mean_percent(
            (event.almost_quit_page, book.page_count) for book, event in self.push_throughs
        )


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------
def too_few_books(ctx: CoachingContext) -> bool:
    return ctx.total_books < MIN_TOTAL_BOOKS


def too_few_similar(ctx: CoachingContext) -> bool:
    return len(ctx.similar) < MIN_SIMILAR_BOOKS


def mostly_abandoned(ctx: CoachingContext) -> bool:
    return ctx.abandonment_rate >= QUIT_NOW_ABANDONMENT_RATE


def pushed_through_before(ctx: CoachingContext) -> bool:
    if len(ctx.push_throughs) < MIN_PUSH_THROUGHS:
        return False
    _, valid = ctx.doubt_point
    return valid >= MIN_PUSH_THROUGHS


# ---------------------------------------------------------------------------
# Outcome builders
# ---------------------------------------------------------------------------
def _build_too_few_books(ctx: CoachingContext) -> CoachingRecommendation:
    logger.debug("Insufficient total books (%d < %d)", ctx.total_books, MIN_TOTAL_BOOKS)
    return CoachingRecommendation(
        type=RecommendationType.INSUFFICIENT_DATA,
        message=(
            f"You've only logged {ctx.total_books} books so far, not enough to spot "
            "a pattern yet. What does your gut say this time?"
        ),
        confidence=ConfidenceLevel.LOW,
        sample_size=ctx.total_books,
        reasoning="Not enough reading history to provide meaningful guidance.",
    )


def _build_too_few_similar(ctx: CoachingContext) -> CoachingRecommendation:
    count = len(ctx.similar)
    logger.debug("Insufficient similar books (%d < %d)", count, MIN_SIMILAR_BOOKS)
    return CoachingRecommendation(
        type=RecommendationType.INSUFFICIENT_DATA,
        message=(
            f"You've only read {count} {ctx.genre} books before. Not quite enough to see "
            "a pattern in this genre yet. Trust your instinct on this one."
        ),
        confidence=ConfidenceLevel.LOW,
        sample_size=count,
        reasoning=f"Need at least {MIN_SIMILAR_BOOKS} similar books, have {count}.",
    )


def _build_quit_now(ctx: CoachingContext) -> CoachingRecommendation:
    avg_stop, _ = mean_percent(
        (instance.current_page, book.page_count) for book, instance in ctx.abandoned
    )
    typical_range = percentage_range(avg_stop)
    rate = round_half_up(ctx.abandonment_rate)
    logger.debug(
        "QUIT_NOW triggered (rate %.1f%%, typical range %s, progress %d%%)",
        ctx.abandonment_rate, typical_range, ctx.current_progress,
    )
    return CoachingRecommendation(
        type=RecommendationType.QUIT_NOW,
        message=(
            f"In situations like this, you've stopped reading {len(ctx.abandoned)} out of "
            f"{len(ctx.similar)} {ctx.genre} books. Your history with books like this shows "
            f"you typically stop around the {typical_range} mark. "
            f"You're currently at {ctx.current_progress}%."
        ),
        confidence=grade_confidence(len(ctx.similar)),
        sample_size=len(ctx.similar),
        reasoning=f"Based on {len(ctx.similar)} similar books, {rate}% were abandoned.",
        abandonment_rate=rate,
        typical_range=typical_range,
    )


def _build_push_to_page(ctx: CoachingContext) -> CoachingRecommendation:
    avg_doubt, _ = ctx.doubt_point
    page_count = max(ctx.book.page_count, 0)
    target_percent = min(avg_doubt + PUSH_TARGET_OFFSET, 100.0)
    target_page = min(round_half_up(target_percent / 100 * page_count), page_count)
    doubt_range = percentage_range(avg_doubt)
    pushes = len(ctx.push_throughs)
    logger.debug(
        "PUSH_TO_PAGE triggered (%d push-throughs, doubt range %s, target page %d)",
        pushes, doubt_range, target_page,
    )
    return CoachingRecommendation(
        type=RecommendationType.PUSH_TO_PAGE,
        message=(
            f"When you've been at this point before with {ctx.genre} books, you pushed "
            f"through {pushes} times and were glad you did. In your history, doubt usually "
            f"hit around the {doubt_range} mark, but finishing felt worth it. "
            f"You're at {ctx.current_progress}% now. Maybe try page {target_page}?"
        ),
        confidence=grade_confidence(len(ctx.similar)),
        sample_size=len(ctx.similar),
        reasoning=(
            f"Based on {pushes} similar books where pushing through led to satisfaction."
        ),
        target_page=target_page,
    )


def _build_no_clear_pattern(ctx: CoachingContext) -> CoachingRecommendation:
    rate = round_half_up(ctx.abandonment_rate)
    logger.debug("No clear pattern (rate %.1f%%), returning insufficient_data", ctx.abandonment_rate)
    return CoachingRecommendation(
        type=RecommendationType.INSUFFICIENT_DATA,
        message=(
            f"You've read {len(ctx.similar)} {ctx.genre} books before, but the pattern isn't "
            f"clear yet. {len(ctx.abandoned)} were stopped, {len(ctx.completed)} were finished. "
            "Your history doesn't lean strongly either way on this one."
        ),
        confidence=grade_confidence(len(ctx.similar)),
        sample_size=len(ctx.similar),
        reasoning=(
            f"Abandonment rate ({rate}%) doesn't meet threshold for clear recommendation."
        ),
    )


CoachingRule = tuple[
    Callable[[CoachingContext], bool],
    Callable[[CoachingContext], CoachingRecommendation],
]

COACHING_RULES: list[CoachingRule] = [
    (too_few_books, _build_too_few_books),
    (too_few_similar, _build_too_few_similar),
    (mostly_abandoned, _build_quit_now),
    (pushed_through_before, _build_push_to_page),
]


def generate_coaching_recommendation(
    book: Book,
    current_page: int,
    all_books: Sequence[Book],
    all_instances: Sequence[ReadingInstance],
    all_completion_events: Sequence[CompletionEvent],
) -> CoachingRecommendation:
    """Recommend quitting, pushing on to a page, or nothing at all."""
    ctx = CoachingContext(
        book=book,
        current_page=current_page,
        all_books=all_books,
        all_instances=all_instances,
        completion_events=all_completion_events,
    )
    logger.debug(
        "Generating coaching for %r at page %d (%d books, %d instances)",
        book.title, current_page, len(all_books), len(all_instances),
    )
    for applies, build in COACHING_RULES:
        if applies(ctx):
            return build(ctx)
    return _build_no_clear_pattern(ctx)
