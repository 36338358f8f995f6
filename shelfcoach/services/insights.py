"""Insight engine: population-level patterns in the whole reading history.

Four independent rules each contribute zero or more insights once the
history holds at least five books:

  * overall-outcomes    how many books were stopped vs finished
  * abandonment-timing  where in a book the reader usually stops
  * genre-<name>        completion pattern per well-sampled genre
  * top-reasons         most common abandonment reasons

Below five books only a single ``early-state`` insight is returned.  The
output order is fixed regardless of the order rules fire in.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional, Sequence

from shelfcoach.domain.entities import (
    AbandonmentEvent,
    Book,
    ConfidenceLevel,
    Insight,
    InsightCategory,
    ReadingInstance,
    ReadingStatus,
    SampleUnit,
)
from shelfcoach.services.statistics import (
    attach_books,
    grade_insight_confidence,
    mean_percent,
    percentage_range,
    round_half_up,
)

logger = logging.getLogger(__name__)

MIN_TOTAL_BOOKS = 5

# overall-outcomes presentation bands (by total books)
PERCENTAGE_SECONDARY_BOOKS = 8
PERCENTAGE_PRIMARY_BOOKS = 15
OVERALL_MINIMUM = 5

MIN_ABANDONED_FOR_TIMING = 3

MIN_TOTAL_BOOKS_FOR_GENRE = 8
MIN_GENRE_INSTANCES = 6
GENRE_PERCENTAGE_INSTANCES = 8

MIN_ABANDONMENT_EVENTS = 5
TOP_REASON_COUNT = 3

EARLY_STATE_ID = "early-state"
OVERALL_ID = "overall-outcomes"
TIMING_ID = "abandonment-timing"
TOP_REASONS_ID = "top-reasons"


def _overall_outcomes(
    total_books: int, abandoned: int, completed: int
) -> Optional[Insight]:
    if abandoned == 0 and completed == 0:
        logger.debug("Overall outcomes skipped (no finished or stopped books)")
        return None

    if abandoned == 0:
        text = f"In your history, you've finished all {total_books} books you've started."
    else:
        rate = round_half_up(abandoned / total_books * 100)
        if total_books >= PERCENTAGE_PRIMARY_BOOKS:
            text = (
                f"In your history, {rate}% of books were stopped before finishing. "
                f"Based on {total_books} books recorded."
            )
        elif total_books >= PERCENTAGE_SECONDARY_BOOKS:
            text = f"So far, you've stopped reading {abandoned} out of {total_books} books ({rate}%)."
        else:
            text = f"So far, you've stopped reading {abandoned} out of {total_books} books recorded."

    logger.debug("Overall outcomes insight added")
    return Insight(
        id=OVERALL_ID,
        text=text,
        category=InsightCategory.COMPLETION,
        confidence=grade_insight_confidence(total_books, OVERALL_MINIMUM),
        sample_size=total_books,
        unit=SampleUnit.BOOKS,
    )


def _abandonment_timing(
    abandoned: list[tuple[Book, ReadingInstance]],
) -> Optional[Insight]:
    if len(abandoned) < MIN_ABANDONED_FOR_TIMING:
        logger.debug(
            "Abandonment timing skipped (abandoned: %d < %d)",
            len(abandoned), MIN_ABANDONED_FOR_TIMING,
        )
        return None

    avg, valid = mean_percent(
        (instance.current_page, book.page_count) for book, instance in abandoned
    )
    if valid < MIN_ABANDONED_FOR_TIMING:
        logger.debug(
            "Abandonment timing skipped (valid count: %d < %d)", valid, MIN_ABANDONED_FOR_TIMING
        )
        return None

    stop_range = percentage_range(avg)
    logger.debug("Abandonment timing insight added (range: %s)", stop_range)
    return Insight(
        id=TIMING_ID,
        text=(
            f"When you stop reading, it's usually around the {stop_range} mark. "
            f"Based on {valid} abandoned books."
        ),
        category=InsightCategory.ABANDONMENT,
        confidence=grade_insight_confidence(valid, MIN_ABANDONED_FOR_TIMING),
        sample_size=valid,
        unit=SampleUnit.BOOKS,
    )


def _genre_patterns(
    total_books: int, pairs: list[tuple[Book, ReadingInstance]]
) -> list[Insight]:
    if total_books < MIN_TOTAL_BOOKS_FOR_GENRE:
        logger.debug(
            "Genre insights skipped (total books: %d < %d)", total_books, MIN_TOTAL_BOOKS_FOR_GENRE
        )
        return []

    # dicts keep first-seen genre order
    totals: dict[str, int] = {}
    finished: dict[str, int] = {}
    for book, instance in pairs:
        genre = book.genre.value
        totals[genre] = totals.get(genre, 0) + 1
        finished.setdefault(genre, 0)
        if instance.status == ReadingStatus.COMPLETED:
            finished[genre] += 1

    insights: list[Insight] = []
    for genre, total in totals.items():
        if total < MIN_GENRE_INSTANCES:
            logger.debug("Genre insight skipped for %s (%d < %d)", genre, total, MIN_GENRE_INSTANCES)
            continue

        done = finished[genre]
        if done == 0:
            text = f"In your history, you haven't finished a {genre} book yet. Based on {total} logged."
        elif done == total:
            text = f"So far, you've finished every {genre} book you've started ({total} total)."
        elif total >= GENRE_PERCENTAGE_INSTANCES:
            rate = round_half_up(done / total * 100)
            text = f"In your history, you finish {rate}% of {genre} books. Based on {total} logged."
        else:
            text = f"So far, you've finished {done} out of {total} {genre} books."

        insights.append(
            Insight(
                id=f"genre-{genre}",
                text=text,
                category=InsightCategory.GENRE,
                confidence=grade_insight_confidence(total, MIN_GENRE_INSTANCES, genre_specific=True),
                sample_size=total,
                unit=SampleUnit.BOOKS,
            )
        )
        logger.debug("Genre insight added for %s (%d books)", genre, total)
    return insights


def _top_reasons(events: Sequence[AbandonmentEvent]) -> Optional[Insight]:
    if len(events) < MIN_ABANDONMENT_EVENTS:
        logger.debug("Top reasons skipped (events: %d < %d)", len(events), MIN_ABANDONMENT_EVENTS)
        return None

    # Counter preserves first-encounter order and sorted() is stable,
    # so equal counts keep that order
    tally = Counter(event.primary_reason.value for event in events)
    top = sorted(tally.items(), key=lambda item: -item[1])[:TOP_REASON_COUNT]
    reasons = ", ".join(f"{reason} ({count})" for reason, count in top)

    logger.debug("Top reasons insight added (%d events)", len(events))
    return Insight(
        id=TOP_REASONS_ID,
        text=(
            f"When stopping books, your most common reasons are: {reasons}. "
            f"Based on {len(events)} events."
        ),
        category=InsightCategory.REASONS,
        confidence=grade_insight_confidence(len(events), MIN_ABANDONMENT_EVENTS),
        sample_size=len(events),
        unit=SampleUnit.EVENTS,
    )


def insight_priority(insight: Insight) -> int:
    """Display bucket: outcomes, timing, genres, reasons, then anything else."""
    if insight.id == OVERALL_ID:
        return 0
    if insight.id == TIMING_ID:
        return 1
    if insight.category == InsightCategory.GENRE:
        return 2
    if insight.id == TOP_REASONS_ID:
        return 3
    return 4


def generate_insights(
    instances: Sequence[ReadingInstance],
    books: Sequence[Book],
    abandonment_events: Sequence[AbandonmentEvent],
) -> list[Insight]:
    """Turn the full reading history into an ordered list of insights."""
    total_books = len(books)
    logger.debug("Generating insights (total books: %d)", total_books)

    if total_books < MIN_TOTAL_BOOKS:
        logger.debug("Below minimum threshold (%d books), early state", MIN_TOTAL_BOOKS)
        return [
            Insight(
                id=EARLY_STATE_ID,
                text="Your reading patterns will appear here as more history is recorded.",
                category=InsightCategory.GENERAL,
                confidence=ConfidenceLevel.HIGH,
                sample_size=total_books,
                unit=SampleUnit.BOOKS,
            )
        ]

    pairs = attach_books(instances, books)
    abandoned = [p for p in pairs if p[1].status == ReadingStatus.ABANDONED]
    completed = [p for p in pairs if p[1].status == ReadingStatus.COMPLETED]
    logger.debug("Abandoned: %d, Completed: %d", len(abandoned), len(completed))

    insights: list[Insight] = []
    overall = _overall_outcomes(total_books, len(abandoned), len(completed))
    if overall:
        insights.append(overall)
    timing = _abandonment_timing(abandoned)
    if timing:
        insights.append(timing)
    insights.extend(_genre_patterns(total_books, pairs))
    # events of instances without a known book are dropped like the instances
    known = {instance.id for _, instance in pairs}
    events = [e for e in abandonment_events if e.reading_instance_id in known]
    if len(events) < len(abandonment_events):
        logger.debug("Dropped %d orphaned abandonment events", len(abandonment_events) - len(events))
    reasons = _top_reasons(events)
    if reasons:
        insights.append(reasons)

    return sorted(insights, key=insight_priority)
