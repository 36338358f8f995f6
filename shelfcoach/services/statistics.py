"""Shared heuristics for the coaching and insight engines.

Nothing in here is real statistics: confidence is a label derived from
sample size alone, and ranges are fixed ten-point buckets.
"""

from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence
from uuid import UUID

import numpy as np

from shelfcoach.domain.entities import Book, ConfidenceLevel, ReadingInstance

# Coaching grades purely on how many similar books back the answer
COACHING_HIGH_SAMPLE = 10
COACHING_MEDIUM_SAMPLE = 5

# Insights grade against a per-rule minimum; "high" needs a bigger pool
# for whole-history statements than for a single genre
INSIGHT_HIGH_SAMPLE = 15
INSIGHT_GENRE_HIGH_SAMPLE = 10
INSIGHT_MEDIUM_FACTOR = 1.5


def grade_confidence(sample_size: int) -> ConfidenceLevel:
    """Confidence for a coaching recommendation."""
    if sample_size >= COACHING_HIGH_SAMPLE:
        return ConfidenceLevel.HIGH
    if sample_size >= COACHING_MEDIUM_SAMPLE:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def grade_insight_confidence(
    sample_size: int, minimum: int, genre_specific: bool = False
) -> ConfidenceLevel:
    """Confidence for an insight whose rule needs ``minimum`` samples.

    ``low`` means the rule's minimum was only just met, ``medium`` means
    at least one and a half times the minimum.
    """
    high = INSIGHT_GENRE_HIGH_SAMPLE if genre_specific else INSIGHT_HIGH_SAMPLE
    if sample_size >= high:
        return ConfidenceLevel.HIGH
    if sample_size >= minimum * INSIGHT_MEDIUM_FACTOR:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (62.5 -> 63, not 62)."""
    return int(math.floor(value + 0.5))


def percentage_range(percentage: float) -> str:
    """Bucket a percentage into a ten-point range label, e.g. ``"30–40%"``.

    The input is clamped to [0, 100] so the label never leaves that span;
    exactly 100 falls in the top bucket.
    """
    if not math.isfinite(percentage):
        percentage = 0.0
    clamped = min(max(percentage, 0.0), 100.0)
    lower = min(int(math.floor(clamped / 10)) * 10, 90)
    return f"{lower}–{lower + 10}%"


def progress_percent(page: int, page_count: int) -> int:
    """Whole-number progress through a book, 0 for a degenerate page count."""
    if page_count <= 0:
        return 0
    return round_half_up(min(max(page, 0), page_count) / page_count * 100)


def mean_percent(points: Iterable[tuple[int, int]]) -> tuple[float, int]:
    """Average ``page / page_count * 100`` over ``(page, page_count)`` pairs.

    Pairs with a non-positive page count are skipped.  Returns the mean
    and how many pairs contributed; the mean is 0.0 when none did.
    """
    pairs = list(points)
    if not pairs:
        return 0.0, 0
    data = np.array(pairs, dtype=float)
    pages, counts = data[:, 0], data[:, 1]
    valid = counts > 0
    n_valid = int(valid.sum())
    if n_valid == 0:
        return 0.0, 0
    percents = pages[valid] / counts[valid] * 100
    return float(percents.mean()), n_valid


def index_books(books: Sequence[Book]) -> dict[UUID, Book]:
    """Book lookup by id; the first record wins on duplicate ids."""
    index: dict[UUID, Book] = {}
    for book in books:
        index.setdefault(book.id, book)
    return index


def attach_books(
    instances: Sequence[ReadingInstance], books: Sequence[Book]
) -> list[tuple[Book, ReadingInstance]]:
    """Pair each instance with its book, dropping orphaned instances."""
    by_id = index_books(books)
    pairs: list[tuple[Book, ReadingInstance]] = []
    for instance in instances:
        book: Optional[Book] = by_id.get(instance.book_id)
        if book is not None:
            pairs.append((book, instance))
    return pairs


def find_similar(
    target: Book,
    all_books: Sequence[Book],
    all_instances: Sequence[ReadingInstance],
) -> list[tuple[Book, ReadingInstance]]:
    """Past reading instances of other books in the target's genre."""
    return [
        (book, instance)
        for book, instance in attach_books(all_instances, all_books)
        if book.genre == target.genre and book.id != target.id
    ]
