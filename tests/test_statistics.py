from __future__ import annotations

import math
from uuid import uuid4

import pytest

from shelfcoach.domain.entities import ConfidenceLevel, Genre, ReadingInstance
from shelfcoach.services.statistics import (
    attach_books,
    find_similar,
    grade_confidence,
    grade_insight_confidence,
    mean_percent,
    percentage_range,
    progress_percent,
    round_half_up,
)
from tests.factories import make_book, make_instance


@pytest.mark.parametrize(
    ("percentage", "expected"),
    [
        (0.0, "0–10%"),
        (34.2, "30–40%"),
        (39.99, "30–40%"),
        (40.0, "40–50%"),
        (99.9, "90–100%"),
        (100.0, "90–100%"),
        (130.0, "90–100%"),
        (-4.0, "0–10%"),
        (math.nan, "0–10%"),
    ],
)
def test_percentage_range_buckets_and_clamps(percentage: float, expected: str) -> None:
    assert percentage_range(percentage) == expected


def test_round_half_up_rounds_halves_upwards() -> None:
    assert round_half_up(62.5) == 63
    assert round_half_up(0.5) == 1
    assert round_half_up(49.4999) == 49
    assert round_half_up(80.0) == 80


@pytest.mark.parametrize(
    ("size", "expected"),
    [
        (0, ConfidenceLevel.LOW),
        (4, ConfidenceLevel.LOW),
        (5, ConfidenceLevel.MEDIUM),
        (9, ConfidenceLevel.MEDIUM),
        (10, ConfidenceLevel.HIGH),
        (42, ConfidenceLevel.HIGH),
    ],
)
def test_grade_confidence(size: int, expected: ConfidenceLevel) -> None:
    assert grade_confidence(size) == expected


def test_grade_insight_confidence_general_thresholds() -> None:
    assert grade_insight_confidence(5, 5) == ConfidenceLevel.LOW
    assert grade_insight_confidence(7, 5) == ConfidenceLevel.LOW
    assert grade_insight_confidence(8, 5) == ConfidenceLevel.MEDIUM
    assert grade_insight_confidence(14, 5) == ConfidenceLevel.MEDIUM
    assert grade_insight_confidence(15, 5) == ConfidenceLevel.HIGH


def test_grade_insight_confidence_genre_thresholds() -> None:
    assert grade_insight_confidence(6, 6, genre_specific=True) == ConfidenceLevel.LOW
    assert grade_insight_confidence(9, 6, genre_specific=True) == ConfidenceLevel.MEDIUM
    assert grade_insight_confidence(10, 6, genre_specific=True) == ConfidenceLevel.HIGH
    # the same sample is not "high" for a whole-history statement
    assert grade_insight_confidence(10, 6) == ConfidenceLevel.MEDIUM


def test_mean_percent_skips_degenerate_page_counts() -> None:
    mean, valid = mean_percent([(50, 100), (30, 0), (75, 100), (10, -5)])
    assert valid == 2
    assert mean == pytest.approx(62.5)


def test_mean_percent_with_nothing_valid() -> None:
    assert mean_percent([]) == (0.0, 0)
    assert mean_percent([(10, 0)]) == (0.0, 0)


def test_progress_percent_clamps_to_book() -> None:
    assert progress_percent(150, 300) == 50
    assert progress_percent(400, 300) == 100
    assert progress_percent(-3, 300) == 0
    assert progress_percent(10, 0) == 0


def test_find_similar_matches_genre_and_excludes_target() -> None:
    target = make_book(Genre.MYSTERY)
    same = make_book(Genre.MYSTERY)
    other = make_book(Genre.ROMANCE)
    instances = [
        make_instance(target),
        make_instance(same),
        make_instance(other),
        make_instance(same),
    ]

    similar = find_similar(target, [target, same, other], instances)

    assert [book.id for book, _ in similar] == [same.id, same.id]
    assert [inst.id for _, inst in similar] == [instances[1].id, instances[3].id]


def test_attach_books_drops_orphaned_instances() -> None:
    book = make_book()
    orphan = ReadingInstance(id=uuid4(), book_id=uuid4())
    kept = make_instance(book)

    pairs = attach_books([orphan, kept], [book])

    assert pairs == [(book, kept)]
