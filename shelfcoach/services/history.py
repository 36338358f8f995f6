"""Consistent in-memory snapshot of the reading history.

Both engines must see every collection as it stood at one moment, so all
reads happen here, up front, before any engine runs.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from shelfcoach.domain.entities import (
    AbandonmentEvent,
    Book,
    CompletionEvent,
    ReadingInstance,
)
from shelfcoach.domain.repositories import (
    IAbandonmentRepository,
    IBookRepository,
    ICompletionRepository,
    IReadingInstanceRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class HistorySnapshot:
    books: list[Book] = field(default_factory=list)
    instances: list[ReadingInstance] = field(default_factory=list)
    abandonment_events: list[AbandonmentEvent] = field(default_factory=list)
    completion_events: list[CompletionEvent] = field(default_factory=list)


async def load_snapshot(
    book_repo: IBookRepository,
    instance_repo: IReadingInstanceRepository,
    abandonment_repo: Optional[IAbandonmentRepository] = None,
    completion_repo: Optional[ICompletionRepository] = None,
) -> HistorySnapshot:
    """Fetch the collections an engine needs; omitted repos stay empty.

    Reads are awaited one after another: the repositories
    usually share one ``AsyncSession``, which does not allow concurrent use.
    """
    snapshot = HistorySnapshot(
        books=await book_repo.list_all(),
        instances=await instance_repo.list_all(),
    )
    if abandonment_repo is not None:
        snapshot.abandonment_events = await abandonment_repo.list_all()
    if completion_repo is not None:
        snapshot.completion_events = await completion_repo.list_all()

    logger.info(
        "Loaded history snapshot: %d books, %d instances, %d abandonments, %d completions",
        len(snapshot.books),
        len(snapshot.instances),
        len(snapshot.abandonment_events),
        len(snapshot.completion_events),
    )
    return snapshot
