"""Insight service."""

from shelfcoach.domain.entities import Insight
from shelfcoach.domain.repositories import (
    IAbandonmentRepository,
    IBookRepository,
    IReadingInstanceRepository,
)
from shelfcoach.domain.services import IInsightService
from shelfcoach.services.history import load_snapshot
from shelfcoach.services.insights import generate_insights


class InsightService(IInsightService):

    def __init__(
        self,
        book_repository: IBookRepository,
        instance_repository: IReadingInstanceRepository,
        abandonment_repository: IAbandonmentRepository,
    ):
        self.book_repository = book_repository
        self.instance_repository = instance_repository
        self.abandonment_repository = abandonment_repository

    async def get_insights(self) -> list[Insight]:
        snapshot = await load_snapshot(
            self.book_repository,
            self.instance_repository,
            abandonment_repo=self.abandonment_repository,
        )
        return generate_insights(
            snapshot.instances, snapshot.books, snapshot.abandonment_events
        )
