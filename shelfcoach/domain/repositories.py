"""Repository interfaces (ports) for dependency inversion.

Together these make up the event store the analytical engines read from.
Every ``list_all`` returns a full snapshot of its table; there is no
pagination or streaming contract.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from shelfcoach.domain.entities import (
    AbandonmentEvent,
    Book,
    Challenge,
    ChallengeDecision,
    CompletionEvent,
    ReadingInstance,
    ReadingStatus,
)


class IBookRepository(ABC):

    @abstractmethod
    async def create(self, book: Book) -> Book:
        pass

    @abstractmethod
    async def get_by_id(self, book_id: UUID) -> Optional[Book]:
        pass

    @abstractmethod
    async def list_all(self) -> list[Book]:
        pass


class IReadingInstanceRepository(ABC):

    @abstractmethod
    async def create(self, instance: ReadingInstance) -> ReadingInstance:
        pass

    @abstractmethod
    async def list_all(self) -> list[ReadingInstance]:
        pass

    @abstractmethod
    async def get_by_book(self, book_id: UUID) -> list[ReadingInstance]:
        """All instances of one book, most recently started first."""
        pass

    @abstractmethod
    async def get_active_for_book(self, book_id: UUID) -> Optional[ReadingInstance]:
        """The single ``in_progress`` instance for a book, if any."""
        pass

    @abstractmethod
    async def update_progress(self, instance_id: UUID, current_page: int) -> ReadingInstance:
        pass

    @abstractmethod
    async def update_status(
        self, instance_id: UUID, status: ReadingStatus, current_page: int
    ) -> ReadingInstance:
        """Close an instance: set status, final page and ``ended_at``."""
        pass


class IAbandonmentRepository(ABC):

    @abstractmethod
    async def create(self, event: AbandonmentEvent, commit: bool = True) -> AbandonmentEvent:
        """Store the event; ``commit=False`` leaves it for the next commit."""
        pass

    @abstractmethod
    async def list_all(self) -> list[AbandonmentEvent]:
        pass

    @abstractmethod
    async def get_by_instance(self, instance_id: UUID) -> Optional[AbandonmentEvent]:
        pass


class ICompletionRepository(ABC):

    @abstractmethod
    async def create(self, event: CompletionEvent, commit: bool = True) -> CompletionEvent:
        """Store the event; ``commit=False`` leaves it for the next commit."""
        pass

    @abstractmethod
    async def list_all(self) -> list[CompletionEvent]:
        pass

    @abstractmethod
    async def get_by_instance(self, instance_id: UUID) -> Optional[CompletionEvent]:
        pass


class IChallengeRepository(ABC):

    @abstractmethod
    async def create(self, challenge: Challenge) -> Challenge:
        pass

    @abstractmethod
    async def get_by_id(self, challenge_id: UUID) -> Optional[Challenge]:
        pass

    @abstractmethod
    async def record_decision(
        self, challenge_id: UUID, decision: ChallengeDecision
    ) -> Challenge:
        pass

    @abstractmethod
    async def list_by_instance(self, instance_id: UUID) -> list[Challenge]:
        pass
