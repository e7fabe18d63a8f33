"""Store interfaces (repository pattern).

Stores must be swappable and return domain models. Saves are whole-record
batch upserts; there is no partial-field patch.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from academy.domain import Member, OneOffEvent, Rank, RecurringSeries


class StoreError(Exception):
    """Raised when the backing store rejects a read or write."""


class AcademyStore(ABC):
    """Interface for academy persistence operations."""

    @abstractmethod
    def list_members(self) -> list[Member]:
        """Return all members, including attendance and promotion history."""
        ...

    @abstractmethod
    def list_series(self) -> list[RecurringSeries]:
        """Return all recurring class series with their exceptions."""
        ...

    @abstractmethod
    def list_events(self) -> list[OneOffEvent]:
        """Return all one-off events ordered by date ascending."""
        ...

    @abstractmethod
    def list_ranks(self) -> list[Rank]:
        """Return the rank configuration ordered by ordinal."""
        ...

    @abstractmethod
    def save_members(self, members: Sequence[Member]) -> None:
        """Upsert whole member records together with their ledgers."""
        ...

    @abstractmethod
    def save_series(self, series: Sequence[RecurringSeries]) -> None:
        """Upsert whole series records together with their exceptions."""
        ...

    @abstractmethod
    def save_events(self, events: Sequence[OneOffEvent]) -> None:
        ...

    @abstractmethod
    def save_ranks(self, ranks: Sequence[Rank]) -> None:
        ...

    @abstractmethod
    def delete_member(self, member_id: str) -> None:
        """Delete a member and all data owned by it."""
        ...

    @abstractmethod
    def delete_series(self, series_id: str) -> None:
        ...

    @abstractmethod
    def delete_event(self, event_id: str) -> None:
        ...

    @abstractmethod
    def delete_rank(self, rank_id: str) -> None:
        ...


class AccountProvisioner(ABC):
    """Creates the login account belonging to a new member."""

    @abstractmethod
    def create_member_account(self, member: Member, password: str | None) -> None:
        """Raises StoreError when the account cannot be created."""
        ...
