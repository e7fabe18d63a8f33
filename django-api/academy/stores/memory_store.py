"""In-process implementation of the AcademyStore."""

from collections.abc import Iterable, Sequence

from academy.domain import Member, OneOffEvent, Rank, RecurringSeries
from academy.stores.interfaces import AccountProvisioner, AcademyStore


class InMemoryAcademyStore(AcademyStore):
    """Dict-backed store keeping records in insertion order."""

    def __init__(
        self,
        members: Iterable[Member] = (),
        series: Iterable[RecurringSeries] = (),
        events: Iterable[OneOffEvent] = (),
        ranks: Iterable[Rank] = (),
    ) -> None:
        self._members = {m.id: m for m in members}
        self._series = {s.id: s for s in series}
        self._events = {e.id: e for e in events}
        self._ranks = {r.id: r for r in ranks}

    def list_members(self) -> list[Member]:
        return list(self._members.values())

    def list_series(self) -> list[RecurringSeries]:
        return list(self._series.values())

    def list_events(self) -> list[OneOffEvent]:
        return sorted(self._events.values(), key=lambda e: (e.date, e.time))

    def list_ranks(self) -> list[Rank]:
        return sorted(self._ranks.values(), key=lambda r: r.ordinal)

    def save_members(self, members: Sequence[Member]) -> None:
        self._members.update((m.id, m) for m in members)

    def save_series(self, series: Sequence[RecurringSeries]) -> None:
        self._series.update((s.id, s) for s in series)

    def save_events(self, events: Sequence[OneOffEvent]) -> None:
        self._events.update((e.id, e) for e in events)

    def save_ranks(self, ranks: Sequence[Rank]) -> None:
        self._ranks.update((r.id, r) for r in ranks)

    def delete_member(self, member_id: str) -> None:
        self._members.pop(member_id, None)

    def delete_series(self, series_id: str) -> None:
        self._series.pop(series_id, None)

    def delete_event(self, event_id: str) -> None:
        self._events.pop(event_id, None)

    def delete_rank(self, rank_id: str) -> None:
        self._ranks.pop(rank_id, None)


class NullAccountProvisioner(AccountProvisioner):
    """Provisioner for deployments where members have no login accounts."""

    def create_member_account(self, member: Member, password: str | None) -> None:
        return None
