"""Schedule coordinator - the academy's business entry points.

The coordinator:
- Holds an immutable snapshot of members, series, events and ranks
- Depends only on interfaces (stores, provisioner, clock)
- Checks the acting user's role before touching any state
- Computes every derived update before persisting anything
- Memoizes schedule expansion on the series/events snapshot
- Keeps background refreshes from clobbering in-flight mutations
"""

import logging
import threading
from collections.abc import Callable, Iterable, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from academy.conf import AcademySettings
from academy.domain.errors import (
    EventNotFoundError,
    InvalidExceptionError,
    InvalidInstanceIdError,
    MemberNotFoundError,
    RankNotFoundError,
    SeriesNotFoundError,
)
from academy.domain.models import (
    AttendanceRecord,
    CalendarInstance,
    Member,
    OneOffEvent,
    Rank,
    RecurringSeries,
    SessionException,
)
from academy.domain.value_objects import (
    Actor,
    AttendanceStatus,
    EventType,
    ExceptionKind,
    ExpansionWindow,
    InstanceStatus,
    MemberStatus,
    generate_id,
    parse_wall_clock,
)
from academy.services import attendance_ledger, promotion, schedule_expander
from academy.services.authorization import require_master, require_owner_or_master
from academy.services.clock import Clock, SystemClock
from academy.stores.interfaces import AccountProvisioner, AcademyStore, StoreError
from academy.stores.memory_store import NullAccountProvisioner

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset({"name", "email", "phone"})


class SyncState(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"
    MUTATING = "mutating"


class OutcomeStatus(Enum):
    OK = "ok"
    NOOP = "noop"
    PARTIAL = "partial"
    UNSAVED = "unsaved"


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutation that passed its permission check.

    UNSAVED means local state advanced but the store write failed. PARTIAL
    means the record was created but a dependent action failed.
    """

    status: OutcomeStatus
    message: str = ""
    value: Any = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK


class ScheduleCoordinator:
    """Entry points for roster, schedule, attendance and rank operations."""

    def __init__(
        self,
        store: AcademyStore,
        provisioner: AccountProvisioner | None = None,
        clock: Clock | None = None,
        config: AcademySettings | None = None,
    ) -> None:
        self._store = store
        self._provisioner = provisioner or NullAccountProvisioner()
        self._clock = clock or SystemClock()
        self._config = config or AcademySettings()

        self._state_lock = threading.Lock()
        self._mutation_lock = threading.RLock()
        self._state = SyncState.IDLE
        self._version = 0
        self._mutation_depth = 0

        self._members: tuple[Member, ...] = ()
        self._series: tuple[RecurringSeries, ...] = ()
        self._events: tuple[OneOffEvent, ...] = ()
        self._ranks: tuple[Rank, ...] = ()

        self._schedule_key: tuple | None = None
        self._schedule: tuple[CalendarInstance, ...] = ()
        self.expansion_count = 0

    @classmethod
    def load(cls, store: AcademyStore, **kwargs) -> "ScheduleCoordinator":
        coordinator = cls(store, **kwargs)
        coordinator.refresh()
        return coordinator

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def members(self) -> tuple[Member, ...]:
        return self._members

    @property
    def series(self) -> tuple[RecurringSeries, ...]:
        return self._series

    @property
    def events(self) -> tuple[OneOffEvent, ...]:
        return self._events

    @property
    def ranks(self) -> tuple[Rank, ...]:
        return self._ranks

    def refresh(self) -> bool:
        """Reload the snapshot from the store.

        Skipped while a mutation is in flight; a load that overlapped a
        mutation is discarded so the mutation's result is kept. Returns True
        when the snapshot was replaced.
        """
        with self._state_lock:
            if self._state is not SyncState.IDLE:
                logger.debug("Refresh skipped while %s", self._state.value)
                return False
            self._state = SyncState.REFRESHING
            version = self._version

        snapshot = None
        replaced = False
        try:
            snapshot = (
                tuple(self._store.list_members()),
                tuple(self._store.list_series()),
                tuple(self._store.list_events()),
                tuple(self._store.list_ranks()),
            )
        except StoreError:
            logger.exception("Failed to load academy snapshot")
        finally:
            with self._state_lock:
                if self._state is SyncState.REFRESHING:
                    self._state = SyncState.IDLE
                stale = self._version != version
                if snapshot is not None and not stale:
                    self._members, self._series, self._events, self._ranks = snapshot
                    replaced = True

        if snapshot is not None and stale:
            logger.info("Discarding refresh that overlapped a mutation")
        return replaced

    @contextmanager
    def _mutation(self):
        with self._mutation_lock:
            with self._state_lock:
                self._mutation_depth += 1
                self._version += 1
                self._state = SyncState.MUTATING
            try:
                yield
            finally:
                with self._state_lock:
                    self._mutation_depth -= 1
                    self._version += 1
                    if self._mutation_depth == 0:
                        self._state = SyncState.IDLE

    def _persist(self, description: str, *writes: Callable[[], None]) -> MutationResult:
        try:
            for write in writes:
                write()
        except StoreError as exc:
            logger.warning("Could not save %s: %s", description, exc)
            return MutationResult(
                OutcomeStatus.UNSAVED, f"Changes to {description} were not saved"
            )
        return MutationResult(OutcomeStatus.OK)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def get_member(self, member_id: str) -> Member:
        for member in self._members:
            if member.id == member_id:
                return member
        raise MemberNotFoundError(member_id)

    def get_series(self, series_id: str) -> RecurringSeries:
        for series in self._series:
            if series.id == series_id:
                return series
        raise SeriesNotFoundError(series_id)

    def get_event(self, event_id: str) -> OneOffEvent:
        for event in self._events:
            if event.id == event_id:
                return event
        raise EventNotFoundError(event_id)

    def _replace_members(self, updated: Iterable[Member]) -> None:
        by_id = {m.id: m for m in updated}
        self._members = tuple(by_id.get(m.id, m) for m in self._members)

    def _replace_series(self, updated: Iterable[RecurringSeries]) -> None:
        by_id = {s.id: s for s in updated}
        self._series = tuple(by_id.get(s.id, s) for s in self._series)

    def _replace_events(self, updated: Iterable[OneOffEvent]) -> None:
        by_id = {e.id: e for e in updated}
        self._events = tuple(by_id.get(e.id, e) for e in self._events)

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------
    def default_window(self) -> ExpansionWindow:
        return ExpansionWindow.around(
            self._clock.today(),
            self._config.window_months_before,
            self._config.window_months_after,
        )

    def schedule(self, window: ExpansionWindow | None = None) -> tuple[CalendarInstance, ...]:
        """Return the expanded calendar, recomputing only when series, events
        or the window changed since the last call."""
        window = window or self.default_window()
        key = (self._series, self._events, window)
        if key != self._schedule_key:
            self._schedule = tuple(
                schedule_expander.expand(
                    self._series,
                    self._events,
                    window,
                    self._config.default_event_minutes,
                )
            )
            self._schedule_key = key
            self.expansion_count += 1
        return self._schedule

    # ------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------
    def add_member(
        self, actor: Actor, member: Member, password: str | None = None
    ) -> MutationResult:
        require_master(actor, "add_member")
        with self._mutation():
            created = replace(
                member,
                id=member.id or generate_id("mem"),
                status=MemberStatus.ACTIVE,
                attendance_count=0,
                attendance_history=(),
            )
            self._members = self._members + (created,)
            result = self._persist("member", lambda: self._store.save_members([created]))
            if result.status is OutcomeStatus.UNSAVED:
                return replace(result, value=created)

            try:
                self._provisioner.create_member_account(created, password)
            except StoreError as exc:
                logger.warning("Account provisioning failed for %s: %s", created.id, exc)
                return MutationResult(
                    OutcomeStatus.PARTIAL,
                    "Member created, but the login account could not be created",
                    created,
                )
            logger.info("Added member %s", created.id)
            return MutationResult(OutcomeStatus.OK, value=created)

    def update_member(self, actor: Actor, member: Member) -> MutationResult:
        require_master(actor, "update_member")
        with self._mutation():
            self.get_member(member.id)
            updated = promotion.evaluate(member, self._ranks)
            self._replace_members([updated])
            result = self._persist("member", lambda: self._store.save_members([updated]))
            return replace(result, value=updated)

    def update_member_profile(
        self, actor: Actor, member_id: str, **changes: str
    ) -> MutationResult:
        require_owner_or_master(actor, member_id, "update_member_profile")
        unknown = set(changes) - PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Not a profile field: {', '.join(sorted(unknown))}")
        with self._mutation():
            updated = replace(self.get_member(member_id), **changes)
            self._replace_members([updated])
            result = self._persist("profile", lambda: self._store.save_members([updated]))
            return replace(result, value=updated)

    def update_member_status(
        self, actor: Actor, member_id: str, status: MemberStatus
    ) -> MutationResult:
        require_master(actor, "update_member_status")
        with self._mutation():
            updated = replace(self.get_member(member_id), status=status)
            self._replace_members([updated])
            result = self._persist("member", lambda: self._store.save_members([updated]))
            return replace(result, value=updated)

    def delete_member(self, actor: Actor, member_id: str) -> MutationResult:
        """Remove a member and strip them from every roster and registrant list."""
        require_master(actor, "delete_member")
        with self._mutation():
            self.get_member(member_id)

            series = [
                replace(s, member_ids=tuple(i for i in s.member_ids if i != member_id))
                for s in self._series
                if member_id in s.member_ids
            ]
            events = [
                replace(
                    e, registrant_ids=tuple(i for i in e.registrant_ids if i != member_id)
                )
                for e in self._events
                if member_id in e.registrant_ids
            ]

            self._members = tuple(m for m in self._members if m.id != member_id)
            self._replace_series(series)
            self._replace_events(events)

            writes = [lambda: self._store.delete_member(member_id)]
            if series:
                writes.append(lambda: self._store.save_series(series))
            if events:
                writes.append(lambda: self._store.save_events(events))
            logger.info(
                "Deleting member %s (%d rosters, %d events)",
                member_id,
                len(series),
                len(events),
            )
            return self._persist("member removal", *writes)

    # ------------------------------------------------------------------
    # Attendance
    # ------------------------------------------------------------------
    def mark_attendance(
        self,
        actor: Actor,
        member_id: str,
        class_id: str,
        day: date | None,
        status: AttendanceStatus | None,
        reason: str | None = None,
    ) -> MutationResult:
        """Record, change or (with status None) clear one attendance mark."""
        require_master(actor, "mark_attendance")
        with self._mutation():
            member = self.get_member(member_id)
            updated = attendance_ledger.apply_attendance(
                member,
                day or self._clock.today(),
                class_id,
                status,
                self._clock.now(),
                reason,
            )
            updated = promotion.evaluate(updated, self._ranks)
            self._replace_members([updated])
            result = self._persist("attendance", lambda: self._store.save_members([updated]))
            return replace(result, value=updated)

    def bulk_mark_present(
        self, actor: Actor, class_id: str, day: date | None = None
    ) -> MutationResult:
        require_master(actor, "bulk_mark_present")
        with self._mutation():
            series = self.get_series(class_id)
            changed = [
                promotion.evaluate(m, self._ranks)
                for m in attendance_ledger.bulk_mark_present(
                    self._members,
                    series.member_ids,
                    class_id,
                    day or self._clock.today(),
                    self._clock.now(),
                )
            ]
            if not changed:
                return MutationResult(OutcomeStatus.NOOP, "Everyone already has a mark", [])
            self._replace_members(changed)
            result = self._persist("attendance", lambda: self._store.save_members(changed))
            return replace(result, value=changed)

    def attendance_history(
        self, actor: Actor, member_id: str
    ) -> tuple[AttendanceRecord, ...]:
        require_owner_or_master(actor, member_id, "attendance_history")
        return self.get_member(member_id).attendance_history

    def promote_member(self, actor: Actor, member_id: str) -> MutationResult:
        require_master(actor, "promote_member")
        with self._mutation():
            member = self.get_member(member_id)
            promoted = promotion.commit_promotion(
                member, self._ranks, self._clock.today()
            )
            if promoted is member:
                return MutationResult(OutcomeStatus.NOOP, "No higher rank", member)
            self._replace_members([promoted])
            logger.info("Promoted member %s to rank %s", member_id, promoted.rank_id)
            result = self._persist("promotion", lambda: self._store.save_members([promoted]))
            return replace(result, value=promoted)

    # ------------------------------------------------------------------
    # Series
    # ------------------------------------------------------------------
    def add_series(self, actor: Actor, series: RecurringSeries) -> MutationResult:
        require_master(actor, "add_series")
        with self._mutation():
            created = replace(series, id=series.id or generate_id("cls"))
            self._series = self._series + (created,)
            result = self._persist("class", lambda: self._store.save_series([created]))
            return replace(result, value=created)

    def update_series(self, actor: Actor, series: RecurringSeries) -> MutationResult:
        require_master(actor, "update_series")
        with self._mutation():
            self.get_series(series.id)
            self._replace_series([series])
            result = self._persist("class", lambda: self._store.save_series([series]))
            return replace(result, value=series)

    def delete_series(self, actor: Actor, series_id: str) -> MutationResult:
        require_master(actor, "delete_series")
        with self._mutation():
            self.get_series(series_id)
            members = [
                replace(m, class_ids=tuple(c for c in m.class_ids if c != series_id))
                for m in self._members
                if series_id in m.class_ids
            ]
            self._series = tuple(s for s in self._series if s.id != series_id)
            self._replace_members(members)

            writes = [lambda: self._store.delete_series(series_id)]
            if members:
                writes.append(lambda: self._store.save_members(members))
            return self._persist("class removal", *writes)

    def modify_session(
        self, actor: Actor, series_id: str, exception: SessionException
    ) -> MutationResult:
        """Record an exception for one date, replacing any earlier one."""
        require_master(actor, "modify_session")
        with self._mutation():
            return self._modify_session(series_id, exception)

    def _modify_session(
        self, series_id: str, exception: SessionException
    ) -> MutationResult:
        for value in (exception.new_start_time, exception.new_end_time):
            if value is not None and parse_wall_clock(value) is None:
                raise InvalidExceptionError(f"Invalid time: {value}")
        series = self.get_series(series_id)
        updated = replace(series, exceptions=series.exceptions.with_exception(exception))
        self._replace_series([updated])
        result = self._persist("session", lambda: self._store.save_series([updated]))
        return replace(result, value=updated)

    def enroll_member(self, actor: Actor, member_id: str, class_id: str) -> MutationResult:
        require_master(actor, "enroll_member")
        with self._mutation():
            member = self.get_member(member_id)
            series = self.get_series(class_id)
            if member_id in series.member_ids and class_id in member.class_ids:
                return MutationResult(OutcomeStatus.NOOP, "Already enrolled")

            if member_id not in series.member_ids:
                series = replace(series, member_ids=series.member_ids + (member_id,))
            if class_id not in member.class_ids:
                member = replace(member, class_ids=member.class_ids + (class_id,))
            self._replace_series([series])
            self._replace_members([member])
            return self._persist(
                "enrollment",
                lambda: self._store.save_series([series]),
                lambda: self._store.save_members([member]),
            )

    def unenroll_member(
        self, actor: Actor, member_id: str, class_id: str
    ) -> MutationResult:
        require_master(actor, "unenroll_member")
        with self._mutation():
            member = self.get_member(member_id)
            series = self.get_series(class_id)
            series = replace(
                series, member_ids=tuple(i for i in series.member_ids if i != member_id)
            )
            member = replace(
                member, class_ids=tuple(c for c in member.class_ids if c != class_id)
            )
            self._replace_series([series])
            self._replace_members([member])
            return self._persist(
                "enrollment",
                lambda: self._store.save_series([series]),
                lambda: self._store.save_members([member]),
            )

    # ------------------------------------------------------------------
    # One-off events
    # ------------------------------------------------------------------
    def _exam_ready_ids(self) -> list[str]:
        return [m.id for m in self._members if m.status is MemberStatus.EXAM_READY]

    def add_event(self, actor: Actor, event: OneOffEvent) -> MutationResult:
        """Create an event; exams start with every exam-ready member registered."""
        require_master(actor, "add_event")
        with self._mutation():
            registrants = list(event.registrant_ids)
            if event.event_type is EventType.EXAM:
                registrants += self._exam_ready_ids()
            created = replace(
                event,
                id=event.id or generate_id("evt"),
                registrant_ids=tuple(dict.fromkeys(registrants)),
            )
            self._events = self._events + (created,)
            result = self._persist("event", lambda: self._store.save_events([created]))
            return replace(result, value=created)

    def update_event(self, actor: Actor, event: OneOffEvent) -> MutationResult:
        require_master(actor, "update_event")
        with self._mutation():
            return self._update_event(event)

    def _update_event(self, event: OneOffEvent) -> MutationResult:
        self.get_event(event.id)
        self._replace_events([event])
        result = self._persist("event", lambda: self._store.save_events([event]))
        return replace(result, value=event)

    def delete_event(self, actor: Actor, event_id: str) -> MutationResult:
        require_master(actor, "delete_event")
        with self._mutation():
            return self._delete_event(event_id)

    def _delete_event(self, event_id: str) -> MutationResult:
        self.get_event(event_id)
        self._events = tuple(e for e in self._events if e.id != event_id)
        return self._persist("event removal", lambda: self._store.delete_event(event_id))

    def sync_exam_registrants(self, actor: Actor, event_id: str) -> MutationResult:
        """Register members who became exam-ready after the exam was created."""
        require_master(actor, "sync_exam_registrants")
        with self._mutation():
            event = self.get_event(event_id)
            if event.event_type is not EventType.EXAM:
                return MutationResult(OutcomeStatus.NOOP, "Not an exam", event)
            missing = [i for i in self._exam_ready_ids() if i not in event.registrant_ids]
            if not missing:
                return MutationResult(OutcomeStatus.NOOP, "No new exam-ready members", event)
            return self._update_event(
                replace(event, registrant_ids=event.registrant_ids + tuple(missing))
            )

    def register_for_event(
        self, actor: Actor, member_id: str, event_id: str
    ) -> MutationResult:
        """Register a member; exam registration is managed by the master only."""
        require_owner_or_master(actor, member_id, "register_for_event")
        event = self.get_event(event_id)
        if event.event_type is EventType.EXAM:
            require_master(actor, "register_for_exam")
        with self._mutation():
            self.get_member(member_id)
            event = self.get_event(event_id)
            if member_id in event.registrant_ids:
                return MutationResult(OutcomeStatus.NOOP, "Already registered", event)
            return self._update_event(
                replace(event, registrant_ids=event.registrant_ids + (member_id,))
            )

    def update_event_registrants(
        self, actor: Actor, event_id: str, member_ids: Sequence[str]
    ) -> MutationResult:
        require_master(actor, "update_event_registrants")
        with self._mutation():
            event = self.get_event(event_id)
            return self._update_event(
                replace(event, registrant_ids=tuple(dict.fromkeys(member_ids)))
            )

    def enrolled_events(self, actor: Actor, member_id: str) -> list[OneOffEvent]:
        """Events the member is registered for, from the lookback threshold on,
        newest first."""
        require_owner_or_master(actor, member_id, "enrolled_events")
        threshold = self._clock.today() - timedelta(
            days=self._config.enrolled_events_lookback_days
        )
        return sorted(
            (
                e
                for e in self._events
                if member_id in e.registrant_ids and e.date >= threshold
            ),
            key=lambda e: e.date,
            reverse=True,
        )

    # ------------------------------------------------------------------
    # Calendar instances
    # ------------------------------------------------------------------
    def update_calendar_instance(
        self,
        actor: Actor,
        instance_id: str,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        instructor: str | None = None,
        status: InstanceStatus | None = None,
        title: str | None = None,
    ) -> MutationResult:
        """Edit one calendar instance.

        One-off instances edit their event. Recurring instances record a
        session exception on the instance's own date.
        """
        require_master(actor, "update_calendar_instance")
        with self._mutation():
            event = next((e for e in self._events if e.id == instance_id), None)
            if event is not None:
                return self._update_event(_edit_event(event, start, end, title))

            parts = schedule_expander.split_instance_id(instance_id)
            if parts is None:
                raise InvalidInstanceIdError()
            series_id, day = parts
            if status is InstanceStatus.CANCELLED:
                kind = ExceptionKind.CANCEL
            elif status is InstanceStatus.RESCHEDULED:
                kind = ExceptionKind.RESCHEDULE
            else:
                kind = ExceptionKind.INSTRUCTOR
            exception = SessionException(
                date=day,
                kind=kind,
                new_start_time=start.strftime("%H:%M") if start else None,
                new_end_time=end.strftime("%H:%M") if end else None,
                new_instructor=instructor,
            )
            return self._modify_session(series_id, exception)

    def delete_calendar_instance(self, actor: Actor, instance_id: str) -> MutationResult:
        """Delete a one-off event, or cancel a single recurring occurrence."""
        require_master(actor, "delete_calendar_instance")
        with self._mutation():
            if any(e.id == instance_id for e in self._events):
                return self._delete_event(instance_id)
            parts = schedule_expander.split_instance_id(instance_id)
            if parts is None:
                raise InvalidInstanceIdError()
            series_id, day = parts
            return self._modify_session(
                series_id, SessionException(date=day, kind=ExceptionKind.CANCEL)
            )

    # ------------------------------------------------------------------
    # Ranks
    # ------------------------------------------------------------------
    def add_rank(self, actor: Actor, rank: Rank) -> MutationResult:
        require_master(actor, "add_rank")
        with self._mutation():
            created = replace(rank, id=rank.id or generate_id("rank"))
            self._ranks = self._ranks + (created,)
            return self._save_ranks([created])

    def update_rank(self, actor: Actor, rank: Rank) -> MutationResult:
        require_master(actor, "update_rank")
        with self._mutation():
            if not any(r.id == rank.id for r in self._ranks):
                raise RankNotFoundError(rank.id)
            self._ranks = tuple(rank if r.id == rank.id else r for r in self._ranks)
            return self._save_ranks([rank])

    def delete_rank(self, actor: Actor, rank_id: str) -> MutationResult:
        require_master(actor, "delete_rank")
        with self._mutation():
            if not any(r.id == rank_id for r in self._ranks):
                raise RankNotFoundError(rank_id)
            self._ranks = tuple(r for r in self._ranks if r.id != rank_id)
            return self._apply_ranks("rank removal", lambda: self._store.delete_rank(rank_id))

    def _save_ranks(self, ranks: list[Rank]) -> MutationResult:
        self._ranks = tuple(sorted(self._ranks, key=lambda r: r.ordinal))
        return self._apply_ranks("ranks", lambda: self._store.save_ranks(ranks))

    def _apply_ranks(self, description: str, write: Callable[[], None]) -> MutationResult:
        changed = self._reevaluate_members()
        writes = [write]
        if changed:
            writes.append(lambda: self._store.save_members(changed))
        result = self._persist(description, *writes)
        return replace(result, value=changed)

    def _reevaluate_members(self) -> list[Member]:
        changed = []
        for member in self._members:
            evaluated = promotion.evaluate(member, self._ranks)
            if evaluated is not member:
                changed.append(evaluated)
        self._replace_members(changed)
        return changed


def _edit_event(
    event: OneOffEvent,
    start: datetime | None,
    end: datetime | None,
    title: str | None,
) -> OneOffEvent:
    changes: dict[str, Any] = {}
    if start is not None:
        changes["date"] = start.date()
        changes["time"] = start.strftime("%H:%M")
        if end is not None and end > start:
            changes["duration_minutes"] = int((end - start).total_seconds() // 60)
    if title:
        changes["title"] = title
    return replace(event, **changes)
