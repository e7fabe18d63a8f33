"""Domain models representing academy state.

These are pure, immutable domain objects with no API input rules.
Django ORM models are in academy/models.py (persistence layer).
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from academy.domain.value_objects import (
    AttendanceStatus,
    EventType,
    ExceptionKind,
    InstanceStatus,
    MemberStatus,
    Weekday,
)


@dataclass(frozen=True)
class SessionException:
    """A point override for one date of a recurring series."""

    date: date
    kind: ExceptionKind
    new_date: date | None = None
    new_start_time: str | None = None
    new_end_time: str | None = None
    new_instructor: str | None = None

    def __post_init__(self) -> None:
        if self.kind is ExceptionKind.MOVE and self.new_date is None:
            raise ValueError("A move exception needs a destination date")


@dataclass(frozen=True)
class ExceptionStore:
    """Date-keyed exceptions of one series.

    Holds at most one exception per date; when the given sequence repeats a
    date, the later entry wins.
    """

    exceptions: tuple[SessionException, ...] = ()

    def __post_init__(self) -> None:
        by_date: dict[date, SessionException] = {}
        for exception in self.exceptions:
            by_date.pop(exception.date, None)
            by_date[exception.date] = exception
        object.__setattr__(self, "exceptions", tuple(by_date.values()))

    def __iter__(self):
        return iter(self.exceptions)

    def __len__(self) -> int:
        return len(self.exceptions)

    def for_date(self, day: date) -> SessionException | None:
        for exception in self.exceptions:
            if exception.date == day:
                return exception
        return None

    def moved_into(self, day: date) -> SessionException | None:
        """Return the move exception whose destination is `day`, if any."""
        for exception in self.exceptions:
            if exception.kind is ExceptionKind.MOVE and exception.new_date == day:
                return exception
        return None

    def with_exception(self, exception: SessionException) -> "ExceptionStore":
        return ExceptionStore(self.exceptions + (exception,))

    def without(self, day: date) -> "ExceptionStore":
        return ExceptionStore(tuple(e for e in self.exceptions if e.date != day))


@dataclass(frozen=True)
class RecurringSeries:
    """A recurring class definition."""

    id: str
    name: str
    instructor: str
    days: frozenset[Weekday]
    start_time: str
    end_time: str
    exceptions: ExceptionStore = field(default_factory=ExceptionStore)
    member_ids: tuple[str, ...] = ()

    def recurs_on(self, day: date) -> bool:
        return Weekday.of(day) in self.days


@dataclass(frozen=True)
class OneOffEvent:
    """A non-recurring item such as an exam, tournament or social."""

    id: str
    title: str
    event_type: EventType
    date: date
    time: str
    duration_minutes: int | None = None
    registrant_ids: tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class CalendarInstance:
    """One concrete, dated occurrence. Derived on every read, never stored."""

    id: str
    title: str
    start: datetime
    end: datetime
    instructor: str | None
    status: InstanceStatus
    is_recurring: bool
    series_id: str | None = None
    event_type: EventType | None = None


@dataclass(frozen=True)
class AttendanceRecord:
    """One ledger entry; the owning member is implicit."""

    class_id: str
    date: date
    status: AttendanceStatus
    recorded_at: datetime
    reason: str | None = None


@dataclass(frozen=True)
class PromotionHistoryItem:
    rank_name: str
    date: date
    notes: str = ""


@dataclass(frozen=True)
class Rank:
    """A progression tier. Order comes from `ordinal`, never list position."""

    id: str
    name: str
    required_attendance: int
    ordinal: int
    color: str = ""

    def __post_init__(self) -> None:
        if self.required_attendance < 0:
            raise ValueError("Required attendance cannot be negative")


@dataclass(frozen=True)
class Member:
    """Domain representation of an enrolled member.

    `attendance_count` and `last_attendance_date` are derived from
    `attendance_history` and cached here.
    """

    id: str
    name: str
    rank_id: str
    status: MemberStatus = MemberStatus.ACTIVE
    attendance_count: int = 0
    last_attendance_date: date | None = None
    attendance_history: tuple[AttendanceRecord, ...] = ()
    class_ids: tuple[str, ...] = ()
    promotion_history: tuple[PromotionHistoryItem, ...] = ()
    email: str = ""
    phone: str = ""
