"""Domain primitives that enforce validity at creation time."""

import re
import uuid
from dataclasses import dataclass
from datetime import date, time, timedelta
from enum import Enum
from typing import Self

_WALL_CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::(\d{2}))?\s*$")


class Weekday(Enum):
    """Weekday names used by recurring series patterns."""

    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"

    @classmethod
    def of(cls, day: date) -> Self:
        return list(cls)[day.weekday()]


class ExceptionKind(Enum):
    """Kinds of point override applied to one date of a series."""

    CANCEL = "cancel"
    MOVE = "move"
    RESCHEDULE = "reschedule"
    INSTRUCTOR = "instructor"


class InstanceStatus(Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class AttendanceStatus(Enum):
    PRESENT = "present"
    LATE = "late"
    EXCUSED = "excused"
    ABSENT = "absent"

    @property
    def counts_as_attended(self) -> bool:
        return self in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class MemberStatus(Enum):
    ACTIVE = "active"
    DEBTOR = "debtor"
    EXAM_READY = "exam_ready"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class EventType(Enum):
    EXAM = "exam"
    TOURNAMENT = "tournament"
    SEMINAR = "seminar"
    SOCIAL = "social"


class Role(Enum):
    MASTER = "master"
    STUDENT = "student"


@dataclass(frozen=True)
class Actor:
    """The user on whose behalf a mutation runs."""

    role: Role
    member_id: str | None = None

    @property
    def is_master(self) -> bool:
        return self.role is Role.MASTER

    def owns(self, member_id: str) -> bool:
        return self.member_id is not None and self.member_id == member_id


@dataclass(frozen=True)
class ExpansionWindow:
    """Inclusive date range a schedule is expanded over."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError("Window start must not be after its end")

    def __contains__(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self):
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)

    @classmethod
    def around(cls, today: date, months_before: int, months_after: int) -> Self:
        """Window from the first of the month `months_before` back to the last
        day before the first of the month `months_after` ahead."""
        if months_before < 0 or months_after < 1:
            raise ValueError("Window offsets must be non-negative and span a month")
        start = _shift_month(today.replace(day=1), -months_before)
        end = _shift_month(today.replace(day=1), months_after) - timedelta(days=1)
        return cls(start=start, end=end)


def _shift_month(first_of_month: date, months: int) -> date:
    index = first_of_month.year * 12 + (first_of_month.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def parse_wall_clock(value: str | None) -> time | None:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string, returning None when it is
    missing or malformed."""
    if not value or not isinstance(value, str):
        return None
    match = _WALL_CLOCK_RE.match(value)
    if match is None:
        return None
    hour, minute, second = (int(part) if part else 0 for part in match.groups())
    if hour > 23 or minute > 59 or second > 59:
        return None
    return time(hour, minute, second)


def generate_id(prefix: str = "id") -> str:
    return f"{prefix}-{uuid.uuid4()}"
