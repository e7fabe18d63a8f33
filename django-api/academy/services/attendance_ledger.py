"""Attendance ledger.

Each member's history is an upsert-keyed set of records, one per
(class_id, date), kept sorted by date descending. The member's cached
aggregates are recomputed on every write.
"""

from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import date, datetime

from academy.domain.models import AttendanceRecord, Member
from academy.domain.value_objects import AttendanceStatus


def upsert(
    history: Sequence[AttendanceRecord],
    day: date,
    class_id: str,
    status: AttendanceStatus | None,
    recorded_at: datetime,
    reason: str | None = None,
) -> tuple[AttendanceRecord, ...]:
    """Insert, merge or delete the record keyed by (day, class_id).

    A `status` of None deletes the matching record; deleting a missing record
    is a no-op. When merging, `reason` is only replaced if a new one is given.
    """
    records = list(history)
    index = next(
        (i for i, r in enumerate(records) if r.date == day and r.class_id == class_id),
        None,
    )

    if status is None:
        if index is not None:
            del records[index]
    elif index is not None:
        existing = records[index]
        records[index] = replace(
            existing,
            status=status,
            recorded_at=recorded_at,
            reason=reason if reason is not None else existing.reason,
        )
    else:
        records.append(
            AttendanceRecord(
                class_id=class_id,
                date=day,
                status=status,
                recorded_at=recorded_at,
                reason=reason,
            )
        )

    return sort_history(records)


def sort_history(records: Iterable[AttendanceRecord]) -> tuple[AttendanceRecord, ...]:
    return tuple(sorted(records, key=lambda r: r.date, reverse=True))


def aggregate(
    history: Iterable[AttendanceRecord], previous_last_date: date | None = None
) -> tuple[int, date | None]:
    """Return (attendance count, last attendance date) for `history`.

    Only present and late records count. The last date falls back to
    `previous_last_date` when no record counts.
    """
    attended = [r.date for r in history if r.status.counts_as_attended]
    if not attended:
        return 0, previous_last_date
    return len(attended), max(attended)


def with_history(member: Member, history: Sequence[AttendanceRecord]) -> Member:
    count, last_date = aggregate(history, member.last_attendance_date)
    return replace(
        member,
        attendance_history=tuple(history),
        attendance_count=count,
        last_attendance_date=last_date,
    )


def apply_attendance(
    member: Member,
    day: date,
    class_id: str,
    status: AttendanceStatus | None,
    recorded_at: datetime,
    reason: str | None = None,
) -> Member:
    history = upsert(
        member.attendance_history, day, class_id, status, recorded_at, reason
    )
    return with_history(member, history)


def has_record(member: Member, day: date, class_id: str) -> bool:
    return any(
        r.date == day and r.class_id == class_id for r in member.attendance_history
    )


def bulk_mark_present(
    members: Iterable[Member],
    roster: Iterable[str],
    class_id: str,
    day: date,
    recorded_at: datetime,
) -> list[Member]:
    """Mark every rostered member present for (day, class_id).

    Members who already hold a record of any status for that key are left
    untouched. Returns only the members that changed.
    """
    enrolled = set(roster)
    return [
        apply_attendance(member, day, class_id, AttendanceStatus.PRESENT, recorded_at)
        for member in members
        if member.id in enrolled and not has_record(member, day, class_id)
    ]
