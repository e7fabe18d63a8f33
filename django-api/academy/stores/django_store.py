"""Django ORM implementation of the AcademyStore.

Member rows are written together with their attendance ledger and promotion
history inside one transaction, so the cached aggregates never disagree with
the stored ledger.
"""

import logging
from collections.abc import Sequence

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction

from academy import models as orm
from academy.domain import (
    AttendanceRecord,
    AttendanceStatus,
    EventType,
    ExceptionKind,
    ExceptionStore,
    Member,
    MemberStatus,
    OneOffEvent,
    PromotionHistoryItem,
    Rank,
    RecurringSeries,
    SessionException,
    Weekday,
)
from academy.stores.interfaces import AccountProvisioner, AcademyStore, StoreError

logger = logging.getLogger(__name__)


def _member_to_domain(row: orm.Member) -> Member:
    return Member(
        id=row.id,
        name=row.name,
        rank_id=row.rank_id,
        status=MemberStatus(row.status),
        attendance_count=row.attendance_count,
        last_attendance_date=row.last_attendance_date,
        attendance_history=tuple(
            AttendanceRecord(
                class_id=e.class_id,
                date=e.date,
                status=AttendanceStatus(e.status),
                recorded_at=e.recorded_at,
                reason=e.reason,
            )
            for e in row.attendance_entries.all()
        ),
        class_ids=tuple(row.class_ids or ()),
        promotion_history=tuple(
            PromotionHistoryItem(rank_name=p.rank_name, date=p.promoted_on, notes=p.notes)
            for p in row.promotion_records.all()
        ),
        email=row.email,
        phone=row.phone,
    )


def _override_to_domain(row: orm.SessionOverride) -> SessionException | None:
    try:
        return SessionException(
            date=row.date,
            kind=ExceptionKind(row.kind),
            new_date=row.new_date,
            new_start_time=row.new_start_time or None,
            new_end_time=row.new_end_time or None,
            new_instructor=row.new_instructor or None,
        )
    except ValueError as exc:
        logger.debug("Skipping override %s of series %s: %s", row.date, row.series_id, exc)
        return None


def _weekdays(row: orm.ClassSeries) -> frozenset[Weekday]:
    days = set()
    for name in row.days or ():
        try:
            days.add(Weekday(name))
        except ValueError:
            logger.debug("Skipping unknown weekday %r of series %s", name, row.id)
    return frozenset(days)


def _series_to_domain(row: orm.ClassSeries) -> RecurringSeries:
    overrides = (_override_to_domain(o) for o in row.overrides.all())
    return RecurringSeries(
        id=row.id,
        name=row.name,
        instructor=row.instructor,
        days=_weekdays(row),
        start_time=row.start_time,
        end_time=row.end_time,
        exceptions=ExceptionStore(tuple(o for o in overrides if o is not None)),
        member_ids=tuple(row.member_ids or ()),
    )


def _event_to_domain(row: orm.Event) -> OneOffEvent:
    return OneOffEvent(
        id=row.id,
        title=row.title,
        event_type=EventType(row.event_type),
        date=row.date,
        time=row.time,
        duration_minutes=row.duration_minutes,
        registrant_ids=tuple(row.registrant_ids or ()),
        description=row.description,
    )


def _rank_to_domain(row: orm.Rank) -> Rank:
    return Rank(
        id=row.id,
        name=row.name,
        required_attendance=row.required_attendance,
        ordinal=row.ordinal,
        color=row.color,
    )


class DjangoAcademyStore(AcademyStore):
    """Database-backed academy store using Django ORM."""

    def list_members(self) -> list[Member]:
        rows = orm.Member.objects.prefetch_related(
            "attendance_entries", "promotion_records"
        )
        return [_member_to_domain(row) for row in rows]

    def list_series(self) -> list[RecurringSeries]:
        rows = orm.ClassSeries.objects.prefetch_related("overrides")
        return [_series_to_domain(row) for row in rows]

    def list_events(self) -> list[OneOffEvent]:
        return [_event_to_domain(row) for row in orm.Event.objects.all()]

    def list_ranks(self) -> list[Rank]:
        return [_rank_to_domain(row) for row in orm.Rank.objects.all()]

    def save_members(self, members: Sequence[Member]) -> None:
        try:
            with transaction.atomic():
                for member in members:
                    self._save_member(member)
        except DatabaseError as exc:
            raise StoreError(f"Could not save members: {exc}") from exc

    def _save_member(self, member: Member) -> None:
        row, _ = orm.Member.objects.update_or_create(
            id=member.id,
            defaults={
                "name": member.name,
                "email": member.email,
                "phone": member.phone,
                "rank_id": member.rank_id,
                "status": member.status.value,
                "attendance_count": member.attendance_count,
                "last_attendance_date": member.last_attendance_date,
                "class_ids": list(member.class_ids),
            },
        )
        row.attendance_entries.all().delete()
        orm.AttendanceEntry.objects.bulk_create(
            orm.AttendanceEntry(
                member=row,
                class_id=r.class_id,
                date=r.date,
                status=r.status.value,
                recorded_at=r.recorded_at,
                reason=r.reason,
            )
            for r in member.attendance_history
        )
        row.promotion_records.all().delete()
        orm.PromotionRecord.objects.bulk_create(
            orm.PromotionRecord(
                member=row,
                position=position,
                rank_name=p.rank_name,
                promoted_on=p.date,
                notes=p.notes,
            )
            for position, p in enumerate(member.promotion_history)
        )

    def save_series(self, series: Sequence[RecurringSeries]) -> None:
        try:
            with transaction.atomic():
                for item in series:
                    self._save_one_series(item)
        except DatabaseError as exc:
            raise StoreError(f"Could not save classes: {exc}") from exc

    def _save_one_series(self, series: RecurringSeries) -> None:
        row, _ = orm.ClassSeries.objects.update_or_create(
            id=series.id,
            defaults={
                "name": series.name,
                "instructor": series.instructor,
                "days": [d.value for d in Weekday if d in series.days],
                "start_time": series.start_time,
                "end_time": series.end_time,
                "member_ids": list(series.member_ids),
            },
        )
        row.overrides.all().delete()
        orm.SessionOverride.objects.bulk_create(
            orm.SessionOverride(
                series=row,
                position=position,
                date=e.date,
                kind=e.kind.value,
                new_date=e.new_date,
                new_start_time=e.new_start_time or "",
                new_end_time=e.new_end_time or "",
                new_instructor=e.new_instructor or "",
            )
            for position, e in enumerate(series.exceptions)
        )

    def save_events(self, events: Sequence[OneOffEvent]) -> None:
        try:
            with transaction.atomic():
                for event in events:
                    orm.Event.objects.update_or_create(
                        id=event.id,
                        defaults={
                            "title": event.title,
                            "event_type": event.event_type.value,
                            "date": event.date,
                            "time": event.time,
                            "duration_minutes": event.duration_minutes,
                            "registrant_ids": list(event.registrant_ids),
                            "description": event.description,
                        },
                    )
        except DatabaseError as exc:
            raise StoreError(f"Could not save events: {exc}") from exc

    def save_ranks(self, ranks: Sequence[Rank]) -> None:
        try:
            with transaction.atomic():
                for rank in ranks:
                    orm.Rank.objects.update_or_create(
                        id=rank.id,
                        defaults={
                            "name": rank.name,
                            "required_attendance": rank.required_attendance,
                            "ordinal": rank.ordinal,
                            "color": rank.color,
                        },
                    )
        except DatabaseError as exc:
            raise StoreError(f"Could not save ranks: {exc}") from exc

    def delete_member(self, member_id: str) -> None:
        self._delete(orm.Member, member_id)

    def delete_series(self, series_id: str) -> None:
        self._delete(orm.ClassSeries, series_id)

    def delete_event(self, event_id: str) -> None:
        self._delete(orm.Event, event_id)

    def delete_rank(self, rank_id: str) -> None:
        self._delete(orm.Rank, rank_id)

    def _delete(self, model, pk: str) -> None:
        try:
            model.objects.filter(pk=pk).delete()
        except DatabaseError as exc:
            raise StoreError(f"Could not delete {model.__name__} {pk}: {exc}") from exc


class DjangoAccountProvisioner(AccountProvisioner):
    """Creates a Django user for a member and links it to the member row."""

    def create_member_account(self, member: Member, password: str | None) -> None:
        User = get_user_model()
        username = member.email or member.id
        try:
            with transaction.atomic():
                user = User.objects.create_user(
                    username=username, email=member.email, password=password
                )
                orm.Member.objects.filter(id=member.id).update(user=user)
        except DatabaseError as exc:
            raise StoreError(f"Could not create account for {member.id}: {exc}") from exc
