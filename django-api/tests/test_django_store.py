"""Integration tests for the Django ORM store.

Run with: pytest tests/test_django_store.py -v
"""

from dataclasses import replace
from datetime import date, datetime

import pytest
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError
from django.utils import timezone

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
    SessionException,
    Weekday,
)
from academy.services.coordinator import OutcomeStatus, ScheduleCoordinator
from academy.stores.django_store import DjangoAccountProvisioner, DjangoAcademyStore
from academy.stores.interfaces import StoreError


def aware(*args) -> datetime:
    return timezone.make_aware(datetime(*args))


@pytest.fixture
def store() -> DjangoAcademyStore:
    return DjangoAcademyStore()


@pytest.mark.django_db
class TestMemberPersistence:
    """Tests for saving members with their ledger."""

    def test_round_trips_ledger_and_history(self, store, member):
        saved = replace(
            member,
            status=MemberStatus.DEBTOR,
            attendance_count=1,
            last_attendance_date=date(2024, 6, 5),
            attendance_history=(
                AttendanceRecord("kids", date(2024, 6, 5), AttendanceStatus.PRESENT, aware(2024, 6, 5, 17)),
                AttendanceRecord("kids", date(2024, 6, 3), AttendanceStatus.EXCUSED, aware(2024, 6, 3, 17), "sick"),
            ),
            promotion_history=(PromotionHistoryItem("White", date(2024, 1, 10), "Promoted to Yellow"),),
            email="lia@example.com",
        )
        store.save_members([saved])

        (loaded,) = store.list_members()
        assert loaded == saved

    def test_resave_replaces_ledger(self, store, member):
        record = AttendanceRecord(
            "kids", date(2024, 6, 5), AttendanceStatus.PRESENT, aware(2024, 6, 5, 17)
        )
        store.save_members([replace(member, attendance_history=(record,), attendance_count=1)])
        store.save_members([member])

        assert orm.AttendanceEntry.objects.count() == 0
        assert store.list_members()[0].attendance_count == 0

    def test_delete_member_removes_ledger(self, store, member):
        record = AttendanceRecord(
            "kids", date(2024, 6, 5), AttendanceStatus.PRESENT, aware(2024, 6, 5, 17)
        )
        store.save_members([replace(member, attendance_history=(record,))])
        store.delete_member("m1")
        assert store.list_members() == []
        assert orm.AttendanceEntry.objects.count() == 0


@pytest.mark.django_db
class TestSchedulePersistence:
    """Tests for series, exceptions, events and ranks."""

    def test_series_round_trip_with_exceptions(self, store, kids_series):
        series = replace(
            kids_series,
            exceptions=ExceptionStore(
                (
                    SessionException(
                        date=date(2024, 6, 5),
                        kind=ExceptionKind.MOVE,
                        new_date=date(2024, 6, 6),
                    ),
                    SessionException(
                        date=date(2024, 6, 10),
                        kind=ExceptionKind.INSTRUCTOR,
                        new_instructor="Bo",
                    ),
                )
            ),
        )
        store.save_series([series])
        assert store.list_series() == [series]

    def test_events_listed_by_date(self, store):
        later = OneOffEvent("e2", "Social", EventType.SOCIAL, date(2024, 7, 1), "19:00")
        sooner = OneOffEvent(
            "e1", "Exam", EventType.EXAM, date(2024, 6, 22), "09:00", 90, ("m1",)
        )
        store.save_events([later, sooner])
        assert store.list_events() == [sooner, later]

    def test_ranks_listed_by_ordinal(self, store, ranks):
        store.save_ranks(list(reversed(ranks)))
        assert store.list_ranks() == ranks

    def test_database_rejects_duplicate_exception_date(self, store, kids_series):
        """The database rejects two overrides for one series and date."""
        store.save_series([kids_series])
        row = orm.ClassSeries.objects.get(id="kids")
        orm.SessionOverride.objects.create(series=row, date=date(2024, 6, 5), kind="cancel")
        with pytest.raises(IntegrityError):
            orm.SessionOverride.objects.create(series=row, date=date(2024, 6, 5), kind="move")

    def test_unusable_override_row_is_skipped(self, store, kids_series):
        """A move row without a destination drops only that exception."""
        store.save_series([kids_series])
        row = orm.ClassSeries.objects.get(id="kids")
        orm.SessionOverride.objects.create(series=row, date=date(2024, 6, 3), kind="move")
        orm.SessionOverride.objects.create(
            series=row, date=date(2024, 6, 10), kind="cancel", position=1
        )

        (loaded,) = store.list_series()

        assert loaded.exceptions == ExceptionStore(
            (SessionException(date=date(2024, 6, 10), kind=ExceptionKind.CANCEL),)
        )

    def test_unknown_weekday_is_skipped(self, store, kids_series):
        store.save_series([kids_series])
        orm.ClassSeries.objects.filter(id="kids").update(days=["Monday", "Funday"])
        assert store.list_series()[0].days == frozenset({Weekday.MONDAY})

    def test_move_override_needs_destination(self, kids_series, store):
        store.save_series([kids_series])
        override = orm.SessionOverride(
            series=orm.ClassSeries.objects.get(id="kids"), date=date(2024, 6, 3), kind="move"
        )
        with pytest.raises(ValidationError) as excinfo:
            override.full_clean()
        assert "new_date" in excinfo.value.message_dict


@pytest.mark.django_db
class TestAccountProvisioning:
    """Tests for creating login accounts for members."""

    def test_creates_linked_user(self, store, member):
        member = replace(member, email="lia@example.com")
        store.save_members([member])
        DjangoAccountProvisioner().create_member_account(member, "s3cret")

        user = get_user_model().objects.get(username="lia@example.com")
        assert user.check_password("s3cret")
        assert user.academy_member.id == "m1"

    def test_duplicate_username_raises_store_error(self, store, member):
        get_user_model().objects.create_user(username="m1")
        store.save_members([member])
        with pytest.raises(StoreError):
            DjangoAccountProvisioner().create_member_account(member, None)

    def test_coordinator_reports_partial_add(self, store, master, clock):
        get_user_model().objects.create_user(username="kai@example.com")
        coordinator = ScheduleCoordinator.load(
            store, provisioner=DjangoAccountProvisioner(), clock=clock
        )
        result = coordinator.add_member(
            master, Member(id="m9", name="Kai", rank_id="white", email="kai@example.com")
        )
        assert result.status is OutcomeStatus.PARTIAL
        assert orm.Member.objects.filter(id="m9").exists()
