"""Unit tests for the attendance ledger.

Run with: pytest tests/test_attendance_ledger.py -v
"""

from datetime import date, datetime

from academy.domain import AttendanceRecord, AttendanceStatus, Member
from academy.services import attendance_ledger

RECORDED = datetime(2024, 6, 10, 18, 0)
LATER = datetime(2024, 6, 11, 9, 0)


def record(day: date, status=AttendanceStatus.PRESENT, class_id="kids", reason=None):
    return AttendanceRecord(
        class_id=class_id, date=day, status=status, recorded_at=RECORDED, reason=reason
    )


class TestUpsert:
    """Tests for upsert keyed by (date, class_id)."""

    def test_appends_new_record(self):
        history = attendance_ledger.upsert(
            (), date(2024, 6, 3), "kids", AttendanceStatus.PRESENT, RECORDED
        )
        assert history == (record(date(2024, 6, 3)),)

    def test_repeated_upsert_is_idempotent(self):
        """Applying the same mark twice leaves one record."""
        once = attendance_ledger.upsert(
            (), date(2024, 6, 3), "kids", AttendanceStatus.LATE, RECORDED
        )
        twice = attendance_ledger.upsert(
            once, date(2024, 6, 3), "kids", AttendanceStatus.LATE, RECORDED
        )
        assert once == twice
        assert len(twice) == 1

    def test_merge_replaces_status_and_keeps_reason(self):
        history = (record(date(2024, 6, 3), AttendanceStatus.EXCUSED, reason="sick"),)
        merged = attendance_ledger.upsert(
            history, date(2024, 6, 3), "kids", AttendanceStatus.ABSENT, LATER
        )
        assert merged[0].status is AttendanceStatus.ABSENT
        assert merged[0].reason == "sick"
        assert merged[0].recorded_at == LATER

    def test_merge_replaces_reason_when_given(self):
        history = (record(date(2024, 6, 3), AttendanceStatus.EXCUSED, reason="sick"),)
        merged = attendance_ledger.upsert(
            history, date(2024, 6, 3), "kids", AttendanceStatus.EXCUSED, LATER, "travel"
        )
        assert merged[0].reason == "travel"

    def test_none_status_deletes_record(self):
        history = (record(date(2024, 6, 5)), record(date(2024, 6, 3)))
        remaining = attendance_ledger.upsert(
            history, date(2024, 6, 5), "kids", None, LATER
        )
        assert remaining == (record(date(2024, 6, 3)),)

    def test_deleting_missing_record_is_noop(self):
        history = (record(date(2024, 6, 3)),)
        assert attendance_ledger.upsert(history, date(2024, 6, 5), "kids", None, LATER) == history

    def test_same_date_other_class_is_separate(self):
        history = (record(date(2024, 6, 3)),)
        updated = attendance_ledger.upsert(
            history, date(2024, 6, 3), "adults", AttendanceStatus.PRESENT, RECORDED
        )
        assert len(updated) == 2

    def test_history_sorted_newest_first(self):
        history = ()
        for day in (date(2024, 6, 5), date(2024, 6, 12), date(2024, 6, 3)):
            history = attendance_ledger.upsert(
                history, day, "kids", AttendanceStatus.PRESENT, RECORDED
            )
        assert [r.date for r in history] == [
            date(2024, 6, 12),
            date(2024, 6, 5),
            date(2024, 6, 3),
        ]


class TestAggregate:
    """Tests for the derived attendance count and last date."""

    def test_counts_present_and_late_only(self):
        history = (
            record(date(2024, 6, 12), AttendanceStatus.ABSENT),
            record(date(2024, 6, 10), AttendanceStatus.LATE),
            record(date(2024, 6, 5), AttendanceStatus.EXCUSED),
            record(date(2024, 6, 3), AttendanceStatus.PRESENT),
        )
        assert attendance_ledger.aggregate(history) == (2, date(2024, 6, 10))

    def test_last_date_never_regresses_to_none(self):
        history = (record(date(2024, 6, 12), AttendanceStatus.ABSENT),)
        assert attendance_ledger.aggregate(history, date(2024, 5, 1)) == (
            0,
            date(2024, 5, 1),
        )

    def test_apply_attendance_recomputes_member(self, member):
        updated = attendance_ledger.apply_attendance(
            member, date(2024, 6, 3), "kids", AttendanceStatus.PRESENT, RECORDED
        )
        assert updated.attendance_count == 1
        assert updated.last_attendance_date == date(2024, 6, 3)
        assert member.attendance_count == 0

    def test_clearing_last_mark_keeps_previous_date(self, member):
        marked = attendance_ledger.apply_attendance(
            member, date(2024, 6, 3), "kids", AttendanceStatus.PRESENT, RECORDED
        )
        cleared = attendance_ledger.apply_attendance(
            marked, date(2024, 6, 3), "kids", None, LATER
        )
        assert cleared.attendance_count == 0
        assert cleared.attendance_history == ()
        assert cleared.last_attendance_date == date(2024, 6, 3)


class TestBulkMarkPresent:
    """Tests for marking a whole class roster present."""

    def test_marks_roster_and_skips_existing_records(self):
        """An existing excused mark survives a bulk mark present."""
        excused = Member(
            id="m1",
            name="Lia",
            rank_id="white",
            attendance_history=(
                record(date(2024, 6, 10), AttendanceStatus.EXCUSED, reason="sick"),
            ),
        )
        unmarked = Member(id="m2", name="Noa", rank_id="white")
        outsider = Member(id="m3", name="Kai", rank_id="white")

        changed = attendance_ledger.bulk_mark_present(
            [excused, unmarked, outsider], ["m1", "m2"], "kids", date(2024, 6, 10), RECORDED
        )

        assert [m.id for m in changed] == ["m2"]
        assert changed[0].attendance_history[0].status is AttendanceStatus.PRESENT
        assert changed[0].attendance_count == 1

    def test_second_bulk_mark_changes_nothing(self):
        members = [Member(id="m1", name="Lia", rank_id="white")]
        first = attendance_ledger.bulk_mark_present(
            members, ["m1"], "kids", date(2024, 6, 10), RECORDED
        )
        assert attendance_ledger.bulk_mark_present(
            first, ["m1"], "kids", date(2024, 6, 10), LATER
        ) == []
