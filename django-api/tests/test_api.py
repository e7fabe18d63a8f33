"""Integration tests for the academy HTTP API.

Run with: pytest tests/test_api.py -v
"""

from dataclasses import replace

import pytest
from django.contrib.auth import get_user_model
from django.db import connection
from django.test.utils import CaptureQueriesContext
from rest_framework.test import APIClient

from academy import models as orm
from academy.domain import Member, MemberStatus
from academy.stores.django_store import DjangoAcademyStore

JUNE = {"from": "2024-06-01", "to": "2024-06-30"}


@pytest.fixture
def seeded(member, kids_series, ranks):
    store = DjangoAcademyStore()
    store.save_ranks(ranks)
    store.save_series([kids_series])
    store.save_members(
        [member, Member(id="m2", name="Noa", rank_id="white", class_ids=("kids",))]
    )
    return store


@pytest.fixture
def master_client(api_client: APIClient, seeded) -> APIClient:
    user = get_user_model().objects.create_user(username="sensei", is_staff=True)
    api_client.force_authenticate(user)
    return api_client


@pytest.fixture
def student_client(api_client: APIClient, seeded) -> APIClient:
    user = get_user_model().objects.create_user(username="lia")
    orm.Member.objects.filter(id="m1").update(user=user)
    api_client.force_authenticate(user)
    return api_client


@pytest.mark.django_db
class TestCalendar:
    """Tests for GET /api/calendar"""

    def test_lists_instances_in_window(self, master_client):
        response = master_client.get("/api/calendar", JUNE)
        assert response.status_code == 200
        assert [i["id"] for i in response.data][:2] == ["kids-2024-06-03", "kids-2024-06-05"]
        assert len(response.data) == 8
        assert response.data[0]["status"] == "active"
        assert response.data[0]["is_recurring"] is True

    def test_students_can_read_calendar(self, student_client):
        assert student_client.get("/api/calendar", JUNE).status_code == 200

    def test_requires_authentication(self, api_client, seeded):
        assert api_client.get("/api/calendar", JUNE).status_code in (401, 403)

    def test_rejects_half_open_window(self, master_client):
        response = master_client.get("/api/calendar", {"from": "2024-06-01"})
        assert response.status_code == 400

    def test_rejects_reversed_window(self, master_client):
        response = master_client.get("/api/calendar", {"from": "2024-06-30", "to": "2024-06-01"})
        assert response.status_code == 400

    def test_cached_until_series_saved(self, master_client, django_capture_on_commit_callbacks):
        """A write that bypasses signals is not visible until the cache is invalidated."""
        master_client.get("/api/calendar", JUNE)
        orm.ClassSeries.objects.filter(id="kids").update(name="Little Dragons")
        assert master_client.get("/api/calendar", JUNE).data[0]["title"] == "Kids"

        with django_capture_on_commit_callbacks(execute=True):
            orm.ClassSeries.objects.get(id="kids").save()
        assert master_client.get("/api/calendar", JUNE).data[0]["title"] == "Little Dragons"

    def test_cache_hit_skips_database(self, master_client):
        """A cached calendar is served without loading the academy."""
        master_client.get("/api/calendar", JUNE)
        with CaptureQueriesContext(connection) as queries:
            response = master_client.get("/api/calendar", JUNE)
        assert response.status_code == 200
        assert len(response.data) == 8
        assert not [q for q in queries.captured_queries if "academy_" in q["sql"]]


@pytest.mark.django_db
class TestMemberAttendance:
    """Tests for GET/POST /api/members/{id}/attendance"""

    def test_master_marks_attendance(self, master_client):
        response = master_client.post(
            "/api/members/m1/attendance",
            {"class_id": "kids", "date": "2024-06-10", "status": "present"},
            format="json",
        )
        assert response.status_code == 200
        assert response.data["attendance_count"] == 1
        assert response.data["last_attendance_date"] == "2024-06-10"
        assert orm.AttendanceEntry.objects.filter(member_id="m1").count() == 1

    def test_null_status_clears_mark(self, master_client):
        body = {"class_id": "kids", "date": "2024-06-10", "status": "late"}
        master_client.post("/api/members/m1/attendance", body, format="json")
        response = master_client.post(
            "/api/members/m1/attendance", {**body, "status": None}, format="json"
        )
        assert response.status_code == 200
        assert response.data["attendance_count"] == 0
        assert not orm.AttendanceEntry.objects.exists()

    def test_invalid_status_is_rejected(self, master_client):
        response = master_client.post(
            "/api/members/m1/attendance",
            {"class_id": "kids", "status": "asleep"},
            format="json",
        )
        assert response.status_code == 400

    def test_student_cannot_mark(self, student_client):
        response = student_client.post(
            "/api/members/m1/attendance",
            {"class_id": "kids", "date": "2024-06-10", "status": "present"},
            format="json",
        )
        assert response.status_code == 403
        assert response.data["code"] == "PERMISSION_DENIED"
        assert not orm.AttendanceEntry.objects.exists()

    def test_student_reads_own_history(self, student_client):
        response = student_client.get("/api/members/m1/attendance")
        assert response.status_code == 200
        assert response.data == []

    def test_student_cannot_read_other_history(self, student_client):
        assert student_client.get("/api/members/m2/attendance").status_code == 403

    def test_unknown_member(self, master_client):
        response = master_client.get("/api/members/ghost/attendance")
        assert response.status_code == 404
        assert response.data["code"] == "MEMBER_NOT_FOUND"


@pytest.mark.django_db
class TestBulkAttendance:
    """Tests for POST /api/classes/{id}/attendance/bulk"""

    def test_marks_whole_roster(self, master_client):
        response = master_client.post(
            "/api/classes/kids/attendance/bulk", {"date": "2024-06-10"}, format="json"
        )
        assert response.status_code == 200
        assert sorted(response.data["marked"]) == ["m1", "m2"]

    def test_second_call_marks_nobody(self, master_client):
        url = "/api/classes/kids/attendance/bulk"
        master_client.post(url, {"date": "2024-06-10"}, format="json")
        response = master_client.post(url, {"date": "2024-06-10"}, format="json")
        assert response.data["marked"] == []

    def test_unknown_class(self, master_client):
        response = master_client.post("/api/classes/nope/attendance/bulk", {}, format="json")
        assert response.status_code == 404


@pytest.mark.django_db
class TestSessionExceptions:
    """Tests for POST /api/classes/{id}/exceptions"""

    def test_move_shows_on_calendar(self, master_client):
        response = master_client.post(
            "/api/classes/kids/exceptions",
            {"date": "2024-06-05", "kind": "move", "new_date": "2024-06-06"},
            format="json",
        )
        assert response.status_code == 200

        ids = [i["id"] for i in master_client.get("/api/calendar", JUNE).data]
        assert "kids-2024-06-05" not in ids
        assert "kids-2024-06-06" in ids

    def test_move_without_destination(self, master_client):
        response = master_client.post(
            "/api/classes/kids/exceptions",
            {"date": "2024-06-05", "kind": "move"},
            format="json",
        )
        assert response.status_code == 400

    def test_malformed_time(self, master_client):
        response = master_client.post(
            "/api/classes/kids/exceptions",
            {"date": "2024-06-05", "kind": "reschedule", "new_start_time": "5pm"},
            format="json",
        )
        assert response.status_code == 400

    def test_student_forbidden(self, student_client):
        response = student_client.post(
            "/api/classes/kids/exceptions",
            {"date": "2024-06-05", "kind": "cancel"},
            format="json",
        )
        assert response.status_code == 403


@pytest.mark.django_db
class TestPromotion:
    """Tests for POST /api/members/{id}/promote"""

    def test_promotes_exam_ready_member(self, master_client, seeded, member):
        seeded.save_members([replace(member, status=MemberStatus.EXAM_READY)])
        response = master_client.post("/api/members/m1/promote")
        assert response.status_code == 200
        assert response.data["rank_id"] == "yellow"
        assert response.data["status"] == "active"
        assert response.data["promotion_history"][0]["rank_name"] == "White"

    def test_member_not_exam_ready(self, master_client):
        response = master_client.post("/api/members/m1/promote")
        assert response.status_code == 400
        assert response.data["code"] == "NOT_EXAM_READY"
