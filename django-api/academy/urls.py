from django.urls import path

from academy.handlers import (
    BulkAttendanceView,
    CalendarView,
    MemberAttendanceView,
    PromotionView,
    SessionExceptionView,
)

urlpatterns = [
    path("calendar", CalendarView.as_view(), name="calendar"),
    path(
        "members/<str:member_id>/attendance",
        MemberAttendanceView.as_view(),
        name="member-attendance",
    ),
    path(
        "members/<str:member_id>/promote",
        PromotionView.as_view(),
        name="member-promote",
    ),
    path(
        "classes/<str:class_id>/attendance/bulk",
        BulkAttendanceView.as_view(),
        name="class-attendance-bulk",
    ),
    path(
        "classes/<str:class_id>/exceptions",
        SessionExceptionView.as_view(),
        name="class-exceptions",
    ),
]
