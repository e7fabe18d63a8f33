from academy.handlers.views import (
    BulkAttendanceView,
    CalendarView,
    MemberAttendanceView,
    PromotionView,
    SessionExceptionView,
)

__all__ = [
    "BulkAttendanceView",
    "CalendarView",
    "MemberAttendanceView",
    "PromotionView",
    "SessionExceptionView",
]
