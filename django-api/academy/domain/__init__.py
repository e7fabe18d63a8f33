from academy.domain.models import (
    AttendanceRecord,
    CalendarInstance,
    ExceptionStore,
    Member,
    OneOffEvent,
    PromotionHistoryItem,
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
    Role,
    Weekday,
)

__all__ = [
    "AttendanceRecord",
    "CalendarInstance",
    "ExceptionStore",
    "Member",
    "OneOffEvent",
    "PromotionHistoryItem",
    "Rank",
    "RecurringSeries",
    "SessionException",
    "Actor",
    "AttendanceStatus",
    "EventType",
    "ExceptionKind",
    "ExpansionWindow",
    "InstanceStatus",
    "MemberStatus",
    "Role",
    "Weekday",
]
