"""Domain error codes for the academy module."""

from dataclasses import dataclass
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    PERMISSION_DENIED = "PERMISSION_DENIED"
    MEMBER_NOT_FOUND = "MEMBER_NOT_FOUND"
    SERIES_NOT_FOUND = "SERIES_NOT_FOUND"
    EVENT_NOT_FOUND = "EVENT_NOT_FOUND"
    RANK_NOT_FOUND = "RANK_NOT_FOUND"
    INVALID_INSTANCE_ID = "INVALID_INSTANCE_ID"
    INVALID_EXCEPTION = "INVALID_EXCEPTION"
    NOT_EXAM_READY = "NOT_EXAM_READY"


@dataclass(frozen=True)
class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class PermissionDeniedError(DomainError):
    """Raised when the acting user's role does not allow an operation."""

    def __init__(self, operation: str) -> None:
        super().__init__(
            code=ErrorCode.PERMISSION_DENIED,
            message="You do not have permission to perform this action",
        )
        object.__setattr__(self, "operation", operation)


class MemberNotFoundError(DomainError):
    """Raised when a member is not found."""

    def __init__(self, member_id: str) -> None:
        super().__init__(
            code=ErrorCode.MEMBER_NOT_FOUND,
            message="Member not found",
        )
        object.__setattr__(self, "member_id", member_id)


class SeriesNotFoundError(DomainError):
    """Raised when a recurring class series is not found."""

    def __init__(self, series_id: str) -> None:
        super().__init__(
            code=ErrorCode.SERIES_NOT_FOUND,
            message="Class not found",
        )
        object.__setattr__(self, "series_id", series_id)


class EventNotFoundError(DomainError):
    """Raised when a one-off event is not found."""

    def __init__(self, event_id: str) -> None:
        super().__init__(
            code=ErrorCode.EVENT_NOT_FOUND,
            message="Event not found",
        )
        object.__setattr__(self, "event_id", event_id)


class RankNotFoundError(DomainError):
    """Raised when a rank is not found."""

    def __init__(self, rank_id: str) -> None:
        super().__init__(
            code=ErrorCode.RANK_NOT_FOUND,
            message="Rank not found",
        )
        object.__setattr__(self, "rank_id", rank_id)


class InvalidInstanceIdError(DomainError):
    """Raised when a calendar instance id cannot be resolved."""

    def __init__(self) -> None:
        super().__init__(
            code=ErrorCode.INVALID_INSTANCE_ID,
            message="Invalid calendar instance ID",
        )


class InvalidExceptionError(DomainError):
    """Raised when a session exception is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(code=ErrorCode.INVALID_EXCEPTION, message=message)


class NotExamReadyError(DomainError):
    """Raised when promoting a member who has not reached exam readiness."""

    def __init__(self, member_id: str) -> None:
        super().__init__(
            code=ErrorCode.NOT_EXAM_READY,
            message="Member is not ready for promotion",
        )
        object.__setattr__(self, "member_id", member_id)
