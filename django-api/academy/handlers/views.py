"""HTTP handlers (views) - handle HTTP concerns only.

Handlers:
- Parse requests and validate input format
- Derive the acting role from the authenticated user
- Call the coordinator for business logic
- Map domain errors to HTTP responses
- Never contain business logic
- Never expose internal error details
"""

import logging

from django.core.cache import cache
from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from academy.cache import calendar_key
from academy.conf import AcademySettings
from academy.domain import Actor, ExpansionWindow, Role, SessionException
from academy.domain.errors import DomainError, ErrorCode
from academy.handlers.serializers import (
    AttendanceRecordSerializer,
    BulkAttendanceSerializer,
    CalendarInstanceSerializer,
    CalendarQuerySerializer,
    MarkAttendanceSerializer,
    MemberSerializer,
    SessionExceptionSerializer,
)
from academy.services.clock import SystemClock
from academy.services.coordinator import MutationResult, OutcomeStatus, ScheduleCoordinator
from academy.stores.django_store import DjangoAcademyStore, DjangoAccountProvisioner

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorCode.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorCode.MEMBER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.SERIES_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.EVENT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.RANK_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.INVALID_INSTANCE_ID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_EXCEPTION: status.HTTP_400_BAD_REQUEST,
    ErrorCode.NOT_EXAM_READY: status.HTTP_400_BAD_REQUEST,
}


def actor_from_request(request: Request) -> Actor:
    """Staff users act as the master; everyone else as the student linked to
    their member record."""
    user = request.user
    if user.is_staff or user.is_superuser:
        return Actor(role=Role.MASTER)
    member = getattr(user, "academy_member", None)
    return Actor(role=Role.STUDENT, member_id=member.id if member else None)


def build_coordinator() -> ScheduleCoordinator:
    return ScheduleCoordinator.load(
        DjangoAcademyStore(),
        provisioner=DjangoAccountProvisioner(),
        config=AcademySettings.from_settings(),
    )


def error_response(exc: DomainError) -> Response:
    return Response(
        {"code": exc.code.value, "detail": exc.message},
        status=ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST),
    )


def result_response(result: MutationResult, body: dict) -> Response:
    if result.status is OutcomeStatus.UNSAVED:
        logger.warning("Mutation applied locally but not saved: %s", result.message)
        return Response(
            {"detail": result.message}, status=status.HTTP_503_SERVICE_UNAVAILABLE
        )
    if result.message:
        body = {**body, "detail": result.message}
    return Response(body, status=status.HTTP_200_OK)


class CalendarView(APIView):
    """Handler for GET /api/calendar?from=YYYY-MM-DD&to=YYYY-MM-DD"""

    def get(self, request: Request) -> Response:
        params = {}
        if "from" in request.query_params:
            params["start"] = request.query_params["from"]
        if "to" in request.query_params:
            params["end"] = request.query_params["to"]
        query = CalendarQuerySerializer(data=params)
        query.is_valid(raise_exception=True)

        config = AcademySettings.from_settings()
        if query.validated_data.get("start"):
            window = ExpansionWindow(
                query.validated_data["start"], query.validated_data["end"]
            )
        else:
            window = ExpansionWindow.around(
                SystemClock().today(), config.window_months_before, config.window_months_after
            )

        key = calendar_key(window)
        data = cache.get(key)
        if data is None:
            instances = build_coordinator().schedule(window)
            data = list(CalendarInstanceSerializer(instances, many=True).data)
            cache.set(key, data, timeout=config.calendar_cache_timeout)
        else:
            logger.debug("Calendar cache hit for %s..%s", window.start, window.end)
        return Response(data)


class MemberAttendanceView(APIView):
    """Handler for GET and POST /api/members/{member_id}/attendance"""

    def get(self, request: Request, member_id: str) -> Response:
        try:
            history = build_coordinator().attendance_history(
                actor_from_request(request), member_id
            )
        except DomainError as exc:
            return error_response(exc)
        return Response(AttendanceRecordSerializer(history, many=True).data)

    def post(self, request: Request, member_id: str) -> Response:
        body = MarkAttendanceSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        data = body.validated_data
        try:
            result = build_coordinator().mark_attendance(
                actor_from_request(request),
                member_id,
                data["class_id"],
                data.get("date"),
                data["status"],
                data.get("reason") or None,
            )
        except DomainError as exc:
            return error_response(exc)
        return result_response(result, MemberSerializer(result.value).data)


class BulkAttendanceView(APIView):
    """Handler for POST /api/classes/{class_id}/attendance/bulk"""

    def post(self, request: Request, class_id: str) -> Response:
        body = BulkAttendanceSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        try:
            result = build_coordinator().bulk_mark_present(
                actor_from_request(request), class_id, body.validated_data.get("date")
            )
        except DomainError as exc:
            return error_response(exc)
        return result_response(result, {"marked": [m.id for m in result.value or ()]})


class SessionExceptionView(APIView):
    """Handler for POST /api/classes/{class_id}/exceptions"""

    def post(self, request: Request, class_id: str) -> Response:
        body = SessionExceptionSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        exception = SessionException(**body.validated_data)
        try:
            result = build_coordinator().modify_session(
                actor_from_request(request), class_id, exception
            )
        except DomainError as exc:
            return error_response(exc)
        return result_response(
            result,
            {
                "class_id": class_id,
                "date": exception.date.isoformat(),
                "kind": exception.kind.value,
            },
        )


class PromotionView(APIView):
    """Handler for POST /api/members/{member_id}/promote"""

    def post(self, request: Request, member_id: str) -> Response:
        try:
            result = build_coordinator().promote_member(
                actor_from_request(request), member_id
            )
        except DomainError as exc:
            return error_response(exc)
        return result_response(result, MemberSerializer(result.value).data)
