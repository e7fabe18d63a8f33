"""Serializers for transforming domain models to API responses and for
validating request bodies.

Output serializers read attributes straight off the frozen domain
dataclasses; enum fields are rendered by value.
"""

from rest_framework import serializers

from academy.domain.value_objects import (
    AttendanceStatus,
    ExceptionKind,
    parse_wall_clock,
)


class EnumValueField(serializers.Field):
    """Read-only field rendering an Enum member by its value."""

    def __init__(self, **kwargs):
        kwargs["read_only"] = True
        super().__init__(**kwargs)

    def to_representation(self, value):
        return value.value if value is not None else None


class WallClockField(serializers.CharField):
    """An ``HH:MM`` organization-local time string."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        if parse_wall_clock(value) is None:
            raise serializers.ValidationError("Enter a time as HH:MM.")
        return value


class CalendarInstanceSerializer(serializers.Serializer):
    """Serializer for CalendarInstance domain model."""

    id = serializers.CharField()
    title = serializers.CharField()
    start = serializers.DateTimeField()
    end = serializers.DateTimeField()
    instructor = serializers.CharField(allow_null=True)
    status = EnumValueField()
    is_recurring = serializers.BooleanField()
    series_id = serializers.CharField(allow_null=True)
    event_type = EnumValueField()


class AttendanceRecordSerializer(serializers.Serializer):
    """Serializer for AttendanceRecord domain model."""

    class_id = serializers.CharField()
    date = serializers.DateField()
    status = EnumValueField()
    recorded_at = serializers.DateTimeField()
    reason = serializers.CharField(allow_null=True)


class PromotionHistoryItemSerializer(serializers.Serializer):
    rank_name = serializers.CharField()
    date = serializers.DateField()
    notes = serializers.CharField()


class MemberSerializer(serializers.Serializer):
    """Serializer for Member domain model, without the attendance ledger."""

    id = serializers.CharField()
    name = serializers.CharField()
    rank_id = serializers.CharField()
    status = EnumValueField()
    attendance_count = serializers.IntegerField()
    last_attendance_date = serializers.DateField(allow_null=True)
    class_ids = serializers.ListField(child=serializers.CharField())
    promotion_history = PromotionHistoryItemSerializer(many=True)


class CalendarQuerySerializer(serializers.Serializer):
    """Query parameters for GET /api/calendar."""

    start = serializers.DateField(required=False)
    end = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get("start"), attrs.get("end")
        if (start is None) != (end is None):
            raise serializers.ValidationError("Give both from and to, or neither.")
        if start is not None and start > end:
            raise serializers.ValidationError("from must not be after to.")
        return attrs


class MarkAttendanceSerializer(serializers.Serializer):
    """Body of POST /api/members/{member_id}/attendance.

    A null status clears the mark for that class and date.
    """

    class_id = serializers.CharField()
    date = serializers.DateField(required=False)
    status = serializers.ChoiceField(
        choices=[s.value for s in AttendanceStatus], allow_null=True
    )
    reason = serializers.CharField(required=False, allow_null=True, allow_blank=True)

    def validate_status(self, value):
        return AttendanceStatus(value) if value is not None else None


class BulkAttendanceSerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class SessionExceptionSerializer(serializers.Serializer):
    """Body of POST /api/classes/{class_id}/exceptions."""

    date = serializers.DateField()
    kind = serializers.ChoiceField(choices=[k.value for k in ExceptionKind])
    new_date = serializers.DateField(required=False, allow_null=True)
    new_start_time = WallClockField(required=False, allow_null=True)
    new_end_time = WallClockField(required=False, allow_null=True)
    new_instructor = serializers.CharField(required=False, allow_null=True)

    def validate_kind(self, value):
        return ExceptionKind(value)

    def validate(self, attrs):
        if attrs["kind"] is ExceptionKind.MOVE and not attrs.get("new_date"):
            raise serializers.ValidationError(
                {"new_date": "A moved session needs a destination date."}
            )
        return attrs
