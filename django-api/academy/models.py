"""Django ORM models (persistence layer).

These models handle database concerns. Domain logic lives in domain/models.py.
Wall-clock times are stored as the raw strings they were entered with; the
schedule expander decides whether they are usable.
"""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models

MEMBER_STATUS_CHOICES = [
    ("active", "Active"),
    ("debtor", "Debtor"),
    ("exam_ready", "Exam ready"),
    ("suspended", "Suspended"),
    ("inactive", "Inactive"),
]

ATTENDANCE_STATUS_CHOICES = [
    ("present", "Present"),
    ("late", "Late"),
    ("excused", "Excused"),
    ("absent", "Absent"),
]

EXCEPTION_KIND_CHOICES = [
    ("cancel", "Cancel"),
    ("move", "Move"),
    ("reschedule", "Reschedule"),
    ("instructor", "Instructor substitution"),
]

EVENT_TYPE_CHOICES = [
    ("exam", "Exam"),
    ("tournament", "Tournament"),
    ("seminar", "Seminar"),
    ("social", "Social"),
]


class Rank(models.Model):
    """Persistence model for progression ranks."""

    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=100)
    required_attendance = models.PositiveIntegerField(default=0)
    ordinal = models.PositiveIntegerField(unique=True)
    color = models.CharField(max_length=20, blank=True)

    class Meta:
        ordering = ["ordinal"]

    def __str__(self) -> str:
        return self.name


class Member(models.Model):
    """Persistence model for members and their cached attendance aggregates."""

    id = models.CharField(primary_key=True, max_length=64)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="academy_member",
    )
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=40, blank=True)
    rank_id = models.CharField(max_length=64, blank=True)
    status = models.CharField(
        max_length=20, choices=MEMBER_STATUS_CHOICES, default="active"
    )
    attendance_count = models.PositiveIntegerField(default=0)
    last_attendance_date = models.DateField(null=True, blank=True)
    class_ids = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["status"], name="academy_mem_status_3b9e4d_idx"),
        ]

    def __str__(self) -> str:
        return self.name


class AttendanceEntry(models.Model):
    """Persistence model for one attendance ledger record."""

    member = models.ForeignKey(
        Member, on_delete=models.CASCADE, related_name="attendance_entries"
    )
    class_id = models.CharField(max_length=64)
    date = models.DateField()
    status = models.CharField(max_length=20, choices=ATTENDANCE_STATUS_CHOICES)
    recorded_at = models.DateTimeField()
    reason = models.TextField(blank=True, null=True)

    class Meta:
        ordering = ["-date", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["member", "class_id", "date"], name="unique_attendance_per_class_day"
            ),
        ]
        indexes = [
            models.Index(fields=["class_id", "date"], name="academy_att_class_i_8d2f61_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.member_id} - {self.class_id} - {self.date} - {self.status}"


class PromotionRecord(models.Model):
    """Persistence model for a member's past promotions."""

    member = models.ForeignKey(
        Member, on_delete=models.CASCADE, related_name="promotion_records"
    )
    position = models.PositiveIntegerField(default=0)
    rank_name = models.CharField(max_length=100)
    promoted_on = models.DateField()
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["position"]

    def __str__(self) -> str:
        return f"{self.member_id} - {self.rank_name} - {self.promoted_on}"


class ClassSeries(models.Model):
    """Persistence model for recurring classes."""

    id = models.CharField(primary_key=True, max_length=64)
    name = models.CharField(max_length=255)
    instructor = models.CharField(max_length=255, blank=True)
    days = models.JSONField(default=list, blank=True)
    start_time = models.CharField(max_length=8, blank=True)
    end_time = models.CharField(max_length=8, blank=True)
    member_ids = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name_plural = "class series"

    def __str__(self) -> str:
        return self.name


class SessionOverride(models.Model):
    """Persistence model for a date-keyed exception of a class series."""

    series = models.ForeignKey(
        ClassSeries, on_delete=models.CASCADE, related_name="overrides"
    )
    position = models.PositiveIntegerField(default=0)
    date = models.DateField()
    kind = models.CharField(max_length=20, choices=EXCEPTION_KIND_CHOICES)
    new_date = models.DateField(null=True, blank=True)
    new_start_time = models.CharField(max_length=8, blank=True)
    new_end_time = models.CharField(max_length=8, blank=True)
    new_instructor = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(
                fields=["series", "date"], name="unique_override_per_series_day"
            ),
        ]

    def __str__(self) -> str:
        return f"{self.series_id} - {self.date} - {self.kind}"

    def clean(self) -> None:
        if self.kind == "move" and self.new_date is None:
            raise ValidationError({"new_date": "A move needs a destination date."})


class Event(models.Model):
    """Persistence model for one-off events."""

    id = models.CharField(primary_key=True, max_length=64)
    title = models.CharField(max_length=255)
    event_type = models.CharField(max_length=20, choices=EVENT_TYPE_CHOICES)
    date = models.DateField()
    time = models.CharField(max_length=8, blank=True)
    duration_minutes = models.PositiveIntegerField(null=True, blank=True)
    registrant_ids = models.JSONField(default=list, blank=True)
    description = models.TextField(blank=True)

    class Meta:
        ordering = ["date", "time"]
        indexes = [
            models.Index(fields=["date"], name="academy_eve_date_6f1c2a_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} - {self.date}"
