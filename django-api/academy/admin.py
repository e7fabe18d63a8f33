from django.contrib import admin

from academy.models import (
    AttendanceEntry,
    ClassSeries,
    Event,
    Member,
    PromotionRecord,
    Rank,
    SessionOverride,
)


class ReadOnlyInline(admin.TabularInline):
    """Ledger rows are written through the API so member aggregates stay in step."""

    extra = 0
    can_delete = False

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request, obj=None):
        return False


class AttendanceEntryInline(ReadOnlyInline):
    model = AttendanceEntry


class PromotionRecordInline(ReadOnlyInline):
    model = PromotionRecord


class SessionOverrideInline(admin.TabularInline):
    model = SessionOverride
    extra = 1


@admin.register(Rank)
class RankAdmin(admin.ModelAdmin):
    list_display = ["name", "ordinal", "required_attendance"]


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ["name", "rank_id", "status", "attendance_count", "last_attendance_date"]
    list_filter = ["status", "rank_id"]
    search_fields = ["name", "email"]
    readonly_fields = ["attendance_count", "last_attendance_date"]
    inlines = [AttendanceEntryInline, PromotionRecordInline]


@admin.register(ClassSeries)
class ClassSeriesAdmin(admin.ModelAdmin):
    list_display = ["name", "instructor", "start_time", "end_time"]
    search_fields = ["name", "instructor"]
    inlines = [SessionOverrideInline]


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    list_display = ["title", "event_type", "date", "time"]
    list_filter = ["event_type"]
    search_fields = ["title"]
