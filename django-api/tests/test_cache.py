"""Tests for cache behavior.

Run with: pytest tests/test_cache.py -v
"""

from datetime import date

import pytest
from django.core.cache import cache

from academy import models as orm
from academy.cache import calendar_key, invalidate_calendar
from academy.domain import ExpansionWindow

JUNE_2024 = ExpansionWindow(date(2024, 6, 1), date(2024, 6, 30))


class TestCalendarKey:
    """Tests for generation-versioned calendar keys."""

    def test_key_is_stable_between_invalidations(self):
        assert calendar_key(JUNE_2024) == calendar_key(JUNE_2024)

    def test_key_includes_window(self):
        july = ExpansionWindow(date(2024, 7, 1), date(2024, 7, 31))
        assert calendar_key(JUNE_2024) != calendar_key(july)

    def test_invalidate_changes_key(self):
        before = calendar_key(JUNE_2024)
        invalidate_calendar()
        assert calendar_key(JUNE_2024) != before

    def test_invalidate_on_empty_cache(self):
        """Invalidation works before any key was ever built."""
        cache.clear()
        invalidate_calendar()
        assert calendar_key(JUNE_2024).startswith("academy:calendar:")


@pytest.mark.django_db
class TestCacheInvalidation:
    """Tests for cache invalidation on model changes."""

    def test_series_save_invalidates_calendar(self, django_capture_on_commit_callbacks):
        """Saving a class series invalidates every cached calendar window."""
        before = calendar_key(JUNE_2024)
        with django_capture_on_commit_callbacks(execute=True):
            orm.ClassSeries.objects.create(id="kids", name="Kids", days=["Monday"])
        assert calendar_key(JUNE_2024) != before

    def test_override_save_invalidates_calendar(self, django_capture_on_commit_callbacks):
        series = orm.ClassSeries.objects.create(id="kids", name="Kids")
        before = calendar_key(JUNE_2024)
        with django_capture_on_commit_callbacks(execute=True):
            orm.SessionOverride.objects.create(
                series=series, date=date(2024, 6, 3), kind="cancel"
            )
        assert calendar_key(JUNE_2024) != before

    def test_event_delete_invalidates_calendar(self, django_capture_on_commit_callbacks):
        event = orm.Event.objects.create(
            id="e1", title="Exam", event_type="exam", date=date(2024, 6, 22), time="09:00"
        )
        before = calendar_key(JUNE_2024)
        with django_capture_on_commit_callbacks(execute=True):
            event.delete()
        assert calendar_key(JUNE_2024) != before

    def test_invalidation_waits_for_commit(self, django_capture_on_commit_callbacks):
        """Inside an open transaction the calendar key is unchanged."""
        before = calendar_key(JUNE_2024)
        with django_capture_on_commit_callbacks() as callbacks:
            orm.ClassSeries.objects.create(id="kids", name="Kids", days=["Monday"])
            assert calendar_key(JUNE_2024) == before
        assert len(callbacks) == 1
        callbacks[0]()
        assert calendar_key(JUNE_2024) != before

    def test_member_save_keeps_calendar(self, django_capture_on_commit_callbacks):
        """Roster and attendance writes do not touch the calendar cache."""
        before = calendar_key(JUNE_2024)
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            orm.Member.objects.create(id="m1", name="Lia", rank_id="white")
        assert callbacks == []
        assert calendar_key(JUNE_2024) == before
