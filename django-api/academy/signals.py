"""Django signals for calendar cache invalidation.

Only schedule inputs (series, their overrides, one-off events) invalidate the
calendar; member and attendance writes leave it cached.
Invalidation runs once the surrounding transaction commits.
"""

import logging

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from academy.cache import invalidate_calendar
from academy.models import ClassSeries, Event, SessionOverride

logger = logging.getLogger(__name__)


@receiver([post_save, post_delete], sender=ClassSeries)
def invalidate_series_cache(sender, instance, **kwargs):
    """Invalidate the calendar when a class series is saved or deleted."""
    logger.debug("Class series %s changed; invalidating calendar", instance.pk)
    transaction.on_commit(invalidate_calendar)


@receiver([post_save, post_delete], sender=SessionOverride)
def invalidate_override_cache(sender, instance, **kwargs):
    """Invalidate the calendar when a session exception is saved or deleted."""
    transaction.on_commit(invalidate_calendar)


@receiver([post_save, post_delete], sender=Event)
def invalidate_event_cache(sender, instance, **kwargs):
    """Invalidate the calendar when a one-off event is saved or deleted."""
    logger.debug("Event %s changed; invalidating calendar", instance.pk)
    transaction.on_commit(invalidate_calendar)
