"""Recurring schedule expansion.

Projects recurring series (weekday patterns plus date-keyed exceptions) and
one-off events into concrete calendar instances for a bounded window. The
whole instance list is recomputed on every call; nothing here is stored.
"""

import logging
import re
from collections.abc import Iterable
from datetime import date, datetime, timedelta

from academy.domain.models import (
    CalendarInstance,
    OneOffEvent,
    RecurringSeries,
    SessionException,
)
from academy.domain.value_objects import (
    ExceptionKind,
    ExpansionWindow,
    InstanceStatus,
    parse_wall_clock,
)

logger = logging.getLogger(__name__)

DEFAULT_EVENT_MINUTES = 60

_INSTANCE_ID_RE = re.compile(r"^(?P<series_id>.+)-(?P<date>\d{4}-\d{2}-\d{2})$")

_STATUS_BY_KIND = {
    ExceptionKind.CANCEL: InstanceStatus.CANCELLED,
    ExceptionKind.RESCHEDULE: InstanceStatus.RESCHEDULED,
}


def instance_id(series_id: str, day: date) -> str:
    return f"{series_id}-{day.isoformat()}"


def split_instance_id(value: str) -> tuple[str, date] | None:
    """Recover (series id, date) from a recurring instance id.

    Returns None when `value` is not shaped like a recurring instance id.
    """
    match = _INSTANCE_ID_RE.match(value or "")
    if match is None:
        return None
    try:
        day = date.fromisoformat(match.group("date"))
    except ValueError:
        return None
    return match.group("series_id"), day


def expand(
    series: Iterable[RecurringSeries],
    events: Iterable[OneOffEvent],
    window: ExpansionWindow,
    default_event_minutes: int = DEFAULT_EVENT_MINUTES,
) -> list[CalendarInstance]:
    """Return every calendar instance inside `window`.

    One-off events come first in input order, followed by each series'
    instances in date order.
    """
    instances = [
        instance
        for event in events
        if (instance := _event_instance(event, window, default_event_minutes))
    ]
    for item in series:
        instances.extend(_series_instances(item, window))
    return instances


def _event_instance(
    event: OneOffEvent, window: ExpansionWindow, default_minutes: int
) -> CalendarInstance | None:
    if event.date not in window:
        return None
    start_time = parse_wall_clock(event.time)
    if start_time is None:
        logger.debug("Skipping event %s with malformed time %r", event.id, event.time)
        return None
    start = datetime.combine(event.date, start_time)
    minutes = event.duration_minutes if event.duration_minutes else default_minutes
    return CalendarInstance(
        id=event.id,
        title=event.title,
        start=start,
        end=start + timedelta(minutes=minutes),
        instructor=None,
        status=InstanceStatus.ACTIVE,
        is_recurring=False,
        event_type=event.event_type,
    )


def _series_instances(series: RecurringSeries, window: ExpansionWindow):
    for day in window.days():
        renders, exception = _disposition(series, day)
        if not renders:
            continue
        instance = _render(series, day, exception)
        if instance is not None:
            yield instance


def _disposition(
    series: RecurringSeries, day: date
) -> tuple[bool, SessionException | None]:
    """Resolve whether `day` renders and which exception overrides it.

    Precedence: a move landing on `day`, then the regular weekday pattern
    (suppressed when a move originates on `day`), then nothing.
    """
    moved_in = series.exceptions.moved_into(day)
    if moved_in is not None:
        return True, moved_in
    if not series.recurs_on(day):
        return False, None
    exception = series.exceptions.for_date(day)
    if exception is not None and exception.kind is ExceptionKind.MOVE:
        # rendered at its destination
        return False, None
    return True, exception


def _render(
    series: RecurringSeries, day: date, exception: SessionException | None
) -> CalendarInstance | None:
    start_raw = series.start_time
    end_raw = series.end_time
    instructor = series.instructor
    status = InstanceStatus.ACTIVE
    if exception is not None:
        start_raw = exception.new_start_time or start_raw
        end_raw = exception.new_end_time or end_raw
        instructor = exception.new_instructor or instructor
        status = _STATUS_BY_KIND.get(exception.kind, InstanceStatus.ACTIVE)

    start_time = parse_wall_clock(start_raw)
    end_time = parse_wall_clock(end_raw)
    if start_time is None or end_time is None:
        logger.debug(
            "Skipping %s on %s: unusable times %r-%r", series.id, day, start_raw, end_raw
        )
        return None

    return CalendarInstance(
        id=instance_id(series.id, day),
        title=series.name,
        start=datetime.combine(day, start_time),
        end=datetime.combine(day, end_time),
        instructor=instructor,
        status=status,
        is_recurring=True,
        series_id=series.id,
    )
