"""Academy settings, read from the ``ACADEMY`` dict in Django settings."""

from dataclasses import dataclass, fields
from typing import Self

from django.conf import settings


@dataclass(frozen=True)
class AcademySettings:
    window_months_before: int = 2
    window_months_after: int = 10
    default_event_minutes: int = 60
    calendar_cache_timeout: int = 300
    enrolled_events_lookback_days: int = 30

    @classmethod
    def from_settings(cls) -> Self:
        overrides = getattr(settings, "ACADEMY", {}) or {}
        values = {}
        for f in fields(cls):
            key = f.name.upper()
            if key in overrides:
                values[f.name] = int(overrides[key])
        return cls(**values)
