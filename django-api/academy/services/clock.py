"""Clock collaborators.

Services never read the ambient time directly; they ask an injected clock.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime

from django.utils import timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Organization-local time from Django's configured TIME_ZONE."""

    def now(self) -> datetime:
        return timezone.localtime()


class FixedClock(Clock):
    def __init__(self, now: datetime) -> None:
        self._now = now

    def now(self) -> datetime:
        return self._now
