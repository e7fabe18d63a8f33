"""Calendar response caching.

Cache keys carry a generation number; invalidation bumps the generation so
every cached window is dropped at once.
"""

from django.core.cache import cache

from academy.domain import ExpansionWindow

GENERATION_KEY = "academy:calendar:generation"


def _generation() -> int:
    return cache.get_or_set(GENERATION_KEY, 1, timeout=None)


def calendar_key(window: ExpansionWindow) -> str:
    return f"academy:calendar:{_generation()}:{window.start}:{window.end}"


def invalidate_calendar() -> None:
    try:
        cache.incr(GENERATION_KEY)
    except ValueError:
        cache.set(GENERATION_KEY, 1, timeout=None)
