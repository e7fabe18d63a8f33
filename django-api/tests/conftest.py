"""Pytest configuration and shared fixtures."""

from datetime import date, datetime, time

import pytest
from django.utils import timezone
from rest_framework.test import APIClient

from academy.domain import (
    Actor,
    Member,
    Rank,
    RecurringSeries,
    Role,
    Weekday,
)
from academy.services.clock import FixedClock


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def master() -> Actor:
    return Actor(role=Role.MASTER)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(
        timezone.make_aware(datetime.combine(date(2024, 6, 10), time(18, 30)))
    )


@pytest.fixture
def ranks() -> list[Rank]:
    return [
        Rank(id="white", name="White", required_attendance=20, ordinal=1),
        Rank(id="yellow", name="Yellow", required_attendance=30, ordinal=2),
        Rank(id="orange", name="Orange", required_attendance=40, ordinal=3),
    ]


@pytest.fixture
def kids_series() -> RecurringSeries:
    return RecurringSeries(
        id="kids",
        name="Kids",
        instructor="Sensei Ana",
        days=frozenset({Weekday.MONDAY, Weekday.WEDNESDAY}),
        start_time="16:00",
        end_time="17:00",
        member_ids=("m1", "m2"),
    )


@pytest.fixture
def member() -> Member:
    return Member(id="m1", name="Lia", rank_id="white", class_ids=("kids",))
