"""
Shared fixtures for the booking tests.
"""

from datetime import date
from typing import List

import pytest

from bikeslots.adapters.memory_store import InMemoryStore
from bikeslots.domain.models import BusinessHours, ServiceInfo
from bikeslots.domain.occupancy import OccupancyCalculator
from bikeslots.services.availability_resolver import AvailabilityResolver


TODAY = date(2024, 11, 24)
DAY = date(2024, 11, 25)


class FixedClock:
    """Clock stub pinned to a single day."""

    def __init__(self, today: date = TODAY):
        self._today = today

    def today(self) -> date:
        return self._today


def catalog() -> List[ServiceInfo]:
    return [
        ServiceInfo(id=1, name="Oil Change", duration_minutes=60, price=39900, category="maintenance"),
        ServiceInfo(id=2, name="Full Service", duration_minutes=120, price=149900, category="maintenance"),
        ServiceInfo(id=3, name="Chain Lube", duration_minutes=30, price=19900, category="maintenance"),
        ServiceInfo(id=4, name="Engine Overhaul", duration_minutes=180, price=499900, category="repair"),
        ServiceInfo(id=9, name="Retired Wash", duration_minutes=60, price=9900, category="cleaning", is_active=False),
    ]


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore(services=catalog())


@pytest.fixture
def calculator() -> OccupancyCalculator:
    return OccupancyCalculator(BusinessHours(open_hour=9, close_hour=18))


@pytest.fixture
def resolver(store, calculator) -> AvailabilityResolver:
    return AvailabilityResolver(
        calculator=calculator,
        services=store,
        bookings=store,
        clock=FixedClock(),
        bikes=store,
        min_lead_days=1,
    )
