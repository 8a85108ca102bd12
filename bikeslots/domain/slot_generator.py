"""
Generation of the canonical start times for a business day.

Pure domain logic: the sequence depends only on the business hours, never on
bookings, so it can be cached and regenerated freely.
"""

from functools import lru_cache
from typing import Tuple

from .models import BusinessHours, TimeSlot


@lru_cache(maxsize=32)
def generate_slots(business_hours: BusinessHours) -> Tuple[TimeSlot, ...]:
    """
    Produce every bookable start time between opening and closing.

    Example:
    Hours: 09:00 - 18:00, granularity 60
    Result: 09:00, 10:00, ..., 17:00 (9 slots)
    """
    step = business_hours.slot_granularity_minutes

    return tuple(
        TimeSlot(minute)
        for minute in range(
            business_hours.opening_minute,
            business_hours.closing_minute,
            step,
        )
    )
