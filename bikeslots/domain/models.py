"""
Domain models for business hours, slots, services and bookings.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

import pendulum
from pendulum import DateTime


MINUTES_PER_DAY = 24 * 60

_SLOT_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")


def normalize_date(value: Union[date, datetime, str]) -> date:
    """
    Reduce a calendar value to its day.

    Accepts ``date``, ``datetime`` (including pendulum types) or an ISO
    ``YYYY-MM-DD`` string. Time-of-day is dropped; the input is never mutated.

    Raises:
        ValueError: If the string is not an ISO calendar date
    """
    if isinstance(value, str):
        parsed = pendulum.from_format(value.strip(), "YYYY-MM-DD")
        return date(parsed.year, parsed.month, parsed.day)

    if isinstance(value, (date, datetime)):
        return date(value.year, value.month, value.day)

    raise ValueError(f"Unsupported date value: {value!r}")


@dataclass(frozen=True, order=True)
class TimeSlot:
    """
    A start time within a day, compared by minute-of-day.

    Rendered as ``HH:MM`` on a 24-hour clock.
    """
    minute_of_day: int

    def __post_init__(self):
        if not 0 <= self.minute_of_day < MINUTES_PER_DAY:
            raise ValueError(f"Minute of day out of range: {self.minute_of_day}")

    @classmethod
    def at(cls, hour: int, minute: int = 0) -> "TimeSlot":
        return cls(hour * 60 + minute)

    @classmethod
    def parse(cls, value: str) -> "TimeSlot":
        """
        Parse an ``HH:MM`` string.

        Raises:
            ValueError: If the value is not a zero-padded 24-hour time
        """
        match = _SLOT_PATTERN.match(value.strip()) if isinstance(value, str) else None
        if not match:
            raise ValueError(f"Time slot must be formatted as HH:MM, got {value!r}")

        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise ValueError(f"Time slot out of range: {value!r}")

        return cls.at(hour, minute)

    @property
    def hour(self) -> int:
        return self.minute_of_day // 60

    @property
    def minute(self) -> int:
        return self.minute_of_day % 60

    def __str__(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class BusinessHours:
    """
    Immutable opening hours for one business day.

    Invariant: open_hour < close_hour. Violations fail at construction so a
    bad configuration is caught at startup.
    """
    open_hour: int
    close_hour: int
    slot_granularity_minutes: int = 60
    allow_overrun_past_close: bool = True

    def __post_init__(self):
        if not 0 <= self.open_hour <= 24 or not 0 <= self.close_hour <= 24:
            raise ValueError(
                f"Business hours must lie within 0-24, got {self.open_hour}-{self.close_hour}"
            )
        if self.open_hour >= self.close_hour:
            raise ValueError(
                f"Opening hour {self.open_hour} must be before closing hour {self.close_hour}"
            )
        if self.slot_granularity_minutes <= 0 or 60 % self.slot_granularity_minutes:
            raise ValueError(
                f"Slot granularity must evenly divide an hour, got {self.slot_granularity_minutes}"
            )

    @property
    def opening_minute(self) -> int:
        return self.open_hour * 60

    @property
    def closing_minute(self) -> int:
        return self.close_hour * 60

    def contains(self, slot: TimeSlot) -> bool:
        """Check if a slot is a generated start time for this day."""
        offset = slot.minute_of_day - self.opening_minute
        return (
            self.opening_minute <= slot.minute_of_day < self.closing_minute
            and offset % self.slot_granularity_minutes == 0
        )

    def slots_spanned(self, duration_minutes: int) -> int:
        """Number of consecutive slots a duration occupies (rounded up)."""
        return math.ceil(duration_minutes / self.slot_granularity_minutes)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ServiceType(str, Enum):
    """Where the service is carried out."""

    VISIT = "visit"  # customer brings the bike in
    PICKUP = "pickup"
    HOME = "home"

    @property
    def requires_address(self) -> bool:
        return self is not ServiceType.VISIT


@dataclass(frozen=True)
class ServiceInfo:
    """A catalog entry. Price is stored in the smallest currency unit."""
    id: int
    name: str
    duration_minutes: int
    is_active: bool = True
    price: int = 0
    category: str = ""
    description: str = ""

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError(
                f"Service duration must be positive, got {self.duration_minutes}"
            )


@dataclass(frozen=True)
class Bike:
    """A customer's registered bike."""
    id: int
    user_id: int
    brand: str
    model: str
    number_plate: str


@dataclass(frozen=True)
class Booking:
    """
    A persisted reservation.

    ``duration_minutes`` is copied from the service when the booking is
    admitted, so the footprint stays fixed even if the catalog changes later.
    """
    id: Optional[int]
    date: date
    time_slot: TimeSlot
    service_id: int
    duration_minutes: int
    status: BookingStatus = BookingStatus.PENDING
    user_id: Optional[int] = None
    bike_id: Optional[int] = None
    service_type: ServiceType = ServiceType.VISIT
    address: Optional[str] = None
    total_amount: int = 0
    created_at: Optional[DateTime] = field(default=None, compare=False)

    @property
    def is_active(self) -> bool:
        """Whether this booking still holds capacity."""
        return self.status is not BookingStatus.CANCELLED


class Role(str, Enum):
    """Account roles. Staff roles may manage any booking."""

    USER = "user"
    MECHANIC = "mechanic"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        return self is not Role.USER


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as resolved by the auth collaborator."""
    user_id: int
    role: Role = Role.USER
