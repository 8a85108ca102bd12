"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import (
    Actor,
    Bike,
    Booking,
    BookingStatus,
    BusinessHours,
    Role,
    ServiceInfo,
    ServiceType,
    TimeSlot,
    normalize_date,
)
from .occupancy import OccupancyCalculator
from .slot_generator import generate_slots

__all__ = [
    "Actor",
    "Bike",
    "Booking",
    "BookingStatus",
    "BusinessHours",
    "Role",
    "ServiceInfo",
    "ServiceType",
    "TimeSlot",
    "normalize_date",
    "OccupancyCalculator",
    "generate_slots",
]
