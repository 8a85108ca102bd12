"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_resolver import (
    AvailabilityResolver,
    BikeRegistryProtocol,
    BookingRepositoryProtocol,
    ClockProtocol,
    ServiceCatalogProtocol,
)
from .booking_manager import BookingManager, BookingStoreProtocol
from .locks import KeyedLock

__all__ = [
    "AvailabilityResolver",
    "BikeRegistryProtocol",
    "BookingRepositoryProtocol",
    "ClockProtocol",
    "ServiceCatalogProtocol",
    "BookingManager",
    "BookingStoreProtocol",
    "KeyedLock",
]
