"""
In-process store for services, bikes and bookings.

Used for tests, demos and single-process deployments. Nothing survives a
restart.
"""

import itertools
import json
import logging
import threading
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pendulum

from ..domain.exceptions import BookingNotFound, DuplicateNumberPlate, SlotUnavailable
from ..domain.models import Bike, Booking, BookingStatus, ServiceInfo, TimeSlot


logger = logging.getLogger(__name__)

DEFAULT_CATALOG_FILE = Path(__file__).parent / "service_catalog.json"


def load_service_catalog(data_file: Optional[Path] = None) -> List[ServiceInfo]:
    """
    Load the default service catalog from JSON.

    Args:
        data_file: Optional override of the packaged catalog file

    Returns:
        List of ServiceInfo objects in file order
    """
    data_file = data_file or DEFAULT_CATALOG_FILE

    with open(data_file, "r", encoding="utf-8") as f:
        entries = json.load(f)

    return [
        ServiceInfo(
            id=entry["id"],
            name=entry["name"],
            duration_minutes=entry["duration_minutes"],
            is_active=entry.get("is_active", True),
            price=entry.get("price", 0),
            category=entry.get("category", ""),
            description=entry.get("description", ""),
        )
        for entry in entries
    ]


class InMemoryStore:
    """
    Dict-backed implementation of the catalog, bike and booking protocols.

    A single lock guards all mutations. Every active booking claims its
    footprint in ``_claims``, keyed by (date, slot), so the store alone
    refuses overlapping inserts even without the resolver's lock.
    """

    def __init__(self, services: Optional[Iterable[ServiceInfo]] = None):
        """
        Initialize the store.

        Args:
            services: Catalog entries; the packaged catalog is used when omitted
        """
        catalog = load_service_catalog() if services is None else services
        self._services: Dict[int, ServiceInfo] = {s.id: s for s in catalog}
        self._bikes: Dict[int, Bike] = {}
        self._bookings: Dict[int, Booking] = {}
        self._claims: Dict[Tuple[date, TimeSlot], int] = {}
        self._booking_ids = itertools.count(1)
        self._bike_ids = itertools.count(1)
        self._lock = threading.Lock()

    # Services

    def get_service(self, service_id: int) -> Optional[ServiceInfo]:
        return self._services.get(service_id)

    def list_services(self, *, category: Optional[str] = None) -> List[ServiceInfo]:
        """Active services ordered by price, optionally for one category."""
        services = [
            s for s in self._services.values()
            if s.is_active and (category is None or s.category == category)
        ]
        return sorted(services, key=lambda s: (s.price, s.id))

    def upsert_service(self, service: ServiceInfo) -> ServiceInfo:
        with self._lock:
            self._services[service.id] = service
        return service

    # Bikes

    def add_bike(self, user_id: int, brand: str, model: str, number_plate: str) -> Bike:
        """
        Register a bike.

        Raises:
            DuplicateNumberPlate: If the plate is already registered
        """
        plate = number_plate.strip().upper()

        with self._lock:
            if any(b.number_plate == plate for b in self._bikes.values()):
                raise DuplicateNumberPlate(f"Bike with number plate {plate} already exists")

            bike = Bike(
                id=next(self._bike_ids),
                user_id=user_id,
                brand=brand,
                model=model,
                number_plate=plate,
            )
            self._bikes[bike.id] = bike

        return bike

    def get_bike(self, bike_id: int) -> Optional[Bike]:
        return self._bikes.get(bike_id)

    # Bookings

    def list_non_cancelled_bookings(self, day: date) -> List[Booking]:
        with self._lock:
            return [
                b for b in self._bookings.values()
                if b.date == day and b.is_active
            ]

    def insert_booking_if_slot_free(
        self,
        booking: Booking,
        footprint: Sequence[TimeSlot],
    ) -> Booking:
        """
        Store the booking and claim every slot of its footprint.

        Raises:
            SlotUnavailable: If any slot of the footprint is already claimed
        """
        keys = [(booking.date, slot) for slot in (footprint or [booking.time_slot])]

        with self._lock:
            taken = [key for key in keys if key in self._claims]
            if taken:
                raise SlotUnavailable(
                    f"This time slot is already booked: {booking.date} {taken[0][1]}"
                )

            stored = replace(
                booking,
                id=next(self._booking_ids),
                created_at=pendulum.now("UTC"),
            )
            self._bookings[stored.id] = stored
            for key in keys:
                self._claims[key] = stored.id

        logger.debug("Stored booking %d claiming %d slot(s)", stored.id, len(keys))
        return stored

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    def list_bookings(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        with self._lock:
            bookings = [
                b for b in self._bookings.values()
                if (user_id is None or b.user_id == user_id)
                and (status is None or b.status is status)
            ]
        return sorted(bookings, key=lambda b: (b.date, b.time_slot, b.id), reverse=True)

    def set_status(self, booking_id: int, status: BookingStatus) -> Booking:
        with self._lock:
            booking = self._bookings.get(booking_id)
            if booking is None:
                raise BookingNotFound(f"Booking not found: {booking_id}")

            updated = replace(booking, status=status)
            self._bookings[booking_id] = updated

            if status is BookingStatus.CANCELLED:
                released = [k for k, owner in self._claims.items() if owner == booking_id]
                for key in released:
                    del self._claims[key]

        return updated
