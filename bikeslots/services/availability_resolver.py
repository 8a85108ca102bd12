"""
Application service deciding which slots are free and which bookings to admit.

The resolver coordinates the service catalog, the booking repository and the
clock, and delegates every occupancy decision to the domain-level
``OccupancyCalculator``. Collaborators are described by protocols so the
in-memory store, the SQL store and test stubs plug in the same way.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any, List, Mapping, Optional, Protocol, Sequence, Union

from ..domain.exceptions import AuthorizationError, BikeNotFound, InvalidRequest, ServiceNotFound, SlotUnavailable
from ..domain.models import Bike, Booking, BookingStatus, ServiceInfo, TimeSlot
from ..domain.occupancy import OccupancyCalculator
from ..schemas import CreateBookingRequest, SlotQuery, parse_request
from .locks import KeyedLock


logger = logging.getLogger(__name__)


class ServiceCatalogProtocol(Protocol):
    """Service lookup needed by the resolver."""

    def get_service(self, service_id: int) -> Optional[ServiceInfo]:
        """Return the service, or ``None`` if the id is unknown."""


class BikeRegistryProtocol(Protocol):
    """Bike lookup needed to check ownership at admission."""

    def get_bike(self, bike_id: int) -> Optional[Bike]:
        """Return the bike, or ``None`` if the id is unknown."""


class BookingRepositoryProtocol(Protocol):
    """Booking storage behaviour needed by the resolver."""

    def list_non_cancelled_bookings(self, day: date) -> List[Booking]:
        """Return every booking on ``day`` whose status is not cancelled."""

    def insert_booking_if_slot_free(
        self,
        booking: Booking,
        footprint: Sequence[TimeSlot],
    ) -> Booking:
        """
        Atomically store ``booking`` unless an active booking on the same day
        occupies any slot of ``footprint``.

        Raises:
            SlotUnavailable: If the window is already taken
        """


class ClockProtocol(Protocol):
    """Date provider."""

    def today(self) -> date:
        """Return the current calendar date in the shop's timezone."""


class AvailabilityResolver:
    """
    Computes free start slots and admits bookings against the same footprint.

    Admissions for one date are serialised by an in-process keyed lock; the
    repository's atomic insert is the second line of defence for stores shared
    between processes.
    """

    def __init__(
        self,
        calculator: OccupancyCalculator,
        services: ServiceCatalogProtocol,
        bookings: BookingRepositoryProtocol,
        clock: ClockProtocol,
        bikes: Optional[BikeRegistryProtocol] = None,
        min_lead_days: int = 0,
    ) -> None:
        self._calculator = calculator
        self._services = services
        self._bookings = bookings
        self._clock = clock
        self._bikes = bikes
        self._min_lead_days = min_lead_days
        self._admission_locks = KeyedLock()

    def available_slots(self, day: Union[date, str], service_id: int) -> List[TimeSlot]:
        """
        Start slots on ``day`` at which the requested service still fits.

        Days before the earliest bookable date have no slots.

        Reads are not synchronised with admissions; a slot returned here may
        be claimed before the caller books it.
        """
        query = parse_request(SlotQuery, {"date": day, "service_id": service_id})
        service = self._require_active_service(query.service_id)

        if query.date < self._earliest_bookable_day():
            logger.debug("%s is before the earliest bookable day, no slots offered", query.date)
            return []

        existing = self._bookings.list_non_cancelled_bookings(query.date)
        free = self._calculator.free_start_slots(existing, service.duration_minutes)

        logger.debug(
            "%d of %d slots free on %s for service %d",
            len(free),
            len(self._calculator.day_slots),
            query.date,
            service.id,
        )
        return free

    def create_booking(
        self,
        data: Mapping[str, Any],
        user_id: Optional[int] = None,
    ) -> Booking:
        """Validate a raw booking body, then admit it."""
        request = parse_request(CreateBookingRequest, data)
        return self.admit_booking(request, user_id=user_id)

    def admit_booking(
        self,
        request: CreateBookingRequest,
        user_id: Optional[int] = None,
    ) -> Booking:
        """
        Admit a validated booking request or raise a typed error.

        Raises:
            InvalidRequest: If the date is too early or the slot is not bookable
            BikeNotFound: If the bike id does not resolve
            AuthorizationError: If the bike belongs to another user
            ServiceNotFound: If the service is unknown or inactive
            SlotUnavailable: If the window overlaps an existing booking
        """
        self._check_lead_time(request.date)
        self._check_bike_owner(request.bike_id, user_id)

        with self._admission_locks.hold(request.date):
            # Re-read under the lock: the catalog may have changed since the
            # caller looked at available slots.
            service = self._require_active_service(request.service_id)

            if not self._calculator.is_start_allowed(request.time_slot, service.duration_minutes):
                raise InvalidRequest(
                    f"{request.time_slot} is not a bookable start time for '{service.name}'"
                )

            existing = self._bookings.list_non_cancelled_bookings(request.date)
            conflicts = self._calculator.conflicting_bookings(
                request.time_slot, service.duration_minutes, existing
            )
            if conflicts:
                logger.info(
                    "Rejected %s %s for service %d: overlaps booking(s) %s",
                    request.date,
                    request.time_slot,
                    service.id,
                    ", ".join(str(b.id) for b in conflicts),
                )
                raise SlotUnavailable(
                    f"This time slot is already booked: {request.date} {request.time_slot}"
                )

            booking = Booking(
                id=None,
                date=request.date,
                time_slot=request.time_slot,
                service_id=service.id,
                duration_minutes=service.duration_minutes,
                status=BookingStatus.PENDING,
                user_id=user_id,
                bike_id=request.bike_id,
                service_type=request.service_type,
                address=request.address,
                total_amount=service.price,
            )
            footprint = self._calculator.footprint(request.time_slot, service.duration_minutes)
            stored = self._bookings.insert_booking_if_slot_free(booking, footprint)

        logger.info(
            "Admitted booking %s: %s %s, service %d (%d min)",
            stored.id,
            stored.date,
            stored.time_slot,
            service.id,
            service.duration_minutes,
        )
        return stored

    def _require_active_service(self, service_id: int) -> ServiceInfo:
        service = self._services.get_service(service_id)
        if service is None or not service.is_active:
            raise ServiceNotFound(f"Service not found or inactive: {service_id}")
        return service

    def _earliest_bookable_day(self) -> date:
        return self._clock.today() + timedelta(days=self._min_lead_days)

    def _check_lead_time(self, day: date) -> None:
        earliest = self._earliest_bookable_day()
        if day < earliest:
            raise InvalidRequest(
                f"Bookings must be made for {earliest.isoformat()} or later, got {day.isoformat()}"
            )

    def _check_bike_owner(self, bike_id: int, user_id: Optional[int]) -> None:
        if self._bikes is None:
            return

        bike = self._bikes.get_bike(bike_id)
        if bike is None:
            raise BikeNotFound(f"Bike not found: {bike_id}")
        if user_id is not None and bike.user_id != user_id:
            raise AuthorizationError("Invalid bike selection")
