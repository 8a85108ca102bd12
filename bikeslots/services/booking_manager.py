"""
Booking management: lookups, cancellation and staff status transitions.

Cancellation is a status write; the store releases the booking's slot claims
in the same write. Occupancy is derived from the non-cancelled bookings, so a
cancelled slot is free again on the very next availability query.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Protocol

from ..domain.exceptions import AuthorizationError, BookingNotFound, InvalidRequest
from ..domain.models import Actor, Booking, BookingStatus
from ..schemas import StatusUpdateRequest, parse_request


logger = logging.getLogger(__name__)


class BookingStoreProtocol(Protocol):
    """Booking storage behaviour needed for management operations."""

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        """Return the booking, or ``None`` if the id is unknown."""

    def list_bookings(
        self,
        *,
        user_id: Optional[int] = None,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """Return bookings, newest date first."""

    def set_status(self, booking_id: int, status: BookingStatus) -> Booking:
        """Persist a new status and return the updated booking."""


class BookingManager:
    """Owner and staff operations on existing bookings."""

    def __init__(self, bookings: BookingStoreProtocol) -> None:
        self._bookings = bookings

    def get_booking(self, booking_id: int, actor: Actor) -> Booking:
        """Return a booking its owner or any staff member may see."""
        booking = self._require_booking(booking_id)
        if booking.user_id != actor.user_id and not actor.role.is_staff:
            raise AuthorizationError("Access denied")
        return booking

    def list_bookings(
        self,
        actor: Actor,
        status: Optional[BookingStatus] = None,
    ) -> List[Booking]:
        """
        Customers see their own bookings; staff see everyone's, optionally
        filtered by status.
        """
        if actor.role.is_staff:
            return self._bookings.list_bookings(status=status)
        return self._bookings.list_bookings(user_id=actor.user_id, status=status)

    def cancel_booking(self, booking_id: int, actor: Actor) -> Booking:
        """
        Cancel one of the actor's own bookings.

        Raises:
            BookingNotFound: If the id does not resolve
            AuthorizationError: If the booking belongs to someone else
            InvalidRequest: If the booking is already completed
        """
        booking = self._require_booking(booking_id)

        if booking.user_id != actor.user_id:
            raise AuthorizationError("Access denied")
        if booking.status is BookingStatus.COMPLETED:
            raise InvalidRequest("Cannot cancel completed booking")
        if booking.status is BookingStatus.CANCELLED:
            return booking

        cancelled = self._bookings.set_status(booking_id, BookingStatus.CANCELLED)
        logger.info(
            "Booking %d cancelled, %s %s released",
            booking_id,
            cancelled.date,
            cancelled.time_slot,
        )
        return cancelled

    def update_status(self, data: Mapping[str, Any], actor: Actor) -> Booking:
        """
        Move a booking to another status (admin and mechanic only).

        Raises:
            AuthorizationError: If the actor is not staff
            InvalidRequest: If the status is unknown or the booking was cancelled
            BookingNotFound: If the id does not resolve
        """
        if not actor.role.is_staff:
            raise AuthorizationError("Insufficient permissions")

        request = parse_request(StatusUpdateRequest, data)
        previous = self._require_booking(request.booking_id)

        # The released slot may have been admitted to someone else since.
        if previous.status is BookingStatus.CANCELLED and request.status is not BookingStatus.CANCELLED:
            raise InvalidRequest("Cancelled bookings cannot be reopened; create a new booking")

        updated = self._bookings.set_status(request.booking_id, request.status)

        logger.info(
            "Booking %d status %s -> %s by user %d",
            request.booking_id,
            previous.status.value,
            updated.status.value,
            actor.user_id,
        )
        return updated

    def _require_booking(self, booking_id: int) -> Booking:
        booking = self._bookings.get_booking(booking_id)
        if booking is None:
            raise BookingNotFound(f"Booking not found: {booking_id}")
        return booking
