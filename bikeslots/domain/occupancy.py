"""
Core business logic for occupancy and free start slots.

This is the heart of the scheduler - pure domain logic without any
external dependencies (no storage, no clock, no I/O).
"""

from typing import FrozenSet, Iterable, List, Sequence, Tuple

from .models import Booking, BusinessHours, TimeSlot
from .slot_generator import generate_slots


class OccupancyCalculator:
    """
    Overlays existing bookings onto a business day.

    Algorithm:
    1. Generate the day's slots from the business hours
    2. Expand each active booking into its footprint, using the booking's own
       duration
    3. Union the footprints into the day's occupancy
    4. Offer a start slot only when the requested footprint misses the
       occupancy

    The same footprint test backs both the read path and admission, so a slot
    that is offered can be admitted unless someone claims it first.
    """

    def __init__(self, business_hours: BusinessHours):
        self.business_hours = business_hours

    @property
    def day_slots(self) -> Tuple[TimeSlot, ...]:
        return generate_slots(self.business_hours)

    def footprint(self, start: TimeSlot, duration_minutes: int) -> List[TimeSlot]:
        """
        Slots occupied by a service of the given duration starting at ``start``.

        Only slots that exist in the generated day are returned; minutes that
        run past closing are not represented.

        Example:
        Hours: 09:00 - 18:00, start 17:00, 120 minutes
        Result: [17:00]
        """
        step = self.business_hours.slot_granularity_minutes
        span = self.business_hours.slots_spanned(duration_minutes)

        occupied: List[TimeSlot] = []
        for index in range(span):
            minute = start.minute_of_day + index * step
            if minute >= self.business_hours.closing_minute:
                break
            occupied.append(TimeSlot(minute))

        return occupied

    def occupied_slots(self, bookings: Iterable[Booking]) -> FrozenSet[TimeSlot]:
        """Union of the footprints of every active booking."""
        occupied = set()

        for booking in bookings:
            if not booking.is_active:
                continue
            occupied.update(self.footprint(booking.time_slot, booking.duration_minutes))

        return frozenset(occupied)

    def runs_past_close(self, start: TimeSlot, duration_minutes: int) -> bool:
        """Check if a service started at ``start`` would end after closing."""
        return start.minute_of_day + duration_minutes > self.business_hours.closing_minute

    def is_start_allowed(self, start: TimeSlot, duration_minutes: int) -> bool:
        """Check the business-hours rules that do not depend on bookings."""
        if not self.business_hours.contains(start):
            return False
        if self.business_hours.allow_overrun_past_close:
            return True
        return not self.runs_past_close(start, duration_minutes)

    def free_start_slots(
        self,
        bookings: Sequence[Booking],
        duration_minutes: int,
    ) -> List[TimeSlot]:
        """
        Start slots at which a service of ``duration_minutes`` fits.

        Example:
        Hours: 09:00 - 12:00
        Booked: 10:00 for 60 minutes
        Request: 60 minutes -> [09:00, 11:00]
        Request: 120 minutes -> [11:00]
        """
        occupied = self.occupied_slots(bookings)

        return [
            slot for slot in self.day_slots
            if self.is_start_allowed(slot, duration_minutes)
            and occupied.isdisjoint(self.footprint(slot, duration_minutes))
        ]

    def conflicting_bookings(
        self,
        start: TimeSlot,
        duration_minutes: int,
        bookings: Iterable[Booking],
    ) -> List[Booking]:
        """Active bookings whose footprint intersects the requested one."""
        requested = set(self.footprint(start, duration_minutes))

        return [
            booking for booking in bookings
            if booking.is_active
            and requested.intersection(
                self.footprint(booking.time_slot, booking.duration_minutes)
            )
        ]
