"""
Tests for the occupancy calculator.
"""

from datetime import date

from bikeslots.domain.models import Booking, BookingStatus, BusinessHours, TimeSlot
from bikeslots.domain.occupancy import OccupancyCalculator


DAY = date(2024, 11, 25)


def _booking(slot: str, minutes: int, booking_id: int = 1, status=BookingStatus.PENDING) -> Booking:
    return Booking(
        id=booking_id,
        date=DAY,
        time_slot=TimeSlot.parse(slot),
        service_id=1,
        duration_minutes=minutes,
        status=status,
    )


def _labels(slots) -> list:
    return [str(s) for s in slots]


class TestOccupancyCalculator:
    """Tests for OccupancyCalculator."""

    def setup_method(self):
        self.calculator = OccupancyCalculator(BusinessHours(open_hour=9, close_hour=18))

    def test_no_bookings_leaves_day_free(self):
        """Test that an empty day offers every generated slot."""
        free = self.calculator.free_start_slots([], duration_minutes=60)

        assert free == list(self.calculator.day_slots)
        assert len(free) == 9

    def test_footprint_spans_duration(self):
        """Test footprint expansion by ceil(duration / 60)."""
        start = TimeSlot.at(10)

        assert _labels(self.calculator.footprint(start, 30)) == ["10:00"]
        assert _labels(self.calculator.footprint(start, 60)) == ["10:00"]
        assert _labels(self.calculator.footprint(start, 90)) == ["10:00", "11:00"]
        assert _labels(self.calculator.footprint(start, 180)) == ["10:00", "11:00", "12:00"]

    def test_footprint_clipped_at_closing(self):
        """Minutes past closing occupy no slot."""
        assert _labels(self.calculator.footprint(TimeSlot.at(17), 120)) == ["17:00"]

    def test_booking_duration_excludes_following_slots(self):
        """A 120-minute booking at 10:00 removes 10:00 and 11:00."""
        free = self.calculator.free_start_slots([_booking("10:00", 120)], duration_minutes=60)

        assert "10:00" not in _labels(free)
        assert "11:00" not in _labels(free)
        assert _labels(free) == ["09:00", "12:00", "13:00", "14:00", "15:00", "16:00", "17:00"]

    def test_requested_duration_must_fit_before_next_booking(self):
        """A start slot is offered only if the requested service fits."""
        bookings = [_booking("11:00", 60)]

        free_short = self.calculator.free_start_slots(bookings, duration_minutes=60)
        free_long = self.calculator.free_start_slots(bookings, duration_minutes=120)

        assert "10:00" in _labels(free_short)
        assert "10:00" not in _labels(free_long)
        assert "09:00" in _labels(free_long)

    def test_occupancy_uses_each_bookings_own_duration(self):
        """Occupancy comes from the stored booking, not the requested service."""
        bookings = [_booking("09:00", 180, booking_id=1), _booking("14:00", 15, booking_id=2)]

        occupied = self.calculator.occupied_slots(bookings)

        assert _labels(sorted(occupied)) == ["09:00", "10:00", "11:00", "14:00"]

    def test_cancelled_bookings_hold_no_capacity(self):
        bookings = [_booking("10:00", 120, status=BookingStatus.CANCELLED)]

        assert self.calculator.occupied_slots(bookings) == frozenset()
        assert len(self.calculator.free_start_slots(bookings, 60)) == 9

    def test_conflicting_bookings_detects_partial_overlap(self):
        """A booking at 09:00 for 120 minutes blocks a new start at 10:00."""
        existing = [_booking("09:00", 120)]

        conflicts = self.calculator.conflicting_bookings(TimeSlot.at(10), 60, existing)

        assert conflicts == existing
        assert self.calculator.conflicting_bookings(TimeSlot.at(11), 60, existing) == []

    def test_overrun_allowed_by_default(self):
        """Late starts that run past closing are accepted unless configured otherwise."""
        free = self.calculator.free_start_slots([], duration_minutes=180)

        assert "17:00" in _labels(free)

    def test_overrun_refused_when_disabled(self):
        calculator = OccupancyCalculator(
            BusinessHours(open_hour=9, close_hour=18, allow_overrun_past_close=False)
        )

        free = calculator.free_start_slots([], duration_minutes=180)

        assert _labels(free)[-1] == "15:00"
        assert not calculator.is_start_allowed(TimeSlot.at(16), 180)
        assert calculator.is_start_allowed(TimeSlot.at(15), 180)

    def test_unaligned_start_not_allowed(self):
        assert not self.calculator.is_start_allowed(TimeSlot.at(10, 30), 60)
        assert not self.calculator.is_start_allowed(TimeSlot.at(18), 60)
