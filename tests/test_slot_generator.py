"""
Tests for the slot generator.
"""

import pytest

from bikeslots.domain.models import BusinessHours, TimeSlot
from bikeslots.domain.slot_generator import generate_slots


class TestGenerateSlots:
    """Tests for generate_slots."""

    def test_default_workshop_day(self):
        """09:00-18:00 at hourly granularity yields nine start times."""
        slots = generate_slots(BusinessHours(open_hour=9, close_hour=18))

        assert [str(s) for s in slots] == [
            "09:00", "10:00", "11:00", "12:00", "13:00",
            "14:00", "15:00", "16:00", "17:00",
        ]

    @pytest.mark.parametrize("open_hour,close_hour", [(0, 24), (9, 10), (8, 20), (13, 17)])
    def test_count_order_and_alignment(self, open_hour, close_hour):
        """Test slot count, strict ordering and alignment for several days."""
        hours = BusinessHours(open_hour=open_hour, close_hour=close_hour)

        slots = generate_slots(hours)

        assert len(slots) == close_hour - open_hour
        assert all(a < b for a, b in zip(slots, slots[1:]))
        assert all(s.minute_of_day % 60 == 0 for s in slots)
        assert slots[0] == TimeSlot.at(open_hour)

    def test_deterministic(self):
        """Test that repeated calls give the same sequence."""
        hours = BusinessHours(open_hour=9, close_hour=18)

        assert list(generate_slots(hours)) == list(generate_slots(BusinessHours(9, 18)))

    def test_finer_granularity(self):
        slots = generate_slots(
            BusinessHours(open_hour=9, close_hour=11, slot_granularity_minutes=30)
        )

        assert [str(s) for s in slots] == ["09:00", "09:30", "10:00", "10:30"]
