"""
Clock adapter backed by pendulum.
"""

from datetime import date

import pendulum


class SystemClock:
    """Today's date in the workshop's timezone."""

    def __init__(self, timezone: str = "Asia/Kolkata"):
        self.timezone = timezone

    def today(self) -> date:
        now = pendulum.now(self.timezone)
        return date(now.year, now.month, now.day)
