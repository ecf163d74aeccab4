"""Injectable source of the current time."""

from __future__ import annotations

from datetime import date, datetime, timezone


class Clock:
    """Wall clock in UTC. Substitute a fixed clock in tests."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def today(self) -> date:
        return self.now().date()

    def current_year(self) -> int:
        return self.now().year
