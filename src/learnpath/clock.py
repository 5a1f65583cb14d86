"""Clock port. The engine never reads the time on its own."""
from datetime import datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, days: int = 0, **kwargs) -> datetime:
        self.current = self.current + timedelta(days=days, **kwargs)
        return self.current
