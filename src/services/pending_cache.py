"""
Time-bounded cache of the number of appointments awaiting auto-completion.

Owned by the auto-complete scheduler and injected where needed; the clock
is injectable so TTL behaviour can be tested without waiting.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional

from utils.datetime_utils import utc_now


class PendingAppointmentsCache:
    """
    Holds the last observed pending count and when it was observed.

    Attributes:
        last_refresh: When ``value`` was stored (None before the first update)
        ttl: How long a stored value stays fresh
        value: Last observed number of pending appointments
    """

    def __init__(self, ttl: timedelta, clock: Callable[[], datetime] = utc_now):
        if ttl <= timedelta(0):
            raise ValueError("Cache TTL must be positive")
        self.ttl = ttl
        self.last_refresh: Optional[datetime] = None
        self.value: Optional[int] = None
        self._clock = clock

    def is_fresh(self) -> bool:
        if self.last_refresh is None or self.value is None:
            return False
        return self._clock() - self.last_refresh < self.ttl

    def get(self) -> Optional[int]:
        """Return the cached value while fresh, otherwise None."""
        return self.value if self.is_fresh() else None

    def update(self, value: int) -> None:
        self.value = value
        self.last_refresh = self._clock()

    def invalidate(self) -> None:
        self.value = None
        self.last_refresh = None

    def __repr__(self) -> str:
        return f"<PendingAppointmentsCache(value={self.value}, last_refresh={self.last_refresh}, ttl={self.ttl})>"
