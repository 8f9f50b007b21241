from datetime import datetime, timezone

from domain.clock import Clock


class SystemClock(Clock):
    """Wall-clock time in UTC"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
