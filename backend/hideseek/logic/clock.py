"""Wall-clock source shared by all time accounting."""

import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int:
        """Current time as epoch milliseconds."""
        ...


class SystemClock:
    """Clock backed by the host's real-time clock."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000
