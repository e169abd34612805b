"""
Wall-clock access for the session timer.

All elapsed-time math reads the clock through this seam so tests can pin
"now" and so elapsed time never depends on tick continuity.
"""

import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current wall-clock time."""

    def now_ms(self) -> int:
        """Current time as epoch milliseconds."""
        ...


class SystemClock:
    """Clock backed by the host's wall clock."""

    def now_ms(self) -> int:
        return int(time.time() * 1000)


system_clock = SystemClock()
