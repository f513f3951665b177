from __future__ import annotations

import time

from tradescan.contexts.market_data.application.ports.clock import Clock


class SystemClock(Clock):
    """
    SystemClock — platform Clock implementation reading wall time.

    Returns the current UTC epoch time in milliseconds.
    """

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000
