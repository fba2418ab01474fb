"""
swapreactor/core/time.py

THE ONLY CLOCK IN SWAPREACTOR.

Order deadlines and decay windows are integer UNIX seconds ("block
timestamps"). Every module that needs "now" takes a clock callable whose
default is block_timestamp() from here.

Journal wire format: YYYY-MM-DDTHH:MM:SS.mmmZ
                     (milliseconds, explicit Z, no +00:00, no microseconds)
"""

import time
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def block_timestamp() -> int:
    """Return current UTC time as integer UNIX seconds."""
    return int(time.time())


def journal_timestamp() -> str:
    """
    Return current UTC time in journal wire format.
    Format: YYYY-MM-DDTHH:MM:SS.mmmZ  (exactly 3 fractional digits, Z suffix)
    """
    now = datetime.now(timezone.utc)
    ms  = now.microsecond // 1000
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ms:03d}Z"


class FixedClock:
    """
    Settable clock for simulations and tests.

    Usage:
        clock = FixedClock(1_700_000_000)
        reactor = Reactor(..., clock=clock)
        clock.advance(30)
    """

    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now

    def __repr__(self) -> str:
        return f"FixedClock(now={self.now})"
