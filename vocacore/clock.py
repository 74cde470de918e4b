"""Wall-clock source used for due dates and review timestamps."""

import time
from typing import Callable

# Returns the current time in milliseconds since the Unix epoch.
Clock = Callable[[], int]


def system_clock() -> int:
    return int(time.time() * 1000)
