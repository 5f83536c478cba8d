# Area: Shared
"""Wall-clock helpers. All room timestamps are epoch milliseconds."""

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)
