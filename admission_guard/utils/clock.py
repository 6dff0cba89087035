"""Wall-clock helper shared by the reputation and counter layers.

All timestamps in the engine are integer epoch milliseconds; ``0`` means
"unset".
"""

import time
from collections.abc import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    return int(time.time() * 1000)
