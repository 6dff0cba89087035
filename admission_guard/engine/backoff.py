"""Exponential backoff for block durations."""

import math

MAX_BACKOFF_EXPONENT = 10
MAX_BLOCK_DURATION_MS = 24 * 60 * 60 * 1000


def block_duration_ms(failed_attempts: int, base_ms: int, multiplier: float) -> int:
    """Return ``base_ms * multiplier ** failed_attempts``, capped at 24 hours.

    ``failed_attempts`` is the actor's cumulative failure count, so durations
    grow with history and only shrink as successes decay that count. The
    exponent is clamped to ``MAX_BACKOFF_EXPONENT`` before exponentiation,
    and a product too large for a float saturates at the cap.
    """
    exponent = min(max(failed_attempts, 0), MAX_BACKOFF_EXPONENT)
    try:
        product = base_ms * multiplier**exponent
    except OverflowError:
        return MAX_BLOCK_DURATION_MS
    if math.isinf(product) or product >= MAX_BLOCK_DURATION_MS:
        return MAX_BLOCK_DURATION_MS
    return int(product)
