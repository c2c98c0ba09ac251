"""Exponential backoff policy."""

DEFAULT_BASE_DELAY = 0.5  # seconds


def backoff_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """
    Delay (seconds) to wait after a failed attempt, before the next one.

    delay = base_delay * 2 ** attempt, so attempt 1 waits 2 * base_delay.
    No ceiling is applied; callers bound the number of attempts.

    Raises:
        ValueError: attempt is below 1 or base_delay is negative
    """
    if attempt < 1:
        raise ValueError(f"attempt must be >= 1, got {attempt}")
    if base_delay < 0:
        raise ValueError(f"base_delay must be non-negative, got {base_delay}")
    return base_delay * (2 ** attempt)
