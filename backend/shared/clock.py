"""Wall-clock helpers. Listing timestamps are integer milliseconds since the epoch."""

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Current UTC time in milliseconds since the epoch."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def hours_to_ms(hours: float) -> int:
    return int(hours * 60 * 60 * 1000)
