"""Wall-clock helpers shared across bounded contexts."""

import time
from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def elapsed_ms(started_at: float) -> int:
    """Milliseconds elapsed since a time.monotonic() reading."""
    return int((time.monotonic() - started_at) * 1000)
