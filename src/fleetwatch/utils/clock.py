"""Timezone-aware clock.

Everything in fleetwatch that needs "now" takes a ``Clock`` so that cooldown
windows and analysis windows can be pinned in tests.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)
