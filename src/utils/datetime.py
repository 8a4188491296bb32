# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""UTC instants for deadlines, submission times and exam windows.

Every instant SchoolOps stores is timezone-aware UTC. SQLite returns
naive datetimes from DateTime(timezone=True) columns, so values read back
from the store go through ensure_utc() before any comparison.
"""

from datetime import datetime, timezone
from typing import Callable

# Injected into services so tests can pin "now".
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Return ``dt`` as aware UTC; naive values are taken to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def is_past(deadline: datetime, now: datetime) -> bool:
    """True if ``now`` is strictly after ``deadline``.

    Submitting at the exact deadline instant counts as on time.
    """
    return ensure_utc(now) > ensure_utc(deadline)
