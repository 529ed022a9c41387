"""
CrateCI
Copyright (c) 2026 Chris Menendez.
All Rights Reserved.
See LICENSE for permitted use.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_z(*, seconds_precision: bool = True) -> str:
    """Return UTC as ISO-8601 with trailing Z."""
    current = utc_now()
    if seconds_precision:
        current = current.replace(microsecond=0)
    return current.isoformat().replace("+00:00", "Z")


def monotonic_s() -> float:
    return time.monotonic()
