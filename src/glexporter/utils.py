"""glexporter.utils

Notes (what this module does)
- Provides small, reusable helpers shared by the fetcher, recorder and CLI.
- Keeps timestamp and address parsing consistent in one place.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Optional, Tuple


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitLab ISO-8601 timestamp into an aware UTC datetime.

    Args:
        value: Timestamp such as "2024-01-02T10:00:00.000Z", or None.

    Returns:
        The parsed datetime, or None when value is empty.
    """

    if not value:
        return None

    # fromisoformat() only learned the "Z" suffix in 3.11
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    parsed = datetime.fromisoformat(text)

    # Naive timestamps are taken as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


def seconds_since(moment: datetime, now: datetime) -> int:
    """Whole seconds elapsed between ``moment`` and ``now`` (half rounds up)."""

    return int(math.floor((now - moment).total_seconds() + 0.5))


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split "host:port" into its parts; an empty host binds every interface.

    Args:
        address: Listen address, e.g. ":8080" or "127.0.0.1:9100".

    Returns:
        (host, port) tuple suitable for uvicorn.
    """

    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid listen address {address!r}, expected host:port")

    return (host or "0.0.0.0", int(port))
