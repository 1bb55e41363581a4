"""Time helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[Union[str, int, float, datetime]]) -> Optional[datetime]:
    """Parse an ISO string, epoch milliseconds or datetime into aware UTC."""
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        # Browser clients write Date.now() values.
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        normalized = value.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
