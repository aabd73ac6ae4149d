"""
Timestamp normalisation for LeekDuck event dates.

The events feed mixes two kinds of timestamps:

  - local wall-clock times such as ``2022-06-01T18:00:00.000`` which mean
    "18:00 wherever the player is" and must never be shifted, and
  - absolute instants, either already in UTC (``...Z``) or carrying a numeric
    offset (``...-0800``), which are converted to UTC so every global event
    ends in ``Z``.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)

# date, optional "T" time, optionally followed by Z or a +HHMM / +HH:MM offset
_TIMESTAMP_RE = re.compile(
    r"^(?P<local>\d{4}-\d{2}-\d{2}(?:T\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?)"
    r"(?P<zone>Z|[+-]\d{2}:?\d{2})?$"
)

_EPOCH = 0.0


def _zone_marker(timestamp: str) -> Optional[str]:
    match = _TIMESTAMP_RE.match(timestamp.strip())
    return match.group("zone") if match else None


def _to_utc_string(moment: datetime) -> str:
    """Serialise an aware datetime like ``2022-06-01T21:00:00.000Z``."""
    moment = moment.astimezone(timezone.utc)
    millis = moment.microsecond // 1000
    return moment.strftime("%Y-%m-%dT%H:%M:%S") + f".{millis:03d}Z"


def _parse(timestamp: str) -> Optional[datetime]:
    match = _TIMESTAMP_RE.match(timestamp.strip())
    if not match:
        return None
    local, zone = match.group("local"), match.group("zone")
    # fromisoformat only reliably takes up to six fractional digits
    if "." in local:
        head, fraction = local.split(".", 1)
        local = f"{head}.{fraction[:6].ljust(6, '0')}"
    try:
        moment = datetime.fromisoformat(local)
    except ValueError:
        return None
    if zone is None:
        return moment
    if zone == "Z":
        return moment.replace(tzinfo=timezone.utc)
    sign = 1 if zone[0] == "+" else -1
    digits = zone[1:].replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:])
    if hours > 23 or minutes > 59:
        return None
    offset = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return moment.replace(tzinfo=offset)


def normalize_date(timestamp: Optional[str]) -> Optional[str]:
    """Normalise a feed timestamp.

    Local times and ``Z`` timestamps come back unchanged, offset timestamps
    are converted to UTC. Anything that cannot be parsed is returned as-is.

    >>> normalize_date("2022-06-01T13:00:00.000-0800")
    '2022-06-01T21:00:00.000Z'
    """
    if not timestamp:
        return None

    zone = _zone_marker(timestamp)
    if zone is None or zone == "Z":
        return timestamp

    moment = _parse(timestamp)
    if moment is None:
        logger.warning(f"Failed to parse date: {timestamp}")
        return timestamp
    try:
        return _to_utc_string(moment)
    except (OverflowError, ValueError):
        logger.warning(f"Date out of range: {timestamp}")
        return timestamp


def is_global_event(timestamp: Optional[str]) -> bool:
    """True when the (normalised) timestamp is an absolute UTC instant."""
    return bool(timestamp) and timestamp.endswith("Z")


def normalize_date_pair(
    start: Optional[str], end: Optional[str]
) -> tuple[Optional[str], Optional[str]]:
    return normalize_date(start), normalize_date(end)


def timestamp_sort_key(timestamp: Optional[str]) -> float:
    """POSIX seconds for ordering events.

    Missing or unparseable timestamps sort as the epoch. Local wall-clock
    times are compared as though they were UTC.
    """
    if not timestamp:
        return _EPOCH
    moment = _parse(timestamp)
    if moment is None:
        return _EPOCH
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    try:
        return moment.timestamp()
    except (OverflowError, ValueError):
        return _EPOCH
