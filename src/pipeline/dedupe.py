"""
Event de-duplication.

The listing page shows an event once under "current" and again under
"upcoming" when it spans both, and the two copies can disagree: one carries
the start date and the other the end date. Grouping by id and stitching the
first two copies back together recovers the full interval.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)


def event_id(record: Mapping[str, Any]) -> Optional[str]:
    """Return the record's id, accepting the short ``id`` alias."""
    value = record.get("eventID")
    if value is None:
        value = record.get("id")
    return value


def _merge_group(group: List[Dict[str, Any]]) -> Dict[str, Any]:
    first, second = group[0], group[1]
    merged = dict(first)
    if first.get("start"):
        merged["start"] = first.get("start")
        merged["end"] = second.get("end")
    else:
        merged["start"] = second.get("start")
        merged["end"] = first.get("end")
    return merged


def deduplicate_events(records: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    """Collapse records sharing an id into one record per id.

    Single records pass through untouched. For a duplicated id the result is
    a copy of the first record whose ``start``/``end`` are taken from the
    first two copies: if the first copy has a start, the start comes from it
    and the end from the second, otherwise the other way round.

    Only the first two copies take part; a third or later copy is dropped.
    Records without an id are never grouped and pass through as they are.
    Output keeps the order in which each id was first seen.
    """
    groups: Dict[Any, List[Dict[str, Any]]] = {}
    for record in records:
        key = event_id(record)
        groups.setdefault(key if key is not None else object(), []).append(record)

    deduplicated: List[Dict[str, Any]] = []
    for key, group in groups.items():
        if len(group) == 1:
            deduplicated.append(group[0])
            continue
        if len(group) > 2:
            logger.debug(f"Event {key!r} listed {len(group)} times; merging the first two")
        deduplicated.append(_merge_group(group))

    return deduplicated
