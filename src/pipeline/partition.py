"""Group flattened events by type and order them by start date."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping

from configs.constants import Constants
from src.pipeline.dates import timestamp_sort_key

UNKNOWN = Constants.UNKNOWN_EVENT_TYPE

_UNSAFE_RUN_RE = re.compile(r"[^a-z0-9-]+")
_DASH_RUN_RE = re.compile(r"-{2,}")


def sanitize_type(event_type: Any) -> str:
    """Turn an event type into a filename-safe token.

    'Go Battle League!' → 'go-battle-league'
    """
    token = str(event_type or UNKNOWN).lower()
    token = _UNSAFE_RUN_RE.sub("-", token)
    token = _DASH_RUN_RE.sub("-", token).strip("-")
    return token or UNKNOWN


def event_type_of(event: Mapping[str, Any]) -> str:
    return event.get("eventType") or event.get("type") or UNKNOWN


@dataclass
class EventPartition:
    """
    Flattened events grouped two ways.

    by_type : event type -> events, in encounter order
    sorted  : every event, ascending by ``start`` (missing start first)
    """

    by_type: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    sorted: List[Dict[str, Any]] = field(default_factory=list)

    def by_filename(self) -> Dict[str, List[Dict[str, Any]]]:
        """``by_type`` keyed by sanitised type; colliding types are concatenated."""
        files: Dict[str, List[Dict[str, Any]]] = {}
        for event_type, events in self.by_type.items():
            files.setdefault(sanitize_type(event_type), []).extend(events)
        return files


def partition_events(events: Iterable[Dict[str, Any]]) -> EventPartition:
    events = list(events)
    partition = EventPartition()
    for event in events:
        partition.by_type.setdefault(event_type_of(event), []).append(event)
    partition.sorted = sorted(events, key=lambda e: timestamp_sort_key(e.get("start")))
    return partition
