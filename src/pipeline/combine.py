"""
Event combiner, the last step of a scrape run.

WHAT THIS FILE DOES
───────────────────
Reads the base event dataset (``data/events.min.json``) and the detail
documents the detail scrapers left in ``data/temp/``, then:

  1. merges every detail document onto its event       (merge.py)
  2. flattens each event onto the output schema         (flatten.py)
  3. groups by type and sorts by start date             (partition.py)
  4. writes ``events.min.json`` and ``eventTypes/<type>.min.json``
  5. removes the temp directory

INPUT SHAPES
────────────
``events.min.json`` is read in either of two shapes:

  [ {event}, {event}, ... ]                          (current)
  { "community-day": [ {event}, ... ], ... }          (legacy, keyed by type)

and is always written back as the flat list.
"""

from __future__ import annotations

import json
import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from configs.constants import Constants
from src.pipeline.exceptions import BaseDatasetError
from src.pipeline.flatten import flatten_events
from src.pipeline.merge import DetailMerger, load_detail_documents
from src.pipeline.models import RawEventRecord
from src.pipeline.partition import EventPartition, partition_events

logger = logging.getLogger(__name__)


def flatten_event_listing(payload: Any) -> List[Any]:
    """Accept a flat event list or the legacy ``{type: [events]}`` mapping."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        events: List[Any] = []
        for type_events in payload.values():
            if isinstance(type_events, list):
                events.extend(type_events)
        return events
    raise TypeError(f"expected a list or an object, got {type(payload).__name__}")


def validate_records(raw_events: List[Any]) -> List[Dict[str, Any]]:
    """Validate raw rows through ``RawEventRecord``; bad rows are dropped."""
    records: List[Dict[str, Any]] = []
    for index, raw in enumerate(raw_events):
        try:
            records.append(RawEventRecord.model_validate(raw).to_record())
        except ValidationError as exc:
            logger.warning(f"Skipping event #{index}: {exc.error_count()} validation error(s)")
    return records


class EventCombiner:
    """
    Merge detail documents into the base dataset and write the outputs.

    Usage
    -----
    ::

        combiner = EventCombiner(data_dir="data")
        partition = combiner.combine()
        # → writes data/events.min.json and data/eventTypes/*.min.json

    Parameters
    ----------
    data_dir : Path
        Directory holding ``events.min.json``; outputs are written here too.
    temp_dir : Path, optional
        Where detail documents are read from. Defaults to ``data_dir/temp``.
    merger : DetailMerger, optional
        Injected so tests can change the accepted detail types.
    """

    def __init__(
        self,
        data_dir: str | Path = Constants.DATA_DIR,
        temp_dir: Optional[str | Path] = None,
        merger: Optional[DetailMerger] = None,
    ) -> None:
        self.data_dir = Path(data_dir)
        self.temp_dir = Path(temp_dir) if temp_dir is not None else self.data_dir / "temp"
        self.merger = merger or DetailMerger()

    @property
    def events_path(self) -> Path:
        return self.data_dir / Constants.EVENTS_FILE

    @property
    def event_types_dir(self) -> Path:
        return self.data_dir / Constants.EVENT_TYPES_DIR

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_base_events(self) -> List[Dict[str, Any]]:
        """
        Read the base dataset.

        Raises
        ------
        BaseDatasetError
            If the file is missing, unreadable, not JSON, neither a list
            nor a type-keyed object, or non-empty without a single usable
            event.
        """
        try:
            with open(self.events_path, encoding="utf-8") as fh:
                payload = json.load(fh)
        except FileNotFoundError as exc:
            raise BaseDatasetError(self.events_path, "file not found") from exc
        except (json.JSONDecodeError, OSError) as exc:
            raise BaseDatasetError(self.events_path, str(exc)) from exc

        try:
            raw_events = flatten_event_listing(payload)
        except TypeError as exc:
            raise BaseDatasetError(self.events_path, str(exc)) from exc

        records = validate_records(raw_events)
        # an empty list or mapping is a valid empty dataset
        if payload and not records:
            raise BaseDatasetError(self.events_path, "no usable events")
        logger.info(f"Loaded {len(records)} base events from {self.events_path}")
        return records

    def load_details(self) -> list:
        if not self.temp_dir.is_dir():
            logger.warning(
                f"Unable to scan temp directory {self.temp_dir}, writing events without details"
            )
            return []
        return load_detail_documents(self.temp_dir)

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    @staticmethod
    def _write_min_json(path: Path, payload: Any) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, ensure_ascii=False, separators=(",", ":"))

    def write_outputs(self, partition: EventPartition) -> None:
        """Write the sorted flat dataset and one file per event type."""
        self._write_min_json(self.events_path, partition.sorted)
        logger.info(f"Wrote {len(partition.sorted)} events → {self.events_path}")

        out_dir = self.event_types_dir
        out_dir.mkdir(parents=True, exist_ok=True)
        # stale types from earlier runs
        for stale in out_dir.glob("*.json"):
            stale.unlink()

        files = partition.by_filename()
        for safe_type, events in files.items():
            self._write_min_json(out_dir / f"{safe_type}.min.json", events)
        logger.info(f"Generated {len(files)} eventType files in {out_dir}")

    # ------------------------------------------------------------------
    # Orchestrator
    # ------------------------------------------------------------------

    def combine(self, cleanup_temp: bool = True) -> EventPartition:
        """Run load → merge → flatten → partition → write."""
        base = self.load_base_events()
        details = self.load_details()

        merged = self.merger.merge(base, details)
        partition = partition_events(flatten_events(merged))
        self.write_outputs(partition)

        if cleanup_temp and self.temp_dir.is_dir():
            shutil.rmtree(self.temp_dir)
            logger.debug(f"Removed {self.temp_dir}")

        logger.info(
            f"Combined {len(partition.sorted)} events across {len(partition.by_type)} types"
        )
        return partition
