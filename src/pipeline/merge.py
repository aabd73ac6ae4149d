"""
Detail merging.

Detail scrapers write one small JSON document per (event, scraper) pair into
a temp directory, concurrently and in no particular order. Each document is
``{"id": ..., "type": ..., "data": {...}}``; merging overlays ``data`` onto
the base event with the same id.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import ValidationError

from configs.constants import Constants
from src.pipeline.dedupe import event_id
from src.pipeline.models import DetailDocument

logger = logging.getLogger(__name__)

DetailInput = Union[DetailDocument, Mapping[str, Any]]


def load_detail_documents(temp_dir: Union[str, Path]) -> List[DetailDocument]:
    """Read every ``*.json`` document in *temp_dir*, in file-name order.

    Empty files and files that are not valid detail documents are skipped
    with a warning; one bad file never aborts the batch.
    """
    documents: List[DetailDocument] = []
    for json_file in sorted(Path(temp_dir).glob("*.json")):
        try:
            content = json_file.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning(f"Could not read temp file {json_file.name}: {exc}")
            continue
        if not content.strip():
            logger.warning(f"Skipping empty temp file: {json_file.name}")
            continue
        try:
            documents.append(DetailDocument.model_validate_json(content))
        except ValidationError as exc:
            logger.warning(
                f"Skipping invalid detail document {json_file.name}: "
                f"{exc.error_count()} validation error(s)"
            )
    logger.info(f"Loaded {len(documents)} detail documents from {temp_dir}")
    return documents


class DetailMerger:
    """
    Overlay detail documents onto base events.

    Parameters
    ----------
    accepted_types : iterable of str, optional
        Detail document types that may be merged. Documents of any other
        type are skipped. ``None`` accepts every type.
    """

    def __init__(
        self, accepted_types: Optional[Iterable[str]] = Constants.MERGEABLE_DETAIL_TYPES
    ) -> None:
        self.accepted_types = frozenset(accepted_types) if accepted_types is not None else None

    @staticmethod
    def _coerce(document: DetailInput) -> Optional[DetailDocument]:
        if isinstance(document, DetailDocument):
            return document
        try:
            return DetailDocument.model_validate(document)
        except ValidationError as exc:
            logger.warning(f"Skipping malformed detail document: {exc.error_count()} validation error(s)")
            return None

    def merge(
        self,
        base: Iterable[Mapping[str, Any]],
        details: Iterable[DetailInput],
    ) -> List[Dict[str, Any]]:
        """Return new event records with every matching document applied.

        Documents are applied in the order supplied; later keys overwrite
        earlier ones and nested values are replaced, not merged. The base
        records themselves are left untouched.
        """
        merged: List[Dict[str, Any]] = [dict(record) for record in base]
        by_id: Dict[Any, Dict[str, Any]] = {}
        for record in merged:
            by_id.setdefault(event_id(record), record)

        applied = 0
        for raw_document in details:
            document = self._coerce(raw_document)
            if document is None:
                continue
            if self.accepted_types is not None and document.type not in self.accepted_types:
                logger.debug(f"Ignoring detail document of type {document.type!r} for {document.id}")
                continue
            target = by_id.get(document.id)
            if target is None:
                logger.debug(f"No base event for detail document {document.id} ({document.type})")
                continue
            target.update(document.data)
            applied += 1

        logger.info(f"Merged {applied} detail documents into {len(merged)} events")
        return merged


def merge_details(
    base: Iterable[Mapping[str, Any]], details: Iterable[DetailInput]
) -> List[Dict[str, Any]]:
    """Merge with the default set of accepted detail types."""
    return DetailMerger().merge(base, details)

