"""Boundary models for records entering the event pipeline."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class RawEventRecord(BaseModel):
    """One event row from the listing scrape or a previous output file.

    The known envelope fields are validated; anything else (detail fields
    merged on a previous run, flattened buckets) is kept as an extra field so
    it survives a round trip through the model.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    event_id: str = Field(
        serialization_alias="eventID",
        validation_alias=AliasChoices("eventID", "id"),
        min_length=1,
    )
    name: Optional[str] = None
    event_type: Optional[str] = Field(
        default=None,
        serialization_alias="eventType",
        validation_alias=AliasChoices("eventType", "type"),
    )
    heading: Optional[str] = None
    image: Optional[str] = None
    start: Optional[str] = None
    end: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        """Plain dict using the wire names (``eventID``, ``eventType``)."""
        return self.model_dump(by_alias=True)


class DetailDocument(BaseModel):
    """Output of one detail scraper for exactly one event."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
