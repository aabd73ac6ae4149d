"""Errors raised by the event pipeline."""

from __future__ import annotations

from pathlib import Path


class PipelineError(Exception):
    """Base class for event pipeline failures."""


class BaseDatasetError(PipelineError):
    """The base event dataset could not be read at all.

    Raised instead of continuing with an empty list, which downstream
    consumers would read as "there are no events".
    """

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot load base events from {path}: {reason}")
        self.path = path
        self.reason = reason
