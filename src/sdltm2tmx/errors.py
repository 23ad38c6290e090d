"""Exceptions raised while converting an SDLTM database to TMX.

Every failure is fatal for the whole conversion: the output is a single
streamed document and there is no point at which it can resume.
"""

from __future__ import annotations


class ConversionError(Exception):
    """Base class for all conversion failures."""


class SourceOpenError(ConversionError):
    """The SDLTM file could not be opened or is not a SQLite database."""


class MissingMetadataError(ConversionError):
    """The ``translation_memories`` table has no record."""


class RowReadError(ConversionError):
    """The database failed while iterating rows."""


class SegmentError(ConversionError):
    """A stored segment is malformed or lacks a required child element.

    *row_id* and *side* (``"source"`` / ``"target"``) are filled in by the
    converter once the failing unit is known.
    """

    def __init__(self, message: str, *, row_id: int | None = None, side: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.row_id = row_id
        self.side = side

    def __str__(self) -> str:
        context = []
        if self.row_id is not None:
            context.append(f"translation unit {self.row_id}")
        if self.side:
            context.append(f"{self.side} segment")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class ConfigurationError(Exception):
    """Tool name or version could not be resolved."""
