"""Data models for the SDLTM to TMX converter."""

from __future__ import annotations

import enum
from dataclasses import dataclass

SUCCESS = "Success"
ERROR = "Error"


@dataclass(frozen=True)
class TMMetadata:
    """The single ``translation_memories`` record of an SDLTM file."""

    source_language: str
    creation_user: str = ""
    creation_date: str = ""


@dataclass(frozen=True)
class PicklistValue:
    """One row of the attributes / picklist_values join."""

    name: str
    type: int
    value: str


@dataclass(frozen=True)
class TranslationUnitRow:
    """One row of ``translation_units``.

    Segments are the raw micro-XML strings as stored in the database.
    Columns that may be empty are ``None`` when the database holds NULL.
    """

    id: int
    source_segment: str
    target_segment: str
    creation_date: str = ""
    creation_user: str = ""
    change_date: str | None = None
    change_user: str | None = None
    last_used_date: str | None = None
    last_used_user: str | None = None
    # Kept as text: written verbatim into ``usagecount``
    usage_counter: str | None = None


@dataclass(frozen=True)
class ToolIdentity:
    """Values written to ``creationtool`` / ``creationtoolversion``."""

    product_name: str
    version: str


class ConversionState(enum.Enum):
    INIT = "Init"
    OPEN_SOURCE = "OpenSource"
    BUILD_HEADER = "BuildHeader"
    WRITE_HEADER = "WriteHeader"
    STREAM_BODY = "StreamBody"
    CLOSE_BODY = "CloseBody"
    CLOSE_SOURCE = "CloseSource"
    DONE = "Done"
    FAILED = "Failed"


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one conversion: a unit count or a failure reason."""

    status: str
    count: int = 0
    reason: str = ""

    @classmethod
    def success(cls, count: int) -> ConversionResult:
        return cls(status=SUCCESS, count=count)

    @classmethod
    def failure(cls, reason: str) -> ConversionResult:
        return cls(status=ERROR, reason=reason)

    @property
    def ok(self) -> bool:
        return self.status == SUCCESS
