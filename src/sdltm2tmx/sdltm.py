"""Read-only access to SDLTM translation memory databases.

An SDLTM file is a SQLite database.  Only three queries are needed: the
translation memory record, the multi-value picklist attributes and the
translation units themselves.  Units are returned by a generator so rows
are pulled one at a time from the cursor.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path

from sdltm2tmx.errors import MissingMetadataError, RowReadError, SourceOpenError
from sdltm2tmx.models import PicklistValue, TMMetadata, TranslationUnitRow
from sdltm2tmx.segment import valid_xml_chars

logger = logging.getLogger(__name__)

_METADATA_SQL = (
    "SELECT source_language, creation_user, creation_date FROM translation_memories"
)
_PICKLIST_SQL = (
    "SELECT attributes.name, attributes.type, picklist_values.value FROM attributes "
    "INNER JOIN picklist_values ON picklist_values.attribute_id = attributes.id "
    "ORDER BY name"
)
_UNITS_SQL = (
    "SELECT id, source_segment, target_segment, creation_date, creation_user, "
    "change_date, change_user, last_used_date, last_used_user, usage_counter "
    "FROM translation_units"
)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _text(value: object) -> str | None:
    """Return a column value as XML-safe text, keeping NULL as ``None``."""
    if value is None:
        return None
    if isinstance(value, bytes):
        value = _decode(value)
    return valid_xml_chars(str(value))


class SDLTMDatabase:
    """A read-only connection to an SDLTM file.

    Usable as a context manager; the connection is closed on exit.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._conn: sqlite3.Connection | None = None

    def open(self) -> None:
        """Open the database read-only and check that it is SQLite.

        Raises:
            SourceOpenError: If the file is missing, unreadable or not a
                SQLite database.
        """
        if not self.path.is_file():
            raise SourceOpenError(f"SDLTM file not found: {self.path}")
        uri = self.path.resolve().as_uri() + "?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True)
        except sqlite3.Error as e:
            raise SourceOpenError(f"Cannot open {self.path}: {e}") from e
        try:
            # sqlite only reads the file header on first use
            conn.execute("SELECT count(*) FROM sqlite_master").fetchone()
        except sqlite3.Error as e:
            conn.close()
            raise SourceOpenError(f"Cannot open {self.path}: {e}") from e
        conn.row_factory = sqlite3.Row
        # Stored text is not always valid UTF-8
        conn.text_factory = _decode
        self._conn = conn
        logger.info("Opened %s", self.path)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> SDLTMDatabase:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("SDLTM database is not open")
        return self._conn

    # ── Queries ─────────────────────────────────────────────────

    def metadata(self) -> TMMetadata:
        """Return the translation memory record.

        Raises:
            MissingMetadataError: If ``translation_memories`` is empty or
                its record has no source language.
            RowReadError: If the query fails.
        """
        try:
            row = self.connection.execute(_METADATA_SQL).fetchone()
        except sqlite3.Error as e:
            raise RowReadError(f"Cannot read translation memory record: {e}") from e
        if row is None:
            raise MissingMetadataError("SDLTM file has no translation memory record")
        source_language = _text(row["source_language"])
        if not source_language:
            raise MissingMetadataError("SDLTM translation memory record has no source language")
        return TMMetadata(
            source_language=source_language,
            creation_user=_text(row["creation_user"]) or "",
            creation_date=_text(row["creation_date"]) or "",
        )

    def picklist_values(self) -> list[PicklistValue]:
        """Return all attribute/picklist value pairs in query order."""
        try:
            rows = self.connection.execute(_PICKLIST_SQL).fetchall()
        except sqlite3.Error as e:
            raise RowReadError(f"Cannot read attributes: {e}") from e
        return [
            PicklistValue(
                name=_text(row["name"]) or "",
                type=row["type"],
                value=_text(row["value"]) or "",
            )
            for row in rows
        ]

    def iter_units(self) -> Iterator[TranslationUnitRow]:
        """Yield translation units one at a time in database row order.

        Raises:
            RowReadError: If the query or a row fetch fails.
        """
        try:
            cursor = self.connection.execute(_UNITS_SQL)
        except sqlite3.Error as e:
            raise RowReadError(f"Cannot read translation units: {e}") from e
        try:
            while True:
                try:
                    row = cursor.fetchone()
                except sqlite3.Error as e:
                    raise RowReadError(f"Cannot read translation unit: {e}") from e
                if row is None:
                    return
                yield TranslationUnitRow(
                    id=row["id"],
                    source_segment=_text(row["source_segment"]) or "",
                    target_segment=_text(row["target_segment"]) or "",
                    creation_date=_text(row["creation_date"]) or "",
                    creation_user=_text(row["creation_user"]) or "",
                    change_date=_text(row["change_date"]),
                    change_user=_text(row["change_user"]),
                    last_used_date=_text(row["last_used_date"]),
                    last_used_user=_text(row["last_used_user"]),
                    usage_counter=_text(row["usage_counter"]),
                )
        finally:
            cursor.close()
