"""Tests for reading SDLTM databases."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from sdltm2tmx.errors import MissingMetadataError, RowReadError, SourceOpenError
from sdltm2tmx.sdltm import SDLTMDatabase
from sdltm_factory import create_sdltm, segment, text, unit


class TestOpen:
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(SourceOpenError, match="not found"):
            SDLTMDatabase(tmp_path / "nope.sdltm").open()

    def test_not_a_database(self, tmp_path: Path):
        bogus = tmp_path / "bogus.sdltm"
        bogus.write_bytes(b"this is not a sqlite file at all" * 10)
        with pytest.raises(SourceOpenError):
            SDLTMDatabase(bogus).open()

    def test_read_only(self, small_sdltm: Path):
        with SDLTMDatabase(small_sdltm) as db:
            with pytest.raises(sqlite3.OperationalError):
                db.connection.execute("DELETE FROM translation_units")

    def test_use_after_close(self, small_sdltm: Path):
        db = SDLTMDatabase(small_sdltm)
        db.open()
        db.close()
        with pytest.raises(RuntimeError):
            db.metadata()


class TestQueries:
    def test_metadata(self, small_sdltm: Path):
        with SDLTMDatabase(small_sdltm) as db:
            meta = db.metadata()
        assert meta.source_language == "en-US"
        assert meta.creation_user == "admin"
        assert meta.creation_date == "2022-01-02 03:04:05"

    def test_missing_metadata(self, tmp_path: Path):
        path = create_sdltm(tmp_path / "empty.sdltm", source_language=None)
        with SDLTMDatabase(path) as db:
            with pytest.raises(MissingMetadataError):
                db.metadata()

    def test_picklist_values(self, small_sdltm: Path):
        with SDLTMDatabase(small_sdltm) as db:
            values = db.picklist_values()
        assert [(v.name, v.type, v.value) for v in values] == [
            ("Client", 5, "ACME"),
            ("Domain", 2, "Legal"),
        ]

    def test_units_in_row_order(self, small_sdltm: Path):
        with SDLTMDatabase(small_sdltm) as db:
            units = list(db.iter_units())
        assert [u.id for u in units] == [1, 2, 3]
        first = units[0]
        assert first.change_user == "bob"
        assert first.last_used_user == "carol"
        assert first.usage_counter == "3"
        assert "<CultureName>en-US</CultureName>" in first.source_segment

    def test_null_columns(self, tmp_path: Path):
        path = create_sdltm(
            tmp_path / "nulls.sdltm",
            units=[
                unit(
                    segment("en-US", text("a")),
                    segment("de-DE", text("b")),
                    change_date=None,
                    change_user=None,
                    last_used_date=None,
                    last_used_user=None,
                    usage_counter=None,
                )
            ],
        )
        with SDLTMDatabase(path) as db:
            (row,) = list(db.iter_units())
        assert row.change_date is None
        assert row.change_user is None
        assert row.last_used_date is None
        assert row.last_used_user is None
        assert row.usage_counter is None

    def test_missing_table(self, tmp_path: Path):
        path = tmp_path / "other.sqlite"
        conn = sqlite3.connect(path)
        conn.execute("CREATE TABLE unrelated (id INTEGER)")
        conn.commit()
        conn.close()
        with SDLTMDatabase(path) as db:
            with pytest.raises(RowReadError):
                list(db.iter_units())
            with pytest.raises(RowReadError):
                db.metadata()


class TestColumnText:
    def test_control_characters_removed(self, tmp_path: Path):
        path = create_sdltm(
            tmp_path / "ctrl.sdltm",
            units=[
                unit(
                    segment("en-US", text("a")),
                    segment("de-DE", text("b")),
                    change_user="bo\x01b",
                    last_used_user="car\x0bol",
                )
            ],
            picklists=[("Cli\x02ent", 5, "AC\x01ME")],
        )
        with SDLTMDatabase(path) as db:
            (value,) = db.picklist_values()
            (row,) = list(db.iter_units())
        assert (value.name, value.value) == ("Client", "ACME")
        assert row.change_user == "bob"
        assert row.last_used_user == "carol"

    def test_invalid_utf8_replaced(self, tmp_path: Path):
        path = create_sdltm(
            tmp_path / "latin1.sdltm",
            units=[unit(segment("en-US", text("a")), segment("de-DE", text("b")))],
        )
        raw = segment("en-US", text("cafX")).encode("utf-8").replace(b"X", b"\xe9")
        conn = sqlite3.connect(path)
        conn.execute("UPDATE translation_units SET source_segment = CAST(? AS TEXT)", (raw,))
        conn.commit()
        conn.close()

        with SDLTMDatabase(path) as db:
            (row,) = list(db.iter_units())
        assert "<Value>caf" + chr(0xFFFD) + "</Value>" in row.source_segment

    @pytest.mark.parametrize("language", [None, ""])
    def test_empty_source_language(self, tmp_path: Path, language):
        path = create_sdltm(tmp_path / "nolang.sdltm")
        conn = sqlite3.connect(path)
        conn.execute("UPDATE translation_memories SET source_language = ?", (language,))
        conn.commit()
        conn.close()

        with SDLTMDatabase(path) as db:
            with pytest.raises(MissingMetadataError, match="no source language"):
                db.metadata()
