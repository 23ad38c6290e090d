"""Shared pytest fixtures for converter tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from sdltm2tmx import config
from sdltm2tmx.models import TMMetadata, ToolIdentity
from sdltm_factory import create_sdltm, end, segment, standalone, start, text, unit


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point the user settings file into tmp_path so ~/.sdltm2tmx is never read."""
    monkeypatch.setattr(config, "_USER_SETTINGS_PATH", tmp_path / "settings.json")
    config.reload()
    yield
    config.reload()


@pytest.fixture
def tool() -> ToolIdentity:
    return ToolIdentity(product_name="TestTool", version="9.9")


@pytest.fixture
def metadata() -> TMMetadata:
    return TMMetadata(
        source_language="en-US",
        creation_user="admin",
        creation_date="2022-01-02 03:04:05",
    )


@pytest.fixture
def tagged_unit() -> dict:
    return unit(
        segment("en-US", text("Hello "), start(1, 10, 100), text("world"), end(1)),
        segment("de-DE", text("Hallo "), start(1, 10, 100), text("Welt"), end(1)),
        change_date="2023-06-01 08:00:00",
        change_user="bob",
        last_used_date="2023-07-01 09:30:00",
        last_used_user="carol",
        usage_counter=3,
    )


@pytest.fixture
def small_sdltm(tmp_path: Path, tagged_unit: dict) -> Path:
    """Three units: tagged, plain text, standalone placeholder."""
    return create_sdltm(
        tmp_path / "small.sdltm",
        units=[
            tagged_unit,
            unit(
                segment("en-US", text("Good morning")),
                segment("de-DE", text("Guten Morgen")),
            ),
            unit(
                segment("en-US", text("Line"), standalone(5, 200), text("break")),
                segment("de-DE", text("Zeilen"), standalone(5, 200), text("umbruch")),
            ),
        ],
        picklists=[
            ("Client", 5, "ACME"),
            ("Domain", 2, "Legal"),
        ],
    )
