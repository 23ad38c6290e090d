"""Tool identity settings.

The ``creationtool`` / ``creationtoolversion`` values written to the TMX
header are resolved in this order:

  1. values passed explicitly by the caller,
  2. ``~/.sdltm2tmx/settings.json`` (keys ``product_name`` and ``version``),
  3. the installed distribution's packaging metadata.
"""

from __future__ import annotations

import importlib.metadata
import json
from pathlib import Path

from sdltm2tmx.errors import ConfigurationError
from sdltm2tmx.models import ToolIdentity

DISTRIBUTION_NAME = "sdltm2tmx"

_USER_CONFIG_DIR = Path.home() / ".sdltm2tmx"
_USER_SETTINGS_PATH = _USER_CONFIG_DIR / "settings.json"

_loaded: bool = False
_settings: dict[str, str] = {}


def _load_settings() -> dict:
    """Load the user settings file, or an empty mapping if there is none."""
    if _USER_SETTINGS_PATH.exists():
        with open(_USER_SETTINGS_PATH, encoding="utf-8") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Invalid JSON in {_USER_SETTINGS_PATH}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{_USER_SETTINGS_PATH} must hold a JSON object")
        return data
    return {}


def _load() -> None:
    global _settings, _loaded
    user = _load_settings()
    _settings = {
        key: str(user[key])
        for key in ("product_name", "version")
        if user.get(key)
    }
    _loaded = True


def reload() -> None:
    """Force re-read of the settings file."""
    _load()


def get_setting(key: str) -> str:
    """Return a user setting, or empty string."""
    if not _loaded:
        _load()
    return _settings.get(key, "")


def _package_metadata() -> tuple[str, str]:
    try:
        meta = importlib.metadata.metadata(DISTRIBUTION_NAME)
    except importlib.metadata.PackageNotFoundError:
        return ("", "")
    return (meta.get("Name") or "", meta.get("Version") or "")


def get_tool_identity(
    product_name: str | None = None,
    version: str | None = None,
) -> ToolIdentity:
    """Resolve the creation tool name and version.

    Raises:
        ConfigurationError: If no source supplies both values.
    """
    name = product_name or get_setting("product_name")
    ver = version or get_setting("version")
    if not name or not ver:
        meta_name, meta_version = _package_metadata()
        name = name or meta_name
        ver = ver or meta_version
    if not name:
        raise ConfigurationError("Product name is not configured")
    if not ver:
        raise ConfigurationError("Product version is not configured")
    return ToolIdentity(product_name=name, version=ver)
