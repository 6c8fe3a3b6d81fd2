"""Settings management for vault-loader.

Philosophy: Simple, scope-aware YAML settings. The loader itself never reads
files directly; it is handed ``AppSettings.get_load_order`` and calls it at the
start of each reload pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from typing import Literal

import yaml
from pydantic import BaseModel
from pydantic import Field
from pydantic import ValidationError

logger = logging.getLogger(__name__)

Scope = Literal["local", "project", "global"]

SETTINGS_DIR = ".vault_loader"


class LoadOrderEntry(BaseModel):
    """One step of the load order: files and/or folders loaded together."""

    paths: list[str] = Field(default_factory=list, description="File or folder paths in the store")


@dataclass
class SettingsPaths:
    """Standard paths for settings files."""

    global_settings: Path
    project_settings: Path
    local_settings: Path

    @classmethod
    def default(cls) -> SettingsPaths:
        """Create default paths for the standard layout."""
        return cls(
            global_settings=Path.home() / SETTINGS_DIR / "settings.yaml",
            project_settings=Path.cwd() / SETTINGS_DIR / "settings.yaml",
            local_settings=Path.cwd() / SETTINGS_DIR / "settings.local.yaml",
        )

    @classmethod
    def under(cls, base: Path) -> SettingsPaths:
        """All three scopes below one directory (handy for tests and embedding)."""
        return cls(
            global_settings=base / "global" / "settings.yaml",
            project_settings=base / SETTINGS_DIR / "settings.yaml",
            local_settings=base / SETTINGS_DIR / "settings.local.yaml",
        )


class AppSettings:
    """Simple settings manager with scope-aware merging.

    Scope priority (most specific wins):
    1. local (.vault_loader/settings.local.yaml) - machine-specific
    2. project (.vault_loader/settings.yaml) - shared with the vault
    3. global (~/.vault_loader/settings.yaml) - user defaults

    Usage:
        settings = AppSettings()
        settings.add_load_order_entry(["lib"], scope="project")
        loader = Loader(store, load_order=settings.get_load_order)
    """

    def __init__(self, paths: SettingsPaths | None = None) -> None:
        self.paths = paths or SettingsPaths.default()

    def get_merged_settings(self) -> dict[str, Any]:
        """Load and merge settings from all scopes."""
        result: dict[str, Any] = {}
        for path in [self.paths.global_settings, self.paths.project_settings, self.paths.local_settings]:
            if path.exists():
                try:
                    with open(path) as f:
                        content = yaml.safe_load(f) or {}
                    result = self._deep_merge(result, content)
                except (OSError, yaml.YAMLError) as e:
                    logger.warning(f"Skipping malformed settings file {path}: {e}")
        return result

    # ----- Load order -----

    def get_load_order(self) -> list[LoadOrderEntry]:
        """Get the effective load order (the most specific scope that sets one wins)."""
        raw = self.get_merged_settings().get("load_order") or []
        entries = []
        for item in raw:
            try:
                entries.append(LoadOrderEntry.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Ignoring invalid load_order entry {item!r}: {e}")
        return entries

    def set_load_order(self, entries: list[LoadOrderEntry], scope: Scope = "project") -> None:
        """Replace the load order at specified scope."""
        self._update_setting("load_order", [entry.model_dump() for entry in entries], scope)

    def add_load_order_entry(self, paths: list[str], scope: Scope = "project") -> LoadOrderEntry:
        """Append one entry to the load order at specified scope."""
        entry = LoadOrderEntry(paths=list(paths))
        current = self._read_scope(scope).get("load_order") or []
        current.append(entry.model_dump())
        self._update_setting("load_order", current, scope)
        return entry

    def clear_load_order(self, scope: Scope = "project") -> None:
        """Clear load order at specified scope."""
        self._remove_setting("load_order", scope)

    # ----- Store settings -----

    def get_store_root(self) -> str | None:
        """Get the configured content store root directory."""
        return (self.get_merged_settings().get("store") or {}).get("root")

    def set_store_root(self, root: str, scope: Scope = "local") -> None:
        """Set the content store root directory at specified scope."""
        store = self._read_scope(scope).get("store") or {}
        store["root"] = root
        self._update_setting("store", store, scope)

    # ----- Scope utilities -----

    def _get_scope_path(self, scope: Scope) -> Path:
        """Get settings file path for scope."""
        return {
            "local": self.paths.local_settings,
            "project": self.paths.project_settings,
            "global": self.paths.global_settings,
        }[scope]

    def _read_scope(self, scope: Scope) -> dict[str, Any]:
        """Read settings from a specific scope."""
        path = self._get_scope_path(scope)
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError):
            return {}

    def _write_scope(self, scope: Scope, settings: dict[str, Any]) -> None:
        """Write settings to a specific scope."""
        path = self._get_scope_path(scope)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(settings, f, default_flow_style=False)

    def _update_setting(self, key: str, value: Any, scope: Scope) -> None:
        """Update a single setting at specified scope."""
        settings = self._read_scope(scope)
        settings[key] = value
        self._write_scope(scope, settings)

    def _remove_setting(self, key: str, scope: Scope) -> None:
        """Remove a setting from specified scope."""
        settings = self._read_scope(scope)
        if key in settings:
            del settings[key]
            self._write_scope(scope, settings)

    def _deep_merge(self, base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dicts, overlay wins. Lists are replaced, not merged."""
        result = base.copy()
        for key, value in overlay.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
