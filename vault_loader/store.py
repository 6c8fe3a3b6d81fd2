"""Content store backends.

The loader only needs three things from a store: what a path is, what a folder
contains, and the text of a file. Paths are canonical POSIX strings relative to
the store root.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Literal
from typing import Protocol

from .resolution import normalize_path
from .resolution import split_path

logger = logging.getLogger(__name__)

EntryKind = Literal["file", "folder"]


class ContentStore(Protocol):
    """Protocol for stores the loader reads scripts from."""

    def kind(self, path: str) -> EntryKind | None:
        """Return "file", "folder", or None if nothing lives at ``path``."""
        ...

    def children(self, path: str) -> list[str]:
        """List canonical paths of the immediate children of a folder."""
        ...

    async def read_text(self, path: str) -> str:
        """Read the full text of a file."""
        ...


class FileSystemStore:
    """Store backed by a directory on disk.

    Paths that would escape the root (``..`` segments, symlinks pointing
    outside) are reported as missing.
    """

    def __init__(self, root: Path | str):
        self.root = Path(root).resolve()

    def _locate(self, path: str) -> Path | None:
        parts = split_path(path)
        if ".." in parts:
            return None
        full = (self.root.joinpath(*parts)).resolve()
        if full != self.root and self.root not in full.parents:
            logger.warning(f"[store] Path escapes store root: {path}")
            return None
        return full

    def kind(self, path: str) -> EntryKind | None:
        full = self._locate(path)
        if full is None:
            return None
        if full.is_file():
            return "file"
        if full.is_dir():
            return "folder"
        return None

    def children(self, path: str) -> list[str]:
        full = self._locate(path)
        if full is None or not full.is_dir():
            return []
        prefix = normalize_path(path)
        return [f"{prefix}/{child.name}" if prefix else child.name for child in sorted(full.iterdir())]

    async def read_text(self, path: str) -> str:
        full = self._locate(path)
        if full is None:
            raise FileNotFoundError(f"No such file in store: {path}")
        return await asyncio.to_thread(full.read_text, encoding="utf-8")

    def __repr__(self) -> str:
        return f"FileSystemStore({self.root})"


class MemoryStore:
    """In-memory store; folders are implied by the file paths."""

    def __init__(self, files: Mapping[str, str] | None = None):
        self.files: dict[str, str] = {}
        for path, text in (files or {}).items():
            self.write(path, text)

    def write(self, path: str, text: str) -> None:
        self.files[normalize_path(path)] = text

    def delete(self, path: str) -> None:
        self.files.pop(normalize_path(path), None)

    def kind(self, path: str) -> EntryKind | None:
        path = normalize_path(path)
        if path in self.files:
            return "file"
        prefix = f"{path}/" if path else ""
        if any(name.startswith(prefix) for name in self.files):
            return "folder"
        return None

    def children(self, path: str) -> list[str]:
        path = normalize_path(path)
        prefix = f"{path}/" if path else ""
        found: dict[str, None] = {}
        for name in sorted(self.files):
            if not name.startswith(prefix):
                continue
            head = name[len(prefix) :].split("/", 1)[0]
            found[f"{prefix}{head}"] = None
        return list(found)

    async def read_text(self, path: str) -> str:
        path = normalize_path(path)
        if path not in self.files:
            raise FileNotFoundError(f"No such file in store: {path}")
        # yield so concurrent requires interleave like real I/O
        await asyncio.sleep(0)
        return self.files[path]

    def __repr__(self) -> str:
        return f"MemoryStore({len(self.files)} files)"
