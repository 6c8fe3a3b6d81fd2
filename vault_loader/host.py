"""Per-module host context and scoped ``require``."""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING
from typing import Any

if TYPE_CHECKING:
    from .loader import Loader


class ScopedRequire:
    """``require`` bound to one requesting module.

    Awaiting ``require("./x")`` resolves relative to the bound source path.
    ``cache`` and ``extensions`` are read-only views of the loader's tables.
    """

    def __init__(self, loader: Loader, source: str | None = None):
        self._loader = loader
        self.source = source

    async def __call__(self, module_id: str) -> Any:
        return await self._loader.require(module_id, self.source)

    @property
    def cache(self) -> Mapping[str, Any]:
        return self._loader.cache

    @property
    def extensions(self) -> Mapping[str, Any]:
        return self._loader.extensions

    def __repr__(self) -> str:
        return f"ScopedRequire(source={self.source!r})"


class HostContext:
    """Everything a script can reach through its ``host`` name.

    Injected capabilities are exposed as attributes, e.g. ``host.store``.
    """

    def __init__(self, loader: Loader, source: str | None = None, capabilities: Mapping[str, Any] | None = None):
        self._loader = loader
        self._source = source
        self._capabilities = MappingProxyType(dict(capabilities or {}))
        self.require = ScopedRequire(loader, source)

    @property
    def loader(self) -> Loader:
        return self._loader

    @property
    def source(self) -> str | None:
        return self._source

    @property
    def cache(self) -> Mapping[str, Any]:
        return self._loader.cache

    @property
    def extensions(self) -> Mapping[str, Any]:
        return self._loader.extensions

    @property
    def capabilities(self) -> Mapping[str, Any]:
        return self._capabilities

    def require_immediate(self, module_id: str, default: Any = None) -> Any:
        return self._loader.require_immediate(module_id, default)

    def __getattr__(self, name: str) -> Any:
        # only reached for names not defined on the instance or class
        capabilities = self.__dict__.get("_capabilities", {})
        if name in capabilities:
            return capabilities[name]
        raise AttributeError(f"host has no capability {name!r}")

    def __repr__(self) -> str:
        return f"HostContext(source={self._source!r}, capabilities={sorted(self._capabilities)})"
