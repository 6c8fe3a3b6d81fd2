"""Module loader: resolution, extension dispatch, caching, and reload.

Per-path lifecycle:

    absent -> loading (LoadRecord in flight) -> cached | failed

Cached and failed are sticky until the next ``reload()``, which swaps in a
fresh ``LoaderState`` in a single assignment. A path lives in at most one of
the cache, the error table, or the in-flight index.

Concurrent requires of a path that is already loading join the existing
record instead of loading twice. Every record tracks which other records it is
waiting on; a join that would close a loop in that graph fails with
``CircularRequireError`` instead of deadlocking.
"""

from __future__ import annotations

import asyncio
import importlib
import json
import logging
import re
import sys
from collections import deque
from collections.abc import Callable
from collections.abc import Iterable
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType
from typing import Any

from .errors import CircularRequireError
from .errors import LoaderError
from .errors import ModuleLoadError
from .errors import UnresolvedModuleError
from .evaluator import Evaluator
from .events import EventBus
from .events import ModuleFailed
from .events import ModuleLoaded
from .events import ReloadFinished
from .events import ReloadStarted
from .handlers import SKIP
from .handlers import ExtensionHandler
from .handlers import Found
from .handlers import HandlerResult
from .handlers import LoadRequest
from .handlers import ModuleFactory
from .handlers import call_handler
from .host import HostContext
from .notify import Notifier
from .notify import failure_message
from .resolution import SCRIPT_EXTENSION
from .resolution import extension_of
from .resolution import normalize_path
from .resolution import resolve_candidates
from .resolution import script_candidates
from .settings import LoadOrderEntry
from .store import ContentStore
from .utils.error_format import format_error_message
from .utils.error_format import format_load_failure

logger = logging.getLogger(__name__)

_DOTTED_NAME = re.compile(r"^[A-Za-z_]\w*(\.[A-Za-z_]\w*)*$")

# returned by a candidate scan whose state was replaced mid-scan
_SUPERSEDED = object()

LoadOrderSource = Callable[[], Iterable[LoadOrderEntry | Mapping[str, Any]]]


@dataclass(eq=False)
class LoadRecord:
    """One path currently being loaded.

    Attributes:
        path: Canonical path being loaded
        waiters: Futures of joined callers, resolved in registration order
        awaiting: Records this load is itself waiting on
    """

    path: str
    waiters: list[asyncio.Future] = field(default_factory=list)
    awaiting: list[LoadRecord] = field(default_factory=list)


@dataclass
class LoaderState:
    """All mutable per-pass tables, replaced wholesale on reload."""

    cache: dict[str, Any] = field(default_factory=dict)
    errors: dict[str, LoaderError] = field(default_factory=dict)
    loading: dict[str, LoadRecord] = field(default_factory=dict)
    # ordered set of normalized folder prefixes
    search_paths: dict[str, None] = field(default_factory=dict)


@dataclass
class ReloadReport:
    """Outcome of one reload pass."""

    pass_id: int
    loaded: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return len(self.failed)


def _detach(record: LoadRecord, target: LoadRecord) -> None:
    """Remove every ``record -> target`` waiting edge."""
    record.awaiting[:] = [r for r in record.awaiting if r is not target]


def _reaches(start: LoadRecord, target: LoadRecord) -> bool:
    """Depth-first search of the waiting graph from ``start`` for ``target``."""
    stack = [start]
    seen: set[LoadRecord] = set()
    while stack:
        current = stack.pop()
        if current is target:
            return True
        if current in seen:
            continue
        seen.add(current)
        stack.extend(current.awaiting)
    return False


class Loader:
    """Loads user scripts from a content store as interlinked modules.

    Usage:
        loader = Loader(MemoryStore({"lib/util.py": "module.exports = 42"}),
                        load_order=lambda: [{"paths": ["lib"]}])
        await loader.reload()
        await loader.require("util")  # -> 42
    """

    def __init__(
        self,
        store: ContentStore,
        *,
        load_order: LoadOrderSource | None = None,
        notifier: Notifier | None = None,
        events: EventBus | None = None,
        modules: Mapping[str, ModuleFactory] | None = None,
        capabilities: Mapping[str, Any] | None = None,
        evaluator: Evaluator | None = None,
        allow_global_modules: bool = True,
    ):
        """Initialize the loader.

        Args:
            store: Where scripts and data files are read from
            load_order: Called at the start of every reload pass for the
                ordered ``{paths: [...]}`` entries to load
            notifier: Receives one aggregate message per pass with failures
            events: Bus for lifecycle events (a private bus if omitted)
            modules: Built-in modules, id -> factory
            capabilities: Extra attributes exposed on every script's ``host``
            evaluator: Script evaluator (default: ``Evaluator()``)
            allow_global_modules: Fall back to importing installed Python
                modules for bare dotted identifiers
        """
        self._store = store
        self._load_order = load_order or (lambda: [])
        self._notifier = notifier
        self._events = events or EventBus()
        self._evaluator = evaluator or Evaluator()
        self._capabilities = dict(capabilities or {})
        self._allow_global_modules = allow_global_modules

        self._extensions: dict[str, ExtensionHandler] = {}
        self._modules: dict[str, ModuleFactory] = {}
        self._state = LoaderState()
        self._reloading = False
        self._reload_queue: deque[asyncio.Future] = deque()
        self._pass_count = 0

        self._script_handler = self.register_extension(SCRIPT_EXTENSION, self._load_script)
        self._json_handler = self.register_extension("json", self._load_json)

        for module_id, factory in (modules or {}).items():
            self.register_module(module_id, factory)

    # ----- Inspection -----

    @property
    def store(self) -> ContentStore:
        return self._store

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def cache(self) -> Mapping[str, Any]:
        """Read-only view of the current pass's module cache."""
        return MappingProxyType(self._state.cache)

    @property
    def errors(self) -> Mapping[str, LoaderError]:
        """Read-only view of the current pass's error table."""
        return MappingProxyType(self._state.errors)

    @property
    def extensions(self) -> Mapping[str, ExtensionHandler]:
        """Read-only view of the extension handler table."""
        return MappingProxyType(self._extensions)

    @property
    def search_paths(self) -> tuple[str, ...]:
        return tuple(self._state.search_paths)

    @property
    def in_flight(self) -> tuple[str, ...]:
        """Paths currently being loaded."""
        return tuple(self._state.loading)

    @property
    def reloading(self) -> bool:
        return self._reloading

    # ----- Registration -----

    def register_extension(self, extension: str, handler: ExtensionHandler | None) -> ExtensionHandler | None:
        """Install (or with ``None``, remove) the handler for an extension."""
        key = extension.lower().lstrip(".")
        if handler is not None:
            self._extensions[key] = handler
        else:
            self._extensions.pop(key, None)
        return handler

    def register_module(self, module_id: str, factory: ModuleFactory) -> ModuleFactory:
        """Install a built-in module, looked up by exact id before any path resolution.

        The factory is called with the ``SKIP`` sentinel on each require and may
        return it to decline.

        Raises:
            ValueError: ``module_id`` starts with ``/``
        """
        if module_id.startswith("/"):
            raise ValueError("module ID cannot start with /")
        self._modules[module_id] = factory
        return factory

    def create_host(self, source: str | None = None) -> HostContext:
        """Build the ``host`` object for a script at ``source``."""
        return HostContext(self, source, self._capabilities)

    # ----- Resolution -----

    def resolve(self, module_id: str, source: str | None = None) -> list[str]:
        """Candidate paths for an identifier, in priority order."""
        return resolve_candidates(module_id, source, self._state.search_paths)

    def _builtin(self, module_id: Any) -> HandlerResult:
        if not isinstance(module_id, str):
            return SKIP
        factory = self._modules.get(module_id)
        if factory is None:
            return SKIP
        result = factory(SKIP)
        if result is SKIP:
            return SKIP
        return Found(result)

    async def require(self, module_id: str, source: str | None = None) -> Any:
        """Load (or fetch from cache) the module named by ``module_id``.

        Args:
            module_id: Bare, relative, or root-absolute identifier
            source: Canonical path of the requesting module, if any

        Returns:
            The module's exports

        Raises:
            InvalidIdentifierError: ``module_id`` is empty or not a string
            UnresolvedModuleError: Nothing could provide the module
            CircularRequireError: The requester is part of a waiting cycle
            ModuleLoadError: The owning handler (or a global import) failed
        """
        builtin = self._builtin(module_id)
        if isinstance(builtin, Found):
            return builtin.value

        while True:
            state = self._state
            result = await self._require_candidates(state, module_id, source)
            if result is not _SUPERSEDED:
                break
            logger.debug(f"[loader:require] State replaced by reload while resolving {module_id!r}, starting over")

        if isinstance(result, Found):
            return result.value

        if self._allow_global_modules and _DOTTED_NAME.match(module_id):
            try:
                return importlib.import_module(module_id)
            except Exception as e:
                # only "this module does not exist" falls through to not-found
                absent = isinstance(e, ModuleNotFoundError) and (
                    e.name == module_id or module_id.startswith(f"{e.name}.")
                )
                if not absent:
                    logger.error(f"[loader:require] Import of {module_id} failed: {format_error_message(e)}")
                    raise ModuleLoadError(
                        f"error occurred while importing module {module_id}",
                        path=module_id,
                        cause=e,
                        source=source,
                    )

        raise UnresolvedModuleError(module_id, source=source)

    async def _require_candidates(self, state: LoaderState, module_id: str, source: str | None) -> Any:
        """Try each candidate path against one pass's tables.

        Returns ``Found``, ``SKIP`` when no candidate matched, or ``_SUPERSEDED``
        when a reload swapped the state while a handler was suspended.
        """
        candidates = resolve_candidates(module_id, source, state.search_paths)
        logger.debug(f"[loader:require] {module_id!r} from {source!r} -> {candidates}")

        for path in candidates:
            if path in state.cache:
                return Found(state.cache[path])
            if path in state.errors:
                raise state.errors[path]

            ext = extension_of(path)
            handler = self._extensions.get(ext) if ext else None
            # an explicit, recognized extension gets no inferred handlers
            handlers = [handler] if handler is not None else [self._script_handler, self._json_handler]
            request = LoadRequest(path, source)

            for current in handlers:
                try:
                    result = await call_handler(current, request)
                except LoaderError:
                    if state is not self._state:
                        return _SUPERSEDED
                    raise
                except Exception as e:
                    if state is not self._state:
                        return _SUPERSEDED
                    error = ModuleLoadError(
                        f"error occurred while loading required module {module_id}",
                        path=path,
                        cause=e,
                        source=source,
                    )
                    state.errors[path] = error
                    logger.error(f"[loader:require] {path}: {format_error_message(e)}")
                    raise error

                if state is not self._state:
                    return _SUPERSEDED
                if isinstance(result, Found):
                    return result

        return SKIP

    def require_immediate(self, module_id: str, default: Any = None) -> Any:
        """Return an already-available module without loading or suspending.

        Consults built-ins, the cache (including script file-name variants),
        and already-imported Python modules. Returns ``default`` otherwise.
        """
        builtin = self._builtin(module_id)
        if isinstance(builtin, Found):
            return builtin.value

        state = self._state
        for path in resolve_candidates(module_id, None, state.search_paths):
            if path in state.cache:
                return state.cache[path]
            for script_path in script_candidates(path):
                if script_path in state.cache:
                    return state.cache[script_path]

        if self._allow_global_modules and module_id in sys.modules:
            return sys.modules[module_id]

        return default

    # ----- Built-in handlers -----

    async def _load_script(self, request: LoadRequest) -> HandlerResult:
        state = self._state
        if request.path in state.cache:
            return Found(state.cache[request.path])

        for script_path in script_candidates(request.path):
            if script_path in state.cache:
                return Found(state.cache[script_path])

            # a previous load failed
            if script_path in state.errors:
                raise state.errors[script_path]

            record = state.loading.get(script_path)
            if record is not None:
                return Found(await self._join(state, record, request.source))

            if self._store.kind(script_path) != "file":
                continue

            record = LoadRecord(script_path)
            state.loading[script_path] = record
            if await self._load_file(state, record, request.source):
                return Found(state.cache[script_path])
            raise state.errors[script_path]

        return SKIP

    async def _load_json(self, request: LoadRequest) -> HandlerResult:
        path = request.path
        if extension_of(path) != "json":
            path = f"{path}.json"

        state = self._state
        if path in state.cache:
            return Found(state.cache[path])
        if self._store.kind(path) != "file":
            return SKIP

        parsed = json.loads(await self._store.read_text(path))
        state.cache[path] = parsed
        return Found(parsed)

    # ----- Load coordination -----

    async def _join(self, state: LoaderState, record: LoadRecord, source: str | None) -> Any:
        """Wait for another caller's in-flight load of ``record``."""
        source_record = state.loading.get(source) if source else None
        if source_record is not None:
            if source_record is record or _reaches(record, source_record):
                logger.warning(f"[loader:join] Circular require: {source} -> {record.path}")
                raise CircularRequireError(record.path, source=source)
            source_record.awaiting.append(record)

        waiter = asyncio.get_running_loop().create_future()
        record.waiters.append(waiter)
        try:
            await waiter
        finally:
            if source_record is not None:
                _detach(source_record, record)

        return state.cache[record.path]

    async def _load_file(self, state: LoaderState, record: LoadRecord, source: str | None = None) -> bool:
        """Read and evaluate one script, then signal everyone waiting on it."""
        source_record = state.loading.get(source) if source else None
        if source_record is not None and source_record is not record:
            source_record.awaiting.append(record)

        host = self.create_host(record.path)
        try:
            text = await self._store.read_text(record.path)
            exports = await self._evaluator.evaluate(text, path=record.path, require=host.require, host=host)
        except Exception as e:
            error = ModuleLoadError(f"failed to load file {record.path}", path=record.path, cause=e, source=source)
            state.errors[record.path] = error
            logger.error(f"[loader:load] Failed to load file {record.path}", exc_info=e)
            self._events.publish(ModuleFailed(path=record.path, error=format_load_failure(error)))
            self._signal(state, record, error)
            return False
        except BaseException as e:
            # interrupted rather than failed: release the path so it can be loaded again
            error = ModuleLoadError(f"loading {record.path} was interrupted", path=record.path, cause=e, source=source)
            logger.warning(f"[loader:load] Interrupted while loading {record.path}: {type(e).__name__}")
            self._signal(state, record, error)
            raise
        else:
            state.cache[record.path] = exports
            logger.debug(f"[loader:load] Loaded {record.path}")
            self._events.publish(ModuleLoaded(path=record.path))
            self._signal(state, record, None)
            return True
        finally:
            if source_record is not None:
                _detach(source_record, record)

    def _signal(self, state: LoaderState, record: LoadRecord, error: LoaderError | None) -> None:
        """Retire a finished record and wake its waiters in registration order."""
        if state.loading.get(record.path) is record:
            del state.loading[record.path]
        for other in state.loading.values():
            _detach(other, record)

        waiters, record.waiters = record.waiters, []
        for waiter in waiters:
            if waiter.done():
                continue
            if error is None:
                waiter.set_result(None)
            else:
                waiter.set_exception(error)

    # ----- Reload -----

    async def reload(self) -> ReloadReport:
        """Reset all state and load every file in the configured load order.

        Overlapping calls are serialized: a call made while a pass is running
        waits for its own pass, which starts after all earlier ones finish.
        """
        if self._reloading:
            turn = asyncio.get_running_loop().create_future()
            self._reload_queue.append(turn)
            logger.debug(f"[loader:reload] Queued behind running pass ({len(self._reload_queue)} waiting)")
            await turn
        else:
            self._reloading = True

        try:
            return await self._do_reload()
        finally:
            self._start_next_reload()

    def _start_next_reload(self) -> None:
        while self._reload_queue:
            turn = self._reload_queue.popleft()
            if not turn.done():
                # ownership passes straight to the next caller
                turn.set_result(None)
                return
        self._reloading = False

    async def _do_reload(self) -> ReloadReport:
        self._pass_count += 1
        pass_id = self._pass_count
        state = LoaderState()
        self._state = state
        self._events.publish(ReloadStarted(pass_id=pass_id))

        seen: set[str] = set()
        records: list[LoadRecord] = []
        for entry in self._load_order():
            if not isinstance(entry, LoadOrderEntry):
                entry = LoadOrderEntry.model_validate(entry)
            records.extend(self._collect_records(state, entry.paths, seen))

        logger.info(f"[loader:reload] Pass {pass_id}: {len(records)} file(s) in load order")

        report = ReloadReport(pass_id=pass_id)
        for record in records:
            if record.path in state.cache:
                continue
            if await self._ensure_loaded(state, record):
                report.loaded.append(record.path)
            else:
                report.failed.append(record.path)

        if report.failures and self._notifier is not None:
            self._notifier.notify(failure_message(report.failures))

        logger.info(f"[loader:reload] Pass {pass_id} finished: {len(report.loaded)} loaded, {report.failures} failed")
        self._events.publish(ReloadFinished(pass_id=pass_id, loaded=report.loaded, failed=report.failed))
        return report

    async def _ensure_loaded(self, state: LoaderState, record: LoadRecord) -> bool:
        # first failure wins until the next pass
        if record.path in state.errors:
            return False

        existing = state.loading.get(record.path)
        if existing is not None:
            try:
                await self._join(state, existing, None)
            except LoaderError:
                return False
            return True

        state.loading[record.path] = record
        return await self._load_file(state, record)

    def _collect_records(self, state: LoaderState, paths: Iterable[str], seen: set[str]) -> list[LoadRecord]:
        """Expand one load-order entry into sorted script records.

        Folders named directly in the entry become search paths; their
        contents are walked depth-first. Paths already in ``seen`` (from an
        earlier entry) are skipped.
        """
        records: list[LoadRecord] = []
        folders: list[str] = []

        def add_record(path: str) -> None:
            if path in seen or extension_of(path) != SCRIPT_EXTENSION:
                return
            seen.add(path)
            records.append(LoadRecord(path))

        try:
            for raw in paths:
                path = normalize_path(raw)
                kind = self._store.kind(path)
                if kind == "file":
                    add_record(path)
                elif kind == "folder":
                    if path:
                        state.search_paths[path] = None
                    folders.append(path)
                else:
                    logger.warning(f"[loader:reload] Load order path not found: {raw}")

            while folders:
                folder = folders.pop()
                for child in self._store.children(folder):
                    kind = self._store.kind(child)
                    if kind == "file":
                        add_record(child)
                    elif kind == "folder":
                        folders.append(child)
        except OSError as e:
            logger.error(f"[loader:reload] Could not expand load order entry {list(paths)}: {format_error_message(e)}")
            return []

        return sorted(records, key=lambda r: r.path)

    def __repr__(self) -> str:
        return f"Loader(store={self._store!r}, cached={len(self._state.cache)})"
