"""Error taxonomy for the module loader.

All loader failures derive from ``LoaderError`` so hosts can catch them in one
place. Each error remembers the requesting module path (``source``) when there
was one.
"""

from __future__ import annotations


class LoaderError(Exception):
    """Base class for failures raised by the loader."""

    def __init__(self, message: str, *, source: str | None = None):
        super().__init__(message)
        self.source = source


class InvalidIdentifierError(LoaderError, ValueError):
    """The module identifier is not a usable, non-empty string."""


class UnresolvedModuleError(LoaderError):
    """No handler or fallback could find the module.

    Not recorded in the error table: a later require may succeed if the store
    changes before the next reload.
    """

    def __init__(self, module_id: str, *, source: str | None = None):
        super().__init__(f"cannot find module '{module_id}'", source=source)
        self.module_id = module_id


class CircularRequireError(LoaderError):
    """Joining an in-flight load would make the requester wait on itself."""

    def __init__(self, path: str, *, source: str | None = None):
        super().__init__(f"circular require detected: {source} -> {path}", source=source)
        self.path = path


class ModuleLoadError(LoaderError):
    """A handler owned the path but failed to produce its content."""

    def __init__(
        self,
        message: str,
        *,
        path: str,
        cause: BaseException | None = None,
        source: str | None = None,
    ):
        super().__init__(message, source=source)
        self.path = path
        self.cause = cause
        self.__cause__ = cause
