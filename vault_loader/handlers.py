"""Extension handler contract.

A handler is called with a ``LoadRequest`` and answers in one of three ways:

- ``Found(value)`` (or any plain value): the handler owns the path and loaded it
- ``SKIP``: the handler does not own the path; resolution moves on
- raising: the handler owns the path but loading failed

Handlers may be plain functions or coroutines.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from typing import Any


class NotApplicable:
    """Sentinel type meaning "not mine, try the next resolution step"."""

    _instance: NotApplicable | None = None

    def __new__(cls) -> NotApplicable:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SKIP"

    def __bool__(self) -> bool:
        return False


SKIP = NotApplicable()


@dataclass(frozen=True)
class Found:
    """A handler produced a value for the requested path."""

    value: Any


@dataclass(frozen=True)
class LoadRequest:
    """What a handler is asked to load."""

    path: str
    source: str | None = None
    skip: NotApplicable = field(default=SKIP, repr=False)


HandlerResult = Found | NotApplicable
ExtensionHandler = Callable[[LoadRequest], Any]
ModuleFactory = Callable[[NotApplicable], Any]


async def call_handler(handler: ExtensionHandler, request: LoadRequest) -> HandlerResult:
    """Invoke a handler and normalize its answer to ``Found`` or ``SKIP``."""
    result = handler(request)
    if inspect.isawaitable(result):
        result = await result
    if isinstance(result, NotApplicable | Found):
        return result
    return Found(result)
