"""Script evaluation.

A script is ordinary Python source run as the body of an async unit. Three
names are visible at top level:

- ``module``: a ``ScriptModule``; assign or mutate ``module.exports``
- ``require``: awaitable, resolves identifiers relative to this script
- ``host``: the ``HostContext`` with injected capabilities

Example script::

    util = await require("./util")
    module.exports = {"greet": lambda name: f"{util['prefix']} {name}"}

Scripts run with full host privileges; there is no sandbox.
"""

from __future__ import annotations

import ast
import inspect
from dataclasses import dataclass
from dataclasses import field
from typing import Any


@dataclass
class ScriptModule:
    """Mutable module object handed to a script."""

    path: str
    exports: Any = field(default_factory=dict)


class Evaluator:
    """Compiles and runs script text."""

    flags = ast.PyCF_ALLOW_TOP_LEVEL_AWAIT

    def compile(self, text: str, path: str):
        """Compile script text; ``path`` shows up in tracebacks."""
        return compile(text, path, "exec", flags=self.flags, dont_inherit=True)

    async def evaluate(self, text: str, *, path: str, require: Any, host: Any) -> Any:
        """Run a script and return its exports.

        Exceptions raised by the script propagate unchanged; the caller wraps
        them with the failing path.
        """
        code = self.compile(text, path)
        module = ScriptModule(path=path)
        namespace: dict[str, Any] = {
            "__name__": path,
            "__file__": path,
            "module": module,
            "require": require,
            "host": host,
        }
        result = eval(code, namespace)
        # only scripts that use top-level await compile to a coroutine
        if inspect.iscoroutine(result):
            await result
        return module.exports
