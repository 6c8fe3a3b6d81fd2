"""vault-loader: a module system for user scripts kept in a content store.

Scripts are required by bare, relative or root-absolute identifiers, cached
per reload pass, and may require each other concurrently.
"""

from .errors import CircularRequireError
from .errors import InvalidIdentifierError
from .errors import LoaderError
from .errors import ModuleLoadError
from .errors import UnresolvedModuleError
from .evaluator import Evaluator
from .evaluator import ScriptModule
from .handlers import SKIP
from .handlers import Found
from .handlers import LoadRequest
from .host import HostContext
from .loader import Loader
from .loader import ReloadReport
from .settings import AppSettings
from .settings import LoadOrderEntry
from .store import FileSystemStore
from .store import MemoryStore

__all__ = [
    "AppSettings",
    "CircularRequireError",
    "Evaluator",
    "FileSystemStore",
    "Found",
    "HostContext",
    "InvalidIdentifierError",
    "LoadOrderEntry",
    "LoadRequest",
    "Loader",
    "LoaderError",
    "MemoryStore",
    "ModuleLoadError",
    "ReloadReport",
    "SKIP",
    "ScriptModule",
    "UnresolvedModuleError",
]
