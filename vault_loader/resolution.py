"""Path algebra for module identifiers.

Resolution order (first match wins, applied by the loader):
1. Root-absolute ids (``/shared/lib``) -> one candidate from the store root
2. Relative ids (``./util``, ``../x``) with a requester -> one candidate next to it
3. Bare ids (``util``) -> next to the requester, then under each search path

Nothing here touches the content store.
"""

from collections.abc import Iterable

from .errors import InvalidIdentifierError

SCRIPT_EXTENSION = "py"
PACKAGE_INDEX = "__init__.py"


def split_path(path: str) -> list[str]:
    """Split a slash-separated path, dropping empty segments."""
    return [segment for segment in path.split("/") if segment != ""]


def normalize_path(path: str) -> str:
    """Canonical form of a store path: no leading, trailing or doubled slashes."""
    return "/".join(split_path(path))


def resolve_candidates(module_id: str, source: str | None = None, search_paths: Iterable[str] = ()) -> list[str]:
    """Turn an identifier into ordered, de-duplicated candidate paths.

    Args:
        module_id: Identifier as written by the caller
        source: Canonical path of the requesting module, if any
        search_paths: Normalized folder prefixes used for bare identifiers

    Returns:
        Candidate paths in priority order (empty if the id has no segments)

    Raises:
        InvalidIdentifierError: ``module_id`` is not a string or is empty
    """
    if not isinstance(module_id, str):
        raise InvalidIdentifierError(
            f"expected id argument to be a string, got {type(module_id).__name__}", source=source
        )
    if module_id == "":
        raise InvalidIdentifierError("expected non-empty string for id argument", source=source)

    target = split_path(module_id)
    if not target:
        return []

    absolute: list[str] = []
    relative = split_path(source) if source else []
    if relative:
        relative.pop()

    for part in target:
        if part == ".":
            continue
        if part == "..":
            if absolute:
                absolute.pop()
            if relative:
                relative.pop()
        else:
            absolute.append(part)
            relative.append(part)

    absolute_path = "/".join(absolute)

    if module_id.lstrip().startswith("/"):
        return [absolute_path]

    # dict keeps insertion order and collapses equal paths
    candidates = {"/".join(relative): None}
    is_relative = bool(source) and target[0] in (".", "..")
    if not is_relative:
        for search_path in search_paths:
            candidates[f"{search_path}/{absolute_path}"] = None

    return list(candidates)


def extension_of(path: str) -> str | None:
    """Lower-cased extension of the final segment, without the dot."""
    name = path.rsplit("/", 1)[-1]
    if "." not in name.lstrip("."):
        return None
    return name.rsplit(".", 1)[-1].lower() or None


def script_candidates(path: str) -> list[str]:
    """Script file names a candidate path may refer to."""
    if extension_of(path) == SCRIPT_EXTENSION:
        return [path]
    return [f"{path}.{SCRIPT_EXTENSION}", f"{path}/{PACKAGE_INDEX}"]
