"""Safe error message formatting utilities.

Ensures exceptions always have useful display messages, even when their
str() representation is empty, and walks loader error chains so users see
which module failed and why.
"""

from __future__ import annotations

import asyncio

from rich.markup import escape as _escape_markup

from ..errors import ModuleLoadError

# Friendly messages for exception types known to have empty str()
FRIENDLY_MESSAGES: dict[type, str] = {
    TimeoutError: "Operation timed out.",
    asyncio.CancelledError: "Operation was cancelled.",
    FileNotFoundError: "File not found.",
    KeyboardInterrupt: "Operation interrupted by user.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a useful display message.

    Examples:
        >>> format_error_message(TimeoutError())
        'TimeoutError: Operation timed out.'

        >>> format_error_message(ValueError("invalid input"), include_type=False)
        'invalid input'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}"

    return f"{error_type}: (no additional details)"


def format_load_failure(e: BaseException) -> str:
    """Format a load failure including its chain of nested module failures.

    Example:
        ModuleLoadError: failed to load lib/a.py
          caused by ModuleLoadError: failed to load lib/b.py
          caused by ZeroDivisionError: division by zero
    """
    lines = [format_error_message(e)]
    seen = {id(e)}
    current = e
    while isinstance(current, ModuleLoadError) and current.cause is not None:
        current = current.cause
        if id(current) in seen:
            break
        seen.add(id(current))
        lines.append(f"  caused by {format_error_message(current)}")
    return "\n".join(lines)


def escape_markup(value: object) -> str:
    """Escape a value for safe interpolation into Rich markup strings."""
    return _escape_markup(str(value))
