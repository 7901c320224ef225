"""Display text for exceptions raised during module resolution.

Low-level errors (filesystem, network, archive) are folded into log lines and
resolution error messages. Several of them stringify to an empty string,
which would leave messages like "Failed to download <url>: " with nothing
after the colon.
"""

from __future__ import annotations

import httpx
from rich.markup import escape as _escape_markup

# Checked in order; more specific types first
FRIENDLY_MESSAGES: dict[type, str] = {
    httpx.TimeoutException: "Request timed out. The registry or download server may be slow or unreachable.",
    httpx.ConnectError: "Could not connect to the server.",
    TimeoutError: "Operation timed out.",
    PermissionError: "Permission denied.",
    FileNotFoundError: "No such file or directory.",
    ConnectionResetError: "Connection was reset by the server.",
    KeyboardInterrupt: "Operation interrupted by user.",
}


def format_error_message(e: BaseException, *, include_type: bool = True) -> str:
    """Format an exception into a non-empty display message.

    Args:
        e: The exception to format
        include_type: Whether to prefix the exception type name

    Returns:
        The exception text, or a friendly fallback when it has none

    Examples:
        >>> format_error_message(ValueError("invalid input"))
        'ValueError: invalid input'

        >>> format_error_message(PermissionError())
        'PermissionError: Permission denied.'
    """
    error_str = str(e)
    error_type = type(e).__name__

    if error_str:
        if include_type and error_type not in error_str:
            return f"{error_type}: {error_str}"
        return error_str

    for exc_type, friendly_msg in FRIENDLY_MESSAGES.items():
        if isinstance(e, exc_type):
            return f"{error_type}: {friendly_msg}" if include_type else friendly_msg

    return f"{error_type}: (no additional details)"


def escape_markup(value: object) -> str:
    """Escape a path, reference or module name for Rich markup strings."""
    return _escape_markup(str(value))
