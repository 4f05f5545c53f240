"""
Error types and error logging for tagit.

The core components raise these to the immediate caller; the CLI turns
them into one-line messages and logs full stack traces for debugging.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional


class TagitError(Exception):
    """Base class for all tagit errors."""


class ValidationError(TagitError, ValueError):
    """One or more tag names were rejected; nothing was written."""

    def __init__(self, invalid_tags: Iterable[str]):
        self.invalid_tags = list(invalid_tags)
        shown = ", ".join(repr(t) for t in self.invalid_tags)
        super().__init__(
            f"Invalid tag names (tags must be non-empty, without whitespace "
            f"or any of '&|()'): {shown}"
        )


class PersistenceError(TagitError):
    """The storage backend failed to read or write an association."""


class QuerySyntaxError(TagitError, ValueError):
    """A tag query could not be tokenized or parsed."""

    def __init__(self, message: str, position: int, token: Optional[str] = None):
        self.position = position
        self.token = token
        super().__init__(message)


def _error_log_path() -> Path:
    """Resolve error log path, respecting TAGIT_STORE_PATH."""
    store = os.environ.get("TAGIT_STORE_PATH")
    if store:
        return Path(store) / "tagit-errors.log"
    return Path.home() / ".tagit" / "tagit-errors.log"


def log_exception(exc: Exception, context: str = "") -> Path:
    """
    Log exception with full traceback to file.

    Args:
        exc: The exception that occurred
        context: Optional context string (e.g., command name)

    Returns:
        Path to the error log file
    """
    log_path = _error_log_path()
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(log_path, os.O_WRONLY | os.O_CREAT | os.O_APPEND, 0o600)
        with os.fdopen(fd, "a") as f:
            f.write(f"\n{'='*60}\n")
            f.write(f"[{timestamp}]")
            if context:
                f.write(f" {context}")
            f.write("\n")
            f.write("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))
    except OSError:
        pass  # Can't write error log; don't crash over it
    return log_path
