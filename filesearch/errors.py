"""
Errors for filesearch, and error logging for the CLI.

Logs full stack traces for debugging while showing clean messages to users.
"""

import os
import traceback
from datetime import datetime, timezone
from pathlib import Path


class FileSearchError(Exception):
    """Base class for errors the CLI reports as a plain message."""


class UsageError(FileSearchError, ValueError):
    """The caller supplied unusable input (empty query, no find criteria, bad setting)."""


class NotFound(FileSearchError, LookupError):
    """A path, tag or category referenced by a command is not in the store."""


class Cancelled(FileSearchError):
    """The user abandoned an operation at a confirmation prompt."""


def _error_log_path() -> Path:
    """Resolve error log path, respecting FILESEARCH_STORE_PATH."""
    store = os.environ.get("FILESEARCH_STORE_PATH")
    if store:
        return Path(store) / "filesearch-errors.log"
    return Path.home() / ".filesearch" / "filesearch-errors.log"


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
        pass  # Error log is best-effort
    return log_path
