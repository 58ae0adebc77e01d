"""
Logging configuration for filesearch.

Warnings and library chatter are off by default; the CLI turns on
debug output with --verbose or FILESEARCH_VERBOSE=1.
"""

import logging
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to suppress verbose output.

    Args:
        quiet: If True, suppress warnings and keep the filesearch logger
            at WARNING. If False, leave everything as it is.
    """
    if quiet:
        warnings.filterwarnings("ignore")
        logger = logging.getLogger("filesearch")
        if logger.level == logging.NOTSET:
            logger.setLevel(logging.WARNING)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    # Re-enable warnings
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    logging.getLogger("filesearch").setLevel(logging.DEBUG)


def configure_ops_log(store_path):
    """Configure a persistent operations log for a filesearch store.

    Writes to {store_path}/filesearch-ops.log using a rotating file handler
    (1MB max, 3 backups). Always active regardless of --verbose.
    Returns the handler so it can be removed on close().
    """
    log_path = Path(store_path) / "filesearch-ops.log"
    handler = RotatingFileHandler(
        str(log_path),
        maxBytes=1_000_000,
        backupCount=3,
    )
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    fs_logger = logging.getLogger("filesearch")
    fs_logger.addHandler(handler)
    # INFO must reach the ops log even in quiet mode
    if fs_logger.level == logging.NOTSET or fs_logger.level > logging.INFO:
        fs_logger.setLevel(logging.INFO)

    return handler
