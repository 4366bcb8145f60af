"""Logging configuration for the rollback CLI.

Log output always goes to stderr so that ``--json`` output on stdout stays
machine-readable.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "rollback"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the given module name."""
    return logging.getLogger(name)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure the package logger based on CLI verbosity flags.

    Args:
        verbose: Enable DEBUG level output
        quiet: Only show ERROR level output (takes precedence over verbose)
    """
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Re-running setup (tests, repeated CLI invocations) must not stack handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
