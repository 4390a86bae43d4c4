"""
This module provides a simple, environment-variable-based debug switch for querylog.

Setting the `QUERYLOG_DEBUG` environment variable to a truthy value enables
verbose tracing of history mutations to stderr, independent of the logging
configuration of the host application.
"""

import os
import sys
from typing import Any


def debug_enabled() -> bool:
    """Check whether QUERYLOG_DEBUG is set to a truthy value ('true', '1', 'yes')."""
    return os.environ.get("QUERYLOG_DEBUG", "").lower() in ("true", "1", "yes")


def setup_debug_logging() -> bool:
    """
    Announces debug mode on stderr if it is enabled.

    Returns:
        True if debug mode is enabled, False otherwise.
    """
    if debug_enabled():
        sys.stderr.write("[QUERYLOG] Debug mode enabled\n")
        return True
    return False


def debug_log(message: str, **kwargs: Any) -> None:
    """
    Prints a debug message to stderr if debug mode is enabled.

    Args:
        message: The debug message to print.
        **kwargs: Additional key-value pairs to print for context.
    """
    if debug_enabled():
        sys.stderr.write(f"[DEBUG] {message}\n")
        for key, value in kwargs.items():
            sys.stderr.write(f"  {key}: {value}\n")
