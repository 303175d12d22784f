"""
mDNS Responder Logging Module

This module provides structured logging for the responder, with console and
optional rotating JSON file output.
"""

from .logger import (
    StructuredLogger,
    get_logger,
    log_exception,
    setup_logging,
)

__all__ = [
    "StructuredLogger",
    "setup_logging",
    "get_logger",
    "log_exception",
]
