"""
Structured Logging Framework

This module provides the core logging infrastructure using structlog, with
human-readable console output and an optional rotating JSON log file.
"""

import json
import logging
import logging.handlers
import sys
import traceback
from pathlib import Path
from typing import Optional

import structlog

from ..config.schema import LoggingConfig


class DetailedConsoleFormatter(logging.Formatter):
    """Custom formatter for console output with detailed error tracebacks."""

    def format(self, record):
        # Base format
        formatted = super().format(record)

        # Add detailed traceback for errors
        if record.exc_info and not record.exc_text:
            tb_lines = traceback.format_exception(*record.exc_info)
            traceback_str = "".join(tb_lines)
            formatted += f"\n{traceback_str}"

        return formatted

    def formatException(self, ei):
        # Tracebacks are appended by format()
        return ""


class JSONFileFormatter(logging.Formatter):
    """One JSON object per line for the rotating log file."""

    def format(self, record):
        log_dict = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add any extra structured data
        if hasattr(record, "structured_data"):
            log_dict.update(record.structured_data)

        # Add exception info if present
        if record.exc_info:
            log_dict["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_dict, default=str)


class StructuredLogger:
    """Structured logger using structlog on top of stdlib logging."""

    def __init__(self, config: LoggingConfig):
        """Initialize structured logger.

        Args:
            config: Logging configuration
        """
        self.config = config
        self._configured = False
        self.logger = None
        self._file_handler: Optional[logging.Handler] = None

    def configure(self) -> None:
        """Configure stdlib handlers and structlog processors."""
        if self._configured:
            return

        # Clear any existing handlers
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        # Set root logger level
        log_level = getattr(logging, self.config.level.upper())
        root_logger.setLevel(log_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(log_level)

        if self.config.format == "simple":
            console_formatter = logging.Formatter(fmt="[%(levelname)s] %(message)s")
        else:
            console_formatter = DetailedConsoleFormatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

        if self.config.file:
            self._setup_file_logging(root_logger, log_level)

        structlog.configure(
            processors=self._get_processors(),
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self._configured = True
        self.logger = structlog.get_logger("mdns_responder")

    def _get_processors(self) -> list:
        """Build the structlog processor chain for the configured format."""
        processors = [
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
        ]

        if self.config.format == "structured":
            processors.append(structlog.processors.TimeStamper(fmt="iso"))
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer(colors=False))

        return processors

    def _setup_file_logging(self, root_logger: logging.Logger, log_level: int) -> None:
        """Setup rotating file logging with JSON format."""
        # Ensure log directory exists
        log_path = Path(self.config.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=self.config.file,
            maxBytes=self.config.max_size_mb * 1024 * 1024,
            backupCount=self.config.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(JSONFileFormatter())
        root_logger.addHandler(file_handler)

        self._file_handler = file_handler

    def get_logger(self, name: str = "mdns_responder") -> structlog.BoundLogger:
        """Get a structured logger instance.

        Args:
            name: Logger name

        Returns:
            Structured logger instance
        """
        if not self._configured:
            self.configure()

        return structlog.get_logger(name)


# Global logger instance
_logger_instance: Optional[StructuredLogger] = None


def setup_logging(config: LoggingConfig) -> None:
    """Setup global logging configuration.

    Args:
        config: Logging configuration
    """
    global _logger_instance
    _logger_instance = StructuredLogger(config)
    _logger_instance.configure()


def get_logger(name: str = "mdns_responder") -> structlog.BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name

    Returns:
        Structured logger instance

    Raises:
        RuntimeError: If logging hasn't been configured
    """
    if _logger_instance is None:
        raise RuntimeError("Logging not configured. Call setup_logging() first.")

    return _logger_instance.get_logger(name)


def log_exception(
    logger: structlog.BoundLogger, message: str, exc: Exception = None
) -> None:
    """Log an exception with detailed traceback information.

    Args:
        logger: Logger instance
        message: Log message
        exc: Exception instance (optional, will use current exception if None)
    """
    if exc is None:
        # Get current exception info
        exc = sys.exc_info()[1]

    if exc is not None:
        logger.error(
            message,
            exception_type=type(exc).__name__,
            exception_message=str(exc),
            exc_info=(type(exc), exc, exc.__traceback__),
        )
    else:
        logger.error(message)
