"""
Logging Utility Module

Logging setup and helpers shared by the whole package
"""
import logging
from pathlib import Path
from datetime import datetime
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console


# Console shared by log output and the CLI (stderr keeps --stdout output clean)
console = Console(stderr=True)

# Package logger name
LOGGER_NAME = "genchangelog"


def setup_logger(
    log_level: str = "INFO",
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the package logger

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path

    Returns:
        The configured logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    # The file handler receives DEBUG records whatever the console level is
    logger.setLevel(logging.DEBUG if log_file else getattr(logging, log_level.upper()))

    # Drop handlers from a previous setup
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()

    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False
    )
    rich_handler.setLevel(getattr(logging, log_level.upper()))
    logger.addHandler(rich_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Return a logger below the package logger

    Args:
        name: Child logger name (module name is fine)

    Returns:
        Logger instance
    """
    if name:
        if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
            return logging.getLogger(name)
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


class LogContext:
    """Logs start, completion and failure of an operation"""

    def __init__(self, operation: str, logger: Optional[logging.Logger] = None):
        """
        Args:
            operation: Operation name
            logger: Logger to use (package logger by default)
        """
        self.operation = operation
        self.logger = logger or get_logger()
        self.start_time = None

    def __enter__(self):
        self.start_time = datetime.now()
        self.logger.info(f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        elapsed_time = (datetime.now() - self.start_time).total_seconds()

        if exc_type is None:
            self.logger.info(
                f"Completed {self.operation} in {elapsed_time:.2f} seconds"
            )
        else:
            self.logger.error(
                f"Failed {self.operation} after {elapsed_time:.2f} seconds: {exc_val}"
            )

        return False  # re-raise


_default_logger = None


def initialize_default_logger(log_level: str = "WARNING"):
    """Initialize the default package logger"""
    global _default_logger
    _default_logger = setup_logger(log_level)
    return _default_logger


# Default logger configured on import
initialize_default_logger()
