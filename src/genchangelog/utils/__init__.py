"""
Utility modules for genchangelog
"""

from .config import ChangelogConfig
from .logger import get_logger, setup_logger, LogContext

__all__ = [
    "ChangelogConfig",
    "get_logger",
    "setup_logger",
    "LogContext",
]
