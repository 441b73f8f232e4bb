"""genchangelog exception hierarchy."""

from typing import Any, Dict, Optional


class ChangelogError(Exception):
    """Base exception for all genchangelog errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigError(ChangelogError):
    """Configuration file cannot be read."""

    pass


class HistoryQueryFailure(ChangelogError):
    """A history query against the repository failed."""

    def __init__(
        self, message: str, command: Optional[str] = None, details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, details)
        self.command = command


class NotInWorkTreeError(HistoryQueryFailure):
    """Operation was started outside a git working tree."""

    pass


class AmbiguousRevisionError(ChangelogError):
    """A revision does not resolve to exactly one commit."""

    def __init__(self, message: str, revision: str) -> None:
        super().__init__(message, {"revision": revision})
        self.revision = revision


class ChangelogIOError(ChangelogError):
    """The changelog or its backup cannot be read, renamed or written."""

    def __init__(self, message: str, path: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details)
        self.path = path


class MailboxError(ChangelogError):
    """A mailbox cannot be opened or one of its patches does not apply."""

    pass
