"""
genchangelog

Classic ChangeLog files generated from git history
"""

__version__ = "0.1.0"
__author__ = "genchangelog developers"

# Core modules - history access and changelog generation
from .core.git_history import GitHistoryProvider
from .core.changelog_builder import ChangelogBuilder
from .core.file_merger import ChangelogFile
from .core.mailbox_applier import MailboxApplier

# Core modules - Data models
from .core.vcs_models import Commit, Stanza, FirstStanza, GenerationResult

# Utility modules - Configuration, errors and logging
from .exceptions import (
    ChangelogError,
    ConfigError,
    HistoryQueryFailure,
    NotInWorkTreeError,
    AmbiguousRevisionError,
    ChangelogIOError,
    MailboxError,
)
from .utils.config import ChangelogConfig
from .utils.logger import get_logger, setup_logger, LogContext

__all__ = [
    "GitHistoryProvider",
    "ChangelogBuilder",
    "ChangelogFile",
    "MailboxApplier",

    "Commit",
    "Stanza",
    "FirstStanza",
    "GenerationResult",

    "ChangelogError",
    "ConfigError",
    "HistoryQueryFailure",
    "NotInWorkTreeError",
    "AmbiguousRevisionError",
    "ChangelogIOError",
    "MailboxError",

    "ChangelogConfig",
    "get_logger",
    "setup_logger",
    "LogContext",

    "update_changelog",
]


def update_changelog(
    repo_path: str = ".",
    new_rev: str = "HEAD",
    old_rev: str = None,
    initial: bool = False,
    config: ChangelogConfig = None,
) -> GenerationResult:
    """
    Regenerate the changelog of a repository

    Args:
        repo_path: Path inside the working tree
        new_rev: Newest revision to include
        old_rev: Exclusive lower boundary (inferred from the changelog when None)
        initial: Initial import of the whole history
        config: Settings (loaded from the environment and config file when None)

    Returns:
        GenerationResult of the run
    """
    provider = GitHistoryProvider(repo_path)
    config = config or ChangelogConfig.load(search_dir=str(provider.work_tree))
    changelog = ChangelogFile(provider.work_tree / config.changelog_path)
    return changelog.update(ChangelogBuilder(config, provider), new_rev, old_rev, initial)
