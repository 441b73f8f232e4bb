"""
Core modules for genchangelog
"""

from .changelog_builder import ChangelogBuilder
from .file_merger import ChangelogFile, infer_old_revision, read_first_stanza
from .git_history import GitHistoryProvider
from .mailbox_applier import MailboxApplier
from .vcs_models import Commit, Stanza, FirstStanza, GenerationResult

__all__ = [
    "ChangelogBuilder",
    "ChangelogFile",
    "infer_old_revision",
    "read_first_stanza",
    "GitHistoryProvider",
    "MailboxApplier",
    "Commit",
    "Stanza",
    "FirstStanza",
    "GenerationResult",
]
