"""
Mailbox Applier Module - applies mailed patches and keeps the changelog current

Every message of a mailbox is handed to `git am`. After each applied
patch the changelog is regenerated for the new commit and, unless told
otherwise, folded into that commit with `git commit --amend`.
"""
import mailbox
import os
import tempfile
from pathlib import Path
from typing import Iterator, List, Union

from .changelog_builder import ChangelogBuilder
from .file_merger import ChangelogFile
from .git_history import GitHistoryProvider
from ..exceptions import HistoryQueryFailure, MailboxError
from ..utils.config import ChangelogConfig
from ..utils.logger import get_logger, LogContext

logger = get_logger(__name__)

# Separator line git format-patch writes in front of every mail
UNIX_FROM = b"From 0000000000000000000000000000000000000000 Mon Sep 17 00:00:00 2001\n"


def iter_messages(mailbox_path: Union[str, Path]) -> Iterator[bytes]:
    """
    Raw messages of a Maildir (directory) or mbox (file), in mailbox order

    Raises:
        MailboxError: The mailbox does not exist or cannot be read
    """
    path = Path(mailbox_path)
    if not path.exists():
        raise MailboxError(f"Mailbox not found: {path}")

    try:
        if path.is_dir():
            box = mailbox.Maildir(str(path), factory=None, create=False)
            # unique names start with the delivery time
            keys = sorted(box.keys())
            read = box.get_bytes
        else:
            box = mailbox.mbox(str(path), create=False)
            keys = list(box.keys())
            read = lambda key: box.get_bytes(key, from_=True)
    except (OSError, mailbox.Error) as e:
        raise MailboxError(f"Cannot open mailbox {path}", {"error": str(e)}) from e

    try:
        for key in keys:
            yield read(key)
    finally:
        box.close()


class MailboxApplier:
    """Applies a mailbox of patches on top of HEAD"""

    def __init__(self, provider: GitHistoryProvider, config: ChangelogConfig, amend: bool = True):
        """
        Args:
            provider: Repository the patches go into
            config: Changelog settings used for regeneration
            amend: Fold each changelog update into the applied commit
        """
        self.provider = provider
        self.config = config
        self.amend = amend
        self.changelog = ChangelogFile(provider.work_tree / config.changelog_path)

        if amend and not config.disable_hash:
            logger.warning(
                "Amended commits get new hashes; the changelog keeps the pre-amend ones, "
                "so later runs need --old or the disable-hash option"
            )

    def apply(self, mailbox_path: Union[str, Path]) -> List[str]:
        """
        Apply every patch in the mailbox

        Returns:
            Hashes of the resulting commits, oldest first

        Raises:
            MailboxError: A patch does not apply (the failed `git am` is aborted)
        """
        self.provider.ensure_work_tree()
        applied = []

        with LogContext(f"applying {mailbox_path}", logger):
            for number, message in enumerate(iter_messages(mailbox_path), 1):
                previous_head = self.provider.head()
                self._apply_message(message, number)
                self._update_changelog(previous_head)
                applied.append(self.provider.head())
                logger.info(f"Applied patch {number} as {applied[-1][:12]}")

        return applied

    def _apply_message(self, message: bytes, number: int) -> None:
        fd, patch_path = tempfile.mkstemp(prefix="genchangelog-", suffix=".patch")
        try:
            with os.fdopen(fd, 'wb') as patch:
                if not message.startswith(b"From "):
                    patch.write(UNIX_FROM)
                patch.write(message)

            try:
                self.provider.run_git("am", patch_path)
            except HistoryQueryFailure as e:
                self.provider.run_git("am", "--abort")
                raise MailboxError(f"Patch {number} does not apply", e.details) from e
        finally:
            os.remove(patch_path)

    def _update_changelog(self, previous_head: str) -> None:
        builder = ChangelogBuilder(self.config, self.provider)
        self.changelog.update(builder, new_rev="HEAD", old_rev=previous_head)

        if self.amend:
            self.provider.run_git("add", "--", str(self.changelog.path))
            self.provider.run_git("commit", "--amend", "--no-edit", "--quiet")
