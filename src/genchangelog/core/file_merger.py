"""
Changelog File Module - updates a changelog file in place

The previous changelog is renamed to `<file>.gen`, the new entries are
written to `<file>` and the rest of the old file is appended before the
backup is removed. A run that dies half way leaves the backup behind.
"""
import os
import re
from pathlib import Path
from typing import IO, List, Optional, Union

from .changelog_builder import ChangelogBuilder
from .vcs_models import FirstStanza, GenerationResult, Stanza
from ..exceptions import AmbiguousRevisionError, ChangelogIOError
from ..utils.logger import get_logger, LogContext

logger = get_logger(__name__)

BACKUP_SUFFIX = ".gen"

# "\t* cafebeef:" optionally with an X-Seq tag: "\t* 42, cafebeef:"
ENTRY_HASH_PATTERN = re.compile(r'^\t\* (?:(?:unposted|users/\d+|\d+), )?([0-9a-fA-F]+):')
HEADER_PATTERN = re.compile(r'^(\S+)  (.+?)  <([^>]*)>$')
STANZA_START = re.compile(r'^[0-9]')

PathLike = Union[str, Path]


def starts_stanza(line: str) -> bool:
    return bool(STANZA_START.match(line))


def _read_lines(path: Path) -> List[str]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return f.readlines()
    except OSError as e:
        raise ChangelogIOError(f"Cannot read {path}", str(path), {"error": str(e)}) from e


def parse_stanza_header(line: str) -> Optional[Stanza]:
    """Stanza of a `DATE  AUTHOR  <EMAIL>` line, None if it is not one"""
    match = HEADER_PATTERN.match(line.rstrip("\r\n"))
    if not match:
        return None
    date, author, email = match.groups()
    return Stanza(date=date, author=author, email=email)


def read_first_stanza(path: PathLike) -> Optional[FirstStanza]:
    """
    Read the top stanza of an existing changelog

    Returns:
        FirstStanza with the header line (and the blank line after it) and
        every line up to the next stanza header, or None when the file does
        not start with a stanza header
    """
    lines = _read_lines(Path(path))
    if not lines or not starts_stanza(lines[0]):
        return None

    stanza = parse_stanza_header(lines[0])
    if stanza is None:
        logger.warning(f"Cannot parse stanza header in {path}: {lines[0].rstrip()!r}")
        return None

    header_end = 2 if len(lines) > 1 and not lines[1].strip() else 1
    body_end = header_end
    while body_end < len(lines) and not starts_stanza(lines[body_end]):
        body_end += 1

    return FirstStanza(
        stanza=stanza,
        header_lines=lines[:header_end],
        body_lines=lines[header_end:body_end],
    )


def find_latest_hash(path: PathLike) -> Optional[str]:
    """Hash of the first entry in a changelog that carries one"""
    for line in _read_lines(Path(path)):
        match = ENTRY_HASH_PATTERN.match(line)
        if match:
            return match.group(1)
    return None


def infer_old_revision(path: PathLike, provider) -> str:
    """
    Old revision boundary recorded in an existing changelog

    Raises:
        ChangelogIOError: The changelog cannot be read
        AmbiguousRevisionError: No hash found, or it does not name exactly
            one commit
    """
    candidate = find_latest_hash(path)
    if candidate is None:
        raise AmbiguousRevisionError(f"No entry hash found in {path}", revision="")

    if not provider.resolve_unique(candidate):
        raise AmbiguousRevisionError(
            f"Revision {candidate} from {path} is ambiguous or does not exist", revision=candidate
        )

    logger.info(f"Old revision taken from {path}: {candidate}")
    return candidate


def splice_old_changelog(out: IO[str], old_path: PathLike, used_preload: bool) -> None:
    """
    Append the old changelog to `out`

    With `used_preload` the old top stanza (first line, then everything up
    to the next stanza header) has already been written and is skipped.
    """
    skipping = used_preload
    first = True

    try:
        with open(old_path, 'r', encoding='utf-8') as old:
            for line in old:
                if skipping:
                    if first:
                        first = False
                        continue
                    if not starts_stanza(line):
                        continue
                    skipping = False
                out.write(line)
    except OSError as e:
        raise ChangelogIOError(f"Cannot read {old_path}", str(old_path), {"error": str(e)}) from e


def trim_trailing_blank_line(text: str) -> str:
    if text.endswith("\n\n"):
        return text[:-1]
    return text


class ChangelogFile:
    """A changelog file and its `.gen` backup"""

    def __init__(self, path: PathLike):
        self.path = Path(path)
        self.backup_path = self.path.with_name(self.path.name + BACKUP_SUFFIX)

    def infer_old_revision(self, provider) -> str:
        if not self.path.exists():
            raise ChangelogIOError(
                f"{self.path} does not exist; give an old revision or run an initial import",
                str(self.path),
            )
        return infer_old_revision(self.path, provider)

    def move_aside(self) -> bool:
        """
        Rename the changelog to its backup name

        Returns:
            True if there was a changelog to move
        """
        if self.backup_path.exists():
            raise ChangelogIOError(
                f"Backup {self.backup_path} already exists; recover or remove it first",
                str(self.backup_path),
            )
        if not self.path.exists():
            return False

        try:
            os.rename(self.path, self.backup_path)
        except OSError as e:
            raise ChangelogIOError(
                f"Cannot move {self.path} to {self.backup_path}", str(self.path), {"error": str(e)}
            ) from e
        logger.debug(f"Moved {self.path} to {self.backup_path}")
        return True

    def restore(self) -> None:
        """Put the backup back in place"""
        try:
            os.replace(self.backup_path, self.path)
        except OSError as e:
            raise ChangelogIOError(
                f"Cannot restore {self.path} from {self.backup_path}",
                str(self.backup_path),
                {"error": str(e)},
            ) from e
        logger.info(f"Restored {self.path} from {self.backup_path}")

    def write(self, result: GenerationResult, moved: bool) -> None:
        """Write new entries, then what remains of the backup, then drop the backup"""
        text = result.text if moved else trim_trailing_blank_line(result.text)

        try:
            with open(self.path, 'w', encoding='utf-8') as out:
                out.write(text)
                if moved:
                    splice_old_changelog(out, self.backup_path, result.used_preload)
        except OSError as e:
            raise ChangelogIOError(
                f"Cannot write {self.path}"
                + (f"; previous changelog kept in {self.backup_path}" if moved else ""),
                str(self.path),
                {"error": str(e)},
            ) from e
        except ChangelogIOError as e:
            e.message += f"; previous changelog kept in {self.backup_path}"
            raise

        if moved:
            try:
                os.remove(self.backup_path)
            except OSError as e:
                raise ChangelogIOError(
                    f"Cannot remove {self.backup_path}", str(self.backup_path), {"error": str(e)}
                ) from e

    def update(
        self,
        builder: ChangelogBuilder,
        new_rev: str = "HEAD",
        old_rev: Optional[str] = None,
        initial: bool = False,
    ) -> GenerationResult:
        """
        Regenerate the changelog for `old_rev..new_rev`

        Args:
            builder: Builder with a history provider
            new_rev: Inclusive upper boundary
            old_rev: Exclusive lower boundary; inferred from the file when
                None and this is not an initial import
            initial: Initial import, the whole history up to `new_rev`

        Returns:
            GenerationResult of the run
        """
        provider = builder.provider
        provider.ensure_work_tree()

        with LogContext(f"updating {self.path}", logger):
            if old_rev is None and not initial:
                old_rev = self.infer_old_revision(provider)

            moved = self.move_aside()
            try:
                first_stanza = None
                if moved and builder.config.preload_top_stanza:
                    first_stanza = read_first_stanza(self.backup_path)
                result = builder.generate(new_rev, old_rev, first_stanza)
            except Exception:
                if moved:
                    self.restore()
                raise

            self.write(result, moved)
            return result
