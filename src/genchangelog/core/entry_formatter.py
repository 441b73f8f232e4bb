"""
Entry Formatter Module - renders one commit as a changelog entry

An entry wrapped at 60 columns looks like

    <TAB>* 42, cafebeef: src/frob.c, src/frob.h: Fix the
    <TAB>frobnicator

followed by a blank line. The file list and the subject words are filled
greedily into lines of at most `line_length` columns, a tab counting as
`tab_width` columns.
"""
import re
from typing import List, Optional, Sequence, Tuple

from .vcs_models import Commit, Stanza
from ..utils.config import ChangelogConfig

# Patch series tag at the start of a subject: "unposted:", "users/123:", "4711:"
XSEQ_PATTERN = re.compile(r'^(unposted|users/\d+|\d+):$')


def split_xseq(subject: str, enabled: bool = True) -> Tuple[Optional[str], List[str]]:
    """
    Split a subject into its X-Seq tag and the remaining words

    Args:
        subject: Commit subject line
        enabled: When False the tag is never extracted

    Returns:
        (tag without the trailing colon or None, subject words)
    """
    words = subject.split()
    if enabled and words:
        match = XSEQ_PATTERN.match(words[0])
        if match:
            return match.group(1), words[1:]
    return None, words


def hash_field(commit_hash: str, xseq: Optional[str], config: ChangelogConfig) -> str:
    """Leading `* ...` field of an entry"""
    if config.disable_hash:
        if xseq:
            return f"* {xseq}:"
        return "*"

    prefix = commit_hash[:config.hash_length]
    if xseq:
        return f"* {xseq}, {prefix}:"
    return f"* {prefix}:"


def wrap_words(
    words: Sequence[str],
    length: int,
    separator: str,
    terminator: str,
    line_length: int,
    tab_width: int,
) -> Tuple[str, int]:
    """
    Greedy line fill

    Every word is preceded by a space. A word that would push the running
    length past `line_length` starts a new tab-indented line instead.

    Args:
        words: Words to place
        length: Running length of the current line
        separator: Appended to every word but the last
        terminator: Appended to the last word
        line_length: Maximum line length
        tab_width: Columns a tab counts for

    Returns:
        (text, running length after the last word)
    """
    parts = []
    last = len(words) - 1

    for index, word in enumerate(words):
        word = word + (terminator if index == last else separator)
        if length + 1 + len(word) > line_length:
            parts.append("\n\t" + word)
            length = tab_width + len(word)
        else:
            parts.append(" " + word)
            length += 1 + len(word)

    return "".join(parts), length


def format_entry(commit: Commit, config: ChangelogConfig) -> str:
    """Render `commit` as an entry, terminated by a blank line"""
    xseq, words = split_xseq(commit.subject, config.use_xseq_prefix)
    field = hash_field(commit.hash, xseq, config)

    length = config.tab_width + len(field)
    files_text, length = wrap_words(
        sorted(commit.changed_files), length, ",", ":",
        config.line_length, config.tab_width,
    )
    subject_text, _ = wrap_words(
        words, length, "", "",
        config.line_length, config.tab_width,
    )

    return "\t" + field + files_text + subject_text + "\n\n"


def format_stanza_header(stanza: Stanza) -> str:
    """Stanza header line followed by a blank line"""
    return stanza.header + "\n\n"
