"""
Changelog Builder Module - renders a revision range as changelog stanzas

Commits are visited newest first. Consecutive commits sharing author,
email and date are grouped under one stanza header; only the immediately
preceding stanza is ever compared, so the same author and date may show
up again further down as a separate stanza.
"""
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional, Tuple

from .entry_formatter import format_entry, format_stanza_header
from .vcs_models import Commit, EMPTY_STANZA, FirstStanza, GenerationResult
from ..utils.config import ChangelogConfig
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Date used by the local-time option, fixed for the whole process
RUN_DATE = date.today().isoformat()


class ChangelogBuilder:
    """Builds the text of new changelog entries"""

    def __init__(self, config: ChangelogConfig, provider=None, today: Optional[str] = None):
        """
        Args:
            config: Formatting settings
            provider: History provider used by generate() (see GitHistoryProvider)
            today: Date replacing commit dates when local time is enabled
        """
        self.config = config
        self.provider = provider
        self.today = today or RUN_DATE

    def generate(
        self,
        new_rev: str = "HEAD",
        old_rev: Optional[str] = None,
        first_stanza: Optional[FirstStanza] = None,
    ) -> GenerationResult:
        """
        Render the commits in `old_rev..new_rev`

        Args:
            new_rev: Inclusive upper boundary
            old_rev: Exclusive lower boundary, None for an initial import
            first_stanza: Top stanza of the previous changelog to merge into

        Returns:
            GenerationResult with the text and whether the preload was used
        """
        if self.provider is None:
            raise ValueError("ChangelogBuilder.generate needs a history provider")

        hashes = self.provider.commits_between(old_rev, new_rev)
        commits = (self.provider.get_commit(commit_hash) for commit_hash in hashes)
        result = self.render(commits, first_stanza)
        result.old_revision = old_rev
        return result

    def render(
        self,
        commits: Iterable[Commit],
        first_stanza: Optional[FirstStanza] = None,
    ) -> GenerationResult:
        """Render already fetched commits, newest first"""
        parts: List[str] = []
        last = first_stanza.stanza if first_stanza else EMPTY_STANZA
        stanza_count = 0
        position = 0

        for position, commit in enumerate(commits, 1):
            if self.config.use_local_date:
                commit = replace(commit, date=self.today)

            stanza = commit.stanza
            if stanza != last:
                parts.append(format_stanza_header(stanza))
                stanza_count += 1
            elif position == 1 and first_stanza is not None:
                parts.append("".join(first_stanza.header_lines))
                stanza_count += 1
            last = stanza

            logger.debug(f"Rendering {commit.hash[:12]} under {stanza.header}")
            parts.append(format_entry(commit, self.config))

        used_preload = self._closes_preloaded_stanza(position, last, first_stanza)
        if used_preload:
            # The old top stanza is older than every generated entry
            parts.append("".join(first_stanza.body_lines))

        logger.info(f"Rendered {position} entr{'y' if position == 1 else 'ies'} in {stanza_count} stanza(s)")
        return GenerationResult(
            text="".join(parts),
            used_preload=used_preload,
            commit_count=position,
            stanza_count=stanza_count,
        )

    @staticmethod
    def _closes_preloaded_stanza(count, last, first_stanza) -> bool:
        return first_stanza is not None and count > 0 and last == first_stanza.stanza


def render_commits(
    commits: Iterable[Commit],
    config: ChangelogConfig,
    first_stanza: Optional[FirstStanza] = None,
) -> Tuple[str, bool]:
    """Shortcut returning (text, used_preload)"""
    result = ChangelogBuilder(config).render(commits, first_stanza)
    return result.text, result.used_preload
