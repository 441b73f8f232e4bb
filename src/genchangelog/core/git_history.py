"""
Git History Module - commit queries for changelog generation

Answers the questions the changelog builder asks about a revision range:
which commits it contains, who wrote them and when, which files they
touched and whether an abbreviated hash names exactly one commit.
"""
from pathlib import Path
from typing import List, Optional

import git
from git import Repo

from .vcs_models import Commit
from ..exceptions import HistoryQueryFailure, NotInWorkTreeError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class GitHistoryProvider:
    """Revision history of a git working tree"""

    def __init__(self, repo_path: str = "."):
        """
        Args:
            repo_path: Any path inside the working tree

        Raises:
            NotInWorkTreeError: `repo_path` is not inside a git working tree
        """
        self.repo_path = Path(repo_path).resolve()
        self._repo: Optional[Repo] = None
        self._initialize_repo()

    def _initialize_repo(self) -> None:
        try:
            self._repo = Repo(self.repo_path, search_parent_directories=True)
        except (git.InvalidGitRepositoryError, git.NoSuchPathError):
            raise NotInWorkTreeError(
                f"Not inside a git working tree: {self.repo_path}",
                details={"path": str(self.repo_path)},
            )
        logger.debug(f"Using repository at {self._repo.working_tree_dir or self._repo.git_dir}")

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            self._initialize_repo()
        return self._repo

    @property
    def work_tree(self) -> Path:
        """Top level directory of the working tree"""
        if self.repo.bare or not self.repo.working_tree_dir:
            raise NotInWorkTreeError(f"Repository at {self.repo.git_dir} has no working tree")
        return Path(self.repo.working_tree_dir)

    def run_git(self, command: str, *args: str) -> str:
        """Run a git subcommand once; any failure is fatal"""
        try:
            return getattr(self.repo.git, command)(*args)
        except git.GitCommandError as e:
            logger.error(f"Git command error: {e}")
            raise HistoryQueryFailure(
                f"git {command.replace('_', '-')} failed with status {e.status}",
                command=" ".join(str(part) for part in e.command),
                details={"stderr": (e.stderr or "").strip()},
            ) from e

    def is_inside_work_tree(self) -> bool:
        try:
            return self.repo.git.rev_parse("--is-inside-work-tree").strip() == "true"
        except git.GitCommandError:
            return False

    def ensure_work_tree(self) -> None:
        """Raise NotInWorkTreeError unless inside a working tree"""
        if not self.is_inside_work_tree():
            raise NotInWorkTreeError(f"Not inside a git working tree: {self.repo_path}")

    def commits_between(self, old: Optional[str], new: str = "HEAD") -> List[str]:
        """
        Full hashes of the commits in `old..new`, newest first

        Args:
            old: Exclusive lower boundary; None means the whole history
            new: Inclusive upper boundary

        Returns:
            Commit hashes in log order
        """
        rev_range = f"{old}..{new}" if old else new
        output = self.run_git("rev_list", rev_range)
        hashes = [line.strip() for line in output.splitlines() if line.strip()]
        logger.info(f"Found {len(hashes)} commit(s) in {rev_range}")
        return hashes

    def commit_metadata(self, commit_hash: str) -> dict:
        """Author, email, short author date and subject of a commit"""
        output = self.run_git(
            "show", "-s", "--date=short", "--format=%an%x00%ae%x00%ad%x00%s", commit_hash
        )
        parts = output.split("\x00")
        if len(parts) != 4:
            raise HistoryQueryFailure(
                f"Unexpected metadata for commit {commit_hash}",
                details={"output": output},
            )
        author, email, date, subject = parts
        return {"author": author, "email": email, "date": date, "subject": subject}

    def changed_files(self, commit_hash: str) -> List[str]:
        """Paths touched by a commit, compared with its first parent"""
        output = self.run_git(
            "diff_tree", "-z", "--no-commit-id", "--name-only", "-r", "--root", commit_hash
        )
        return [path for path in output.split("\x00") if path]

    def get_commit(self, commit_hash: str) -> Commit:
        """Metadata and sorted file list of a commit as a Commit"""
        metadata = self.commit_metadata(commit_hash)
        return Commit(
            hash=commit_hash,
            changed_files=tuple(sorted(self.changed_files(commit_hash))),
            **metadata,
        )

    def resolve_unique(self, hash_prefix: str) -> bool:
        """True when `hash_prefix` names exactly one existing commit"""
        try:
            self.repo.git.rev_parse("--verify", "--quiet", f"{hash_prefix}^{{commit}}")
        except git.GitCommandError:
            logger.debug(f"{hash_prefix} does not resolve to a unique commit")
            return False
        return True

    def head(self) -> str:
        """Full hash of HEAD"""
        return self.run_git("rev_parse", "HEAD").strip()
