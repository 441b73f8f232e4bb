"""
Shared fixtures: temporary git repositories and an in-memory history
"""
import shutil
import sys
import tempfile
from pathlib import Path

import pytest
from git import Actor, Repo

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from genchangelog.core.vcs_models import Commit


class FakeHistoryProvider:
    """History provider backed by a list of commits, newest first"""

    def __init__(self, commits, known_prefixes=None):
        self.commits = list(commits)
        self.known_prefixes = known_prefixes
        self.queries = []

    def ensure_work_tree(self):
        pass

    def is_inside_work_tree(self):
        return True

    def commits_between(self, old, new="HEAD"):
        self.queries.append((old, new))
        hashes = [c.hash for c in self.commits]
        if old is None:
            return hashes
        for index, commit_hash in enumerate(hashes):
            if commit_hash.startswith(old):
                return hashes[:index]
        return hashes

    def get_commit(self, commit_hash):
        return next(c for c in self.commits if c.hash == commit_hash)

    def resolve_unique(self, hash_prefix):
        if self.known_prefixes is not None:
            return hash_prefix in self.known_prefixes
        return sum(1 for c in self.commits if c.hash.startswith(hash_prefix)) == 1


def make_commit(hash, subject="Change something", files=("src/main.c",),
                author="Joe D. Veloper", email="jdv@example.tld", date="2012-01-23"):
    return Commit(hash=hash, author=author, email=email, date=date,
                  subject=subject, changed_files=tuple(files))


@pytest.fixture
def fake_history():
    return FakeHistoryProvider


@pytest.fixture
def temp_repo():
    """Temporary git repository with a committer identity"""
    temp_dir = tempfile.mkdtemp()
    repo = Repo.init(temp_dir)

    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    yield repo, temp_dir

    repo.close()
    shutil.rmtree(temp_dir, ignore_errors=True)


def commit_file(repo, temp_dir, name, content, message,
                author=("Joe D. Veloper", "jdv@example.tld"), when="1327320000 +0000"):
    """Write a file and commit it with a fixed author and date"""
    path = Path(temp_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([str(path)])
    actor = Actor(*author)
    return repo.index.commit(message, author=actor, committer=actor,
                             author_date=when, commit_date=when)
