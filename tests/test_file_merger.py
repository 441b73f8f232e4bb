"""
ChangelogFile and splice unit tests
"""
import io
from pathlib import Path

import pytest

from genchangelog.core.changelog_builder import ChangelogBuilder
from genchangelog.core.file_merger import (
    ChangelogFile,
    find_latest_hash,
    infer_old_revision,
    parse_stanza_header,
    read_first_stanza,
    splice_old_changelog,
    trim_trailing_blank_line,
)
from genchangelog.core.vcs_models import Stanza
from genchangelog.exceptions import AmbiguousRevisionError, ChangelogIOError, HistoryQueryFailure
from genchangelog.utils.config import ChangelogConfig

from conftest import make_commit

OLD_CHANGELOG = (
    "2012-01-23  Joe D. Veloper  <jdv@example.tld>\n"
    "\n"
    "\t* 22222222: b.c: Second change\n"
    "\n"
    "\t* 11111111: a.c: First change\n"
    "\n"
    "2012-01-20  Jane Hacker  <jane@example.tld>\n"
    "\n"
    "\t* 00000000: README: Initial import\n"
)


@pytest.fixture
def old_changelog(tmp_path):
    path = tmp_path / "ChangeLog"
    path.write_text(OLD_CHANGELOG)
    return path


class TestReadFirstStanza:
    """Top stanza capture"""

    def test_parse_header(self):
        assert parse_stanza_header("2012-01-23  Joe D. Veloper  <jdv@example.tld>\n") == \
            Stanza(date="2012-01-23", author="Joe D. Veloper", email="jdv@example.tld")
        assert parse_stanza_header("\t* 11111111: a.c: x\n") is None

    def test_first_stanza(self, old_changelog):
        first = read_first_stanza(old_changelog)

        assert first.stanza == Stanza(date="2012-01-23", author="Joe D. Veloper", email="jdv@example.tld")
        assert first.header_lines == ["2012-01-23  Joe D. Veloper  <jdv@example.tld>\n", "\n"]
        assert first.body_lines == [
            "\t* 22222222: b.c: Second change\n",
            "\n",
            "\t* 11111111: a.c: First change\n",
            "\n",
        ]

    def test_no_stanza_at_top(self, tmp_path):
        path = tmp_path / "ChangeLog"
        path.write_text("Hand written notes\n")

        assert read_first_stanza(path) is None

    def test_empty_file(self, tmp_path):
        path = tmp_path / "ChangeLog"
        path.write_text("")

        assert read_first_stanza(path) is None


class TestSplice:
    """Copying the old changelog behind the new entries"""

    def test_copy_verbatim(self, old_changelog):
        out = io.StringIO()
        splice_old_changelog(out, old_changelog, used_preload=False)
        assert out.getvalue() == OLD_CHANGELOG

    def test_skip_consumed_top_stanza(self, old_changelog):
        out = io.StringIO()
        splice_old_changelog(out, old_changelog, used_preload=True)
        assert out.getvalue() == (
            "2012-01-20  Jane Hacker  <jane@example.tld>\n"
            "\n"
            "\t* 00000000: README: Initial import\n"
        )

    def test_skip_single_stanza_file(self, tmp_path):
        path = tmp_path / "ChangeLog"
        path.write_text("2012-01-23  Joe D. Veloper  <jdv@example.tld>\n\n\t* 11111111: a.c: x\n")
        out = io.StringIO()

        splice_old_changelog(out, path, used_preload=True)

        assert out.getvalue() == ""

    def test_trim(self):
        assert trim_trailing_blank_line("a\n\n") == "a\n"
        assert trim_trailing_blank_line("a\n") == "a\n"
        assert trim_trailing_blank_line("") == ""


class TestOldRevision:
    """Old boundary inferred from the changelog"""

    def test_find_latest_hash(self, old_changelog):
        assert find_latest_hash(old_changelog) == "22222222"

    def test_find_hash_after_xseq(self, tmp_path):
        path = tmp_path / "ChangeLog"
        path.write_text("2012-01-23  J  <j@x>\n\n\t* users/12, cafebeef: a.c: x\n")

        assert find_latest_hash(path) == "cafebeef"

    def test_no_hash(self, tmp_path, fake_history):
        path = tmp_path / "ChangeLog"
        path.write_text("2012-01-23  J  <j@x>\n\n\t* a.c: no hashes here\n")

        with pytest.raises(AmbiguousRevisionError):
            infer_old_revision(path, fake_history([]))

    def test_ambiguous_hash_is_fatal(self, old_changelog, fake_history):
        provider = fake_history([], known_prefixes=set())

        with pytest.raises(AmbiguousRevisionError) as excinfo:
            infer_old_revision(old_changelog, provider)
        assert excinfo.value.revision == "22222222"

    def test_valid_hash(self, old_changelog, fake_history):
        provider = fake_history([], known_prefixes={"22222222"})

        assert infer_old_revision(old_changelog, provider) == "22222222"


class TestChangelogFile:
    """Complete in-place updates"""

    def test_fresh_file_is_trimmed(self, tmp_path, fake_history):
        provider = fake_history([make_commit("a" * 16, subject="Start")])
        changelog = ChangelogFile(tmp_path / "ChangeLog")

        result = changelog.update(ChangelogBuilder(ChangelogConfig(), provider), initial=True)

        assert result.commit_count == 1
        assert changelog.path.read_text() == (
            "2012-01-23  Joe D. Veloper  <jdv@example.tld>\n"
            "\n"
            "\t* aaaaaaaa: src/main.c: Start\n"
        )
        assert not changelog.backup_path.exists()

    def test_update_prepends_and_removes_backup(self, old_changelog, fake_history):
        commits = [
            make_commit("3333333333333333", subject="Third change", author="Jane Hacker",
                        email="jane@example.tld", date="2012-01-24"),
            make_commit("2222222222222222"),
        ]
        provider = fake_history(commits)
        changelog = ChangelogFile(old_changelog)

        changelog.update(ChangelogBuilder(ChangelogConfig(), provider))

        assert provider.queries == [("22222222", "HEAD")]
        assert old_changelog.read_text() == (
            "2012-01-24  Jane Hacker  <jane@example.tld>\n"
            "\n"
            "\t* 33333333: src/main.c: Third change\n"
            "\n"
            + OLD_CHANGELOG
        )
        assert not changelog.backup_path.exists()

    def test_update_with_preload(self, old_changelog, fake_history):
        commits = [make_commit("3333333333333333", subject="Third change"),
                   make_commit("2222222222222222")]
        provider = fake_history(commits)
        config = ChangelogConfig(preload_top_stanza=True)

        result = ChangelogFile(old_changelog).update(ChangelogBuilder(config, provider))

        assert result.used_preload is True
        assert old_changelog.read_text() == (
            "2012-01-23  Joe D. Veloper  <jdv@example.tld>\n"
            "\n"
            "\t* 33333333: src/main.c: Third change\n"
            "\n"
            + OLD_CHANGELOG.split("\n", 2)[2]
        )

    def test_missing_changelog_needs_old_revision(self, tmp_path, fake_history):
        changelog = ChangelogFile(tmp_path / "ChangeLog")

        with pytest.raises(ChangelogIOError):
            changelog.update(ChangelogBuilder(ChangelogConfig(), fake_history([])))

    def test_existing_backup_is_not_overwritten(self, old_changelog, fake_history):
        changelog = ChangelogFile(old_changelog)
        changelog.backup_path.write_text("precious\n")

        with pytest.raises(ChangelogIOError):
            changelog.update(ChangelogBuilder(ChangelogConfig(), fake_history([])), old_rev="x")

        assert changelog.backup_path.read_text() == "precious\n"
        assert old_changelog.read_text() == OLD_CHANGELOG

    def test_failed_generation_restores_changelog(self, old_changelog, fake_history):
        provider = fake_history([])

        def broken(old, new="HEAD"):
            raise HistoryQueryFailure("git rev-list failed with status 128")

        provider.commits_between = broken
        changelog = ChangelogFile(old_changelog)

        with pytest.raises(HistoryQueryFailure):
            changelog.update(ChangelogBuilder(ChangelogConfig(), provider), old_rev="x")

        assert old_changelog.read_text() == OLD_CHANGELOG
        assert not changelog.backup_path.exists()

    def test_empty_range_keeps_file(self, old_changelog, fake_history):
        provider = fake_history([make_commit("2222222222222222")])

        result = ChangelogFile(old_changelog).update(ChangelogBuilder(ChangelogConfig(), provider))

        assert result.commit_count == 0
        assert old_changelog.read_text() == OLD_CHANGELOG

    @pytest.mark.parametrize("failure", [
        OSError(28, "No space left on device"),
        ChangelogIOError("Cannot read ChangeLog.gen", "ChangeLog.gen"),
    ])
    def test_failed_write_keeps_backup(self, old_changelog, fake_history, monkeypatch, failure):
        def broken_splice(out, old_path, used_preload):
            raise failure

        monkeypatch.setattr("genchangelog.core.file_merger.splice_old_changelog", broken_splice)
        provider = fake_history([make_commit("3333333333333333", subject="Third change")])
        changelog = ChangelogFile(old_changelog)

        with pytest.raises(ChangelogIOError) as excinfo:
            changelog.update(ChangelogBuilder(ChangelogConfig(), provider), old_rev="x")

        assert changelog.backup_path.exists()
        assert changelog.backup_path.read_text() == OLD_CHANGELOG
        assert str(changelog.backup_path) in str(excinfo.value)
