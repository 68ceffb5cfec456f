"""Tests for the git adapter."""

from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from tagsmith.exceptions import ConfigValidationError, GitError
from tagsmith.vcs.git import GitRepository


def _git(responses: dict[str, str]):
    """Fake subprocess.run answering by git subcommand."""

    def run(cmd, **kwargs):
        subcommand = cmd[1]
        if subcommand == "rev-parse" and cmd[2] == "--show-toplevel":
            return MagicMock(stdout="/repo\n")
        if subcommand not in responses:
            raise subprocess.CalledProcessError(1, cmd, stderr=f"unexpected {subcommand}")
        return MagicMock(stdout=responses[subcommand])

    return run


@pytest.fixture
def mock_run():
    with patch("tagsmith.vcs.git.subprocess.run") as run:
        yield run


class TestGitRepository:
    """Tests for GitRepository."""

    def test_toplevel(self, mock_run: MagicMock):
        mock_run.side_effect = _git({})

        repo = GitRepository(Path("/repo/src"))

        assert repo.path == Path("/repo")
        assert mock_run.call_args.kwargs["cwd"] == Path("/repo/src")

    def test_not_a_repository(self, mock_run: MagicMock):
        mock_run.side_effect = subprocess.CalledProcessError(
            128, ["git"], stderr="fatal: not a git repository"
        )

        with pytest.raises(GitError, match="not a git repository"):
            GitRepository(Path("/tmp"))

    def test_git_not_installed(self, mock_run: MagicMock):
        mock_run.side_effect = FileNotFoundError()

        with pytest.raises(GitError, match="git executable not found"):
            GitRepository(Path("/tmp"))

    def test_timeout(self, mock_run: MagicMock):
        mock_run.side_effect = subprocess.TimeoutExpired(["git"], 60)

        with pytest.raises(GitError, match="timed out"):
            GitRepository(Path("/tmp"))

    def test_read_commits(self, mock_run: MagicMock):
        log = (
            "bbb\x1faaa\x1f1767312000\x1ffeat(api): add pagination\n\nBREAKING CHANGE: x\n\x1e\n"
            "aaa\x1f\x1f1767225600\x1finitial commit\n\x1e\n"
        )
        mock_run.side_effect = _git({"rev-parse": "", "log": log})
        repo = GitRepository(Path("/repo"))

        commits = repo.read_commits()

        assert [c.sha for c in commits] == ["bbb", "aaa"]
        assert commits[0].subject == "feat(api): add pagination"
        assert commits[0].body == "BREAKING CHANGE: x"
        assert commits[0].parents == ("aaa",)
        assert commits[0].timestamp == 1767312000
        assert commits[1].parents == ()

    def test_read_commits_keeps_empty_messages(self, mock_run: MagicMock):
        """An empty-message commit stays in the snapshot so its parent is still reachable."""
        log = (
            "ccc\x1fbbb\x1f30\x1ffix: later\n\x1e\n"
            "bbb\x1faaa\x1f20\x1f\n\x1e\n"
            "aaa\x1f\x1f10\x1ffeat: first\n\x1e\n"
        )
        mock_run.side_effect = _git({"rev-parse": "", "log": log})

        commits = GitRepository(Path("/repo")).read_commits()

        assert [c.sha for c in commits] == ["ccc", "bbb", "aaa"]
        assert commits[1].subject == ""
        assert commits[1].parents == ("aaa",)

    def test_read_commits_merge_parents(self, mock_run: MagicMock):
        log = "mmm\x1faaa bbb\x1f10\x1fMerge branch 'topic'\n\x1e\n"
        mock_run.side_effect = _git({"rev-parse": "", "log": log})

        commits = GitRepository(Path("/repo")).read_commits()

        assert commits[0].parents == ("aaa", "bbb")

    def test_read_commits_empty_repository(self, mock_run: MagicMock):
        def run(cmd, **kwargs):
            if cmd[1:3] == ["rev-parse", "--show-toplevel"]:
                return MagicMock(stdout="/repo\n")
            raise subprocess.CalledProcessError(1, cmd, stderr="")

        mock_run.side_effect = run

        assert GitRepository(Path("/repo")).read_commits() == []

    def test_read_tags(self, mock_run: MagicMock):
        refs = (
            "v1.0.0\x1fc1\x1f\x1f100\x1f\n"
            "v1.1.0\x1ftagobj\x1fc2\x1f\x1f200\n"
            "latest\x1fc2\x1f\x1f200\x1f\n"
            "v2.0.0\x1fblob\x1f\x1f\x1f\n"
        )
        mock_run.side_effect = _git({"for-each-ref": refs})
        repo = GitRepository(Path("/repo"))

        tags = repo.read_tags(r"^v\d+\.\d+\.\d+$")

        assert [(t.name, t.commit, t.timestamp) for t in tags] == [
            ("v1.0.0", "c1", 100),
            ("v1.1.0", "c2", 200),
        ]

    def test_read_tags_invalid_pattern(self, mock_run: MagicMock):
        mock_run.side_effect = _git({})
        repo = GitRepository(Path("/repo"))

        with pytest.raises(ConfigValidationError):
            repo.read_tags("v(")

    def test_is_dirty(self, mock_run: MagicMock):
        mock_run.side_effect = _git({"status": " M README.md\n"})

        assert GitRepository(Path("/repo")).is_dirty()

    def test_is_clean(self, mock_run: MagicMock):
        mock_run.side_effect = _git({"status": ""})

        assert not GitRepository(Path("/repo")).is_dirty()

    def test_changed_paths(self, mock_run: MagicMock):
        mock_run.side_effect = _git({"status": " M CHANGELOG.md\nA  docs/notes.md\n"})

        paths = GitRepository(Path("/repo")).changed_paths()

        assert paths == ["CHANGELOG.md", "docs/notes.md"]
        assert mock_run.call_args.args[0] == [
            "git",
            "status",
            "--porcelain",
            "--untracked-files=no",
        ]

    def test_changed_paths_rename(self, mock_run: MagicMock):
        """A rename reports the path it was moved to."""
        mock_run.side_effect = _git({"status": "R  HISTORY.md -> CHANGELOG.md\n"})

        assert GitRepository(Path("/repo")).changed_paths() == ["CHANGELOG.md"]

    def test_commit_paths(self, mock_run: MagicMock):
        mock_run.side_effect = _git({"add": "", "commit": ""})
        repo = GitRepository(Path("/repo"))

        repo.commit_paths([Path("pyproject.toml")], "chore: Updated version.")

        commands = [call.args[0] for call in mock_run.call_args_list[1:]]
        assert commands == [
            ["git", "add", "--", "pyproject.toml"],
            ["git", "commit", "-m", "chore: Updated version."],
        ]

    def test_commit_failure_carries_stderr(self, mock_run: MagicMock):
        mock_run.side_effect = _git({"add": ""})
        repo = GitRepository(Path("/repo"))

        with pytest.raises(GitError) as exc_info:
            repo.commit_paths([Path("a")], "msg")

        assert exc_info.value.stderr == "unexpected commit"
        assert "unexpected commit" in str(exc_info.value)

    def test_create_tag(self, mock_run: MagicMock):
        mock_run.side_effect = _git({"tag": ""})

        GitRepository(Path("/repo")).create_tag("v1.2.0")

        assert mock_run.call_args.args[0] == ["git", "tag", "v1.2.0"]

    def test_remote_url(self, mock_run: MagicMock):
        mock_run.side_effect = _git({"remote": "git@github.com:acme/widgets.git\n"})

        assert GitRepository(Path("/repo")).remote_url() == "git@github.com:acme/widgets.git"

    def test_remote_url_missing(self, mock_run: MagicMock):
        mock_run.side_effect = _git({})

        assert GitRepository(Path("/repo")).remote_url() is None
