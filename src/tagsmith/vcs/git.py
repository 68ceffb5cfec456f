"""Git repository access through the ``git`` executable.

Commits and tags are read once into immutable snapshots; the core
works on those snapshots and never talks to git itself.
"""

from __future__ import annotations

import logging
import re
import subprocess
from pathlib import Path

from tagsmith.core.commits import Commit
from tagsmith.core.history import TagRef
from tagsmith.exceptions import ConfigValidationError, GitError

logger = logging.getLogger(__name__)

_FIELD = "\x1f"
_RECORD = "\x1e"

LOG_FORMAT = "%H%x1f%P%x1f%ct%x1f%B%x1e"
TAG_FORMAT = (
    "%(refname:strip=2)%1f%(objectname)%1f%(*objectname)"
    "%1f%(committerdate:unix)%1f%(*committerdate:unix)"
)


class GitRepository:
    """A git working tree.

    Args:
        path: Any directory inside the repository

    Raises:
        GitError: If ``path`` is not inside a git repository
    """

    def __init__(self, path: Path | None = None, *, timeout: int = 60) -> None:
        self.timeout = timeout
        start = Path(path) if path else Path.cwd()
        toplevel = self._run(["rev-parse", "--show-toplevel"], cwd=start)
        self.path = Path(toplevel.strip())

    def _run(self, args: list[str], *, cwd: Path | None = None) -> str:
        cmd = ["git", *args]
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                cwd=cwd or self.path,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise GitError("git executable not found") from e
        except subprocess.TimeoutExpired as e:
            raise GitError(f"git {args[0]} timed out after {self.timeout}s") from e
        except subprocess.CalledProcessError as e:
            raise GitError(
                f"git {args[0]} failed with exit code {e.returncode}",
                stderr=e.stderr,
            ) from e
        return result.stdout

    def has_commits(self) -> bool:
        try:
            self._run(["rev-parse", "--verify", "--quiet", "HEAD"])
        except GitError:
            return False
        return True

    def head(self) -> str | None:
        """SHA of HEAD, or None in an empty repository."""
        if not self.has_commits():
            return None
        return self._run(["rev-parse", "HEAD"]).strip()

    def read_commits(self, rev: str = "HEAD") -> list[Commit]:
        """All commits reachable from ``rev``, newest first.

        Commits with an empty message are kept so parent links stay intact.
        """
        if not self.has_commits():
            return []

        output = self._run(["log", f"--format={LOG_FORMAT}", rev])
        commits = []
        for raw in output.split(_RECORD):
            raw = raw.lstrip("\n")
            if not raw:
                continue
            sha, parents, timestamp, message = raw.split(_FIELD, 3)
            commits.append(
                Commit.from_message(
                    sha=sha,
                    message=message,
                    parents=tuple(parents.split()),
                    timestamp=int(timestamp or 0),
                )
            )
        return commits

    def read_tags(self, tag_pattern: str) -> list[TagRef]:
        """Tags whose name matches ``tag_pattern``, peeled to commits.

        Raises:
            ConfigValidationError: If ``tag_pattern`` is not a valid regex
        """
        try:
            regex = re.compile(tag_pattern)
        except re.error as e:
            raise ConfigValidationError(f"Invalid tag regex pattern '{tag_pattern}': {e}") from e

        output = self._run(["for-each-ref", f"--format={TAG_FORMAT}", "refs/tags"])
        tags = []
        for line in output.splitlines():
            if not line.strip():
                continue
            name, sha, peeled, date, peeled_date = line.split(_FIELD)
            if not regex.search(name):
                continue
            commit = peeled or sha
            timestamp = peeled_date if peeled else date
            if not timestamp:
                logger.debug("Tag %s does not point at a commit, skipping", name)
                continue
            tags.append(TagRef(name=name, commit=commit, timestamp=int(timestamp)))
        return tags

    def is_dirty(self) -> bool:
        """Whether tracked files have uncommitted changes."""
        return bool(self._run(["status", "--porcelain", "--untracked-files=no"]).strip())

    def changed_paths(self) -> list[str]:
        """Tracked paths with uncommitted changes.

        Untracked files are left out. Renames report their new path.
        """
        output = self._run(["status", "--porcelain", "--untracked-files=no"])
        return [line[3:].split(" -> ")[-1] for line in output.splitlines() if line.strip()]

    def commit_paths(self, paths: list[Path], message: str) -> None:
        """Stage ``paths`` and commit them."""
        self._run(["add", "--", *(str(p) for p in paths)])
        self._run(["commit", "-m", message])

    def create_tag(self, name: str) -> None:
        """Create a lightweight tag on HEAD."""
        self._run(["tag", name])

    def remote_url(self, name: str = "origin") -> str | None:
        try:
            return self._run(["remote", "get-url", name]).strip() or None
        except GitError:
            return None
