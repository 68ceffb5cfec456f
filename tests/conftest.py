"""Shared fixtures for tagsmith tests."""

from __future__ import annotations

import pytest

from tagsmith.core.commits import Commit, CommitFilter
from tagsmith.core.history import CommitGraph, TagRef
from tagsmith.core.release import RemoteRelease

# 2026-01-01 00:00:00 UTC
BASE_TIMESTAMP = 1767225600
DAY = 86400


class FakeReleaseStore:
    """In-memory release store recording every call."""

    def __init__(self, releases: list[RemoteRelease] | None = None) -> None:
        self.releases = {release.tag: release for release in releases or []}
        self.calls: list[tuple[str, str]] = []

    def list_releases(self) -> list[RemoteRelease]:
        return list(self.releases.values())

    def create_release(self, tag: str, title: str, body: str, *, prerelease: bool = False) -> None:
        self.calls.append(("create", tag))
        self.releases[tag] = RemoteRelease(tag=tag, title=title, body=body, prerelease=prerelease)

    def update_release(self, tag: str, title: str, body: str, *, prerelease: bool = False) -> None:
        self.calls.append(("update", tag))
        self.releases[tag] = RemoteRelease(tag=tag, title=title, body=body, prerelease=prerelease)

    def delete_release(self, tag: str) -> None:
        self.calls.append(("delete", tag))
        del self.releases[tag]


@pytest.fixture
def make_commit():
    """Factory for commits on a single day grid."""

    def _make(sha: str, subject: str, *parents: str, day: int = 0, body: str = "") -> Commit:
        return Commit(
            sha=sha,
            subject=subject,
            body=body,
            parents=parents,
            timestamp=BASE_TIMESTAMP + day * DAY,
        )

    return _make


@pytest.fixture
def history_commits(make_commit) -> list[Commit]:
    """Linear history, newest first (as git log returns it).

    c1 - c2 (v1.0.0) - c3 - c4 (v1.1.0) - c5 (HEAD)
    """
    return [
        make_commit("c5" * 20, "fix: handle empty config", "c4" * 20, day=4),
        make_commit("c4" * 20, "chore: wip", "c3" * 20, day=3),
        make_commit("c3" * 20, "feat(api): add pagination", "c2" * 20, day=2),
        make_commit("c2" * 20, "fix(core): null check", "c1" * 20, day=1),
        make_commit("c1" * 20, "feat: initial api", day=0),
    ]


@pytest.fixture
def history_tags() -> list[TagRef]:
    return [
        TagRef(name="v1.1.0", commit="c4" * 20, timestamp=BASE_TIMESTAMP + 3 * DAY),
        TagRef(name="v1.0.0", commit="c2" * 20, timestamp=BASE_TIMESTAMP + 1 * DAY),
    ]


@pytest.fixture
def graph(history_commits) -> CommitGraph:
    return CommitGraph(history_commits)


@pytest.fixture
def commit_filter() -> CommitFilter:
    return CommitFilter()


@pytest.fixture
def release_store() -> FakeReleaseStore:
    return FakeReleaseStore()
