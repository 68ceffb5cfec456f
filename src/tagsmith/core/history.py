"""Commit graph reachability and tag ordering.

The graph is built from a snapshot of commits (each knowing its
parents). Tags are ordered by reachability: a tag whose commit is an
ancestor of another tag's commit always comes first, regardless of
tag names or timestamps.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from tagsmith.core.commits import Commit
from tagsmith.core.version import Version, version_from_tag

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TagRef:
    """A release tag pointing at a commit."""

    name: str
    commit: str
    timestamp: int = 0

    @property
    def version(self) -> Version | None:
        return version_from_tag(self.name)


class CommitGraph:
    """Read-only view over a commit snapshot.

    Args:
        commits: Commits in source order (git log gives newest first)
        head: Commit considered HEAD, defaults to the first commit
    """

    def __init__(self, commits: Iterable[Commit], head: str | None = None) -> None:
        self._commits: dict[str, Commit] = {}
        self._order: dict[str, int] = {}
        for commit in commits:
            if commit.sha in self._commits:
                continue
            self._order[commit.sha] = len(self._order)
            self._commits[commit.sha] = commit

        if head is None and self._commits:
            head = next(iter(self._commits))
        self.head = head
        self._ancestors: dict[str, frozenset[str]] = {}

    def __len__(self) -> int:
        return len(self._commits)

    def __contains__(self, sha: object) -> bool:
        return sha in self._commits

    def ancestors(self, sha: str | None) -> frozenset[str]:
        """All commits reachable from ``sha``, itself included.

        Parents outside the snapshot are ignored; an unknown ``sha``
        reaches nothing.
        """
        if sha is None or sha not in self._commits:
            return frozenset()

        cached = self._ancestors.get(sha)
        if cached is not None:
            return cached

        seen: set[str] = set()
        stack = [sha]
        while stack:
            current = stack.pop()
            if current in seen or current not in self._commits:
                continue
            seen.add(current)
            stack.extend(self._commits[current].parents)

        result = frozenset(seen)
        self._ancestors[sha] = result
        return result

    def _in_source_order(self, shas: Iterable[str]) -> list[Commit]:
        return [self._commits[sha] for sha in sorted(shas, key=self._order.__getitem__)]

    def between(self, start: str | None, end: str | None = None) -> list[Commit]:
        """Commits reachable from ``end`` (default HEAD) but not from ``start``."""
        reachable = self.ancestors(end if end is not None else self.head)
        return self._in_source_order(reachable - self.ancestors(start))

    def order_tags(self, tags: Iterable[TagRef]) -> list[TagRef]:
        """Order tags oldest first by reachability.

        Tags whose commit is not part of the snapshot are dropped.
        """
        known = []
        for tag in tags:
            if tag.commit not in self._commits:
                logger.debug("Tag %s points outside the history snapshot, skipping", tag.name)
                continue
            known.append(tag)

        # An ancestor always reaches strictly fewer commits than its descendants.
        return sorted(
            known,
            key=lambda tag: (
                len(self.ancestors(tag.commit)),
                tag.timestamp,
                tag.version or Version(0, 0, 0),
                tag.name,
            ),
        )

    def partition(self, tags: Iterable[TagRef]) -> list[tuple[TagRef, list[Commit]]]:
        """Split history into one bucket per tag, oldest tag first.

        Each bucket holds the commits reachable from its tag and not from
        the previous tag; the first bucket holds everything up to the
        earliest tag.
        """
        buckets = []
        previous: str | None = None
        for tag in self.order_tags(tags):
            buckets.append((tag, self.between(previous, tag.commit)))
            previous = tag.commit
        return buckets

    def unreleased(self, tags: Iterable[TagRef]) -> list[Commit]:
        """Commits reachable from HEAD that no tag reaches."""
        released: set[str] = set()
        for tag in tags:
            released |= self.ancestors(tag.commit)
        return self._in_source_order(self.ancestors(self.head) - released)


def latest_tag(graph: CommitGraph, tags: Iterable[TagRef]) -> TagRef | None:
    """Most recent tag reachable from HEAD, falling back to the newest tag."""
    ordered = graph.order_tags(tags)
    head_ancestors = graph.ancestors(graph.head)
    for tag in reversed(ordered):
        if tag.commit in head_ancestors:
            return tag
    return ordered[-1] if ordered else None


def find_tag(tags: Iterable[TagRef], name: str) -> TagRef | None:
    """Look up a tag by exact name, tolerating a missing or extra ``v`` prefix."""
    tags = list(tags)
    for candidate in (name, f"v{name}", name.removeprefix("v")):
        for tag in tags:
            if tag.name == candidate:
                return tag
    return None
