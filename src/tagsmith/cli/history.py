"""Repository snapshots shared by the commands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from tagsmith.core.commits import Commit, CommitFilter, CommitRecord, classify_commits
from tagsmith.core.history import CommitGraph, TagRef, find_tag, latest_tag
from tagsmith.core.version import Version, parse_version
from tagsmith.exceptions import UnknownTagError

if TYPE_CHECKING:
    from tagsmith.config.models import TagsmithConfig
    from tagsmith.vcs.git import GitRepository


@dataclass(frozen=True)
class History:
    """Commits and release tags read once from the repository."""

    graph: CommitGraph
    tags: tuple[TagRef, ...]
    commit_filter: CommitFilter

    @classmethod
    def load(cls, repo: GitRepository, config: TagsmithConfig) -> History:
        graph = CommitGraph(repo.read_commits())
        tags = tuple(graph.order_tags(repo.read_tags(config.tag_pattern)))
        return cls(graph=graph, tags=tags, commit_filter=CommitFilter(config.ignore_patterns))

    @property
    def latest_tag(self) -> TagRef | None:
        return latest_tag(self.graph, self.tags)

    def since(self, from_tag: str | None = None) -> tuple[Version | None, list[Commit]]:
        """Baseline version and the commits after it, up to HEAD.

        With ``from_tag`` the baseline is that tag; otherwise the latest
        release tag. Without any tag, every commit counts and the
        baseline is None.

        Raises:
            UnknownTagError: If ``from_tag`` does not exist
            MalformedVersionError: If ``from_tag`` carries no X.Y.Z version
        """
        if from_tag is not None:
            tag = find_tag(self.tags, from_tag)
            if tag is None:
                raise UnknownTagError(f"Tag '{from_tag}' not found")
            return tag.version or parse_version(tag.name), self.graph.between(tag.commit)

        tag = self.latest_tag
        if tag is None:
            return None, self.graph.between(None)
        return tag.version, self.graph.between(tag.commit)

    def classify(self, commits: list[Commit]) -> list[CommitRecord]:
        return list(classify_commits(commits, self.commit_filter))
