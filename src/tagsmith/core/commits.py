"""Conventional commit parsing and bump inference.

Implements classification per https://www.conventionalcommits.org/:

    <type>[optional scope][!]: <description>

    [optional body]

    [optional footer(s)]

Each commit is classified once into a closed set of types
(feat, fix, breaking, other). Subjects that do not follow the format
are kept as ``other`` with the full subject as description.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from tagsmith.core.version import BumpType
from tagsmith.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)

COMMIT_PATTERN = re.compile(
    r"^(?P<type>[A-Za-z][\w-]*)"
    r"(?:\((?P<scope>[^()]*)\))?"
    r"(?P<breaking>!)?"
    r":\s*(?P<description>\S.*)$"
)

BREAKING_FOOTERS = ("BREAKING CHANGE:", "BREAKING-CHANGE:")

DEFAULT_IGNORE_PATTERNS = (
    r"^.+: fixup$",
    r"^.+: wip$",
    r"^fixup: .+$",
    r"^wip: .+$",
    r"^fixup$",
    r"^wip$",
    r"^Merge .+$",
    # Commits written by `tagsmith update --commit` and `tagsmith changelog --commit`.
    r"^chore: Updated (CHANGELOG\.md|version)\.$",
)


class CommitType(StrEnum):
    """Closed set of commit classifications."""

    FEAT = "feat"
    FIX = "fix"
    BREAKING = "breaking"
    OTHER = "other"


CHANGELOG_ORDER = (CommitType.FEAT, CommitType.FIX, CommitType.BREAKING, CommitType.OTHER)


@dataclass(frozen=True, slots=True)
class Commit:
    """A raw commit as read from the repository."""

    sha: str
    subject: str
    body: str = ""
    parents: tuple[str, ...] = ()
    timestamp: int = 0

    @classmethod
    def from_message(
        cls,
        sha: str,
        message: str,
        parents: tuple[str, ...] = (),
        timestamp: int = 0,
    ) -> Commit:
        """Split a full commit message into subject and body."""
        lines = message.strip().splitlines()
        subject = lines[0].strip() if lines else ""
        body = "\n".join(lines[1:]).strip()
        return cls(sha=sha, subject=subject, body=body, parents=parents, timestamp=timestamp)


@dataclass(frozen=True, slots=True)
class CommitRecord:
    """A commit after classification."""

    sha: str
    subject: str
    commit_type: CommitType
    description: str
    kind: str | None = None
    scope: str | None = None
    is_breaking: bool = False
    is_conventional: bool = False
    body: str = field(default="", repr=False)

    @property
    def bump(self) -> BumpType:
        """Bump this commit alone would trigger."""
        if self.is_breaking:
            return BumpType.MAJOR
        if self.commit_type == CommitType.FEAT:
            return BumpType.MINOR
        return BumpType.PATCH


def _has_breaking_footer(body: str) -> bool:
    return any(line.lstrip().startswith(BREAKING_FOOTERS) for line in body.splitlines())


def parse_commit(commit: Commit) -> CommitRecord:
    """Classify a single commit. Never raises."""
    footer_breaking = _has_breaking_footer(commit.body)
    match = COMMIT_PATTERN.match(commit.subject)

    if not match:
        logger.debug("Commit %s is not conventional: %r", commit.sha[:8], commit.subject)
        return CommitRecord(
            sha=commit.sha,
            subject=commit.subject,
            commit_type=CommitType.OTHER,
            description=commit.subject,
            is_breaking=footer_breaking,
            body=commit.body,
        )

    kind = match.group("type").lower()
    scope = match.group("scope") or None
    is_breaking = bool(match.group("breaking")) or footer_breaking

    if is_breaking:
        commit_type = CommitType.BREAKING
    elif kind == "feat":
        commit_type = CommitType.FEAT
    elif kind == "fix":
        commit_type = CommitType.FIX
    else:
        commit_type = CommitType.OTHER

    return CommitRecord(
        sha=commit.sha,
        subject=commit.subject,
        commit_type=commit_type,
        description=match.group("description").strip(),
        kind=kind,
        scope=scope.strip() if scope else None,
        is_breaking=is_breaking,
        is_conventional=True,
        body=commit.body,
    )


class CommitFilter:
    """Drops commits whose subject full-matches an ignore pattern."""

    def __init__(self, patterns: Iterable[str] = DEFAULT_IGNORE_PATTERNS) -> None:
        compiled = []
        for pattern in patterns:
            try:
                compiled.append(re.compile(pattern))
            except re.error as e:
                raise ConfigValidationError(f"Invalid ignore pattern '{pattern}': {e}") from e
        self._patterns = tuple(compiled)

    @property
    def patterns(self) -> tuple[str, ...]:
        return tuple(p.pattern for p in self._patterns)

    def is_ignored(self, subject: str) -> bool:
        return any(p.fullmatch(subject) for p in self._patterns)


def classify_commits(
    commits: Iterable[Commit],
    commit_filter: CommitFilter | None = None,
) -> Iterator[CommitRecord]:
    """Lazily classify commits, skipping ignored ones.

    Commits with an empty subject are skipped as well. Source order is
    preserved.
    """
    for commit in commits:
        if not commit.subject:
            logger.debug("Skipping commit %s with empty message", commit.sha[:8])
            continue
        if commit_filter is not None and commit_filter.is_ignored(commit.subject):
            logger.debug("Ignoring commit %s: %r", commit.sha[:8], commit.subject)
            continue
        yield parse_commit(commit)


def calculate_bump(records: Iterable[CommitRecord]) -> BumpType:
    """Reduce classified commits to a single bump.

    Every record is visited; the result does not depend on order and
    adding a record never lowers it. No records means ``BumpType.NONE``.
    """
    return max((record.bump for record in records), default=BumpType.NONE)


def group_commits_by_type(
    records: Iterable[CommitRecord],
) -> dict[CommitType, list[CommitRecord]]:
    """Group records by type in changelog order (feat, fix, breaking, other).

    Only non-empty groups are returned.
    """
    grouped: dict[CommitType, list[CommitRecord]] = {t: [] for t in CHANGELOG_ORDER}
    for record in records:
        grouped[record.commit_type].append(record)
    return {t: items for t, items in grouped.items() if items}


def format_commit_for_changelog(record: CommitRecord, *, include_sha: bool = False) -> str:
    """Render one bullet line for a record (without the leading dash)."""
    if record.commit_type == CommitType.OTHER:
        text = record.subject
    else:
        scope = f"**{record.scope}:** " if record.scope else ""
        text = f"{scope}{record.description}"

    if include_sha:
        text = f"{text} ({record.sha[:7]})"
    return text
