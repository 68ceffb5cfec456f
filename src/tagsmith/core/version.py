"""Semantic versions and next-version resolution.

Only ``MAJOR.MINOR.PATCH`` is modelled. Tags carry a ``v`` prefix,
release titles and changelog headings do not.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

from tagsmith.exceptions import MalformedVersionError, MissingBaselineError

_VERSION_RE = re.compile(r"^v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)$")
_VERSION_IN_TAG_RE = re.compile(r"(\d+)\.(\d+)\.(\d+)")

BUMP_KEYWORDS = ("major", "minor", "patch")


class BumpType(IntEnum):
    """Kind of version increment, ordered by significance."""

    NONE = 0
    PATCH = 1
    MINOR = 2
    MAJOR = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, order=True, slots=True)
class Version:
    """A ``major.minor.patch`` version. Ordering is numeric."""

    major: int
    minor: int
    patch: int

    def __post_init__(self) -> None:
        if min(self.major, self.minor, self.patch) < 0:
            raise MalformedVersionError(f"Version components must be non-negative: {self}")

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    @property
    def tag(self) -> str:
        """Tag name for this version (``v1.2.3``)."""
        return f"v{self}"

    @classmethod
    def parse(cls, raw: str) -> Version:
        return parse_version(raw)

    def bump(self, bump_type: BumpType) -> Version:
        """Apply a bump, resetting lower components to zero.

        ``BumpType.NONE`` returns the version unchanged.
        """
        if bump_type == BumpType.MAJOR:
            return Version(self.major + 1, 0, 0)
        if bump_type == BumpType.MINOR:
            return Version(self.major, self.minor + 1, 0)
        if bump_type == BumpType.PATCH:
            return Version(self.major, self.minor, self.patch + 1)
        return self


def parse_version(raw: str) -> Version:
    """Parse ``1.2.3`` or ``v1.2.3``.

    Raises:
        MalformedVersionError: If the string is not three non-negative integers
    """
    match = _VERSION_RE.match(raw.strip())
    if not match:
        raise MalformedVersionError(
            f"Invalid version '{raw.strip()}': expected MAJOR.MINOR.PATCH (e.g. 1.2.3 or v1.2.3)"
        )
    major, minor, patch = (int(part) for part in match.groups())
    return Version(major, minor, patch)


def version_from_tag(tag_name: str) -> Version | None:
    """Extract the first ``X.Y.Z`` from a tag name, if any."""
    match = _VERSION_IN_TAG_RE.search(tag_name)
    if not match:
        return None
    major, minor, patch = (int(part) for part in match.groups())
    return Version(major, minor, patch)


@dataclass(frozen=True, slots=True)
class UpdateTarget:
    """An explicit target: either a bump keyword or a literal version."""

    bump: BumpType | None = None
    version: Version | None = None


def parse_target(raw: str) -> UpdateTarget:
    """Parse an explicit target (``major|minor|patch`` or a version).

    Raises:
        MalformedVersionError: If the target is neither a keyword nor a version
    """
    keyword = raw.strip().lower()
    if keyword in BUMP_KEYWORDS:
        return UpdateTarget(bump=BumpType[keyword.upper()])
    return UpdateTarget(version=parse_version(raw))


def resolve_version(
    current: Version | None,
    target: str | None,
    inferred: BumpType,
) -> Version:
    """Resolve the version to release.

    A literal target is used verbatim. A bump keyword is applied to
    ``current`` in place of the inferred bump. Otherwise the inferred
    bump is applied; ``BumpType.NONE`` leaves ``current`` unchanged,
    which callers treat as "nothing to release".

    Args:
        current: Last released version, ``None`` if there is no tag yet
        target: Optional explicit target from the command line
        inferred: Bump inferred from the commits since ``current``

    Returns:
        The resolved version

    Raises:
        MalformedVersionError: If ``target`` is not a keyword or version
        MissingBaselineError: If a bump must be applied but ``current`` is None
    """
    bump = inferred
    if target is not None:
        parsed = parse_target(target)
        if parsed.version is not None:
            return parsed.version
        bump = parsed.bump or inferred

    if current is None:
        raise MissingBaselineError(
            "No previous release tag found. Pass an explicit version for the first "
            "release (e.g. 0.1.0) or point --from-tag at an existing tag."
        )

    return current.bump(bump)
