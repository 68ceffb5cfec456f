"""Core business logic for tagsmith.

This module contains the fundamental building blocks:
- Version parsing, bumping and next-version resolution
- Conventional commit classification and bump inference
- Commit graph reachability and tag ordering
- Changelog rendering, merging and rebuilding
- Release reconciliation

Nothing in here performs I/O; callers hand in snapshots of commits,
tags and remote releases.
"""

from __future__ import annotations

from tagsmith.core.changelog import (
    ChangelogSection,
    build_section,
    insert_section,
    rebuild_changelog,
    render_notes,
    render_section,
    update_changelog,
)
from tagsmith.core.commits import (
    Commit,
    CommitFilter,
    CommitRecord,
    CommitType,
    calculate_bump,
    classify_commits,
    parse_commit,
)
from tagsmith.core.history import CommitGraph, TagRef
from tagsmith.core.release import (
    ReleaseAction,
    ReleaseCandidate,
    ReleaseOptions,
    ReleasePlanItem,
    RemoteRelease,
    build_candidates,
    execute_plan,
    plan_releases,
    validate_options,
)
from tagsmith.core.version import BumpType, Version, parse_version, resolve_version

__all__ = [
    # Version
    "BumpType",
    # Changelog
    "ChangelogSection",
    # Commits
    "Commit",
    "CommitFilter",
    # History
    "CommitGraph",
    "CommitRecord",
    "CommitType",
    # Release
    "ReleaseAction",
    "ReleaseCandidate",
    "ReleaseOptions",
    "ReleasePlanItem",
    "RemoteRelease",
    "TagRef",
    "Version",
    "build_candidates",
    "build_section",
    "calculate_bump",
    "classify_commits",
    "execute_plan",
    "insert_section",
    "parse_commit",
    "parse_version",
    "plan_releases",
    "rebuild_changelog",
    "render_notes",
    "render_section",
    "resolve_version",
    "update_changelog",
    "validate_options",
]
