"""Release reconciliation.

Git tags are the source of truth. Each tag gets a desired release
(title and notes computed from its changelog section), which is diffed
against the releases that already exist remotely to produce a plan:

    absent                 -> create
    present, identical     -> skip
    present, stale         -> update
    present, --rebuild     -> delete-then-recreate

The plan is computed in full before anything is executed, and a dry
run reports the same plan without calling the store.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

from tagsmith.core.changelog import render_notes, tag_sections
from tagsmith.core.commits import CommitFilter
from tagsmith.core.history import CommitGraph, TagRef
from tagsmith.core.version import parse_target, version_from_tag
from tagsmith.exceptions import ConflictingFlagsError, MalformedVersionError, UnknownTagError

logger = logging.getLogger(__name__)


class ReleaseAction(StrEnum):
    """What to do with one release."""

    CREATE = "create"
    UPDATE = "update"
    DELETE_THEN_RECREATE = "delete-then-recreate"
    DELETE = "delete"
    SKIP = "skip"


@dataclass(frozen=True, slots=True)
class ReleaseCandidate:
    """Desired release for one tag."""

    tag: str
    title: str
    notes: str


@dataclass(frozen=True, slots=True)
class RemoteRelease:
    """A release as it currently exists in the release store."""

    tag: str
    title: str | None = None
    body: str | None = None
    prerelease: bool = False
    release_id: int | None = None


@dataclass(frozen=True, slots=True)
class ReleasePlanItem:
    """One reconciliation action."""

    tag: str
    title: str
    action: ReleaseAction
    notes: str = ""
    prerelease: bool = False


@dataclass(frozen=True, slots=True)
class ReleaseOptions:
    """Options of a release run, as given on the command line."""

    target: str | None = None
    rebuild: bool = False
    dry_run: bool = False
    notes_only: bool = False
    prerelease: bool = False
    token: str | None = None
    owner: str | None = None
    repo: str | None = None


class ReleaseStore(Protocol):
    """Where releases live (GitHub in practice). Keyed by tag name."""

    def list_releases(self) -> list[RemoteRelease]: ...

    def create_release(self, tag: str, title: str, body: str, *, prerelease: bool = False) -> None: ...

    def update_release(self, tag: str, title: str, body: str, *, prerelease: bool = False) -> None: ...

    def delete_release(self, tag: str) -> None: ...


def validate_options(options: ReleaseOptions) -> None:
    """Reject mutually exclusive options before any work starts.

    Raises:
        ConflictingFlagsError: If incompatible options are combined
    """
    if options.notes_only:
        conflicting = tuple(
            flag
            for flag, value in (
                ("--rebuild", options.rebuild),
                ("--dry-run", options.dry_run),
                ("--token", options.token),
                ("--owner", options.owner),
                ("--repo", options.repo),
                ("--prerelease", options.prerelease),
            )
            if value
        )
        if conflicting:
            raise ConflictingFlagsError(
                f"--notes-only cannot be combined with {', '.join(conflicting)}",
                flags=("--notes-only", *conflicting),
            )

    if options.rebuild and options.target:
        raise ConflictingFlagsError(
            "--rebuild cannot be combined with an explicit release target",
            flags=("--rebuild", "TARGET"),
        )

    if options.prerelease and not options.target:
        raise ConflictingFlagsError(
            "--prerelease requires an explicit release target",
            flags=("--prerelease",),
        )


def release_title(tag: str) -> str:
    """Release title for a tag: the version without its ``v`` prefix."""
    version = version_from_tag(tag)
    return str(version) if version else tag.removeprefix("v")


def build_candidates(
    graph: CommitGraph,
    tags: Iterable[TagRef],
    commit_filter: CommitFilter | None = None,
) -> list[ReleaseCandidate]:
    """Desired releases, oldest tag first."""
    return [
        ReleaseCandidate(tag=tag.name, title=release_title(tag.name), notes=render_notes(section))
        for tag, section in tag_sections(graph, tags, commit_filter)
    ]


def select_candidates(
    candidates: Sequence[ReleaseCandidate],
    target: str | None,
) -> list[ReleaseCandidate]:
    """Restrict candidates to an explicit target, if any.

    Raises:
        MalformedVersionError: If the target is a bump keyword
        UnknownTagError: If no tag matches the target version
    """
    if target is None:
        return list(candidates)

    parsed = parse_target(target)
    if parsed.version is None:
        raise MalformedVersionError(
            f"Release target must be a version such as 1.2.3, not '{target.strip()}'"
        )

    for candidate in candidates:
        if version_from_tag(candidate.tag) == parsed.version:
            return [candidate]
    raise UnknownTagError(f"No release tag found for version {parsed.version}")


def notes_for(candidates: Sequence[ReleaseCandidate], target: str | None = None) -> str:
    """Notes of the targeted release, or of the newest one."""
    selected = select_candidates(candidates, target)
    if not selected:
        raise UnknownTagError("No release tags found")
    return selected[-1].notes


def plan_releases(
    candidates: Sequence[ReleaseCandidate],
    remote: Iterable[RemoteRelease],
    options: ReleaseOptions | None = None,
) -> list[ReleasePlanItem]:
    """Diff desired releases against remote ones.

    Items follow tag chronology. With ``rebuild``, releases whose tag
    no longer exists are deleted first.
    """
    options = options or ReleaseOptions()
    existing = {release.tag: release for release in remote}
    selected = select_candidates(candidates, options.target)
    plan: list[ReleasePlanItem] = []

    if options.rebuild:
        wanted = {candidate.tag for candidate in selected}
        plan.extend(
            ReleasePlanItem(tag=tag, title=release.title or release_title(tag), action=ReleaseAction.DELETE)
            for tag, release in existing.items()
            if tag not in wanted
        )

    for candidate in selected:
        found = existing.get(candidate.tag)
        if options.target:
            prerelease = options.prerelease
        else:
            prerelease = found.prerelease if found else False

        if found is None:
            action = ReleaseAction.CREATE
        elif options.rebuild:
            action = ReleaseAction.DELETE_THEN_RECREATE
        elif (
            found.title == candidate.title
            and found.body == candidate.notes
            and found.prerelease == prerelease
        ):
            action = ReleaseAction.SKIP
        else:
            action = ReleaseAction.UPDATE

        plan.append(
            ReleasePlanItem(
                tag=candidate.tag,
                title=candidate.title,
                action=action,
                notes=candidate.notes,
                prerelease=prerelease,
            )
        )

    return plan


@dataclass(frozen=True, slots=True)
class ExecutionReport:
    """What a plan execution did (or would do, in a dry run)."""

    items: tuple[ReleasePlanItem, ...]
    dry_run: bool = False

    @property
    def changed(self) -> tuple[ReleasePlanItem, ...]:
        return tuple(item for item in self.items if item.action != ReleaseAction.SKIP)

    def lines(self) -> list[str]:
        prefix = "would " if self.dry_run else ""
        return [
            f"{prefix}{item.action} {item.tag}" if item.action != ReleaseAction.SKIP else f"skip {item.tag}"
            for item in self.items
        ]


def execute_plan(
    plan: Sequence[ReleasePlanItem],
    store: ReleaseStore,
    *,
    dry_run: bool = False,
) -> ExecutionReport:
    """Apply a plan to a release store, in order.

    In a dry run the store is never called.
    """
    report = ExecutionReport(items=tuple(plan), dry_run=dry_run)
    if dry_run:
        for line in report.lines():
            logger.info("dry-run: %s", line)
        return report

    for item in plan:
        if item.action == ReleaseAction.SKIP:
            logger.debug("Release %s is up to date", item.tag)
            continue

        logger.info("Release %s: %s", item.tag, item.action)
        if item.action in (ReleaseAction.DELETE, ReleaseAction.DELETE_THEN_RECREATE):
            store.delete_release(item.tag)
        if item.action in (ReleaseAction.CREATE, ReleaseAction.DELETE_THEN_RECREATE):
            store.create_release(item.tag, item.title, item.notes, prerelease=item.prerelease)
        elif item.action == ReleaseAction.UPDATE:
            store.update_release(item.tag, item.title, item.notes, prerelease=item.prerelease)

    return report
