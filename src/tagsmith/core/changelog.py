"""Changelog rendering, incremental merging and full rebuilds.

A changelog is a top-level ``# `` heading followed by one ``## ``
section per release, newest first:

    # Changelog

    ## [1.1.0] - 2026-02-22

    ### ✨ Features

    - **api:** add pagination

Sections are keyed by the first ``X.Y.Z`` in their heading, so an
incremental update replaces an existing section for the same version
instead of adding a second one.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime

from tagsmith.core.commits import (
    CommitFilter,
    CommitRecord,
    CommitType,
    classify_commits,
    format_commit_for_changelog,
    group_commits_by_type,
)
from tagsmith.core.history import CommitGraph, TagRef
from tagsmith.core.version import Version
from tagsmith.exceptions import AmbiguousSectionError

logger = logging.getLogger(__name__)

DEFAULT_HEADER = "# Changelog"
EMPTY_NOTES = "- No notable changes."

TYPE_LABELS = {
    CommitType.FEAT: "### ✨ Features",
    CommitType.FIX: "### 🐛 Bug Fixes",
    CommitType.BREAKING: "### ⚠️ Breaking Changes",
    CommitType.OTHER: "### 📝 Other",
}

# Template placeholders. Anything else in a template is left as is.
DATE_PLACEHOLDER = "$DATE"
VERSION_PLACEHOLDER = "$VERSION"
# Expands to the grouped "### Label" blocks, the same text used as release notes.
COMMITS_PLACEHOLDER = "$COMMITS"

_TOP_HEADING_RE = re.compile(r"^# .*$", re.MULTILINE)
_SECTION_HEADING_RE = re.compile(r"^## .*$", re.MULTILINE)
_VERSION_RE = re.compile(r"\d+\.\d+\.\d+")


@dataclass(frozen=True, slots=True)
class ChangelogSection:
    """One release's changelog entry, bullets grouped by commit type."""

    version: Version
    date: str
    groups: tuple[tuple[CommitType, tuple[str, ...]], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.groups


@dataclass(frozen=True, slots=True)
class SectionSpan:
    """Location of a ``## `` section inside a document."""

    version: str | None
    start: int
    end: int


def format_date(timestamp: int | None = None) -> str:
    """Format a unix timestamp (default: now) as a UTC ``YYYY-MM-DD`` date."""
    if timestamp is None:
        return datetime.now(UTC).strftime("%Y-%m-%d")
    return datetime.fromtimestamp(timestamp, UTC).strftime("%Y-%m-%d")


def build_section(
    version: Version,
    records: Iterable[CommitRecord],
    date: str,
) -> ChangelogSection:
    """Group classified commits into a section."""
    grouped = group_commits_by_type(records)
    groups = tuple(
        (commit_type, tuple(format_commit_for_changelog(record) for record in items))
        for commit_type, items in grouped.items()
    )
    return ChangelogSection(version=version, date=date, groups=groups)


def render_notes(section: ChangelogSection) -> str:
    """Render the grouped bullet lists of a section, without its heading.

    This is also the body of the matching GitHub release.
    """
    if section.is_empty:
        return EMPTY_NOTES

    blocks = []
    for commit_type, bullets in section.groups:
        lines = [TYPE_LABELS[commit_type], ""]
        lines.extend(f"- {bullet}" for bullet in bullets)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


def apply_template(template: str, *, date: str, version: str, commits: str) -> str:
    """Substitute the three supported placeholders by plain replacement."""
    return (
        template.replace(DATE_PLACEHOLDER, date)
        .replace(VERSION_PLACEHOLDER, version)
        .replace(COMMITS_PLACEHOLDER, commits)
        .strip()
    )


def render_section(section: ChangelogSection, template: str | None = None) -> str:
    """Render a section as markdown, without a trailing newline.

    With a template, $COMMITS receives the grouped notes rather than a
    flat bullet list.
    """
    notes = render_notes(section)

    if template:
        rendered = apply_template(
            template,
            date=section.date,
            version=str(section.version),
            commits=notes,
        )
        headings = _SECTION_HEADING_RE.findall(rendered)
        if not any(str(section.version) in heading for heading in headings):
            logger.warning(
                "Changelog template output has no '## ' heading containing %s; "
                "re-runs will not be able to replace this section",
                section.version,
            )
        return rendered

    return f"## [{section.version}] - {section.date}\n\n{notes}"


def find_sections(document: str) -> list[SectionSpan]:
    """Locate every ``## `` section in a document."""
    headings = list(_SECTION_HEADING_RE.finditer(document))
    spans = []
    for index, heading in enumerate(headings):
        end = headings[index + 1].start() if index + 1 < len(headings) else len(document)
        version = _VERSION_RE.search(heading.group(0))
        spans.append(
            SectionSpan(
                version=version.group(0) if version else None,
                start=heading.start(),
                end=end,
            )
        )
    return spans


def extract_versions(document: str) -> set[str]:
    """Versions that already have a section in the document."""
    return {span.version for span in find_sections(document) if span.version}


def insert_section(
    document: str | None,
    section_text: str,
    version: Version | str,
    header: str = DEFAULT_HEADER,
) -> str:
    """Merge one rendered section into a changelog document.

    An existing section for the same version is replaced in place.
    Otherwise the section goes right after the top-level heading and
    everything below it is kept unchanged. Applying the same section
    twice gives the same document as applying it once.

    Raises:
        AmbiguousSectionError: If the document has several sections for ``version``
    """
    key = str(version)

    if not document or not document.strip():
        return f"{header}\n\n{section_text}\n"

    sections = find_sections(document)
    matching = [span for span in sections if span.version == key]
    if len(matching) > 1:
        raise AmbiguousSectionError(key, len(matching))

    if matching:
        span = matching[0]
        trailer = "\n\n" if span.end < len(document) else "\n"
        return document[: span.start] + section_text + trailer + document[span.end :]

    top = _TOP_HEADING_RE.search(document)
    first_section = sections[0].start if sections else len(document)
    if top and top.start() < first_section:
        head = document[: top.end()]
        rest = document[top.end() :].lstrip("\n")
        if rest:
            return f"{head}\n\n{section_text}\n\n{rest}"
        return f"{head}\n\n{section_text}\n"

    rest = document.lstrip("\n")
    return f"{section_text}\n\n{rest}"


def update_changelog(
    document: str | None,
    section: ChangelogSection,
    *,
    template: str | None = None,
    header: str = DEFAULT_HEADER,
) -> str:
    """Render ``section`` and merge it into ``document``."""
    return insert_section(document, render_section(section, template), section.version, header)


def tag_sections(
    graph: CommitGraph,
    tags: Iterable[TagRef],
    commit_filter: CommitFilter | None = None,
) -> list[tuple[TagRef, ChangelogSection]]:
    """One section per tag, oldest tag first, dated by the tagged commit."""
    sections = []
    for tag, commits in graph.partition(tags):
        version = tag.version
        if version is None:
            logger.debug("Tag %s has no X.Y.Z version, skipping", tag.name)
            continue
        records = classify_commits(commits, commit_filter)
        sections.append((tag, build_section(version, records, format_date(tag.timestamp))))
    return sections


def rebuild_changelog(
    graph: CommitGraph,
    tags: Iterable[TagRef],
    commit_filter: CommitFilter | None = None,
    *,
    template: str | None = None,
    header: str = DEFAULT_HEADER,
    next_version: Version | None = None,
    date: str | None = None,
) -> str:
    """Regenerate the whole changelog from tag history.

    Args:
        graph: Commit snapshot
        tags: Release tags (any order)
        commit_filter: Ignore filter
        template: Optional section template
        header: Top-level heading of the document
        next_version: When given, unreleased commits get a section for it
        date: Date of the unreleased section (default: today)

    Returns:
        The full document, newest section first
    """
    tags = list(tags)
    rendered = [render_section(section, template) for _, section in tag_sections(graph, tags, commit_filter)]

    if next_version is not None:
        pending = list(classify_commits(graph.unreleased(tags), commit_filter))
        if pending:
            section = build_section(next_version, pending, date or format_date())
            rendered.append(render_section(section, template))

    if not rendered:
        return f"{header}\n"

    rendered.reverse()
    return header + "\n\n" + "\n\n".join(rendered) + "\n"
