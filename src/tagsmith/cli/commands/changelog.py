"""Implementation of the 'changelog' command.

Adds (or replaces) the section for the next release in the changelog
file, or regenerates the whole file from tag history with --rebuild.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape

from tagsmith.cli.history import History
from tagsmith.core.changelog import build_section, format_date, rebuild_changelog, update_changelog
from tagsmith.core.commits import calculate_bump
from tagsmith.core.version import BumpType, resolve_version
from tagsmith.exceptions import ConflictingFlagsError, MissingBaselineError, TagsmithError
from tagsmith.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from tagsmith.config.models import TagsmithConfig

DEFAULT_COMMIT_MESSAGE = "chore: Updated CHANGELOG.md."


def run_changelog(
    path: str | None,
    target: str | None,
    rebuild: bool,
    dry_run: bool,
    commit: bool,
    commit_message: str | None,
    config: TagsmithConfig,
    console: Console,
    err_console: Console,
) -> None:
    """Run the changelog command.

    Args:
        path: Optional path to project directory
        target: Explicit version or bump for the new section
        rebuild: Regenerate the whole changelog from tags
        dry_run: Print the resulting document instead of writing it
        commit: Commit the changelog if it is the only changed file
        commit_message: Custom commit message
        config: Resolved configuration
        console: Console for standard output
        err_console: Console for error output
    """
    try:
        if rebuild and target:
            raise ConflictingFlagsError(
                "Cannot combine --rebuild with an explicit changelog target",
                flags=("--rebuild", "TARGET"),
            )
        if dry_run and commit:
            raise ConflictingFlagsError(
                "Cannot combine --dry-run with --commit", flags=("--dry-run", "--commit")
            )

        repo = GitRepository(Path(path) if path else None)
        history = History.load(repo, config)
        changelog_path = repo.path / config.changelog.path
        existing = changelog_path.read_text() if changelog_path.is_file() else None

        if rebuild:
            document = _rebuilt_document(history, config)
        else:
            current, commits = history.since()
            records = history.classify(commits)
            if not records:
                console.print("[yellow]No releasable commits found. Changelog not updated.[/]")
                return

            next_version = resolve_version(current, target, calculate_bump(records))
            section = build_section(next_version, records, format_date())
            document = update_changelog(
                existing,
                section,
                template=config.changelog.template,
                header=config.changelog.header,
            )
    except TagsmithError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    if dry_run:
        console.print(document, markup=False, highlight=False, emoji=False, soft_wrap=True, end="")
        return

    if document == existing:
        console.print(f"[green]✓[/] {config.changelog.path} is already up to date")
        return

    try:
        changelog_path.write_text(document)
        console.print(f"  [green]✓[/] Updated {config.changelog.path}")

        if commit:
            relative = changelog_path.relative_to(repo.path).as_posix()
            others = [p for p in repo.changed_paths() if p != relative]
            if not others:
                repo.commit_paths([Path(relative)], commit_message or DEFAULT_COMMIT_MESSAGE)
                console.print("  [green]✓[/] Committed changelog")
            else:
                err_console.print(
                    f"[yellow]Skipping commit:[/] other files changed: {escape(', '.join(others))}"
                )
    except TagsmithError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e


def _rebuilt_document(history: History, config: TagsmithConfig) -> str:
    """Full document from tag history, plus a section for unreleased commits.

    Raises:
        MissingBaselineError: If there are unreleased commits but no release
            tag to bump from
    """
    next_version = None
    pending = history.classify(history.graph.unreleased(history.tags))
    if pending:
        latest = history.latest_tag
        if latest is None or latest.version is None:
            raise MissingBaselineError(
                f"No release tags matching '{config.tag_pattern}' found; "
                f"cannot place {len(pending)} unreleased commit(s). "
                "Tag the first release before rebuilding the changelog."
            )
        bump = calculate_bump(pending)
        if bump != BumpType.NONE:
            next_version = latest.version.bump(bump)

    return rebuild_changelog(
        history.graph,
        history.tags,
        history.commit_filter,
        template=config.changelog.template,
        header=config.changelog.header,
        next_version=next_version,
    )
