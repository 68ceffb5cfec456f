"""Implementation of the 'update' command.

The update command writes the next version into the project's version
file, and optionally commits and tags it.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.panel import Panel

from tagsmith.cli.history import History
from tagsmith.core.commits import calculate_bump
from tagsmith.core.version import BumpType, resolve_version
from tagsmith.exceptions import TagsmithError
from tagsmith.project.pyproject import find_version_file, write_project_version
from tagsmith.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from tagsmith.config.models import TagsmithConfig

DEFAULT_COMMIT_MESSAGE = "chore: Updated version."


def run_update(
    path: str | None,
    target: str | None,
    from_tag: str | None,
    execute: bool,
    commit: bool,
    commit_message: str | None,
    tag: bool,
    config: TagsmithConfig,
    console: Console,
    err_console: Console,
) -> None:
    """Run the update command.

    Args:
        path: Optional path to project directory
        target: Explicit target (major|minor|patch or a version like 2.0.0)
        from_tag: Tag to count commits from instead of the latest release tag
        execute: Whether to actually apply changes
        commit: Commit the updated version file
        commit_message: Custom commit message
        tag: Tag the new commit with the new version
        config: Resolved configuration
        console: Console for standard output
        err_console: Console for error output
    """
    try:
        repo = GitRepository(Path(path) if path else None)
        history = History.load(repo, config)
        current, commits = history.since(from_tag)
        bump = calculate_bump(history.classify(commits))

        if target is None and bump == BumpType.NONE:
            console.print(
                "[yellow]No releasable changes found since the last release.[/]\n"
                "[dim]Pass an explicit target to force a specific version.[/]"
            )
            return

        next_version = resolve_version(current, target, bump)
        version_file = find_version_file(repo.path)
    except TagsmithError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    relative = version_file.relative_to(repo.path)
    mode_str = "[green]EXECUTING[/]" if execute else "[yellow]DRY-RUN[/]"
    previous = f"[cyan]{current}[/]" if current else "[dim]nothing[/]"
    console.print(f"\n{mode_str} - Updating from {previous} to [green]{next_version}[/] ({bump!s})\n")

    if not execute:
        steps = [f"  • Update version in [cyan]{relative}[/]"]
        if commit:
            steps.append("  • Commit the version file")
        if tag:
            steps.append(f"  • Tag the commit as [cyan]{next_version.tag}[/]")
        console.print(
            Panel(
                "[bold]Would make the following changes:[/]\n\n" + "\n".join(steps),
                title="[yellow]Dry Run Preview[/]",
                border_style="yellow",
            )
        )
        console.print("\n[dim]Run with [cyan]--execute[/] to apply these changes.[/]")
        return

    try:
        if commit and repo.is_dirty():
            err_console.print(
                "[red]Error:[/] Repository has uncommitted changes.\n"
                "Commit or stash them before using [cyan]--commit[/]."
            )
            raise SystemExit(1)

        write_project_version(version_file, next_version)
        console.print(f"  [green]✓[/] Updated version in {relative}")

        if commit:
            repo.commit_paths([relative], commit_message or DEFAULT_COMMIT_MESSAGE)
            console.print("  [green]✓[/] Committed version change")
            if tag:
                repo.create_tag(next_version.tag)
                console.print(f"  [green]✓[/] Tagged [cyan]{next_version.tag}[/]")
    except TagsmithError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(f"Updated version to {next_version}.", highlight=False)
