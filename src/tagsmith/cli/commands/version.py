"""Implementation of the 'version' and 'semver' commands.

'version' prints the last released version, 'semver' the bump the
commits since then call for. Neither modifies anything.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape

from tagsmith.cli.history import History
from tagsmith.core.commits import calculate_bump
from tagsmith.exceptions import MissingBaselineError, TagsmithError
from tagsmith.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from tagsmith.config.models import TagsmithConfig


def run_version(
    path: str | None,
    from_tag: str | None,
    config: TagsmithConfig,
    console: Console,
    err_console: Console,
) -> None:
    """Print the current version (latest release tag, or ``from_tag``)."""
    try:
        history = History.load(GitRepository(Path(path) if path else None), config)
        current, _ = history.since(from_tag)
        if current is None:
            raise MissingBaselineError(
                f"No release tags matching '{config.tag_pattern}' found"
            )
    except TagsmithError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(str(current), highlight=False)


def run_semver(
    path: str | None,
    from_tag: str | None,
    config: TagsmithConfig,
    console: Console,
    err_console: Console,
) -> None:
    """Print the bump (none, patch, minor, major) inferred since the last release."""
    try:
        history = History.load(GitRepository(Path(path) if path else None), config)
        _, commits = history.since(from_tag)
    except TagsmithError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    console.print(str(calculate_bump(history.classify(commits))), highlight=False)
