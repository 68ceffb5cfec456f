"""Implementation of the 'release' command.

Reconciles GitHub releases with the release tags in git history:
missing releases are created, stale ones updated, and with --rebuild
every release is deleted and recreated.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape

from tagsmith.cli.history import History
from tagsmith.core.release import (
    ReleaseOptions,
    ReleaseStore,
    build_candidates,
    execute_plan,
    notes_for,
    plan_releases,
    validate_options,
)
from tagsmith.exceptions import ReleaseError, TagsmithError
from tagsmith.forge.github import GitHubReleaseStore, parse_github_repo_from_url
from tagsmith.vcs import GitRepository

if TYPE_CHECKING:
    from rich.console import Console

    from tagsmith.config.models import TagsmithConfig

StoreFactory = Callable[..., ReleaseStore]


def run_release(
    path: str | None,
    options: ReleaseOptions,
    config: TagsmithConfig,
    console: Console,
    err_console: Console,
    store_factory: StoreFactory | None = None,
) -> None:
    """Run the release command.

    Args:
        path: Optional path to project directory
        options: Release options from the command line
        config: Resolved configuration (flags already layered in)
        console: Console for standard output
        err_console: Console for error output
        store_factory: Builds the release store from owner, repo and token
            (default: GitHubReleaseStore)
    """
    try:
        validate_options(options)

        repo = GitRepository(Path(path) if path else None)
        history = History.load(repo, config)
        candidates = build_candidates(history.graph, history.tags, history.commit_filter)
        if not candidates:
            raise ReleaseError(f"No matching git tags found for pattern '{config.tag_pattern}'")

        if options.notes_only:
            notes = notes_for(candidates, options.target)
            console.print(notes, markup=False, highlight=False, emoji=False, soft_wrap=True)
            return

        owner, name = _resolve_owner_repo(repo, config)
        token = config.github.token
        if not token and not options.dry_run:
            raise ReleaseError(
                "Missing GitHub token. Set TAGSMITH_TOKEN/GH_RELEASE_TOKEN or pass --token."
            )

        factory = store_factory or GitHubReleaseStore
        store = factory(owner, name, token, api_url=config.github.api_url)
        plan = plan_releases(candidates, store.list_releases(), options)
        report = execute_plan(plan, store, dry_run=options.dry_run)
    except TagsmithError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    mode = "[yellow]DRY-RUN[/]" if options.dry_run else "[green]EXECUTING[/]"
    action = "Rebuilding" if options.rebuild else "Reconciling"
    console.print(f"\n{mode} - {action} GitHub releases for [cyan]{owner}/{name}[/]\n")
    for line in report.lines():
        console.print(f"  {escape(line)}", highlight=False)

    counts = Counter(str(item.action) for item in report.items)
    summary = ", ".join(f"{count} {kind}" for kind, count in sorted(counts.items()))
    console.print(f"\n[dim]{summary or 'nothing to do'}[/]")


def _resolve_owner_repo(repo: GitRepository, config: TagsmithConfig) -> tuple[str, str]:
    owner, name = config.github.owner, config.github.repo
    if owner and name:
        return owner, name

    url = repo.remote_url()
    detected = parse_github_repo_from_url(url) if url else None
    if detected:
        return owner or detected[0], name or detected[1]

    raise ReleaseError(
        "Cannot determine GitHub owner/repo. Set TAGSMITH_OWNER and TAGSMITH_REPO, "
        "or use --owner/--repo."
    )
