"""tagsmith command line."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from tagsmith import __version__
from tagsmith.config import ConfigOverrides, TagsmithConfig, load_config
from tagsmith.core.release import ReleaseOptions, validate_options
from tagsmith.exceptions import TagsmithError

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_time=False, show_path=False)],
        force=True,
    )


def _load(ctx: click.Context, **overrides: str | None) -> TagsmithConfig:
    """Resolve configuration for a command and set up logging."""
    params = ctx.find_root().params
    config_path = params.get("config") or params.get("path")
    try:
        config = load_config(
            Path(config_path) if config_path else None,
            overrides=ConfigOverrides(
                tag_pattern=params.get("tag_pattern"),
                verbose=params.get("verbose") or None,
                **overrides,
            ),
        )
    except TagsmithError as e:
        err_console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    _setup_logging(config.verbose)
    logging.getLogger(__name__).debug("Configuration loaded for command '%s'", ctx.info_name)
    return config


@click.group()
@click.version_option(__version__, prog_name="tagsmith")
@click.option(
    "--config",
    "-c",
    type=click.Path(dir_okay=True, path_type=str),
    help="pyproject.toml to read [tool.tagsmith] from (default: nearest one).",
)
@click.option("--tag-pattern", "-p", help="Regex selecting release tags.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option(
    "--path",
    "-C",
    "path",
    type=click.Path(exists=True, file_okay=False, path_type=str),
    help="Run as if started in this directory.",
)
def cli(config: str | None, tag_pattern: str | None, verbose: bool, path: str | None) -> None:
    """tagsmith - semantic versions, changelogs and GitHub releases from conventional commits."""


@cli.command("version")
@click.option("--from-tag", "-f", help="Use this tag instead of the latest release tag.")
@click.pass_context
def version_cmd(ctx: click.Context, from_tag: str | None) -> None:
    """Print the current version."""
    from tagsmith.cli.commands.version import run_version

    config = _load(ctx)
    run_version(ctx.find_root().params.get("path"), from_tag, config, console, err_console)


@cli.command("semver")
@click.option("--from-tag", "-f", help="Count commits from this tag instead of the latest one.")
@click.pass_context
def semver_cmd(ctx: click.Context, from_tag: str | None) -> None:
    """Compute the next semantic bump type."""
    from tagsmith.cli.commands.version import run_semver

    config = _load(ctx)
    run_semver(ctx.find_root().params.get("path"), from_tag, config, console, err_console)


@cli.command("update")
@click.argument("target", required=False)
@click.option("--from-tag", "-f", help="Count commits from this tag instead of the latest one.")
@click.option("--execute", "-x", is_flag=True, help="Apply the changes (default: preview).")
@click.option("--commit", "-o", is_flag=True, help="Commit the updated version file.")
@click.option("--message", "-m", "commit_message", help="Custom commit message.")
@click.option("--tag", "-t", is_flag=True, help="Tag the commit with the new version.")
@click.pass_context
def update_cmd(
    ctx: click.Context,
    target: str | None,
    from_tag: str | None,
    execute: bool,
    commit: bool,
    commit_message: str | None,
    tag: bool,
) -> None:
    """Update the project version (TARGET: major|minor|patch or a version)."""
    from tagsmith.cli.commands.update import run_update

    if (commit_message or tag) and not commit:
        raise click.UsageError("--message and --tag require --commit")

    config = _load(ctx)
    run_update(
        ctx.find_root().params.get("path"),
        target,
        from_tag,
        execute,
        commit,
        commit_message,
        tag,
        config,
        console,
        err_console,
    )


@cli.command("changelog")
@click.argument("target", required=False)
@click.option("--rebuild", "-r", is_flag=True, help="Regenerate the changelog from all tags.")
@click.option("--dry-run", "-d", is_flag=True, help="Print the result without writing it.")
@click.option("--commit", "-o", is_flag=True, help="Commit if the changelog is the only change.")
@click.option("--message", "-m", "commit_message", help="Custom commit message.")
@click.pass_context
def changelog_cmd(
    ctx: click.Context,
    target: str | None,
    rebuild: bool,
    dry_run: bool,
    commit: bool,
    commit_message: str | None,
) -> None:
    """Add the next release section to the changelog."""
    from tagsmith.cli.commands.changelog import run_changelog

    if commit_message and not commit:
        raise click.UsageError("--message requires --commit")

    config = _load(ctx)
    run_changelog(
        ctx.find_root().params.get("path"),
        target,
        rebuild,
        dry_run,
        commit,
        commit_message,
        config,
        console,
        err_console,
    )


@cli.command("release")
@click.argument("target", required=False)
@click.option("--rebuild", "-r", is_flag=True, help="Delete and recreate every release.")
@click.option("--notes-only", "-n", is_flag=True, help="Print the release notes and exit.")
@click.option("--token", "-t", help="GitHub token.")
@click.option("--owner", "-o", help="GitHub owner or organization.")
@click.option("--repo", "-u", help="GitHub repository.")
@click.option("--dry-run", "-d", is_flag=True, help="Show the plan without calling the API.")
@click.option("--prerelease", "-a", is_flag=True, help="Mark TARGET as a pre-release.")
@click.pass_context
def release_cmd(
    ctx: click.Context,
    target: str | None,
    rebuild: bool,
    notes_only: bool,
    token: str | None,
    owner: str | None,
    repo: str | None,
    dry_run: bool,
    prerelease: bool,
) -> None:
    """Publish GitHub releases for the release tags in git history."""
    from tagsmith.cli.commands.release import run_release

    options = ReleaseOptions(
        target=target,
        rebuild=rebuild,
        dry_run=dry_run,
        notes_only=notes_only,
        prerelease=prerelease,
        token=token,
        owner=owner,
        repo=repo,
    )
    try:
        validate_options(options)
    except TagsmithError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(1) from e

    config = _load(ctx, token=token, owner=owner, repo=repo)
    run_release(ctx.find_root().params.get("path"), options, config, console, err_console)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
