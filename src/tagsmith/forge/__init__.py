"""Release store adapters."""

from __future__ import annotations

from tagsmith.forge.github import GitHubReleaseStore, parse_github_repo_from_url

__all__ = ["GitHubReleaseStore", "parse_github_repo_from_url"]
