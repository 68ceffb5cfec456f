"""Configuration management for tagsmith."""

from __future__ import annotations

from tagsmith.config.loader import ConfigOverrides, load_config, resolve_config
from tagsmith.config.models import ChangelogConfig, GitHubConfig, TagsmithConfig

__all__ = [
    "ChangelogConfig",
    "ConfigOverrides",
    "GitHubConfig",
    "TagsmithConfig",
    "load_config",
    "resolve_config",
]
