"""Configuration models for tagsmith.

A resolved configuration is immutable: it is built once by
``tagsmith.config.loader.resolve_config`` and passed around as a value.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tagsmith.core.changelog import DEFAULT_HEADER
from tagsmith.core.commits import DEFAULT_IGNORE_PATTERNS

DEFAULT_TAG_PATTERN = r"^v\d+\.\d+\.\d+$"


def _check_regex(pattern: str) -> str:
    try:
        re.compile(pattern)
    except re.error as e:
        raise ValueError(f"invalid regular expression '{pattern}': {e}") from e
    return pattern


class ChangelogConfig(BaseModel):
    """Changelog file settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Path = Path("CHANGELOG.md")
    header: str = DEFAULT_HEADER
    template: str | None = Field(
        default=None,
        description="Section template; $DATE, $VERSION and $COMMITS are substituted",
    )


class GitHubConfig(BaseModel):
    """GitHub release store settings."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    owner: str | None = None
    repo: str | None = None
    token: str | None = Field(default=None, repr=False)
    api_url: str = "https://api.github.com"


class TagsmithConfig(BaseModel):
    """Root configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tag_pattern: str = DEFAULT_TAG_PATTERN
    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    verbose: bool = False

    @field_validator("tag_pattern")
    @classmethod
    def _validate_tag_pattern(cls, value: str) -> str:
        return _check_regex(value)

    @field_validator("ignore_patterns")
    @classmethod
    def _validate_ignore_patterns(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for pattern in value:
            _check_regex(pattern)
        return value

    @property
    def tag_regex(self) -> re.Pattern[str]:
        return re.compile(self.tag_pattern)
