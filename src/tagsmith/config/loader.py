"""Configuration loading and layering.

Settings are read from ``[tool.tagsmith]`` in pyproject.toml, then
overridden by ``TAGSMITH_*`` environment variables, then by
command-line flags. The result is a frozen ``TagsmithConfig``.

Example pyproject.toml:

    [tool.tagsmith]
    tag_pattern = '^v\\d+\\.\\d+\\.\\d+$'
    ignore_patterns = ['^wip: .+$']

    [tool.tagsmith.changelog]
    path = "CHANGELOG.md"

    [tool.tagsmith.github]
    owner = "acme"
    repo = "widgets"
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from tagsmith.config.models import TagsmithConfig
from tagsmith.exceptions import ConfigNotFoundError, ConfigValidationError

TOKEN_ENV_VARS = ("TAGSMITH_TOKEN", "GH_RELEASE_TOKEN", "GITHUB_TOKEN")
TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class ConfigOverrides:
    """Values given on the command line. ``None`` means not given."""

    token: str | None = None
    owner: str | None = None
    repo: str | None = None
    tag_pattern: str | None = None
    verbose: bool | None = None


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml in ``start`` or one of its parents.

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists up to the root
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_tagsmith_config(pyproject: Mapping[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.tagsmith]`` table, or an empty dict."""
    return dict(pyproject.get("tool", {}).get("tagsmith", {}))


def _env_layer(env: Mapping[str, str]) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    github: dict[str, Any] = {}
    changelog: dict[str, Any] = {}

    token = next((env[name] for name in TOKEN_ENV_VARS if env.get(name)), None)
    if token:
        github["token"] = token
    if env.get("TAGSMITH_OWNER"):
        github["owner"] = env["TAGSMITH_OWNER"]
    if env.get("TAGSMITH_REPO"):
        github["repo"] = env["TAGSMITH_REPO"]
    if env.get("TAGSMITH_GITHUB_API_URL"):
        github["api_url"] = env["TAGSMITH_GITHUB_API_URL"]

    if env.get("TAGSMITH_CHANGELOG_TEMPLATE"):
        changelog["template"] = env["TAGSMITH_CHANGELOG_TEMPLATE"]

    if env.get("TAGSMITH_TAG_PATTERN"):
        layer["tag_pattern"] = env["TAGSMITH_TAG_PATTERN"]
    if env.get("TAGSMITH_IGNORE_PATTERNS"):
        layer["ignore_patterns"] = [
            entry.strip() for entry in env["TAGSMITH_IGNORE_PATTERNS"].split(";") if entry.strip()
        ]
    if "TAGSMITH_VERBOSE" in env:
        layer["verbose"] = env["TAGSMITH_VERBOSE"].strip().lower() in TRUTHY

    if github:
        layer["github"] = github
    if changelog:
        layer["changelog"] = changelog
    return layer


def _flags_layer(overrides: ConfigOverrides) -> dict[str, Any]:
    layer: dict[str, Any] = {}
    github = {
        key: value
        for key, value in (
            ("token", overrides.token),
            ("owner", overrides.owner),
            ("repo", overrides.repo),
        )
        if value is not None
    }
    if github:
        layer["github"] = github
    if overrides.tag_pattern is not None:
        layer["tag_pattern"] = overrides.tag_pattern
    if overrides.verbose:
        layer["verbose"] = True
    return layer


def _merge(base: dict[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _merge(dict(merged[key]), value)
        else:
            merged[key] = value
    return merged


def resolve_config(
    file_data: Mapping[str, Any] | None = None,
    env: Mapping[str, str] | None = None,
    overrides: ConfigOverrides | None = None,
) -> TagsmithConfig:
    """Layer flags over environment over file over defaults.

    Args:
        file_data: The ``[tool.tagsmith]`` table
        env: Environment variables
        overrides: Command-line values

    Raises:
        ConfigValidationError: If the merged values are invalid
    """
    data = _merge({}, file_data or {})
    data = _merge(data, _env_layer(env or {}))
    data = _merge(data, _flags_layer(overrides or ConfigOverrides()))

    try:
        return TagsmithConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid tagsmith configuration:\n{e}") from e


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: ConfigOverrides | None = None,
) -> TagsmithConfig:
    """Load configuration for a project.

    Args:
        path: A pyproject.toml file, or a directory to search from
            (default: current directory). A missing pyproject.toml in a
            searched directory falls back to defaults; an explicit file
            path must exist.
        env: Environment variables (default: ``os.environ``)
        overrides: Command-line values

    Raises:
        ConfigNotFoundError: If an explicit file path does not exist
        ConfigValidationError: If the configuration is invalid
    """
    if path is not None and not path.is_dir():
        file_data = extract_tagsmith_config(load_pyproject_toml(path))
    else:
        try:
            pyproject = find_pyproject_toml(path)
        except ConfigNotFoundError:
            file_data = {}
        else:
            file_data = extract_tagsmith_config(load_pyproject_toml(pyproject))

    return resolve_config(file_data, os.environ if env is None else env, overrides)
