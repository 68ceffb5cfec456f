"""Project version files.

Reads and updates the version stored in a project's pyproject.toml
(``[project].version`` or ``[tool.poetry].version``) or in a plain
``VERSION`` file.

pyproject.toml is edited with targeted regex replacement rather than a
TOML round-trip, so formatting and comments survive.
"""

from __future__ import annotations

import re
from pathlib import Path

from tagsmith.core.version import Version, parse_version
from tagsmith.exceptions import ProjectError, VersionNotFoundError

PLAIN_VERSION_FILES = ("VERSION", "version")

_SECTIONS = (r"^\[project\]", r"^\[tool\.poetry\]")
_VERSION_LINE = r'^(version\s*=\s*)["\']([^"\']+)["\']'


def _section_pattern(header: str) -> re.Pattern[str]:
    # The section runs up to the next table header or EOF.
    return re.compile(header + r".*?(?=^\[|\Z)", re.MULTILINE | re.DOTALL)


def get_pyproject_version(path: Path) -> str:
    """Get the version string from pyproject.toml.

    Raises:
        VersionNotFoundError: If neither [project] nor [tool.poetry] has a version
    """
    content = path.read_text()
    for header in _SECTIONS:
        section = _section_pattern(header).search(content)
        if not section:
            continue
        match = re.search(_VERSION_LINE, section.group(0), re.MULTILINE)
        if match:
            return match.group(2)

    raise VersionNotFoundError(
        f"Could not find version in {path}. Expected [project].version or [tool.poetry].version."
    )


def update_pyproject_version(path: Path, new_version: str) -> None:
    """Set the version in pyproject.toml, keeping everything else intact.

    Raises:
        VersionNotFoundError: If no version field can be found
    """
    content = path.read_text()

    def replace(match: re.Match[str]) -> str:
        return re.sub(
            _VERSION_LINE,
            rf'\g<1>"{new_version}"',
            match.group(0),
            count=1,
            flags=re.MULTILINE,
        )

    for header in _SECTIONS:
        pattern = _section_pattern(header)
        section = pattern.search(content)
        if section and re.search(_VERSION_LINE, section.group(0), re.MULTILINE):
            path.write_text(pattern.sub(replace, content, count=1))
            return

    raise VersionNotFoundError(
        f"Could not find version to update in {path}. "
        "Expected [project].version or [tool.poetry].version."
    )


def find_version_file(directory: Path) -> Path:
    """Locate the file holding the project version.

    pyproject.toml wins when it declares a version; otherwise a plain
    ``VERSION`` (or ``version``) file is used.

    Raises:
        ProjectError: If no supported version file exists
    """
    pyproject = directory / "pyproject.toml"
    if pyproject.is_file():
        try:
            get_pyproject_version(pyproject)
        except VersionNotFoundError:
            pass
        else:
            return pyproject

    for name in PLAIN_VERSION_FILES:
        candidate = directory / name
        if candidate.is_file():
            return candidate

    raise ProjectError(
        f"No supported version file found in {directory} "
        "(pyproject.toml with a version field, or VERSION)"
    )


def read_project_version(path: Path) -> Version:
    """Read the version from a version file found by ``find_version_file``."""
    if path.name == "pyproject.toml":
        return parse_version(get_pyproject_version(path))
    if not path.is_file():
        raise ProjectError(f"Version file not found: {path}")
    return parse_version(path.read_text())


def write_project_version(path: Path, version: Version) -> None:
    """Write ``version`` to a version file found by ``find_version_file``."""
    if path.name == "pyproject.toml":
        update_pyproject_version(path, str(version))
    else:
        path.write_text(f"{version}\n")
