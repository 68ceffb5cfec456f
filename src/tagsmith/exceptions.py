"""Exception hierarchy for tagsmith.

Every error raised on purpose derives from TagsmithError, so the CLI
can report it without a traceback. Commit parsing never raises:
unparseable subjects degrade to the ``other`` commit type.
"""

from __future__ import annotations


class TagsmithError(Exception):
    """Base class for all tagsmith errors."""


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(TagsmithError):
    """Configuration could not be loaded or resolved."""


class ConfigNotFoundError(ConfigError):
    """A configuration file was requested but does not exist."""


class ConfigValidationError(ConfigError):
    """Configuration values are invalid (e.g. a regex that does not compile)."""


# =============================================================================
# Versions
# =============================================================================


class VersionError(TagsmithError):
    """Base class for version resolution errors."""


class MalformedVersionError(VersionError):
    """A version string is not three non-negative integers."""


class MissingBaselineError(VersionError):
    """No previous tag and no explicit version to start from."""


# =============================================================================
# Commands
# =============================================================================


class ConflictingFlagsError(TagsmithError):
    """Mutually exclusive options were combined."""

    def __init__(self, message: str, flags: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.flags = flags


class ChangelogError(TagsmithError):
    """Changelog generation or merging failed."""


class AmbiguousSectionError(ChangelogError):
    """The changelog holds more than one section for the same version."""

    def __init__(self, version: str, count: int) -> None:
        super().__init__(
            f"CHANGELOG contains {count} sections for version {version}. "
            "Remove the duplicates or regenerate it with --rebuild."
        )
        self.version = version
        self.count = count


class ReleaseError(TagsmithError):
    """Release reconciliation failed."""


class UnknownTagError(ReleaseError):
    """An explicit release target has no matching git tag."""


class GitHubError(ReleaseError):
    """The GitHub API returned an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# Collaborators
# =============================================================================


class GitError(TagsmithError):
    """A git command failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr

    def __str__(self) -> str:
        base = super().__str__()
        if self.stderr:
            return f"{base}\n{self.stderr.strip()}"
        return base


class ProjectError(TagsmithError):
    """The project's version file could not be read or updated."""


class VersionNotFoundError(ProjectError):
    """No version field was found in a project file."""
