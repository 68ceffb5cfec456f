"""Version control access."""

from __future__ import annotations

from tagsmith.vcs.git import GitRepository

__all__ = ["GitRepository"]
