"""Git operations used to record a release."""

from .repository import GitError, Repository, VersionControl

__all__ = ["GitError", "Repository", "VersionControl"]
