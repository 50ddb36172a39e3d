"""Error types for release preparation.

Each failure mode of the release flow is its own frozen dataclass so the
CLI can ``match`` on it. Collaborator diagnostics are kept verbatim in
``message``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, slots=True)
class VersionComputationError:
    """The changelog engine could not produce a next version."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class AlreadyReleasedError:
    """A tag for the computed version already exists."""

    version: str

    @property
    def message(self) -> str:
        return f"tag {self.version} exists"

    @property
    def hint(self) -> str:
        return "Add releasable commits since the last tag, then retry."


@dataclass(frozen=True, slots=True)
class ManifestUpdateError:
    """The version manifest is missing, malformed or could not be written."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class ChangelogGenerationError:
    """The changelog could not be regenerated or the note extracted."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class VersionControlError:
    """A git operation (tag lookup, add, commit, tag) failed."""

    command: str
    message: str

    @property
    def hint(self) -> str | None:
        if self.command == "commit" and "identity" in self.message.lower():
            return "Configure git user.name/user.email, then retry."
        return None


PrepareError = (
    VersionComputationError
    | AlreadyReleasedError
    | ManifestUpdateError
    | ChangelogGenerationError
    | VersionControlError
)
