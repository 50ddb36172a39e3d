"""Release preparation: version bump, changelog, commit and tag."""

from .errors import (
    AlreadyReleasedError,
    ChangelogGenerationError,
    ManifestUpdateError,
    PrepareError,
    VersionComputationError,
    VersionControlError,
)
from .preparer import PreparedRelease, ReleaseContext, prepare_release

__all__ = [
    "AlreadyReleasedError",
    "ChangelogGenerationError",
    "ManifestUpdateError",
    "PrepareError",
    "PreparedRelease",
    "ReleaseContext",
    "VersionComputationError",
    "VersionControlError",
    "prepare_release",
]
