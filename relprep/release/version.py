from __future__ import annotations

import re
from dataclasses import dataclass

from relprep.core.result import Err, Ok, Result
from relprep.release.errors import VersionComputationError

_PREFIXES = ("v", "V")

_SEMVER_RE = re.compile(
    r"^(?P<prefix>[vV]?)"
    r"(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<pre>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@dataclass(frozen=True, slots=True)
class Version:
    """A computed release version.

    ``tag`` is the string as produced by the changelog engine (and used as
    the git tag name); ``bare`` is what goes into the manifest.
    """

    tag: str
    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = None

    @property
    def bare(self) -> str:
        return strip_prefix(self.tag)

    def __str__(self) -> str:
        return self.tag


def strip_prefix(version: str) -> str:
    """Drop one leading ``v``/``V`` (``v1.2.0`` -> ``1.2.0``)."""
    if version[:1] in _PREFIXES:
        return version[1:]
    return version


def parse_version(text: str) -> Version | None:
    m = _SEMVER_RE.match(text.strip())
    if m is None:
        return None
    return Version(
        tag=text.strip(),
        major=int(m.group("major")),
        minor=int(m.group("minor")),
        patch=int(m.group("patch")),
        prerelease=m.group("pre"),
        build=m.group("build"),
    )


def version_from_engine_output(output: str) -> Result[Version, VersionComputationError]:
    """Parse the bumped version printed by the changelog engine.

    The engine may log warnings before the version; the last non-empty line
    is the answer.
    """
    lines = [ln.strip() for ln in output.splitlines() if ln.strip()]
    if not lines:
        return Err(
            VersionComputationError(
                message="changelog engine printed no version",
                hint="Is there any commit history to release?",
            )
        )

    candidate = lines[-1]
    parsed = parse_version(candidate)
    if parsed is None:
        return Err(
            VersionComputationError(
                message=f"not a semantic version: {candidate}",
                hint="Expected vMAJOR.MINOR.PATCH",
            )
        )
    return Ok(parsed)
