"""Git repository abstraction.

``Repository`` is the version-control collaborator of the release flow:
tag lookup, staging, committing and annotated tagging. Every method returns
a ``Result`` whose error carries git's own message.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.tag_exists("v1.2.0"):
        case Ok(True):
            print("already released")
        case Ok(False):
            ...
        case Err(e):
            print(f"Error: {e.message}")
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relprep.core.result import Err, Ok, Result
from relprep.platform.process import ProcessError
from relprep.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

__all__ = [
    "GitError",
    "Repository",
    "VersionControl",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed (e.g. "commit")
        message: Error message, as printed by git
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class VersionControl(Protocol):
    """The git operations a release needs."""

    def tag_exists(self, name: str) -> Result[bool, GitError]: ...

    def add(self, paths: Sequence[Path]) -> Result[None, GitError]: ...

    def commit(self, message: str) -> Result[None, GitError]: ...

    def create_annotated_tag(
        self, name: str, message: str, *, comment_char: str
    ) -> Result[None, GitError]: ...


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    @classmethod
    def discover(cls, start: Path) -> Result[Repository, GitError]:
        """Find the repository containing ``start``.

        Runs `git rev-parse --show-toplevel`.
        """
        result = run_process(
            ["git", "-C", str(start), "rev-parse", "--show-toplevel"],
            cwd=start,
            timeout=_GIT_TIMEOUT_SECONDS,
        )
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e, "not a git repository"))
            case Ok(stdout):
                return Ok(cls(Path(stdout.strip())))

    def tag_exists(self, name: str) -> Result[bool, GitError]:
        """Check whether ``refs/tags/<name>`` exists.

        `git rev-parse --verify --quiet` exits 1 without output for a
        missing ref; anything else is a real failure.
        """
        result = self._run(["rev-parse", "--verify", "--quiet", f"refs/tags/{name}"])
        match result:
            case Ok(_):
                return Ok(True)
            case Err(e) if e.returncode == 1 and not e.stderr.strip():
                return Ok(False)
            case Err(e):
                return Err(_git_error("rev-parse", e, "tag lookup failed"))

    def add(self, paths: Sequence[Path]) -> Result[None, GitError]:
        """Stage ``paths`` (absolute or relative to the repository root)."""
        rels = [self._relative(p) for p in paths]
        result = self._run(["add", "--", *rels])
        if isinstance(result, Err):
            return Err(_git_error("add", result.error, "git add failed"))
        return Ok(None)

    def commit(self, message: str) -> Result[None, GitError]:
        result = self._run(["commit", "-m", message])
        if isinstance(result, Err):
            return Err(_git_error("commit", result.error, "git commit failed"))
        return Ok(None)

    def create_annotated_tag(
        self, name: str, message: str, *, comment_char: str
    ) -> Result[None, GitError]:
        """Create annotated tag ``name`` on HEAD with ``message`` as its body.

        git strips lines starting with the comment character from tag
        messages; setting ``core.commentChar`` keeps markdown headings
        (``## Features``) in the note. An existing tag is never replaced.
        """
        result = self._run(
            [
                "-c",
                f"core.commentChar={comment_char}",
                "tag",
                "-a",
                "-m",
                message,
                name,
            ]
        )
        if isinstance(result, Err):
            return Err(_git_error("tag", result.error, f"failed to create tag {name}"))
        return Ok(None)

    def head_commit(self) -> Result[str, GitError]:
        """Full SHA of HEAD."""
        result = self._run(["rev-parse", "HEAD"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e, "cannot resolve HEAD"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def tag_message(self, name: str) -> Result[str, GitError]:
        """Body of annotated tag ``name``."""
        result = self._run(["tag", "-l", "--format=%(contents)", name])
        match result:
            case Err(e):
                return Err(_git_error("tag", e, f"cannot read tag {name}"))
            case Ok(stdout):
                return Ok(stdout)

    def _relative(self, path: Path) -> str:
        if path.is_absolute():
            try:
                return path.relative_to(self.path).as_posix()
            except ValueError:
                return str(path)
        return path.as_posix()

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        return run_process(
            ["git", "-C", str(self.path), *args],
            cwd=self.path,
            timeout=_GIT_TIMEOUT_SECONDS,
        )


def _git_error(command: str, error: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=error.stderr.strip() or error.stdout.strip() or fallback,
        returncode=error.returncode,
    )
