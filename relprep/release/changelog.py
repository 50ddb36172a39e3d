from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relprep.core.result import Err, Ok, Result
from relprep.output.console import ConsoleProtocol
from relprep.platform.files import atomic_write_text
from relprep.platform.process import ProcessError
from relprep.platform.process import run as run_process
from relprep.release.errors import ChangelogGenerationError, VersionComputationError
from relprep.release.timeouts import CHANGELOG_TIMEOUT_SECONDS
from relprep.release.version import Version, version_from_engine_output


class ChangelogEngine(Protocol):
    """The three questions the release flow asks the changelog engine."""

    def bumped_version(self) -> Result[Version, VersionComputationError]: ...

    def regenerate(self, *, tag: str) -> Result[Path, ChangelogGenerationError]:
        """Rewrite the full changelog with the unreleased range under ``tag``."""
        ...

    def release_note(self, *, tag: str) -> Result[str, ChangelogGenerationError]:
        """Unreleased section only, labelled ``tag``, without the header."""
        ...


@dataclass(frozen=True, slots=True)
class GitCliff:
    """``git cliff`` as the changelog engine.

    Attributes:
        repo_root: Repository the engine runs in.
        changelog_path: File the full changelog is written to.
        command: argv prefix (``git cliff`` or ``git-cliff``).
        console: Where executed commands are echoed.
    """

    repo_root: Path
    changelog_path: Path
    command: tuple[str, ...]
    console: ConsoleProtocol

    def bumped_version(self) -> Result[Version, VersionComputationError]:
        cmd = [*self.command, "--bumped-version"]
        self.console.command(cmd)
        result = self._run(cmd)
        if isinstance(result, Err):
            e = result.error
            return Err(
                VersionComputationError(
                    message=e.diagnostic(),
                    hint=_missing_tool_hint(e),
                )
            )
        return version_from_engine_output(result.value)

    def regenerate(self, *, tag: str) -> Result[Path, ChangelogGenerationError]:
        cmd = [*self.command, "--tag", tag]
        self.console.command([*cmd, ">", self._display_path()])
        result = self._run(cmd)
        if isinstance(result, Err):
            e = result.error
            return Err(
                ChangelogGenerationError(
                    message=e.diagnostic(),
                    hint=_missing_tool_hint(e),
                )
            )

        try:
            atomic_write_text(self.changelog_path, result.value, encoding="utf-8")
        except OSError as e:
            return Err(
                ChangelogGenerationError(
                    message=f"failed to write {self.changelog_path.name}: {e}",
                    hint=str(self.changelog_path),
                )
            )
        return Ok(self.changelog_path)

    def release_note(self, *, tag: str) -> Result[str, ChangelogGenerationError]:
        cmd = [*self.command, "--unreleased", "--tag", tag, "--strip", "header"]
        self.console.command(cmd)
        result = self._run(cmd)
        if isinstance(result, Err):
            e = result.error
            return Err(
                ChangelogGenerationError(
                    message=e.diagnostic(),
                    hint=_missing_tool_hint(e),
                )
            )
        # Trailing newlines only; the note stays a verbatim slice of the file
        return Ok(result.value.rstrip("\n"))

    def _display_path(self) -> str:
        try:
            return self.changelog_path.relative_to(self.repo_root).as_posix()
        except ValueError:
            return str(self.changelog_path)

    def _run(self, cmd: list[str]):
        return run_process(cmd, cwd=self.repo_root, timeout=CHANGELOG_TIMEOUT_SECONDS)


def _missing_tool_hint(error: ProcessError) -> str | None:
    if error.returncode == -1 and "timed out" not in error.stderr:
        return "Install git-cliff (https://git-cliff.org) or set [changelog_engine].command."
    return None
