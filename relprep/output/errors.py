"""Error presentation for release failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relprep.core.errors import ErrorCode
from relprep.output.console import Style
from relprep.release.errors import (
    AlreadyReleasedError,
    ChangelogGenerationError,
    ManifestUpdateError,
    PrepareError,
    VersionComputationError,
    VersionControlError,
)

if TYPE_CHECKING:
    from relprep.output.console import ConsoleProtocol

__all__ = ["print_prepare_error", "prepare_error_exit_code"]


def print_prepare_error(error: PrepareError, console: ConsoleProtocol) -> None:
    """Print the collaborator's diagnostic unchanged, plus a hint when known."""
    hint: str | None = None
    match error:
        case VersionComputationError(message=message, hint=hint):
            console.error(f"cannot compute next version: {message}")
        case AlreadyReleasedError() as e:
            console.error(e.message)
            hint = e.hint
        case ManifestUpdateError(message=message, path=path, hint=hint):
            console.error(f"manifest update failed: {message}")
            if path is not None and hint is None:
                hint = str(path)
        case ChangelogGenerationError(message=message, hint=hint):
            console.error(f"changelog generation failed: {message}")
        case VersionControlError(command=command, message=message) as e:
            console.error(f"git {command} failed: {message}")
            hint = e.hint
    if hint:
        console.print(f"hint: {hint}", Style.DIM)


def prepare_error_exit_code(error: PrepareError) -> int:
    """Every release failure maps to the same exit code."""
    return int(ErrorCode.FAILURE)
