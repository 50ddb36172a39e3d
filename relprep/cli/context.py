from __future__ import annotations

from pathlib import Path

import typer

from relprep.core.config import load_repo_config
from relprep.core.errors import ErrorCode
from relprep.core.result import Err
from relprep.git.repository import Repository
from relprep.output.console import ConsoleProtocol, RichConsole, Style
from relprep.release.changelog import GitCliff
from relprep.release.manifest import manifest_editor_for
from relprep.release.preparer import ReleaseContext


def _fail(console: ConsoleProtocol, message: str, hint: str | None = None) -> typer.Exit:
    console.error(message)
    if hint:
        console.print(f"hint: {hint}", Style.DIM)
    return typer.Exit(code=int(ErrorCode.FAILURE))


def build_context(
    start: Path | None = None,
    *,
    console: ConsoleProtocol | None = None,
) -> ReleaseContext:
    """Resolve the repository, its config and the default collaborators.

    Exits with ``ErrorCode.FAILURE`` if ``start`` is not inside a git
    repository or the config file is invalid.
    """
    out = console if console is not None else RichConsole()

    repo_result = Repository.discover(start if start is not None else Path.cwd())
    if isinstance(repo_result, Err):
        raise _fail(out, repo_result.error.message)
    repo = repo_result.value

    config_result = load_repo_config(repo.path)
    if isinstance(config_result, Err):
        e = config_result.error
        raise _fail(out, e.message, str(e.path) if e.path is not None else None)
    config = config_result.value

    return ReleaseContext(
        repo_root=repo.path,
        config=config,
        console=out,
        changelog=GitCliff(
            repo_root=repo.path,
            changelog_path=repo.path / config.changelog,
            command=config.changelog_engine.command,
            console=out,
        ),
        manifest=manifest_editor_for(config.manifest, repo_root=repo.path, console=out),
        vcs=repo,
    )
