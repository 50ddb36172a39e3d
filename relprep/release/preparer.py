"""Release preparation flow.

One linear sequence, each step a gate:

    next version -> tag guard -> manifest -> changelog -> note -> commit -> tag

The tag guard runs before anything touches the disk. Files written by the
manifest and changelog steps are not rolled back if a later step fails; the
operator inspects the working tree and retries.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relprep.core.config import ReleaseConfig
from relprep.core.result import Err, Ok, Result
from relprep.git.repository import GitError, VersionControl
from relprep.output.console import ConsoleProtocol
from relprep.release.changelog import ChangelogEngine
from relprep.release.errors import AlreadyReleasedError, PrepareError, VersionControlError
from relprep.release.manifest import ManifestEditor


@dataclass(frozen=True, slots=True)
class ReleaseContext:
    """Everything a release run touches, passed explicitly.

    Attributes:
        repo_root: Root of the repository being released.
        config: Loaded configuration.
        console: Progress output.
        changelog: Changelog engine collaborator.
        manifest: Manifest editor collaborator.
        vcs: Version-control collaborator.
    """

    repo_root: Path
    config: ReleaseConfig
    console: ConsoleProtocol
    changelog: ChangelogEngine
    manifest: ManifestEditor
    vcs: VersionControl


@dataclass(frozen=True, slots=True)
class PreparedRelease:
    version: str
    bare_version: str
    commit_message: str
    note: str
    staged: tuple[Path, ...]


def _vcs_error(e: GitError) -> VersionControlError:
    return VersionControlError(command=e.command, message=e.message)


def prepare_release(ctx: ReleaseContext) -> Result[PreparedRelease, PrepareError]:
    console = ctx.console

    version_r = ctx.changelog.bumped_version()
    if isinstance(version_r, Err):
        return version_r
    version = version_r.value
    console.info(f"next version: {version.tag}")
    message = ctx.config.commit_message_for(version.tag)

    exists = ctx.vcs.tag_exists(version.tag).map_err(_vcs_error)
    if isinstance(exists, Err):
        return exists
    if exists.value:
        return Err(AlreadyReleasedError(version=version.tag))

    touched = ctx.manifest.set_version(version.bare)
    if isinstance(touched, Err):
        return touched

    changelog_path = ctx.changelog.regenerate(tag=version.tag)
    if isinstance(changelog_path, Err):
        return changelog_path

    # Same unreleased range and tag as the regeneration above
    note = ctx.changelog.release_note(tag=version.tag)
    if isinstance(note, Err):
        return note

    staged = (*touched.value, changelog_path.value)

    console.command(["git", "add", *(_display(p, ctx.repo_root) for p in staged)])
    added = ctx.vcs.add(staged).map_err(_vcs_error)
    if isinstance(added, Err):
        return added

    console.command(["git", "commit", "-m", message])
    committed = ctx.vcs.commit(message).map_err(_vcs_error)
    if isinstance(committed, Err):
        return committed

    comment_char = ctx.config.tag_comment_char
    console.command(["git", "-c", f"core.commentChar={comment_char}", "tag", "-a", version.tag])
    tagged = ctx.vcs.create_annotated_tag(
        version.tag, note.value, comment_char=comment_char
    ).map_err(_vcs_error)
    if isinstance(tagged, Err):
        return tagged

    console.success(f"prepared {version.tag}")
    return Ok(
        PreparedRelease(
            version=version.tag,
            bare_version=version.bare,
            commit_message=message,
            note=note.value,
            staged=staged,
        )
    )


def _display(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)

