"""Typed configuration loading and access.

Configuration is optional. It is read from the repository root, first from
``relprep.toml`` and otherwise from the ``[tool.relprep]`` table of
``pyproject.toml``. Defaults describe a Cargo project released with
git-cliff.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, cast

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_str, get_str_list, get_table

__all__ = [
    "CONFIG_FILE_NAME",
    "ChangelogEngineConfig",
    "ConfigError",
    "ManifestConfig",
    "ManifestKind",
    "ReleaseConfig",
    "find_config_file",
    "load_config",
    "load_repo_config",
]

CONFIG_FILE_NAME = "relprep.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"

DEFAULT_CHANGELOG = "CHANGELOG.md"
DEFAULT_COMMENT_CHAR = "@"
DEFAULT_COMMIT_MESSAGE = "chore(release): prepare for {version}"
DEFAULT_CHANGELOG_COMMAND = ("git", "cliff")

# git strips note lines starting with the comment char: markdown headings and bullets
_RESERVED_COMMENT_CHARS = "#-*+"

ManifestKind = Literal["cargo", "toml", "json"]
_MANIFEST_KINDS: tuple[ManifestKind, ...] = ("cargo", "toml", "json")

_DEFAULT_MANIFEST_PATHS: dict[ManifestKind, str] = {
    "cargo": "Cargo.toml",
    "toml": "pyproject.toml",
    "json": "package.json",
}


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ChangelogEngineConfig:
    """How to invoke the changelog engine (argv prefix)."""

    command: tuple[str, ...] = DEFAULT_CHANGELOG_COMMAND


@dataclass(frozen=True, slots=True)
class ManifestConfig:
    """Which manifest carries the project version and how to edit it.

    Attributes:
        kind: ``cargo`` delegates to ``cargo set-version``; ``toml`` and
            ``json`` edit the file directly.
        path: Manifest path relative to the repository root.
        table: TOML table holding ``version`` (``toml`` kind only).
    """

    kind: ManifestKind = "cargo"
    path: str = "Cargo.toml"
    table: str = "package"


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Main configuration container."""

    changelog: str = DEFAULT_CHANGELOG
    tag_comment_char: str = DEFAULT_COMMENT_CHAR
    commit_message: str = DEFAULT_COMMIT_MESSAGE
    changelog_engine: ChangelogEngineConfig = field(default_factory=ChangelogEngineConfig)
    manifest: ManifestConfig = field(default_factory=ManifestConfig)

    def commit_message_for(self, version: str) -> str:
        return self.commit_message.format(version=version)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ReleaseConfig:
        """Create a config from a parsed TOML mapping.

        Raises:
            ValueError: If a value is present but invalid.
        """
        engine: StrDict = get_table(data, "changelog_engine") or {}
        manifest: StrDict = get_table(data, "manifest") or {}

        comment_char = get_str(data, "tag_comment_char") or DEFAULT_COMMENT_CHAR
        if (
            len(comment_char) != 1
            or comment_char.isspace()
            or comment_char in _RESERVED_COMMENT_CHARS
        ):
            raise ValueError(
                "tag_comment_char must be a single non-whitespace character other than "
                f"{' '.join(_RESERVED_COMMENT_CHARS)}: {comment_char!r}"
            )

        commit_message = get_str(data, "commit_message") or DEFAULT_COMMIT_MESSAGE
        if "{version}" not in commit_message:
            raise ValueError("commit_message must contain a {version} placeholder")
        try:
            commit_message.format(version="v0.0.0")
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(f"invalid commit_message template {commit_message!r}: {e!r}") from e

        kind_raw = get_str(manifest, "kind") or "cargo"
        if kind_raw not in _MANIFEST_KINDS:
            raise ValueError(
                f"unknown manifest kind: {kind_raw} (expected one of {', '.join(_MANIFEST_KINDS)})"
            )
        kind = cast(ManifestKind, kind_raw)

        command = get_str_list(engine, "command")

        return cls(
            changelog=get_str(data, "changelog") or DEFAULT_CHANGELOG,
            tag_comment_char=comment_char,
            commit_message=commit_message,
            changelog_engine=ChangelogEngineConfig(
                command=tuple(command) if command else DEFAULT_CHANGELOG_COMMAND,
            ),
            manifest=ManifestConfig(
                kind=kind,
                path=get_str(manifest, "path") or _DEFAULT_MANIFEST_PATHS[kind],
                table=get_str(manifest, "table") or _default_table(kind),
            ),
        )


def _default_table(kind: ManifestKind) -> str:
    return "project" if kind == "toml" else "package"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling import and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def _build(data: Mapping[str, object], path: Path) -> Result[ReleaseConfig, ConfigError]:
    try:
        return Ok(ReleaseConfig.from_dict(data))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config(path: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load configuration from a standalone ``relprep.toml`` file.

    Args:
        path: Path to the config file

    Returns:
        Ok(ReleaseConfig) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result
    return _build(result.value, path)


def find_config_file(repo_root: Path) -> Path | None:
    """Return the file configuration would be read from, if any."""
    standalone = repo_root / CONFIG_FILE_NAME
    if standalone.is_file():
        return standalone
    pyproject = repo_root / PYPROJECT_FILE_NAME
    if pyproject.is_file():
        return pyproject
    return None


def load_repo_config(repo_root: Path) -> Result[ReleaseConfig, ConfigError]:
    """Load configuration for a repository, falling back to defaults.

    ``pyproject.toml`` without a ``[tool.relprep]`` table yields defaults.
    """
    path = find_config_file(repo_root)
    if path is None:
        return Ok(ReleaseConfig())

    if path.name == CONFIG_FILE_NAME:
        return load_config(path)

    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed
    tool = get_table(parsed.value, "tool") or {}
    section = get_table(tool, "relprep")
    if section is None:
        return Ok(ReleaseConfig())
    return _build(section, path)
