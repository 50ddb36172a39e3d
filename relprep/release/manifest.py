from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relprep.core.config import ManifestConfig
from relprep.core.result import Err, Ok, Result
from relprep.core.structured import as_str_dict, get_str
from relprep.output.console import ConsoleProtocol
from relprep.platform.files import atomic_write_text
from relprep.platform.process import run as run_process
from relprep.release.errors import ManifestUpdateError
from relprep.release.timeouts import MANIFEST_TOOL_TIMEOUT_SECONDS

_VERSION_LINE_RE = re.compile(
    r'(?m)^(?P<lead>[ \t]*version[ \t]*=[ \t]*)(?P<q>["\'])(?P<value>[^"\']*)(?P=q)'
)
_TABLE_HEADER_RE = re.compile(r"(?m)^[ \t]*\[{1,2}[^\[\]\n]+\]{1,2}[ \t]*(?:#.*)?$")
_JSON_WS_RE = re.compile(r"[ \t\n\r]*")
_DECODER = json.JSONDecoder()


class ManifestEditor(Protocol):
    def set_version(self, version: str) -> Result[tuple[Path, ...], ManifestUpdateError]:
        """Write the bare ``version`` into the manifest.

        Returns every file touched (manifest first, then lock files) so the
        caller can stage them.
        """
        ...


@dataclass(frozen=True, slots=True)
class CargoSetVersion:
    """``cargo set-version`` (cargo-edit): updates Cargo.toml and Cargo.lock."""

    repo_root: Path
    console: ConsoleProtocol

    @property
    def manifest_path(self) -> Path:
        return self.repo_root / "Cargo.toml"

    @property
    def lock_path(self) -> Path:
        return self.repo_root / "Cargo.lock"

    def set_version(self, version: str) -> Result[tuple[Path, ...], ManifestUpdateError]:
        if not self.manifest_path.is_file():
            return Err(
                ManifestUpdateError(
                    message="Cargo.toml not found",
                    path=self.manifest_path,
                )
            )

        cmd = ["cargo", "set-version", version]
        self.console.command(cmd)
        result = run_process(cmd, cwd=self.repo_root, timeout=MANIFEST_TOOL_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            e = result.error
            hint = "Install cargo-edit: cargo install cargo-edit" if e.returncode == -1 else None
            return Err(
                ManifestUpdateError(
                    message=e.diagnostic(),
                    path=self.manifest_path,
                    hint=hint,
                )
            )

        if self.lock_path.is_file():
            return Ok((self.manifest_path, self.lock_path))
        return Ok((self.manifest_path,))


@dataclass(frozen=True, slots=True)
class TomlManifest:
    """Edits ``version = "..."`` inside one TOML table, byte for byte otherwise.

    Attributes:
        path: Manifest file (Cargo.toml, pyproject.toml, ...).
        table: Table holding the version (``package``, ``project``).
    """

    path: Path
    table: str

    def set_version(self, version: str) -> Result[tuple[Path, ...], ManifestUpdateError]:
        text = _read_manifest(self.path)
        if isinstance(text, Err):
            return text

        replaced = replace_toml_version(text.value, table=self.table, version=version)
        if replaced is None:
            return Err(
                ManifestUpdateError(
                    message=f"missing version in [{self.table}] of {self.path.name}",
                    path=self.path,
                )
            )

        if replaced != text.value:
            written = _write_manifest(self.path, replaced)
            if isinstance(written, Err):
                return written
        return Ok((self.path,))


def replace_toml_version(text: str, *, table: str, version: str) -> str | None:
    """Return ``text`` with the version of ``[table]`` set to ``version``.

    Returns None if the table or its ``version`` key is missing.
    """
    header = re.search(rf"(?m)^[ \t]*\[{re.escape(table)}\][ \t]*(?:#.*)?$", text)
    if header is None:
        return None

    body_start = header.end()
    next_header = _TABLE_HEADER_RE.search(text, body_start)
    body_end = next_header.start() if next_header is not None else len(text)

    m = _VERSION_LINE_RE.search(text, body_start, body_end)
    if m is None:
        return None

    quote = m.group("q")
    start, end = m.span()
    return text[:start] + f"{m.group('lead')}{quote}{version}{quote}" + text[end:]


@dataclass(frozen=True, slots=True)
class JsonManifest:
    """Edits the top-level ``version`` of a package.json-style manifest.

    Only the version string is spliced; every other byte of the file stays
    as written. A sibling ``package-lock.json`` is kept in step (root
    ``version`` and ``packages[""].version``) when present.
    """

    path: Path

    @property
    def lock_path(self) -> Path:
        return self.path.parent / "package-lock.json"

    def set_version(self, version: str) -> Result[tuple[Path, ...], ManifestUpdateError]:
        manifest = self._update(self.path, version=version, lock=False)
        if isinstance(manifest, Err):
            return manifest

        if not self.lock_path.is_file():
            return Ok((self.path,))

        lock = self._update(self.lock_path, version=version, lock=True)
        if isinstance(lock, Err):
            return lock
        return Ok((self.path, self.lock_path))

    def _update(self, path: Path, *, version: str, lock: bool) -> Result[None, ManifestUpdateError]:
        text = _read_manifest(path)
        if isinstance(text, Err):
            return text

        try:
            obj: object = json.loads(text.value)
        except json.JSONDecodeError as e:
            return Err(
                ManifestUpdateError(message=f"invalid JSON in {path.name}: {e}", path=path)
            )

        data = as_str_dict(obj)
        if data is None:
            return Err(ManifestUpdateError(message=f"invalid JSON root in {path.name}", path=path))

        if get_str(data, "version") is None:
            return Err(ManifestUpdateError(message=f"missing version in {path.name}", path=path))

        root = _skip_ws(text.value, 0)
        spans = [json_member_span(text.value, root, "version")]
        if lock:
            spans.append(_lock_root_package_version_span(text.value, root))

        rendered = text.value
        literal = json.dumps(version, ensure_ascii=False)
        for span in sorted((s for s in spans if s is not None), reverse=True):
            start, end = span
            rendered = rendered[:start] + literal + rendered[end:]

        if rendered == text.value:
            return Ok(None)
        return _write_manifest(path, rendered)


def json_member_span(text: str, obj_start: int, key: str) -> tuple[int, int] | None:
    """Return the ``(start, end)`` offsets of ``key``'s value in a JSON object.

    ``obj_start`` points at the object's ``{``; ``text`` must be valid JSON.
    Like ``json.loads``, the last of duplicate keys wins. Returns None if the
    value at ``obj_start`` is not an object or lacks ``key``.
    """
    if text[obj_start : obj_start + 1] != "{":
        return None

    found: tuple[int, int] | None = None
    pos = _skip_ws(text, obj_start + 1)
    if text[pos : pos + 1] == "}":
        return None
    while True:
        name, pos = _DECODER.raw_decode(text, pos)
        pos = _skip_ws(text, _skip_ws(text, pos) + 1)  # past ':'
        _, end = _DECODER.raw_decode(text, pos)
        if name == key:
            found = (pos, end)
        pos = _skip_ws(text, end)
        if text[pos : pos + 1] != ",":
            return found
        pos = _skip_ws(text, pos + 1)


def _lock_root_package_version_span(text: str, root: int) -> tuple[int, int] | None:
    packages = json_member_span(text, root, "packages")
    if packages is None:
        return None
    package = json_member_span(text, packages[0], "")
    if package is None:
        return None
    return json_member_span(text, package[0], "version")


def _skip_ws(text: str, pos: int) -> int:
    m = _JSON_WS_RE.match(text, pos)
    return m.end() if m is not None else pos


def _read_manifest(path: Path) -> Result[str, ManifestUpdateError]:
    try:
        return Ok(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(ManifestUpdateError(message=f"{path.name} not found", path=path))
    except OSError as e:
        return Err(ManifestUpdateError(message=f"failed to read {path.name}: {e}", path=path))


def _write_manifest(path: Path, content: str) -> Result[None, ManifestUpdateError]:
    try:
        atomic_write_text(path, content, encoding="utf-8")
    except OSError as e:
        return Err(ManifestUpdateError(message=f"failed to write {path.name}: {e}", path=path))
    return Ok(None)


def manifest_editor_for(
    config: ManifestConfig, *, repo_root: Path, console: ConsoleProtocol
) -> ManifestEditor:
    match config.kind:
        case "cargo":
            return CargoSetVersion(repo_root=repo_root, console=console)
        case "toml":
            return TomlManifest(path=repo_root / config.path, table=config.table)
        case "json":
            return JsonManifest(path=repo_root / config.path)
