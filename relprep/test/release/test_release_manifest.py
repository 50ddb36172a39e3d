from __future__ import annotations

import json
from pathlib import Path

import pytest

from relprep.core.config import ManifestConfig
from relprep.core.result import Err, Ok, Result
from relprep.output.console import MockConsole
from relprep.platform.process import ProcessError
from relprep.release.manifest import (
    CargoSetVersion,
    JsonManifest,
    TomlManifest,
    manifest_editor_for,
    replace_toml_version,
)

_CARGO_TOML = """\
[package]
name = "gitu"
version = "1.1.0" # bumped by relprep
edition = "2021"

[dependencies]
clap = { version = "4.5", features = ["derive"] }

[dev-dependencies]
insta = { version = "1.34" }
"""


class TestReplaceTomlVersion:
    def test_only_the_version_line_changes(self) -> None:
        out = replace_toml_version(_CARGO_TOML, table="package", version="1.2.0")

        assert out == _CARGO_TOML.replace('version = "1.1.0"', 'version = "1.2.0"')

    def test_dependency_versions_untouched(self) -> None:
        text = '[dependencies]\nversion = "9.9.9"\n\n[package]\nname = "x"\nversion = "0.1.0"\n'

        out = replace_toml_version(text, table="package", version="0.2.0")

        assert out == '[dependencies]\nversion = "9.9.9"\n\n[package]\nname = "x"\nversion = "0.2.0"\n'

    def test_single_quotes_preserved(self) -> None:
        out = replace_toml_version("[project]\nversion = '1.0.0'\n", table="project", version="1.1.0")

        assert out == "[project]\nversion = '1.1.0'\n"

    def test_version_outside_table_is_missing(self) -> None:
        text = '[package]\nname = "x"\n\n[workspace.package]\nversion = "1.0.0"\n'

        assert replace_toml_version(text, table="package", version="2.0.0") is None

    def test_indented_next_table_bounds_the_search(self) -> None:
        text = '[package]\nname = "x"\n\n  [package.metadata]\n  version = "9.9.9"\n'

        assert replace_toml_version(text, table="package", version="2.0.0") is None

    def test_indented_table_and_key(self) -> None:
        text = '  [package]\n  version = "1.0.0"\n  [package.metadata]\n  version = "9.9.9"\n'

        out = replace_toml_version(text, table="package", version="1.1.0")

        assert out == text.replace('"1.0.0"', '"1.1.0"')

    def test_missing_table(self) -> None:
        assert replace_toml_version('[project]\nversion = "1"\n', table="package", version="2") is None


class TestTomlManifest:
    def test_set_version_round_trip(self, tmp_path: Path) -> None:
        path = tmp_path / "Cargo.toml"
        path.write_text(_CARGO_TOML, encoding="utf-8")

        result = TomlManifest(path=path, table="package").set_version("1.2.0")

        assert result == Ok((path,))
        after = path.read_text(encoding="utf-8")
        assert 'version = "1.2.0" # bumped by relprep' in after
        before_lines = _CARGO_TOML.splitlines()
        after_lines = after.splitlines()
        changed = [i for i, (a, b) in enumerate(zip(before_lines, after_lines)) if a != b]
        assert changed == [2]
        assert len(before_lines) == len(after_lines)

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"

        result = TomlManifest(path=path, table="project").set_version("1.0.0")

        assert isinstance(result, Err)
        assert result.error.message == "pyproject.toml not found"
        assert result.error.path == path

    def test_malformed_manifest_is_not_written(self, tmp_path: Path) -> None:
        path = tmp_path / "pyproject.toml"
        path.write_text('[project]\nname = "x"\n', encoding="utf-8")

        result = TomlManifest(path=path, table="project").set_version("1.0.0")

        assert isinstance(result, Err)
        assert "missing version in [project]" in result.error.message
        assert path.read_text(encoding="utf-8") == '[project]\nname = "x"\n'


class TestJsonManifest:
    def test_preserves_other_fields_and_order(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        original = {"name": "app", "version": "1.1.0", "private": True, "scripts": {"b": "vite"}}
        path.write_text(json.dumps(original, indent=2) + "\n", encoding="utf-8")

        result = JsonManifest(path=path).set_version("1.2.0")

        assert result == Ok((path,))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert list(data) == ["name", "version", "private", "scripts"]
        assert data == {**original, "version": "1.2.0"}

    def test_keeps_indentation(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text('{\n    "name": "app",\n    "version": "1.0.0"\n}\n', encoding="utf-8")

        JsonManifest(path=path).set_version("1.0.1")

        assert path.read_text(encoding="utf-8") == '{\n    "name": "app",\n    "version": "1.0.1"\n}\n'

    def test_other_bytes_untouched(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        original = (
            '{\n'
            '  "name": "app",\n'
            '  "files": ["dist", "bin"],\n'
            '  "homepage": "https:\\/\\/example.com",\n'
            '  "engines": {"node": ">=20", "version": "0.0.1"},\n'
            '  "version" : "1.1.0",\n'
            '  "description": "caf\\u00e9"\n'
            "}"
        )
        path.write_text(original, encoding="utf-8")

        result = JsonManifest(path=path).set_version("1.2.0")

        assert result == Ok((path,))
        assert path.read_text(encoding="utf-8") == original.replace('"1.1.0"', '"1.2.0"')

    def test_last_duplicate_key_wins(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text('{"version": "0.1.0", "version": "1.0.0"}', encoding="utf-8")

        JsonManifest(path=path).set_version("1.0.1")

        assert path.read_text(encoding="utf-8") == '{"version": "0.1.0", "version": "1.0.1"}'

    def test_updates_package_lock(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text('{\n  "name": "app",\n  "version": "1.0.0"\n}\n', encoding="utf-8")
        lock = tmp_path / "package-lock.json"
        lock.write_text(
            json.dumps(
                {
                    "name": "app",
                    "version": "1.0.0",
                    "lockfileVersion": 3,
                    "packages": {
                        "": {"name": "app", "version": "1.0.0"},
                        "node_modules/x": {"version": "1.0.0"},
                    },
                },
                indent=2,
            )
            + "\n",
            encoding="utf-8",
        )

        result = JsonManifest(path=path).set_version("2.0.0")

        assert result == Ok((path, lock))
        data = json.loads(lock.read_text(encoding="utf-8"))
        assert data["version"] == "2.0.0"
        assert data["packages"][""]["version"] == "2.0.0"
        assert data["packages"]["node_modules/x"]["version"] == "1.0.0"

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text("{", encoding="utf-8")

        result = JsonManifest(path=path).set_version("1.0.0")

        assert isinstance(result, Err)
        assert "invalid JSON" in result.error.message

    def test_missing_version(self, tmp_path: Path) -> None:
        path = tmp_path / "package.json"
        path.write_text('{"name": "app"}', encoding="utf-8")

        result = JsonManifest(path=path).set_version("1.0.0")

        assert isinstance(result, Err)
        assert result.error.message == "missing version in package.json"


class TestCargoSetVersion:
    def _patch_run(
        self,
        monkeypatch: pytest.MonkeyPatch,
        result: Result[str, ProcessError],
    ) -> list[list[str]]:
        import relprep.release.manifest as manifest

        seen: list[list[str]] = []

        def fake_run(
            cmd: list[str],
            cwd: Path,
            env: dict[str, str] | None = None,
            *,
            timeout: float | None = None,
        ) -> Result[str, ProcessError]:
            seen.append(cmd)
            return result

        monkeypatch.setattr(manifest, "run_process", fake_run)
        return seen

    def test_runs_cargo_set_version_and_reports_lock(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "Cargo.toml").write_text(_CARGO_TOML, encoding="utf-8")
        (tmp_path / "Cargo.lock").write_text("", encoding="utf-8")
        seen = self._patch_run(monkeypatch, Ok(""))
        console = MockConsole()

        result = CargoSetVersion(repo_root=tmp_path, console=console).set_version("1.2.0")

        assert seen == [["cargo", "set-version", "1.2.0"]]
        assert result == Ok((tmp_path / "Cargo.toml", tmp_path / "Cargo.lock"))
        assert console.commands == ["cargo set-version 1.2.0"]

    def test_without_lock_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "Cargo.toml").write_text(_CARGO_TOML, encoding="utf-8")
        self._patch_run(monkeypatch, Ok(""))

        result = CargoSetVersion(repo_root=tmp_path, console=MockConsole()).set_version("1.2.0")

        assert result == Ok((tmp_path / "Cargo.toml",))

    def test_missing_manifest_does_not_run_cargo(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        seen = self._patch_run(monkeypatch, Ok(""))

        result = CargoSetVersion(repo_root=tmp_path, console=MockConsole()).set_version("1.2.0")

        assert isinstance(result, Err)
        assert result.error.message == "Cargo.toml not found"
        assert seen == []

    def test_cargo_failure_is_propagated_verbatim(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "Cargo.toml").write_text(_CARGO_TOML, encoding="utf-8")
        err = ProcessError(("cargo",), 101, "", "error: no such command: `set-version`\n")
        self._patch_run(monkeypatch, Err(err))

        result = CargoSetVersion(repo_root=tmp_path, console=MockConsole()).set_version("1.2.0")

        assert isinstance(result, Err)
        assert result.error.message == "error: no such command: `set-version`"


def test_manifest_editor_for(tmp_path: Path) -> None:
    console = MockConsole()

    cargo = manifest_editor_for(ManifestConfig(), repo_root=tmp_path, console=console)
    toml = manifest_editor_for(
        ManifestConfig(kind="toml", path="pyproject.toml", table="project"),
        repo_root=tmp_path,
        console=console,
    )
    json_editor = manifest_editor_for(
        ManifestConfig(kind="json", path="web/package.json"),
        repo_root=tmp_path,
        console=console,
    )

    assert cargo == CargoSetVersion(repo_root=tmp_path, console=console)
    assert toml == TomlManifest(path=tmp_path / "pyproject.toml", table="project")
    assert json_editor == JsonManifest(path=tmp_path / "web" / "package.json")
