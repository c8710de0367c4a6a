"""Tests for manifest models and the JSON loader (solgen.manifest).

Covers:
- ProjectType classification helpers
- DependencyDeclaration short form, wildcard and soft markers
- ProjectManifest defaults, name normalisation and immutability
- load_module_manifest path anchoring and error wrapping
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from solgen.errors import ManifestError
from solgen.manifest import (
    DependencyDeclaration,
    ModuleManifest,
    ProjectManifest,
    ProjectType,
    load_module_manifest,
    load_module_manifests,
)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TestProjectType:
    @pytest.mark.unit
    def test_libraries(self):
        assert ProjectType.STATIC_LIBRARY.is_library
        assert ProjectType.SHARED_LIBRARY.is_library
        assert not ProjectType.AUTO_LIBRARY.is_library

    @pytest.mark.unit
    def test_applications(self):
        assert ProjectType.APPLICATION.is_application
        assert ProjectType.TEST_APPLICATION.is_application
        assert not ProjectType.STATIC_LIBRARY.is_application

    @pytest.mark.unit
    def test_disabled_is_not_buildable(self):
        assert not ProjectType.DISABLED.is_buildable
        assert ProjectType.APPLICATION.is_buildable


class TestDependencyDeclaration:
    @pytest.mark.unit
    def test_parse_plain(self):
        dep = DependencyDeclaration.parse("lib/core")
        assert dep.name == "lib/core"
        assert not dep.soft
        assert not dep.is_wildcard

    @pytest.mark.unit
    def test_parse_soft(self):
        dep = DependencyDeclaration.parse("?lib/optional")
        assert dep.name == "lib/optional"
        assert dep.soft

    @pytest.mark.unit
    def test_wildcard_prefix(self):
        dep = DependencyDeclaration.parse("lib/*")
        assert dep.is_wildcard
        assert dep.prefix == "lib/"

    @pytest.mark.unit
    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            DependencyDeclaration(name="")


class TestProjectManifest:
    @pytest.mark.unit
    def test_defaults(self):
        manifest = ProjectManifest(name="lib/core")
        assert manifest.type == ProjectType.AUTO_LIBRARY
        assert manifest.root_path is None
        assert manifest.dependencies == []
        assert manifest.options.use_precompiled_header is True
        assert manifest.options.dev_only is False

    @pytest.mark.unit
    def test_backslashes_normalised(self):
        assert ProjectManifest(name="lib\\core").name == "lib/core"

    @pytest.mark.unit
    def test_mixed_dependency_forms(self):
        manifest = ProjectManifest.model_validate(
            {
                "name": "app",
                "dependencies": ["lib/a", "?lib/b", {"name": "lib/*", "soft": False}],
            }
        )
        assert [d.name for d in manifest.dependencies] == ["lib/a", "lib/b", "lib/*"]
        assert [d.soft for d in manifest.dependencies] == [False, True, False]

    @pytest.mark.unit
    def test_frozen(self):
        manifest = ProjectManifest(name="lib/core")
        with pytest.raises(ValidationError):
            manifest.type = ProjectType.DISABLED

    @pytest.mark.unit
    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ProjectManifest(name="x", type="plugin")


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def _write_manifest(path: Path, data: dict) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoader:
    @pytest.mark.unit
    def test_relative_paths_anchored_to_manifest(self, tmp_path: Path):
        path = _write_manifest(
            tmp_path / "engine" / "module.json",
            {
                "name": "engine",
                "global_include_paths": ["include", "/opt/shared/include"],
                "projects": [
                    {"name": "lib/core", "root_path": "code/core"},
                    {"name": "lib/abs", "root_path": "/srv/abs"},
                    {"name": "lib/none"},
                ],
            },
        )
        module = load_module_manifest(path)
        base = path.resolve().parent
        assert module.global_include_paths == [base / "include", Path("/opt/shared/include")]
        assert module.projects[0].root_path == base / "code" / "core"
        assert module.projects[1].root_path == Path("/srv/abs")
        assert module.projects[2].root_path is None

    @pytest.mark.unit
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ManifestError) as exc_info:
            load_module_manifest(tmp_path / "absent.json")
        assert exc_info.value.path == tmp_path / "absent.json"

    @pytest.mark.unit
    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "module.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ManifestError):
            load_module_manifest(path)

    @pytest.mark.unit
    def test_schema_violation(self, tmp_path: Path):
        path = _write_manifest(tmp_path / "module.json", {"projects": []})
        with pytest.raises(ManifestError, match="Invalid manifest"):
            load_module_manifest(path)

    @pytest.mark.unit
    def test_load_many_preserves_order(self, tmp_path: Path):
        a = _write_manifest(tmp_path / "a" / "module.json", {"name": "a"})
        b = _write_manifest(tmp_path / "b" / "module.json", {"name": "b"})
        modules = load_module_manifests([b, a])
        assert [m.name for m in modules] == ["b", "a"]
        assert all(isinstance(m, ModuleManifest) for m in modules)
