"""Tests for ProjectCollection.populate.

Covers:
- One entry per project, in declaration order
- Global include paths merged without duplicates
- Test applications of non-local modules skipped
- AutoLibrary resolved by the linkage configuration, manifests untouched
- Duplicate names raised
- Names that map to the same build target raised
"""

from __future__ import annotations

import pytest

from conftest import make_module, make_project
from solgen.collection import ProjectCollection, Severity
from solgen.config import Configuration, LibraryLinkage
from solgen.errors import DuplicateProjectError, TargetNameCollisionError
from solgen.manifest import ProjectType


class TestPopulate:
    @pytest.mark.unit
    def test_entries_in_declaration_order(self, config: Configuration):
        collection = ProjectCollection(config)
        result = collection.populate([
            make_module("a", make_project("lib/x"), make_project("app", type="application")),
            make_module("b", make_project("lib/y")),
        ])
        assert result.success
        assert collection.names() == ["lib/x", "app", "lib/y"]
        assert collection.find_project("lib/y").module_name == "b"

    @pytest.mark.unit
    def test_generated_path_assigned(self, config: Configuration):
        collection = ProjectCollection(config)
        collection.populate([make_module("a", make_project("lib/x"))])
        project = collection.find_project("lib/x")
        assert project.generated_path == config.project_generated_path("lib/x")

    @pytest.mark.unit
    def test_include_paths_merged_unique(self, config: Configuration, tmp_path):
        shared = tmp_path / "include"
        collection = ProjectCollection(config)
        collection.populate([
            make_module("a", global_include_paths=[shared]),
            make_module("b", make_project("lib/x"), global_include_paths=[shared, tmp_path / "b"]),
        ])
        assert collection.root_include_paths == [shared, tmp_path / "b"]

    @pytest.mark.unit
    def test_empty_module_warns(self, config: Configuration):
        collection = ProjectCollection(config)
        result = collection.populate([make_module("empty")])
        assert result.success
        assert len(result.issues) == 1
        assert result.issues[0].severity == Severity.WARNING

    @pytest.mark.unit
    def test_external_test_applications_skipped(self, config: Configuration):
        collection = ProjectCollection(config)
        collection.populate([
            make_module(
                "external",
                make_project("lib/ext"),
                make_project("test/ext", type="test_application"),
                local=False,
            ),
            make_module("local", make_project("test/local", type="test_application")),
        ])
        assert collection.names() == ["lib/ext", "test/local"]

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "linkage, expected",
        [
            (LibraryLinkage.STATIC, ProjectType.STATIC_LIBRARY),
            (LibraryLinkage.SHARED, ProjectType.SHARED_LIBRARY),
        ],
    )
    def test_auto_library_resolution(self, tmp_path, linkage, expected):
        config = Configuration(output_dir=tmp_path, libs=linkage)
        collection = ProjectCollection(config)
        collection.populate([
            make_module(
                "a",
                make_project("lib/auto", type="auto_library"),
                make_project("lib/fixed", type="static_library"),
            )
        ])
        auto = collection.find_project("lib/auto")
        assert auto.type == expected
        assert auto.manifest.type == ProjectType.AUTO_LIBRARY
        assert collection.find_project("lib/fixed").type == ProjectType.STATIC_LIBRARY

    @pytest.mark.unit
    def test_duplicate_name_raises(self, config: Configuration):
        collection = ProjectCollection(config)
        with pytest.raises(DuplicateProjectError) as exc_info:
            collection.populate([
                make_module("a", make_project("lib/x")),
                make_module("b", make_project("lib/x")),
            ])
        assert exc_info.value.first_module == "a"
        assert exc_info.value.second_module == "b"

    @pytest.mark.unit
    def test_duplicate_across_populate_calls(self, config: Configuration):
        collection = ProjectCollection(config)
        collection.populate([make_module("a", make_project("lib/x"))])
        with pytest.raises(DuplicateProjectError):
            collection.populate([make_module("b", make_project("lib/x"))])

    @pytest.mark.unit
    def test_target_name_collision_raises(self, config: Configuration):
        collection = ProjectCollection(config)
        with pytest.raises(TargetNameCollisionError) as exc_info:
            collection.populate([make_module("a", make_project("lib/core"), make_project("lib_core"))])
        assert exc_info.value.target == "lib_core"
        assert exc_info.value.first_project == "lib/core"
        assert exc_info.value.second_project == "lib_core"

    @pytest.mark.unit
    def test_target_name_collision_across_populate_calls(self, config: Configuration):
        collection = ProjectCollection(config)
        collection.populate([make_module("a", make_project("lib_core"))])
        with pytest.raises(TargetNameCollisionError) as exc_info:
            collection.populate([make_module("b", make_project("lib/core"))])
        assert exc_info.value.first_project == "lib_core"
