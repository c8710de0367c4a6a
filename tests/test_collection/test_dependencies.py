"""Tests for dependency resolution.

Covers:
- Exact, soft and wildcard declarations
- Non-library dependencies rejected for the declaring project only
- Transitive closure ordering and cycle reporting
"""

from __future__ import annotations

import pytest

from conftest import make_module, make_project
from solgen.collection import DependencyOutcome, ProjectCollection
from solgen.config import Configuration
from solgen.manifest import DependencyDeclaration


def _resolved(config: Configuration, *projects) -> tuple[ProjectCollection, object]:
    collection = ProjectCollection(config)
    collection.populate([make_module("m", *projects)])
    result = collection.resolve_dependencies()
    return collection, result


class TestResolveDependency:
    @pytest.mark.unit
    def test_wildcard_matches_direct_children_only(self, config: Configuration):
        collection, _ = _resolved(
            config,
            make_project("lib/core"),
            make_project("lib/net"),
            make_project("lib/net/http"),
            make_project("app", type="application", dependencies=["lib/*"]),
        )
        assert collection.find_project("app").dependencies == ["lib/core", "lib/net"]

    @pytest.mark.unit
    def test_wildcard_skips_applications_and_self(self, config: Configuration):
        collection, result = _resolved(
            config,
            make_project("lib/core"),
            make_project("lib/all", dependencies=["lib/*"]),
            make_project("lib/tool", type="application"),
        )
        assert result.success
        assert collection.find_project("lib/all").dependencies == ["lib/core"]

    @pytest.mark.unit
    def test_wildcard_without_matches_is_resolved(self, config: Configuration):
        collection = ProjectCollection(config)
        collection.populate([make_module("m", make_project("app", type="application"))])
        project = collection.find_project("app")
        resolved: list[str] = []
        resolution = collection.resolve_dependency(
            project, DependencyDeclaration.parse("plugins/*"), resolved
        )
        assert resolution.outcome == DependencyOutcome.RESOLVED
        assert resolution.matched == []
        assert resolved == []

    @pytest.mark.unit
    def test_soft_miss_is_unresolved_not_error(self, config: Configuration):
        collection, result = _resolved(
            config,
            make_project("app", type="application", dependencies=["?lib/optional"]),
        )
        assert result.success
        assert collection.find_project("app").dependencies == []
        assert not collection.find_project("app").resolution_failed

    @pytest.mark.unit
    def test_required_miss_fails(self, config: Configuration):
        collection, result = _resolved(
            config,
            make_project("app", type="application", dependencies=["lib/missing"]),
        )
        assert not result.success
        issue = result.issues[0]
        assert issue.project == "app"
        assert issue.subject == "lib/missing"
        assert "No project named 'lib/missing'" in issue.message
        assert collection.find_project("app").resolution_failed

    @pytest.mark.unit
    def test_application_dependency_rejected_for_that_project_only(self, config: Configuration):
        collection, result = _resolved(
            config,
            make_project("lib/core"),
            make_project("tool", type="application"),
            make_project("lib/bad", dependencies=["tool", "lib/core"]),
            make_project("lib/good", dependencies=["lib/core"]),
        )
        assert result.error_count == 1
        assert result.issues[0].project == "lib/bad"
        assert "can't be a dependency" in result.issues[0].message
        assert collection.find_project("lib/bad").dependencies == ["lib/core"]
        assert collection.find_project("lib/good").dependencies == ["lib/core"]
        assert collection.find_project("lib/bad").resolution_failed
        assert not collection.find_project("lib/good").resolution_failed

    @pytest.mark.unit
    def test_duplicate_declarations_collapse(self, config: Configuration):
        collection, _ = _resolved(
            config,
            make_project("lib/core"),
            make_project("app", type="application", dependencies=["lib/core", "lib/*", "lib/core"]),
        )
        assert collection.find_project("app").dependencies == ["lib/core"]


class TestAllDependencies:
    @pytest.mark.unit
    def test_dependencies_listed_before_dependents(self, resolved_collection: ProjectCollection):
        editor = resolved_collection.find_project("app/editor")
        assert editor.dependencies == ["lib/render"]
        assert editor.all_dependencies == ["lib/core", "lib/render"]
        assert resolved_collection.find_project("lib/core").all_dependencies == []

    @pytest.mark.unit
    def test_diamond_appears_once(self, config: Configuration):
        collection, result = _resolved(
            config,
            make_project("lib/base"),
            make_project("lib/left", dependencies=["lib/base"]),
            make_project("lib/right", dependencies=["lib/base"]),
            make_project("app", type="application", dependencies=["lib/left", "lib/right"]),
        )
        assert result.success
        assert collection.find_project("app").all_dependencies == [
            "lib/base", "lib/left", "lib/right",
        ]

    @pytest.mark.unit
    def test_cycle_reported(self, config: Configuration):
        collection, result = _resolved(
            config,
            make_project("lib/a", dependencies=["lib/b"]),
            make_project("lib/b", dependencies=["lib/a"]),
        )
        assert not result.success
        assert any("Dependency cycle detected" in i.message for i in result.issues)
        assert collection.find_project("lib/a").all_dependencies == ["lib/b"]
        assert collection.find_project("lib/a").resolution_failed
