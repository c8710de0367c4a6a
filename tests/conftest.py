"""Shared pytest fixtures for the solgen test suite.

Provides reusable fixtures for:
- Configurations rooted in a temporary output directory
- Manifest and module builders
- On-disk project trees for content scanning
- A populated collection with resolved dependencies
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from solgen.collection import ProjectCollection
from solgen.config import Configuration
from solgen.manifest import ModuleManifest, ProjectManifest


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_project(name: str, type: str = "static_library", **kwargs: Any) -> ProjectManifest:
    """Build a ``ProjectManifest``; string dependencies are accepted."""
    return ProjectManifest.model_validate({"name": name, "type": type, **kwargs})


def make_module(name: str, *projects: ProjectManifest, **kwargs: Any) -> ModuleManifest:
    return ModuleManifest(name=name, projects=list(projects), **kwargs)


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create *files* (relative path -> content) under *root*."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    return root


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def config(tmp_path: Path) -> Configuration:
    """Linux/release configuration writing into a temp directory."""
    return Configuration(output_dir=tmp_path / ".build", solution_name="engine")


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """A small project on disk with a precompiled header."""
    return write_tree(
        tmp_path / "code" / "core",
        {
            "src/build.h": "#pragma once\n",
            "src/build.cpp": '#include "build.h"\n',
            "src/math.cpp": "int add(int a, int b) { return a + b; }\n",
            "include/core/math.h": "int add(int, int);\n",
            "README.txt": "core library\n",
            ".git/config": "[core]\n",
        },
    )


@pytest.fixture
def layered_modules() -> list[ModuleManifest]:
    """app -> lib/render -> lib/core, plus a soft miss and a test app."""
    return [
        make_module(
            "engine",
            make_project("lib/core"),
            make_project("lib/render", dependencies=["lib/core"]),
            make_project(
                "app/editor",
                type="application",
                dependencies=["lib/render", "?lib/optional"],
            ),
            make_project("test/core", type="test_application", dependencies=["lib/core"]),
        )
    ]


@pytest.fixture
def resolved_collection(
    config: Configuration, layered_modules: list[ModuleManifest]
) -> ProjectCollection:
    collection = ProjectCollection(config)
    collection.populate(layered_modules)
    collection.filter_projects()
    collection.resolve_dependencies()
    return collection
