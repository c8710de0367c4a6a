"""solgen manifest models and loaders.

Usage::

    from solgen.manifest import load_module_manifest

    module = load_module_manifest("engine/module.json")
    for project in module.projects:
        print(project.name, project.type)
"""

from solgen.manifest.loader import load_module_manifest, load_module_manifests
from solgen.manifest.models import (
    DependencyDeclaration,
    ModuleManifest,
    ProjectManifest,
    ProjectOptions,
    ProjectType,
)

__all__ = [
    "load_module_manifest",
    "load_module_manifests",
    "DependencyDeclaration",
    "ModuleManifest",
    "ProjectManifest",
    "ProjectOptions",
    "ProjectType",
]
