"""Loading module manifests from JSON files.

Relative ``root_path`` and ``global_include_paths`` entries are resolved
against the directory containing the manifest file.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from solgen.errors import ManifestError
from solgen.manifest.models import ModuleManifest


def load_module_manifest(path: str | Path) -> ModuleManifest:
    """Load and validate one module manifest.

    Raises:
        ManifestError: If the file is missing, is not valid JSON, or does not
            validate against ``ModuleManifest``.
    """
    manifest_path = Path(path)
    try:
        raw = manifest_path.read_text(encoding="utf-8")
        module = ModuleManifest.model_validate_json(raw)
    except FileNotFoundError as exc:
        raise ManifestError(f"Manifest not found: {manifest_path}", path=manifest_path) from exc
    except (ValidationError, json.JSONDecodeError) as exc:
        raise ManifestError(
            f"Invalid manifest {manifest_path}: {exc}", path=manifest_path
        ) from exc

    return _anchor_paths(module, manifest_path.resolve().parent)


def load_module_manifests(paths: list[str | Path]) -> list[ModuleManifest]:
    """Load several manifests, preserving the given order."""
    return [load_module_manifest(p) for p in paths]


def _anchor_paths(module: ModuleManifest, base: Path) -> ModuleManifest:
    """Return a copy of *module* whose relative paths are rooted at *base*."""
    projects = [
        project.model_copy(update={"root_path": base / project.root_path})
        if project.root_path is not None and not project.root_path.is_absolute()
        else project
        for project in module.projects
    ]
    include_paths = [
        p if p.is_absolute() else base / p for p in module.global_include_paths
    ]
    return module.model_copy(
        update={"projects": projects, "global_include_paths": include_paths}
    )
