"""External library repositories.

A repository turns a declared library name into a ``LibraryDescriptor`` for
the active platform.  The collection only ever reads from it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pydantic import ValidationError

from solgen.collection.models import LibraryDescriptor
from solgen.config import Platform
from solgen.errors import LibraryRepositoryError
from solgen.utils import load_json

ANY_PLATFORM = "*"


@runtime_checkable
class ExternalLibraryRepository(Protocol):
    """Resolves library names to descriptors."""

    def resolve(self, name: str, platform: Platform) -> LibraryDescriptor | None:
        """Return the descriptor for *name* on *platform*, or ``None``."""
        ...


class JsonLibraryRepository:
    """In-memory repository, usually loaded from a JSON document.

    The document maps library names to per-platform descriptors; the ``"*"``
    key applies to every platform without an exact entry::

        {
          "zlib": {
            "*":       {"include_path": "/opt/zlib/include"},
            "windows": {"include_path": "C:/zlib/include",
                        "library_files": ["C:/zlib/lib/zlib.lib"]}
          }
        }

    Relative paths are resolved against ``base_dir``.
    """

    def __init__(
        self,
        entries: dict[str, dict[str, Any]] | None = None,
        base_dir: Path | None = None,
    ) -> None:
        self.base_dir = base_dir
        self._entries: dict[str, dict[str, LibraryDescriptor]] = {}
        for name, platforms in (entries or {}).items():
            if not isinstance(platforms, dict):
                raise LibraryRepositoryError(
                    f"Library '{name}' must map platforms to descriptors"
                )
            self._entries[name] = {
                key: self._make_descriptor(name, key, raw)
                for key, raw in platforms.items()
            }

    @classmethod
    def from_file(cls, path: str | Path) -> "JsonLibraryRepository":
        """Load a repository document from *path*."""
        file_path = Path(path)
        try:
            data = load_json(file_path)
        except (OSError, ValueError) as exc:
            raise LibraryRepositoryError(
                f"Cannot load library repository {file_path}: {exc}"
            ) from exc
        return cls(data, base_dir=file_path.resolve().parent)

    def names(self) -> list[str]:
        return sorted(self._entries)

    def resolve(self, name: str, platform: Platform) -> LibraryDescriptor | None:
        per_platform = self._entries.get(name)
        if per_platform is None:
            return None
        return per_platform.get(platform.value) or per_platform.get(ANY_PLATFORM)

    def _make_descriptor(self, name: str, key: str, raw: Any) -> LibraryDescriptor:
        if key != ANY_PLATFORM and key not in {p.value for p in Platform}:
            raise LibraryRepositoryError(f"Library '{name}': unknown platform '{key}'")
        try:
            descriptor = LibraryDescriptor.model_validate({"name": name, **(raw or {})})
        except (ValidationError, TypeError) as exc:
            raise LibraryRepositoryError(
                f"Library '{name}' ({key}) is invalid: {exc}"
            ) from exc
        if self.base_dir is None:
            return descriptor
        return descriptor.model_copy(
            update={
                "include_path": self._anchor(descriptor.include_path),
                "library_files": [self._anchor(p) for p in descriptor.library_files],
                "additional_include_paths": [
                    self._anchor(p) for p in descriptor.additional_include_paths
                ],
            }
        )

    def _anchor(self, path: Path | None) -> Path | None:
        if path is None or path.is_absolute() or self.base_dir is None:
            return path
        return self.base_dir / path
