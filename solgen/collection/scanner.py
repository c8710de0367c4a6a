"""Content scanning of a single project directory.

Walks a project's root path, classifies every file by extension and marks
which sources consume the precompiled header.  The walk is blocking file
system I/O; ``ProjectCollection.scan_content`` runs one scan per worker
thread.
"""

from __future__ import annotations

import os
from pathlib import Path

from solgen.collection.models import FileKind, ProjectFile

SOURCE_EXTENSIONS: frozenset[str] = frozenset({".c", ".cc", ".cpp", ".cxx"})
HEADER_EXTENSIONS: frozenset[str] = frozenset({".h", ".hh", ".hpp", ".hxx", ".inl"})

PRECOMPILED_HEADER = "build.h"
PRECOMPILED_SOURCES: frozenset[str] = frozenset({"build.cpp", "build.cxx"})


def classify_file(path: Path) -> FileKind:
    """Return the ``FileKind`` of *path* based on its extension."""
    suffix = path.suffix.lower()
    if suffix in SOURCE_EXTENSIONS:
        return FileKind.SOURCE
    if suffix in HEADER_EXTENSIONS:
        return FileKind.HEADER
    return FileKind.OTHER


def scan_project_files(root: Path, use_precompiled_header: bool = True) -> list[ProjectFile]:
    """List every file under *root*, sorted by path.

    Hidden directories (``.git``, ``.vs``...) are skipped.  When the project
    contains a ``build.h`` and *use_precompiled_header* is set, every source
    except ``build.cpp``/``build.cxx`` is flagged as a precompiled-header
    consumer.

    Raises:
        FileNotFoundError: If *root* does not exist.
        NotADirectoryError: If *root* is not a directory.
        OSError: On any other error while walking the tree.
        UnicodeEncodeError: If a file name is not valid UTF-8.
    """
    if not root.exists():
        raise FileNotFoundError(f"Project root does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Project root is not a directory: {root}")

    def _raise(exc: OSError) -> None:
        raise exc

    paths: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
        dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        for filename in filenames:
            path = Path(dirpath, filename).resolve()
            # generated files are UTF-8; undecodable names cannot be written into them
            str(path).encode("utf-8")
            paths.append(path)
    paths.sort()

    has_pch = use_precompiled_header and any(p.name == PRECOMPILED_HEADER for p in paths)

    files: list[ProjectFile] = []
    for path in paths:
        kind = classify_file(path)
        files.append(
            ProjectFile(
                absolute_path=path,
                name=path.name,
                kind=kind,
                use_precompiled_header=(
                    has_pch
                    and kind == FileKind.SOURCE
                    and path.name not in PRECOMPILED_SOURCES
                ),
            )
        )
    return files
