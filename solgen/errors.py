"""Exceptions raised by solgen.

Only conditions that make the whole run meaningless are raised.  Per-project
problems (missing dependencies, failed scans) are returned as ``Diagnostic``
values instead so sibling projects keep going.
"""

from __future__ import annotations

from pathlib import Path


class SolgenError(Exception):
    """Base class for all solgen errors."""


class ManifestError(SolgenError):
    """Raised when a manifest file cannot be read or validated."""

    def __init__(self, message: str, path: Path | None = None) -> None:
        self.path = path
        super().__init__(message)


class DuplicateProjectError(SolgenError):
    """Raised when two projects share a name within one collection."""

    def __init__(self, name: str, first_module: str, second_module: str) -> None:
        self.name = name
        self.first_module = first_module
        self.second_module = second_module
        super().__init__(
            f"Project '{name}' is declared by module '{first_module}' "
            f"and again by module '{second_module}'"
        )


class ToolingError(SolgenError):
    """Raised when a required external build tool is missing or too old."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(f"{tool}: {message}")


class LibraryRepositoryError(SolgenError):
    """Raised when a library repository file cannot be loaded."""


class TargetNameCollisionError(SolgenError):
    """Raised when two distinct projects map to the same build target name."""

    def __init__(self, target: str, first_project: str, second_project: str) -> None:
        self.target = target
        self.first_project = first_project
        self.second_project = second_project
        super().__init__(
            f"Projects '{first_project}' and '{second_project}' both map to "
            f"build target '{target}'"
        )
