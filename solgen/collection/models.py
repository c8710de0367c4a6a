"""Data model of a resolved project collection.

``ProjectInfo`` wraps one ``ProjectManifest`` with the state accumulated by
the scan, filter and resolve stages.  Cross references (owning module,
dependencies) are stored by *name* and looked up through the live collection
index when needed, so rebuilding the collection never leaves stale links.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from solgen.manifest.models import ProjectManifest, ProjectOptions, ProjectType


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

class FileKind(str, Enum):
    """Classification of a file found during the content scan."""
    SOURCE = "source"
    HEADER = "header"
    OTHER = "other"


class ProjectFile(BaseModel):
    """A file discovered under a project's root path."""

    absolute_path: Path = Field(..., description="Absolute path on disk")
    name: str = Field(..., description="File name shown in IDEs, e.g. 'build.cpp'")
    kind: FileKind = Field(default=FileKind.OTHER)
    use_precompiled_header: bool = Field(default=False)


# ---------------------------------------------------------------------------
# External libraries
# ---------------------------------------------------------------------------

class LibraryDescriptor(BaseModel):
    """An external library resolved for the active platform."""

    name: str = Field(..., description="Library name as declared by projects")
    include_path: Optional[Path] = Field(default=None)
    library_files: list[Path] = Field(
        default_factory=list, description="Binary artifacts to link against"
    )
    additional_include_paths: list[Path] = Field(
        default_factory=list, description="Extra include paths attached to the using project"
    )
    additional_system_libraries: list[str] = Field(default_factory=list)
    additional_system_frameworks: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Diagnostics & stage results
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    """How serious a diagnostic is."""
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Diagnostic(BaseModel):
    """A problem found while building the graph, tied to a project."""

    project: str = Field(default="", description="Project (or module) the problem belongs to")
    subject: str = Field(default="", description="Dependency, library or path involved")
    message: str = Field(...)
    severity: Severity = Field(default=Severity.ERROR)

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def __str__(self) -> str:
        location = self.project or "<solution>"
        if self.subject:
            location = f"{location} -> {self.subject}"
        return f"[{location}] {self.message}"


class StageResult(BaseModel):
    """Aggregate outcome of one collection stage."""

    success: bool = Field(default=True)
    issues: list[Diagnostic] = Field(default_factory=list)

    @computed_field  # type: ignore[misc]
    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.is_error)

    def add(self, issue: Diagnostic) -> None:
        """Record *issue*; errors flip ``success`` to ``False``."""
        self.issues.append(issue)
        if issue.is_error:
            self.success = False

    def merge(self, other: "StageResult") -> None:
        """Fold *other* into this result (logical AND of success)."""
        self.issues.extend(other.issues)
        self.success = self.success and other.success


class ScanResult(StageResult):
    """Outcome of the content scan."""

    total_files: int = Field(default=0, ge=0)


class FilterResult(StageResult):
    """Outcome of filtering; ``removed`` is informational."""

    removed: int = Field(default=0, ge=0)


class DependencyOutcome(str, Enum):
    """Result of resolving a single dependency declaration."""
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    FAILED = "failed"


class DependencyResolution(BaseModel):
    """Outcome of one declaration plus the diagnostic explaining a failure."""

    outcome: DependencyOutcome
    matched: list[str] = Field(default_factory=list)
    issue: Optional[Diagnostic] = None


# ---------------------------------------------------------------------------
# ProjectInfo
# ---------------------------------------------------------------------------

@dataclass
class ProjectInfo:
    """A project entry owned by ``ProjectCollection``.

    ``type`` is the effective type: ``AUTO_LIBRARY`` has already been turned
    into a shared or static library according to the linkage configuration.
    ``resolution_failed`` is set when a dependency or library of this project
    could not be resolved.
    """

    manifest: ProjectManifest
    module_name: str
    type: ProjectType
    root_path: Optional[Path] = None
    generated_path: Optional[Path] = None
    files: list[ProjectFile] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    all_dependencies: list[str] = field(default_factory=list)
    libraries: list[LibraryDescriptor] = field(default_factory=list)
    additional_include_paths: list[Path] = field(default_factory=list)
    resolution_failed: bool = False

    @property
    def name(self) -> str:
        return self.manifest.name

    @property
    def group_name(self) -> str:
        return self.manifest.group_name

    @property
    def options(self) -> ProjectOptions:
        return self.manifest.options

    @property
    def source_files(self) -> list[ProjectFile]:
        return [f for f in self.files if f.kind == FileKind.SOURCE]

    @property
    def header_files(self) -> list[ProjectFile]:
        return [f for f in self.files if f.kind == FileKind.HEADER]
