"""solgen project collection.

Turns module manifests into a filtered, cross-linked set of projects.

Key classes:
    ProjectCollection     - Population, scanning, filtering and resolution
    ProjectInfo           - One project plus its resolution state
    JsonLibraryRepository - External library descriptors loaded from JSON
"""

from .libraries import ExternalLibraryRepository, JsonLibraryRepository
from .models import (
    DependencyOutcome,
    DependencyResolution,
    Diagnostic,
    FileKind,
    FilterResult,
    LibraryDescriptor,
    ProjectFile,
    ProjectInfo,
    ScanResult,
    Severity,
    StageResult,
)
from .project_collection import ProjectCollection
from .scanner import classify_file, scan_project_files

__all__ = [
    # Collection
    "ProjectCollection",
    "ProjectInfo",
    "ProjectFile",
    "FileKind",
    # Libraries
    "ExternalLibraryRepository",
    "JsonLibraryRepository",
    "LibraryDescriptor",
    # Results
    "Diagnostic",
    "Severity",
    "StageResult",
    "ScanResult",
    "FilterResult",
    "DependencyOutcome",
    "DependencyResolution",
    # Scanning
    "classify_file",
    "scan_project_files",
]
