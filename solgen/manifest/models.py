"""Pydantic v2 models for module and project manifests.

Manifests are the declarative input of a generation run: a module owns a set
of projects, each project declares its type, its dependencies on other
projects and the external libraries it links against.  The models are treated
as immutable once loaded -- derived state lives on ``ProjectInfo``.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ProjectType(str, Enum):
    """Declared kind of a project."""
    APPLICATION = "application"
    TEST_APPLICATION = "test_application"
    SHARED_LIBRARY = "shared_library"
    STATIC_LIBRARY = "static_library"
    AUTO_LIBRARY = "auto_library"
    DISABLED = "disabled"

    @property
    def is_library(self) -> bool:
        return self in (ProjectType.SHARED_LIBRARY, ProjectType.STATIC_LIBRARY)

    @property
    def is_application(self) -> bool:
        return self in (ProjectType.APPLICATION, ProjectType.TEST_APPLICATION)

    @property
    def is_buildable(self) -> bool:
        """True for project types that produce a native build target."""
        return self.is_library or self.is_application


# ---------------------------------------------------------------------------
# Project manifest
# ---------------------------------------------------------------------------

class DependencyDeclaration(BaseModel):
    """A declared dependency on another project.

    A trailing ``*`` turns the name into a wildcard matching every direct
    child library under the prefix (``lib/*`` matches ``lib/core`` but not
    ``lib/net/http``).  A soft dependency may be absent without error.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Project name or 'prefix*' pattern")
    soft: bool = Field(default=False, description="Absence is not an error")

    @property
    def is_wildcard(self) -> bool:
        return self.name.endswith("*")

    @property
    def prefix(self) -> str:
        """Name without the trailing wildcard marker."""
        return self.name[:-1] if self.is_wildcard else self.name

    @classmethod
    def parse(cls, value: str) -> "DependencyDeclaration":
        """Parse the short string form: ``"?name"`` marks a soft dependency."""
        if value.startswith("?"):
            return cls(name=value[1:], soft=True)
        return cls(name=value)


class ProjectOptions(BaseModel):
    """Per-project switches that influence filtering and emission."""

    model_config = ConfigDict(frozen=True)

    dev_only: bool = Field(default=False, description="Only built in dev builds")
    use_exceptions: bool = Field(default=False, description="Compile with C++ exceptions")
    use_window_subsystem: bool = Field(
        default=False, description="Windowed (non-console) application on Windows"
    )
    use_precompiled_header: bool = Field(
        default=True, description="Use build.h as a precompiled header when present"
    )


class ProjectManifest(BaseModel):
    """Static declaration of a single project."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Globally unique project name, e.g. 'lib/core'")
    group_name: str = Field(default="", description="Solution folder the project is shown in")
    root_path: Optional[Path] = Field(
        default=None, description="Directory holding src/ and include/"
    )
    type: ProjectType = Field(default=ProjectType.AUTO_LIBRARY)
    dependencies: list[DependencyDeclaration] = Field(default_factory=list)
    libraries: list[str] = Field(
        default_factory=list, description="External library names"
    )
    options: ProjectOptions = Field(default_factory=ProjectOptions)

    @field_validator("name")
    @classmethod
    def _normalise_name(cls, value: str) -> str:
        return value.replace("\\", "/")

    @field_validator("dependencies", mode="before")
    @classmethod
    def _accept_short_dependencies(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        return [
            DependencyDeclaration.parse(item) if isinstance(item, str) else item
            for item in value
        ]


# ---------------------------------------------------------------------------
# Module manifest
# ---------------------------------------------------------------------------

class ModuleManifest(BaseModel):
    """A named unit owning zero or more projects."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    local: bool = Field(
        default=True, description="Declared in this workspace (vs. an external reference)"
    )
    global_include_paths: list[Path] = Field(
        default_factory=list, description="Include paths added to every project"
    )
    projects: list[ProjectManifest] = Field(default_factory=list)
