"""solgen build-target configuration.

Centralised, typed configuration for a generation run. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Platform(str, Enum):
    """Target platform the generated projects are built for."""
    WINDOWS = "windows"
    UWP = "uwp"
    LINUX = "linux"
    DARWIN = "darwin"
    DARWIN_ARM = "darwin_arm"

    @property
    def is_windows_family(self) -> bool:
        return self in (Platform.WINDOWS, Platform.UWP)

    @property
    def is_darwin_family(self) -> bool:
        return self in (Platform.DARWIN, Platform.DARWIN_ARM)

    @property
    def is_posix_family(self) -> bool:
        return not self.is_windows_family


class BuildConfiguration(str, Enum):
    """Build configuration, from least to most optimised."""
    DEBUG = "debug"
    CHECKED = "checked"
    RELEASE = "release"
    FINAL = "final"

    @property
    def display_name(self) -> str:
        """Name used by native build tools, e.g. ``"Release"``."""
        return self.value.capitalize()


class LibraryLinkage(str, Enum):
    """How ``AutoLibrary`` projects are linked."""
    STATIC = "static"
    SHARED = "shared"


# ---------------------------------------------------------------------------
# Configuration model
# ---------------------------------------------------------------------------


class Configuration(BaseModel):
    """Global solgen configuration.

    Holds every knob of the build target plus the output path roots.
    Instances are created once by the CLI (or ``Pipeline``) and then passed
    read-only through the rest of the system.
    """

    model_config = ConfigDict(frozen=True)

    platform: Platform = Field(default=Platform.LINUX)
    configuration: BuildConfiguration = Field(default=BuildConfiguration.RELEASE)
    libs: LibraryLinkage = Field(default=LibraryLinkage.STATIC)
    flag_dev_build: bool = Field(
        default=True, description="Include dev-only and test projects"
    )
    output_dir: Path = Field(default=Path("./.build"))
    solution_name: str = Field(default="solution", min_length=1)
    generator: str = Field(default="cmake", description="Backend emitter name")
    max_parallel_workers: int = Field(
        default=8, ge=1, description="Upper bound for concurrent scans/emissions"
    )
    cmake_min_version: str = Field(default="3.22.0")

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def build_tag(self) -> str:
        """Directory tag identifying this target, e.g. ``linux.release``."""
        return f"{self.platform.value}.{self.configuration.value}"

    @property
    def derived_solution_path(self) -> Path:
        """Root of the generated solution for this target."""
        return self.output_dir / f"{self.generator}.{self.build_tag}"

    @property
    def derived_binary_path(self) -> Path:
        """Directory where executables and shared libraries are collected."""
        return self.output_dir / "bin" / self.build_tag

    @property
    def shared_generated_path(self) -> Path:
        """Generated-output directory shared by every project."""
        return self.derived_solution_path / "generated" / "_shared"

    def project_generated_path(self, project_name: str) -> Path:
        """Generated-output directory of a single project."""
        return self.derived_solution_path / "generated" / project_name

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path | None = None) -> Path:
        """Persist the configuration to a JSON file.

        Args:
            path: Destination file. Defaults to
                ``<derived_solution_path>/solgen-config.json``.

        Returns:
            The path where the file was written.
        """
        target = path or (self.derived_solution_path / "solgen-config.json")
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> "Configuration":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Configuration":
        """Build a ``Configuration`` from environment variables.

        Recognised variables (all optional):
            SOLGEN_PLATFORM, SOLGEN_CONFIGURATION, SOLGEN_LIBS,
            SOLGEN_DEV_BUILD, SOLGEN_OUTPUT_DIR, SOLGEN_SOLUTION_NAME,
            SOLGEN_MAX_WORKERS.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SOLGEN_PLATFORM"):
            kwargs["platform"] = Platform(os.environ["SOLGEN_PLATFORM"].lower())
        if os.environ.get("SOLGEN_CONFIGURATION"):
            kwargs["configuration"] = BuildConfiguration(
                os.environ["SOLGEN_CONFIGURATION"].lower()
            )
        if os.environ.get("SOLGEN_LIBS"):
            kwargs["libs"] = LibraryLinkage(os.environ["SOLGEN_LIBS"].lower())
        if os.environ.get("SOLGEN_DEV_BUILD"):
            kwargs["flag_dev_build"] = os.environ["SOLGEN_DEV_BUILD"].lower() in (
                "1", "true", "yes", "on",
            )
        if os.environ.get("SOLGEN_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["SOLGEN_OUTPUT_DIR"])
        if os.environ.get("SOLGEN_SOLUTION_NAME"):
            kwargs["solution_name"] = os.environ["SOLGEN_SOLUTION_NAME"]
        if os.environ.get("SOLGEN_MAX_WORKERS"):
            kwargs["max_parallel_workers"] = int(os.environ["SOLGEN_MAX_WORKERS"])

        return cls(**kwargs)
