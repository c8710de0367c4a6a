"""CMake backend.

Emits a top-level ``CMakeLists.txt`` that adds every buildable project as a
subdirectory, and one ``CMakeLists.txt`` per project under its generated
path.  All platform and configuration decisions are computed here; the
``cmake/*.j2`` templates only lay them out.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

from solgen.collection.models import LibraryDescriptor, ProjectFile, ProjectInfo
from solgen.collection.scanner import PRECOMPILED_HEADER, PRECOMPILED_SOURCES
from solgen.config import BuildConfiguration, Platform
from solgen.errors import ToolingError
from solgen.generator.base import FileSet, SolutionGenerator
from solgen.manifest.models import ProjectType
from solgen.utils import append_unique, macro_name, parse_version, run_command, target_name

CXX_STANDARD = 17

# Preprocessor markers per build configuration.
CONFIGURATION_DEFINITIONS: dict[BuildConfiguration, list[str]] = {
    BuildConfiguration.DEBUG: ["BUILD_DEBUG", "_DEBUG", "DEBUG"],
    BuildConfiguration.CHECKED: ["BUILD_CHECKED", "NDEBUG"],
    BuildConfiguration.RELEASE: ["BUILD_RELEASE", "NDEBUG"],
    BuildConfiguration.FINAL: ["BUILD_RELEASE", "BUILD_FINAL", "NDEBUG"],
}

# Optimisation flags per build configuration on POSIX compilers.
POSIX_OPTIMIZATION_FLAGS: dict[BuildConfiguration, str] = {
    BuildConfiguration.DEBUG: "-O0 -m64 -fstack-protector-all",
    BuildConfiguration.CHECKED: "-O2 -m64 -fstack-protector-all",
    BuildConfiguration.RELEASE: "-O3 -m64 -fno-stack-protector",
    BuildConfiguration.FINAL: "-O3 -m64 -fno-stack-protector",
}

WINDOWS_DEFINITIONS: list[str] = [
    "UNICODE",
    "_UNICODE",
    "_WIN64",
    "_WINDOWS",
    "WIN32_LEAN_AND_MEAN",
    "NOMINMAX",
    "_SILENCE_ALL_CXX17_DEPRECATION_WARNINGS",
    "_SILENCE_TR1_NAMESPACE_DEPRECATION_WARNING",
    "_SILENCE_CXX17_CODECVT_HEADER_DEPRECATION_WARNING",
]


# ---------------------------------------------------------------------------
# Emission rules
# ---------------------------------------------------------------------------

def link_order(dependencies: list[str], platform: Platform) -> list[str]:
    """Order in which an application links its dependencies.

    ``dependencies`` lists dependencies before their dependents.  Windows
    linkers resolve symbols across the whole command line, so the declared
    order is kept; single-pass POSIX linkers need dependents first, so the
    list is reversed.
    """
    if platform.is_windows_family:
        return list(dependencies)
    return list(reversed(dependencies))


def linkage_definitions(project: ProjectInfo) -> list[str]:
    """Static-link marker, or the exports macro (plus DLL marker)."""
    if project.type == ProjectType.STATIC_LIBRARY:
        return ["BUILD_AS_LIBS"]
    definitions = [f"{macro_name(project.name)}_EXPORTS"]
    if project.type == ProjectType.SHARED_LIBRARY:
        definitions.append("BUILD_DLL")
    return definitions


def compiler_flags(
    platform: Platform, configuration: BuildConfiguration, use_exceptions: bool
) -> list[str]:
    """``CMAKE_CXX_FLAGS`` additions for the target, in emission order."""
    flags: list[str] = []
    if platform == Platform.WINDOWS:
        flags.append("/MP")
    flags.append(" ".join(f"-D{d}" for d in CONFIGURATION_DEFINITIONS[configuration]))
    if platform.is_posix_family:
        flags.append("-pthread")
        flags.append("-fexceptions" if use_exceptions else "-fno-exceptions")
        flags.append("-g")
        flags.append(POSIX_OPTIMIZATION_FLAGS[configuration])
    return flags


def system_libraries(platform: Platform, libraries: Iterable[LibraryDescriptor]) -> list[str]:
    """System libraries (and Darwin frameworks) appended to every target.

    Empty on the Windows family.
    """
    if not platform.is_posix_family:
        return []

    libs: list[str] = ["dl"]
    frameworks: list[str] = []
    if platform == Platform.LINUX:
        libs.append("rt")
    elif platform.is_darwin_family:
        libs.append("stdc++")

    for library in libraries:
        for name in library.additional_system_libraries:
            append_unique(libs, name)
        for name in library.additional_system_frameworks:
            append_unique(frameworks, name)

    if platform.is_darwin_family and frameworks:
        libs.extend(f'"-framework {name}"' for name in frameworks)
        libs.append("objc")
    return libs


def precompiled_header_flags(files: Iterable[ProjectFile]) -> list[tuple[Path, str]]:
    """``(source, compile flag)`` pairs for MSVC precompiled headers."""
    flags: list[tuple[Path, str]] = []
    for f in files:
        if f.name in PRECOMPILED_SOURCES:
            flags.append((f.absolute_path, f"/Yc{PRECOMPILED_HEADER}"))
        elif f.use_precompiled_header:
            flags.append((f.absolute_path, f"/Yu{PRECOMPILED_HEADER}"))
    return flags


def shared_library_file_name(target: str, platform: Platform) -> str:
    """File name of a shared library artifact on *platform*."""
    if platform.is_windows_family:
        return f"{target}.dll"
    if platform.is_darwin_family:
        return f"lib{target}.dylib"
    return f"lib{target}.so"


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class CMakeSolutionGenerator(SolutionGenerator):
    """Generates a CMake workspace for the solution."""

    name = "cmake"

    SOLUTION_TEMPLATE = "cmake/solution.cmake.j2"
    PROJECT_TEMPLATE = "cmake/project.cmake.j2"
    FILE_NAME = "CMakeLists.txt"

    # -- Tooling -----------------------------------------------------------

    async def check_tooling(self) -> tuple[int, int, int]:
        """Verify that ``cmake`` is installed and recent enough.

        Returns:
            The detected version triple.

        Raises:
            ToolingError: If cmake is missing, unparsable, or too old.
        """
        required = parse_version(self.config.cmake_min_version)
        code, stdout, stderr = await run_command(["cmake", "--version"], timeout=30)
        if code != 0:
            raise ToolingError("cmake", f"not available ({stderr or f'exit code {code}'})")

        version_line = next(
            (line for line in stdout.splitlines() if line.startswith("cmake version")),
            "",
        )
        found = parse_version(version_line)
        if found is None:
            raise ToolingError("cmake", f"cannot determine version from {stdout!r}")
        if required is not None and found < required:
            raise ToolingError(
                "cmake",
                f"version {'.'.join(map(str, found))} is older than required "
                f"{self.config.cmake_min_version}",
            )
        return found

    # -- Solution ----------------------------------------------------------

    async def generate_solution(self, files: FileSet) -> Path:
        await self.check_tooling()

        solution_path = self.config.derived_solution_path
        context = {
            "solution_name": self.solution.name,
            "cmake_min_version": self.config.cmake_min_version,
            "configuration_name": self.config.configuration.display_name,
            "module_path": solution_path / "cmake",
            "library_output_path": solution_path / "lib",
            "binary_output_path": self.config.derived_binary_path,
            "project_dirs": [p.generated_path for p in self.solution.buildable_projects],
        }
        path = solution_path / self.FILE_NAME
        files.add(path, self.renderer.render(self.SOLUTION_TEMPLATE, context))
        return path

    # -- Projects ----------------------------------------------------------

    def render_project_file(self, project: ProjectInfo) -> tuple[Path, str]:
        if project.generated_path is None:
            raise ValueError(f"Project '{project.name}' has no generated path")
        content = self.renderer.render(self.PROJECT_TEMPLATE, self.project_context(project))
        return project.generated_path / self.FILE_NAME, content

    def include_directories(self, project: ProjectInfo) -> list[Path]:
        """Include paths in emission order (library includes come later)."""
        paths: list[Path] = list(self.solution.root_include_paths)
        if project.root_path is not None:
            paths.append(project.root_path / "src")
            paths.append(project.root_path / "include")
        paths.append(self.config.shared_generated_path)
        if project.generated_path is not None:
            paths.append(project.generated_path)
        paths.extend(project.additional_include_paths)
        return paths

    def project_context(self, project: ProjectInfo) -> dict[str, Any]:
        """Template context of one project file."""
        platform = self.config.platform
        dependencies = [
            dep for dep in (self.solution.dependency(n) for n in project.all_dependencies)
            if dep is not None
        ]

        definitions = [f"PROJECT_NAME={macro_name(project.name)}"]
        definitions.extend(linkage_definitions(project))
        definitions.extend(
            f"HAS_{macro_name(dep.name)}" for dep in dependencies if dep.type.is_library
        )
        if platform.is_windows_family:
            definitions.extend(WINDOWS_DEFINITIONS)
            if not project.options.use_window_subsystem:
                definitions.append("CONSOLE")

        if project.type.is_application:
            target_kind = "executable"
            link_dependencies = link_order([d.name for d in dependencies], platform)
        else:
            target_kind = "static" if project.type == ProjectType.STATIC_LIBRARY else "shared"
            link_dependencies = []

        return {
            "project": project,
            "cxx_standard": CXX_STANDARD,
            "configuration_name": self.config.configuration.display_name,
            "definitions": definitions,
            "cxx_flags": compiler_flags(
                platform, self.config.configuration, project.options.use_exceptions
            ),
            "include_paths": self.include_directories(project),
            "libraries": project.libraries,
            "sources": [f.absolute_path for f in project.source_files],
            "headers": [f.absolute_path for f in project.header_files],
            "target_kind": target_kind,
            "windowed": project.options.use_window_subsystem and platform == Platform.WINDOWS,
            "link_dependencies": link_dependencies,
            "system_libraries": system_libraries(platform, project.libraries),
            "precompiled_headers": (
                precompiled_header_flags(project.source_files)
                if platform.is_windows_family else []
            ),
            "shared_copy": (
                shared_library_file_name(target_name(project.name), platform)
                if project.type == ProjectType.SHARED_LIBRARY else None
            ),
        }