"""Abstract solution-generator contract and the generated file set.

A backend turns a finalised ``ProjectCollection`` into native build files.
Every backend emits one aggregate (solution) file plus one file per buildable
project.  Project files are independent, so ``generate_projects`` renders
them concurrently; the backend only supplies ``render_project_file``.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from jinja2 import TemplateError
from pydantic import BaseModel, Field

from solgen.collection.models import Diagnostic, ProjectInfo, Severity, StageResult
from solgen.collection.project_collection import ProjectCollection
from solgen.config import Configuration
from solgen.generator.templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Solution
# ---------------------------------------------------------------------------

@dataclass
class Solution:
    """A named, fully resolved collection ready for emission."""

    name: str
    collection: ProjectCollection

    @property
    def root_include_paths(self) -> list[Path]:
        return self.collection.root_include_paths

    @property
    def buildable_projects(self) -> list[ProjectInfo]:
        """Applications and libraries that resolved, in collection order."""
        return [p for p in self.collection if p.type.is_buildable and not self.is_blocked(p)]

    @property
    def skipped_projects(self) -> list[ProjectInfo]:
        """Applications and libraries left out because resolution failed."""
        return [p for p in self.collection if p.type.is_buildable and self.is_blocked(p)]

    def is_blocked(self, project: ProjectInfo) -> bool:
        """True if *project* or anything it depends on failed to resolve."""
        if project.resolution_failed:
            return True
        for name in project.all_dependencies:
            dependency = self.dependency(name)
            if dependency is not None and dependency.resolution_failed:
                return True
        return False

    def dependency(self, name: str) -> ProjectInfo | None:
        return self.collection.find_project(name)


# ---------------------------------------------------------------------------
# Generated file set
# ---------------------------------------------------------------------------

class WriteResult(BaseModel):
    """Outcome of persisting a ``FileSet``."""

    written: list[Path] = Field(default_factory=list)
    unchanged: list[Path] = Field(default_factory=list)


class FileSet:
    """In-memory set of generated files keyed by absolute path."""

    def __init__(self) -> None:
        self._files: dict[Path, str] = {}

    def add(self, path: Path, content: str) -> None:
        """Register a file.  Emitting the same path twice is a bug."""
        if path in self._files:
            raise ValueError(f"File generated twice: {path}")
        self._files[path] = content

    def get(self, path: Path) -> str | None:
        return self._files.get(path)

    def paths(self) -> list[Path]:
        return list(self._files)

    def __contains__(self, path: object) -> bool:
        return path in self._files

    def __len__(self) -> int:
        return len(self._files)

    async def write_all(self) -> WriteResult:
        """Write every file whose on-disk content differs.

        Writes run in worker threads; parent directories are created.
        """
        items = list(self._files.items())
        changed = await asyncio.gather(
            *[asyncio.to_thread(_write_if_changed, path, content) for path, content in items]
        )
        result = WriteResult()
        for (path, _), was_written in zip(items, changed):
            (result.written if was_written else result.unchanged).append(path)
        return result


def _write_if_changed(path: Path, content: str) -> bool:
    """Synchronous helper: write *content* unless the file already holds it."""
    if path.is_file() and path.read_text(encoding="utf-8") == content:
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return True


# ---------------------------------------------------------------------------
# SolutionGenerator
# ---------------------------------------------------------------------------

class SolutionGenerator(ABC):
    """Base class for backend emitters."""

    name: str = ""

    def __init__(
        self,
        config: Configuration,
        solution: Solution,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.config = config
        self.solution = solution
        self.renderer = renderer or TemplateRenderer()

    # -- Contract ----------------------------------------------------------

    @abstractmethod
    async def generate_solution(self, files: FileSet) -> Path:
        """Emit the aggregate file listing every buildable project.

        Implementations verify their external tooling first.

        Raises:
            ToolingError: If the required tool is missing or too old.
        """

    @abstractmethod
    def render_project_file(self, project: ProjectInfo) -> tuple[Path, str]:
        """Return ``(path, content)`` of one project's build file.

        Called from worker threads; must not mutate shared state.
        """

    # -- Shared driver -----------------------------------------------------

    async def generate_projects(self, files: FileSet) -> StageResult:
        """Render every buildable project concurrently into *files*.

        A failure in one project is reported and does not stop the others.
        Projects that failed resolution are skipped with a warning.
        """
        semaphore = asyncio.Semaphore(self.config.max_parallel_workers)
        projects = self.solution.buildable_projects

        async def _render(project: ProjectInfo) -> tuple[Path, str] | Diagnostic:
            async with semaphore:
                try:
                    return await asyncio.to_thread(self.render_project_file, project)
                except (TemplateError, ValueError, OSError) as exc:
                    return Diagnostic(
                        project=project.name,
                        message=f"Failed to generate project file: {exc}",
                    )

        rendered = await asyncio.gather(*[_render(p) for p in projects])

        result = StageResult()
        for project in self.solution.skipped_projects:
            result.add(Diagnostic(
                project=project.name,
                message="Not generated: dependency or library resolution failed",
                severity=Severity.WARNING,
            ))
        for item in rendered:
            if isinstance(item, Diagnostic):
                result.add(item)
            else:
                files.add(*item)
        return result

    async def generate(self, files: FileSet) -> StageResult:
        """Emit the solution file, then every project file."""
        await self.generate_solution(files)
        return await self.generate_projects(files)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.solution.name!r})"
