"""The project collection: population, scanning, filtering and resolution.

``ProjectCollection`` owns every ``ProjectInfo`` of a run together with a
name index.  The stages are driven in order by the pipeline::

    collection = ProjectCollection(config)
    collection.populate(modules)
    await collection.scan_content()
    collection.filter_projects()
    collection.resolve_dependencies()
    collection.resolve_libraries(repository)

Every stage returns a ``StageResult``.  Per-project problems are accumulated
as diagnostics and never stop the remaining projects; only a duplicate
project name is raised, since it would corrupt the whole graph.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Iterable
from pathlib import Path

from solgen.collection.libraries import ExternalLibraryRepository
from solgen.collection.models import (
    DependencyOutcome,
    DependencyResolution,
    Diagnostic,
    FilterResult,
    ProjectFile,
    ProjectInfo,
    ScanResult,
    Severity,
    StageResult,
)
from solgen.collection.scanner import scan_project_files
from solgen.config import Configuration, LibraryLinkage
from solgen.errors import DuplicateProjectError, TargetNameCollisionError
from solgen.manifest.models import (
    DependencyDeclaration,
    ModuleManifest,
    ProjectManifest,
    ProjectType,
)
from solgen.utils import append_unique, extend_unique, target_name


class ProjectCollection:
    """Ordered set of resolved projects plus a name index."""

    def __init__(self, config: Configuration) -> None:
        self.config = config
        self.root_include_paths: list[Path] = []
        self._projects: list[ProjectInfo] = []
        self._index: dict[str, ProjectInfo] = {}

    # -- Access ------------------------------------------------------------

    @property
    def projects(self) -> list[ProjectInfo]:
        """Live entries in collection order (a copy)."""
        return list(self._projects)

    def __len__(self) -> int:
        return len(self._projects)

    def __iter__(self):
        return iter(self._projects)

    def find_project(self, name: str) -> ProjectInfo | None:
        return self._index.get(name)

    def names(self) -> list[str]:
        return [p.name for p in self._projects]

    def _replace_projects(self, projects: Iterable[ProjectInfo]) -> None:
        """Swap in a new entry list and rebuild the index from scratch."""
        self._projects = list(projects)
        self._index = {p.name: p for p in self._projects}

    # -- Population --------------------------------------------------------

    def populate(self, modules: Iterable[ModuleManifest]) -> StageResult:
        """Create one entry per declared project.

        Test applications of non-local modules are skipped.  ``AutoLibrary``
        is resolved against the linkage configuration and stored on the
        entry; manifests are left untouched.

        Raises:
            DuplicateProjectError: If a project name is already taken.
            TargetNameCollisionError: If two names map to the same build target.
        """
        result = StageResult()
        owners: dict[str, str] = {p.name: p.module_name for p in self._projects}
        targets: dict[str, str] = {target_name(p.name): p.name for p in self._projects}

        for module in modules:
            extend_unique(self.root_include_paths, module.global_include_paths)

            if not module.projects:
                result.add(Diagnostic(
                    project=module.name,
                    message="Module declares no projects",
                    severity=Severity.WARNING,
                ))

            for manifest in module.projects:
                # test projects of externally referenced modules are never built
                if manifest.type == ProjectType.TEST_APPLICATION and not module.local:
                    continue

                if manifest.name in owners:
                    raise DuplicateProjectError(manifest.name, owners[manifest.name], module.name)
                target = target_name(manifest.name)
                if target in targets:
                    raise TargetNameCollisionError(target, targets[target], manifest.name)
                owners[manifest.name] = module.name
                targets[target] = manifest.name

                info = ProjectInfo(
                    manifest=manifest,
                    module_name=module.name,
                    type=self._effective_type(manifest),
                    root_path=manifest.root_path,
                    generated_path=self.config.project_generated_path(manifest.name),
                )
                self._projects.append(info)
                self._index[info.name] = info

        return result

    def _effective_type(self, manifest: ProjectManifest) -> ProjectType:
        if manifest.type != ProjectType.AUTO_LIBRARY:
            return manifest.type
        if self.config.libs == LibraryLinkage.SHARED:
            return ProjectType.SHARED_LIBRARY
        return ProjectType.STATIC_LIBRARY

    # -- Content scan ------------------------------------------------------

    async def scan_content(self) -> ScanResult:
        """Scan every project's files concurrently.

        One task per project; at most ``max_parallel_workers`` run at once.
        A failing scan marks the result invalid but does not stop the
        others.  ``total_files`` sums the projects that scanned successfully.
        """
        semaphore = asyncio.Semaphore(self.config.max_parallel_workers)

        async def _scan(project: ProjectInfo) -> tuple[int, Diagnostic | None]:
            async with semaphore:
                return await self._scan_project(project)

        outcomes = await asyncio.gather(*[_scan(p) for p in self._projects])

        result = ScanResult()
        for count, issue in outcomes:
            if issue is None:
                result.total_files += count
            else:
                result.add(issue)
        return result

    async def _scan_project(self, project: ProjectInfo) -> tuple[int, Diagnostic | None]:
        if project.root_path is None:
            project.files = []
            return 0, None

        try:
            files: list[ProjectFile] = await asyncio.to_thread(
                scan_project_files,
                project.root_path,
                project.options.use_precompiled_header,
            )
        except OSError as exc:
            project.files = []
            return 0, Diagnostic(
                project=project.name,
                subject=str(project.root_path),
                message=f"Content scan failed: {exc}",
            )
        except UnicodeEncodeError as exc:
            project.files = []
            return 0, Diagnostic(
                project=project.name,
                subject=str(project.root_path),
                message=f"Content scan failed: file name is not valid UTF-8: {os.fsencode(exc.object)!r}",
            )

        project.files = files
        return len(files), None

    # -- Filtering ---------------------------------------------------------

    def filter_projects(self) -> FilterResult:
        """Keep only the projects that ship with the current configuration.

        Outside dev builds, dev-only projects and test applications are
        dropped; disabled projects are always dropped.  Order is preserved
        and the index is rebuilt.
        """
        kept: list[ProjectInfo] = []
        for project in self._projects:
            if not self.config.flag_dev_build:
                if project.options.dev_only or project.type == ProjectType.TEST_APPLICATION:
                    continue
            if project.type == ProjectType.DISABLED:
                continue
            kept.append(project)

        removed = len(self._projects) - len(kept)
        self._replace_projects(kept)
        return FilterResult(removed=removed)

    # -- Dependency resolution ---------------------------------------------

    def resolve_dependency(
        self,
        project: ProjectInfo,
        declaration: DependencyDeclaration,
        resolved: list[str],
    ) -> DependencyResolution:
        """Resolve one declaration of *project*, appending matches to *resolved*.

        ``prefix*`` matches every library directly under the prefix and never
        fails.  An exact name must be a library; a missing soft dependency
        is ``UNRESOLVED`` without being an error.
        """
        if declaration.is_wildcard:
            prefix = declaration.prefix
            matched: list[str] = []
            for candidate in self._projects:
                if candidate.name == project.name or not candidate.type.is_library:
                    continue
                if not candidate.name.startswith(prefix):
                    continue
                if "/" in candidate.name[len(prefix):]:
                    continue
                if append_unique(resolved, candidate.name):
                    matched.append(candidate.name)
            return DependencyResolution(outcome=DependencyOutcome.RESOLVED, matched=matched)

        target = self.find_project(declaration.name)
        if target is not None:
            if not target.type.is_library:
                return DependencyResolution(
                    outcome=DependencyOutcome.FAILED,
                    issue=Diagnostic(
                        project=project.name,
                        subject=target.name,
                        message=(
                            f"Project '{target.name}' is a {target.type.value} "
                            "and can't be a dependency"
                        ),
                    ),
                )
            matched = [target.name] if append_unique(resolved, target.name) else []
            return DependencyResolution(outcome=DependencyOutcome.RESOLVED, matched=matched)

        if declaration.soft:
            return DependencyResolution(outcome=DependencyOutcome.UNRESOLVED)

        return DependencyResolution(
            outcome=DependencyOutcome.FAILED,
            issue=Diagnostic(
                project=project.name,
                subject=declaration.name,
                message=f"No project named '{declaration.name}' found in all loaded modules",
            ),
        )

    def resolve_project_dependencies(self, project: ProjectInfo) -> StageResult:
        """Resolve every declared dependency of a single project."""
        result = StageResult()
        resolved: list[str] = []
        for declaration in project.manifest.dependencies:
            resolution = self.resolve_dependency(project, declaration, resolved)
            if resolution.issue is not None:
                result.add(resolution.issue)
        project.dependencies = resolved
        if not result.success:
            project.resolution_failed = True
        return result

    def resolve_dependencies(self) -> StageResult:
        """Resolve direct then transitive dependencies of every project."""
        result = StageResult()
        for project in self._projects:
            result.merge(self.resolve_project_dependencies(project))
        for project in self._projects:
            result.merge(self._collect_all_dependencies(project))
        return result

    def _collect_all_dependencies(self, project: ProjectInfo) -> StageResult:
        """Compute ``all_dependencies``: dependencies listed before dependents."""
        result = StageResult()
        ordered: list[str] = []
        visiting: list[str] = [project.name]

        def _visit(name: str) -> None:
            if name in visiting:
                cycle = " -> ".join(visiting[visiting.index(name):] + [name])
                result.add(Diagnostic(
                    project=project.name,
                    subject=name,
                    message=f"Dependency cycle detected: {cycle}",
                ))
                project.resolution_failed = True
                return
            if name in ordered:
                return
            dependency = self.find_project(name)
            if dependency is None:
                return
            visiting.append(name)
            for child in dependency.dependencies:
                _visit(child)
            visiting.pop()
            append_unique(ordered, name)

        for name in project.dependencies:
            _visit(name)

        project.all_dependencies = ordered
        return result

    # -- Library resolution ------------------------------------------------

    def resolve_libraries(self, repository: ExternalLibraryRepository) -> StageResult:
        """Attach a ``LibraryDescriptor`` for every declared external library."""
        result = StageResult()
        for project in self._projects:
            project.libraries = []
            project.additional_include_paths = []
            for name in project.manifest.libraries:
                descriptor = repository.resolve(name, self.config.platform)
                if descriptor is None:
                    result.add(Diagnostic(
                        project=project.name,
                        subject=name,
                        message=(
                            f"External library '{name}' is not available "
                            f"for platform '{self.config.platform.value}'"
                        ),
                    ))
                    project.resolution_failed = True
                    continue
                project.libraries.append(descriptor)
                extend_unique(project.additional_include_paths, descriptor.additional_include_paths)
        return result
