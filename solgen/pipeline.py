"""solgen pipeline orchestrator.

Drives a generation run through its stages:

Stage 1: LOAD      -- Read and validate module manifests.
Stage 2: POPULATE  -- Build the project collection.
Stage 3: SCAN      -- Enumerate project files (parallel).
Stage 4: FILTER    -- Drop projects that do not ship with this configuration.
Stage 5: RESOLVE   -- Resolve project dependencies and external libraries.
Stage 6: GENERATE  -- Emit the solution and project files (parallel).
Stage 7: WRITE     -- Persist changed files to disk.

Per-project problems are collected and reported but never stop the run;
fatal errors (invalid manifests, duplicate project or target names, missing tooling)
abort at the stage where they occur.

Usage::

    solgen engine/module.json game/module.json --platform linux -o .build
    python -m solgen.pipeline module.json --configuration debug --dev
"""

from __future__ import annotations

import asyncio
import sys
import time
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel

from solgen.collection import (
    Diagnostic,
    ExternalLibraryRepository,
    JsonLibraryRepository,
    ProjectCollection,
    StageResult,
)
from solgen.config import BuildConfiguration, Configuration, LibraryLinkage, Platform
from solgen.errors import SolgenError
from solgen.generator import FileSet, Solution, create_generator
from solgen.manifest import ModuleManifest, load_module_manifests
from solgen.utils import (
    console,
    format_duration,
    print_diagnostics,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
    print_warning,
)

STAGE_NAMES: dict[int, str] = {
    1: "LOAD",
    2: "POPULATE",
    3: "SCAN",
    4: "FILTER",
    5: "RESOLVE",
    6: "GENERATE",
    7: "WRITE",
}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(Exception):
    """Raised when a stage fails irrecoverably."""

    def __init__(self, stage: int, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage {stage} ({STAGE_NAMES.get(stage, '?')}): {message}")


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """solgen pipeline orchestrator.

    Attributes:
        config: Build-target configuration.
        libraries: Repository consulted for external libraries.
        collection: The project collection built by the run.
        files: Generated files, filled by the GENERATE stage.
        diagnostics: Every per-project problem reported so far.
        state: Summary of the run, returned by :meth:`run`.
    """

    def __init__(
        self,
        config: Configuration,
        libraries: ExternalLibraryRepository | None = None,
        write: bool = True,
    ) -> None:
        self.config = config
        self.libraries = libraries or JsonLibraryRepository()
        self.write = write
        self.collection = ProjectCollection(config)
        self.files = FileSet()
        self.diagnostics: list[Diagnostic] = []
        self.state: dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "stages_completed": [],
            "stages_failed": [],
            "success": False,
        }

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(
        self,
        manifest_paths: Sequence[str | Path] = (),
        modules: Sequence[ModuleManifest] = (),
    ) -> dict[str, Any]:
        """Execute every stage.

        Args:
            manifest_paths: Module manifest files to load.
            modules: Already-parsed modules, appended after the loaded ones.

        Returns:
            The final state dictionary, including a top-level ``success``
            boolean.
        """
        start = time.monotonic()
        console.print(
            Panel(
                f"[bold bright_cyan]solgen[/bold bright_cyan]\n"
                f"Solution : {escape(self.config.solution_name)}\n"
                f"Target   : {self.config.generator} / {self.config.build_tag} "
                f"({self.config.libs.value} libs{', dev' if self.config.flag_dev_build else ''})\n"
                f"Output   : {escape(str(self.config.derived_solution_path))}",
                title="[bold]Generation Start[/bold]",
                border_style="bright_cyan",
            )
        )

        all_success = True
        loaded: list[ModuleManifest] = []
        stages = [
            (1, lambda: self.stage_load(manifest_paths, modules, loaded)),
            (2, lambda: self.stage_populate(loaded)),
            (3, self.stage_scan),
            (4, self.stage_filter),
            (5, self.stage_resolve),
            (6, self.stage_generate),
            (7, self.stage_write),
        ]

        for index, stage in stages:
            if index == 7 and not self.write:
                continue

            print_stage_header(index, STAGE_NAMES[index])
            stage_start = time.monotonic()
            try:
                result = await stage()
            except PipelineError as exc:
                all_success = False
                self.state["stages_failed"].append(index)
                self.state["error"] = str(exc)
                print_error(escape(str(exc)))
                break

            elapsed = format_duration(time.monotonic() - stage_start)
            if result.success:
                self.state["stages_completed"].append(index)
                print_success(f"Stage {index} ({STAGE_NAMES[index]}) completed in {elapsed}")
            else:
                all_success = False
                self.state["stages_failed"].append(index)
                print_warning(
                    f"Stage {index} ({STAGE_NAMES[index]}) finished with "
                    f"{result.error_count} error(s) in {elapsed}"
                )

        self.state["success"] = all_success
        self.state["projects"] = self.collection.names()
        self.state["files"] = [str(p) for p in self.files.paths()]
        self.state["diagnostics"] = [d.model_dump(mode="json") for d in self.diagnostics]
        self.state["total_duration"] = format_duration(time.monotonic() - start)
        self.state["finished_at"] = datetime.now(timezone.utc).isoformat()

        self._print_final_summary()
        return self.state

    def _report(self, result: StageResult) -> StageResult:
        """Record and print the diagnostics of a stage."""
        self.diagnostics.extend(result.issues)
        print_diagnostics(result.issues)
        return result

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def stage_load(
        self,
        manifest_paths: Sequence[str | Path],
        modules: Sequence[ModuleManifest],
        out: list[ModuleManifest],
    ) -> StageResult:
        """Load manifest files; invalid manifests are fatal."""
        try:
            loaded = await asyncio.to_thread(load_module_manifests, list(manifest_paths))
        except SolgenError as exc:
            raise PipelineError(1, str(exc)) from exc

        out.extend(loaded)
        out.extend(modules)
        if not out:
            raise PipelineError(1, "No module manifests given")

        console.print(f"  Loaded [bold]{len(out)}[/bold] module(s)")
        return StageResult()

    async def stage_populate(self, modules: Sequence[ModuleManifest]) -> StageResult:
        """Build the collection; duplicate project or target names are fatal."""
        try:
            result = self.collection.populate(modules)
        except SolgenError as exc:
            raise PipelineError(2, str(exc)) from exc

        console.print(
            f"  [bold]{len(self.collection)}[/bold] project(s), "
            f"{len(self.collection.root_include_paths)} root include path(s)"
        )
        return self._report(result)

    async def stage_scan(self) -> StageResult:
        result = await self.collection.scan_content()
        console.print(f"  Found [bold]{result.total_files}[/bold] file(s)")
        return self._report(result)

    async def stage_filter(self) -> StageResult:
        result = self.collection.filter_projects()
        if result.removed:
            console.print(
                f"  Filtered {result.removed} project(s) from the solution "
                "due to development flag"
            )
        return self._report(result)

    async def stage_resolve(self) -> StageResult:
        """Resolve dependencies, then libraries; both always run."""
        result = self.collection.resolve_dependencies()
        result.merge(self.collection.resolve_libraries(self.libraries))
        return self._report(result)

    async def stage_generate(self) -> StageResult:
        """Run the backend; missing tooling is fatal."""
        solution = Solution(self.config.solution_name, self.collection)
        try:
            generator = create_generator(self.config, solution)
            result = await generator.generate(self.files)
        except SolgenError as exc:
            raise PipelineError(6, str(exc)) from exc

        console.print(f"  Generated [bold]{len(self.files)}[/bold] file(s)")
        return self._report(result)

    async def stage_write(self) -> StageResult:
        try:
            written = await self.files.write_all()
        except (OSError, UnicodeError) as exc:
            raise PipelineError(7, f"Cannot write generated files: {exc}") from exc

        console.print(
            f"  Wrote {len(written.written)} file(s), "
            f"{len(written.unchanged)} unchanged"
        )
        return StageResult()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _print_final_summary(self) -> None:
        errors = sum(1 for d in self.diagnostics if d.is_error)
        warnings = len(self.diagnostics) - errors

        print_summary_table(
            {
                "Projects": str(len(self.collection)),
                "Generated files": str(len(self.files)),
                "Errors": str(errors),
                "Warnings": str(warnings),
                "Duration": self.state.get("total_duration", ""),
            },
            title="Generation Summary",
        )

        if self.state.get("success"):
            console.print(Panel("[bold green]GENERATION SUCCEEDED[/bold green]", border_style="bold green"))
        else:
            console.print(Panel("[bold red]GENERATION FAILED[/bold red]", border_style="bold red"))


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_config(args: Any) -> Configuration:
    """Create the ``Configuration`` from parsed CLI arguments over env defaults."""
    base = Configuration.from_env()
    overrides: dict[str, Any] = {}
    if args.output is not None:
        overrides["output_dir"] = Path(args.output)
    if args.platform is not None:
        overrides["platform"] = Platform(args.platform)
    if args.configuration is not None:
        overrides["configuration"] = BuildConfiguration(args.configuration)
    if args.libs is not None:
        overrides["libs"] = LibraryLinkage(args.libs)
    if args.dev is not None:
        overrides["flag_dev_build"] = args.dev
    if args.name is not None:
        overrides["solution_name"] = args.name
    if args.workers is not None:
        overrides["max_parallel_workers"] = args.workers
    return Configuration.model_validate({**base.model_dump(), **overrides})


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point for ``solgen`` / ``python -m solgen.pipeline``."""
    import argparse

    parser = argparse.ArgumentParser(
        prog="solgen",
        description="solgen -- generate native build files from module manifests",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  solgen engine/module.json\n"
            "  solgen engine/module.json game/module.json -o .build --platform windows\n"
            "  solgen module.json --configuration final --no-dev --libs shared\n"
        ),
    )
    parser.add_argument("manifests", nargs="+", help="Module manifest JSON files")
    parser.add_argument("--output", "-o", default=None, help="Output root (default: ./.build)")
    parser.add_argument(
        "--platform", choices=[p.value for p in Platform], default=None,
        help="Target platform (default: linux)",
    )
    parser.add_argument(
        "--configuration", "-c", choices=[c.value for c in BuildConfiguration], default=None,
        help="Build configuration (default: release)",
    )
    parser.add_argument(
        "--libs", choices=[l.value for l in LibraryLinkage], default=None,
        help="Linkage of auto libraries (default: static)",
    )
    parser.add_argument(
        "--dev", action=argparse.BooleanOptionalAction, default=None,
        help="Include dev-only and test projects (default: on)",
    )
    parser.add_argument("--libraries", default=None, help="External library repository JSON")
    parser.add_argument("--name", default=None, help="Solution name")
    parser.add_argument("--workers", type=int, default=None, help="Parallel workers")

    args = parser.parse_args(argv)

    try:
        config = build_config(args)
        libraries = JsonLibraryRepository.from_file(args.libraries) if args.libraries else None
    except (SolgenError, ValidationError, ValueError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        sys.exit(2)

    pipeline = Pipeline(config, libraries=libraries)
    result = asyncio.run(pipeline.run(args.manifests))

    if not result.get("success"):
        sys.exit(1)


if __name__ == "__main__":
    main()
