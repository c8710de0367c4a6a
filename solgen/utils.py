"""Shared utility functions for solgen.

Provides async command execution, JSON loading, ordered-unique list helpers,
version parsing, and Rich-based console reporting.  The core (collection,
generators) never prints; only the pipeline and the CLI use the console
helpers defined here.
"""

from __future__ import annotations

import asyncio
import json
import os
import re
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

if TYPE_CHECKING:
    from solgen.collection.models import Diagnostic

console = Console()

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously and capture its output.

    Args:
        cmd: Shell command string or list of arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A missing executable is
        reported as return code 127 rather than raised.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        if isinstance(cmd, list):
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
        else:
            process = await asyncio.create_subprocess_shell(
                cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                env=merged_env,
            )
    except FileNotFoundError as exc:
        return (127, "", str(exc))

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (
            -1,
            "",
            f"Command timed out after {timeout}s: {cmd if isinstance(cmd, str) else ' '.join(cmd)}",
        )

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Collection helpers
# ---------------------------------------------------------------------------


def append_unique(target: list[T], item: T) -> bool:
    """Append *item* unless already present.  Returns ``True`` if appended."""
    if item in target:
        return False
    target.append(item)
    return True


def extend_unique(target: list[T], items: Iterable[T]) -> None:
    """Append every item not yet in *target*, keeping first-seen order."""
    for item in items:
        append_unique(target, item)


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def macro_name(value: str) -> str:
    """Convert a project name to a preprocessor-safe upper-case identifier.

    E.g. ``'lib/net-http'`` -> ``'LIB_NET_HTTP'``.
    """
    return re.sub(r"[^A-Za-z0-9_]", "_", value).upper()


def target_name(value: str) -> str:
    """Convert a project name to a valid native build target name.

    E.g. ``'lib/core'`` -> ``'lib_core'``.  Distinct names can collide
    (``lib/core`` and ``lib_core``); population rejects such pairs.
    """
    return re.sub(r"[^A-Za-z0-9_.+-]", "_", value)


# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------

_VERSION_RE = re.compile(r"(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def parse_version(text: str) -> tuple[int, int, int] | None:
    """Extract the first ``major[.minor[.patch]]`` triple from *text*.

    Examples::

        parse_version("cmake version 3.27.4") -> (3, 27, 4)
        parse_version("3.22")                 -> (3, 22, 0)
        parse_version("no digits")            -> None
    """
    match = _VERSION_RE.search(text)
    if match is None:
        return None
    return tuple(int(part or 0) for part in match.groups())  # type: ignore[return-value]


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


def load_json(path: str | Path) -> dict[str, Any]:
    """Load and parse a JSON file that contains a top-level object.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the top-level value is not an object.
    """
    file_path = Path(path)
    data = json.loads(file_path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object in {file_path}")
    return data


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_stage_header(index: int, name: str) -> None:
    """Print a stage rule such as ``Stage 3: FILTER``."""
    console.print()
    console.print(Rule(f"[bold cyan] Stage {index}: {name.upper()} [/bold cyan]", style="cyan"))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def print_diagnostics(issues: Iterable["Diagnostic"]) -> None:
    """Print every diagnostic with its project and subject."""
    for issue in issues:
        if issue.is_error:
            print_error(f"  {escape(str(issue))}")
        else:
            print_warning(f"  {escape(str(issue))}")
