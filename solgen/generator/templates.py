"""Jinja2 template rendering for generated build files.

Provides the TemplateRenderer class which loads Jinja2 templates from the
``solgen/generator/templates/`` directory and renders them with a context
prepared by a backend.  Decisions (ordering, flags, platform branches) are
made in Python; templates only lay the text out.
"""

from __future__ import annotations

from pathlib import Path, PurePath
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from solgen.utils import macro_name, target_name


# ---------------------------------------------------------------------------
# Template directory discovery
# ---------------------------------------------------------------------------

_DEFAULT_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders Jinja2 templates for backend emitters.

    Templates are rendered with ``StrictUndefined`` so a missing context key
    fails loudly instead of producing a silently broken build file.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        if template_dir is None:
            template_dir = _DEFAULT_TEMPLATE_DIR
        self.template_dir = Path(template_dir)
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=select_autoescape([]),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["cmake_path"] = cmake_path
        self.env.filters["macro_name"] = macro_name
        self.env.filters["target_name"] = target_name

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render a single template with the provided context.

        Args:
            template_path: Path relative to the template directory (e.g.
                ``"cmake/project.cmake.j2"``).
            context: Dictionary of variables available inside the template.
        """
        template = self.env.get_template(template_path)
        return template.render(**context)


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def cmake_path(value: str | PurePath) -> str:
    """Quote a path for CMake, always with forward slashes.

    E.g. ``C:\\code\\src`` -> ``"C:/code/src"``.
    """
    return '"' + str(value).replace("\\", "/") + '"'

