"""Template rendering helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable

from jinja2 import Environment, PackageLoader, StrictUndefined

from .naming import digit_or_hex, escape_docstring, hex_literal


def _docstring(value: str) -> str:
    return escape_docstring(value or "")


def _lines(value: Iterable[str], width: int = 4) -> str:
    """Indent generated source lines, leaving blank lines empty"""
    pad = " " * width
    return "\n".join(pad + line if line else "" for line in value)


def _hex(value: int, width: int = 0) -> str:
    if width:
        return format(value, "#0{}x".format(width // 4 + 2))
    return hex_literal(value)


class TemplateRenderer:
    """Thin wrapper around Jinja2 with helpful filters."""

    def __init__(self) -> None:
        self.env = Environment(
            loader=PackageLoader("svd2py", "templates"),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        self.env.filters.update(
            {
                "doc": _docstring,
                "lines": _lines,
                "hex": _hex,
                "num": digit_or_hex,
            }
        )

    def render(self, template: str, context: Dict[str, Any]) -> str:
        rendered = self.env.get_template(template).render(**context)
        return rendered.rstrip() + "\n"

    def render_to_path(self, template: str, context: Dict[str, Any], destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(self.render(template, context), encoding="utf-8")


__all__ = ["TemplateRenderer"]
