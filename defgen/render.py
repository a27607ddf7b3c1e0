"""Renders a Definition through a Jinja2 template."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, TemplateError, TemplateNotFound

from .errors import RenderError
from .logging import get_logger
from .models import Definition, FieldTag
from .parser import camelize_down


def camelize_up(name: str) -> str:
    """Upper-case the first character of ``name``."""
    return name[:1].upper() + name[1:]


def format_comment_line(text: str) -> str:
    """Collapse a comment onto a single line."""
    return " ".join(text.split())


def format_comment_text(text: str, prefix: str = "// ") -> str:
    """Prefix every line of a comment, e.g. to emit it as a code comment."""
    lines = text.strip().splitlines()
    return "\n".join(f"{prefix}{line}".rstrip() for line in lines)


def format_tags(tags: Mapping[str, Any]) -> str:
    """Turn parsed tags back into a ``key:"value,opt"`` tag string."""
    parts = []
    for key in sorted(tags):
        tag = tags[key]
        if isinstance(tag, FieldTag):
            value, options = tag.value, tag.options
        else:
            value, options = tag.get("value", ""), tag.get("options") or []
        parts.append(f"{key}:{json.dumps(','.join([value, *options]))}")
    return " ".join(parts)


def _to_json(value: Any, indent: Optional[int] = None) -> str:
    return json.dumps(value, indent=indent, ensure_ascii=False)


class Renderer:
    """Renders templates with the Definition exposed as ``definition``."""

    def __init__(self, template: Path, *, params: Mapping[str, Any] | None = None) -> None:
        self.template = Path(template)
        self.params: Dict[str, Any] = dict(params or {})
        self.logger = get_logger("render")
        self._env = self._create_env(self.template.parent)

    def render(self, definition: Definition, *, package: str | None = None) -> str:
        context = definition.to_dict()
        if package:
            context["packageName"] = package
        try:
            template = self._env.get_template(self.template.name)
        except TemplateNotFound as exc:
            raise RenderError(f"template not found: {self.template}") from exc
        except TemplateError as exc:
            raise RenderError(f"{self.template}: {exc}") from exc
        self.logger.debug("Rendering %s", self.template)
        try:
            return template.render(definition=context, params=self.params)
        except TemplateError as exc:
            raise RenderError(f"{self.template}: {exc}") from exc

    def render_to(self, definition: Definition, output: Path, *, package: str | None = None) -> Path:
        rendered = self.render(definition, package=package)
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(rendered, encoding="utf-8")
        self.logger.info("Wrote %s", output)
        return output

    @staticmethod
    def _create_env(templates_dir: Path) -> Environment:
        env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        env.filters.update(
            {
                "camelize_down": camelize_down,
                "camelize_up": camelize_up,
                "format_comment_line": format_comment_line,
                "format_comment_text": format_comment_text,
                "format_tags": format_tags,
                "json": _to_json,
            }
        )
        return env


def parse_params(raw: str) -> Dict[str, str]:
    """Parse ``key:value,key2:value2`` template parameters."""
    params: Dict[str, str] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition(":")
        if not sep or not key.strip():
            raise RenderError(f"invalid template parameter {item!r}: expected key:value")
        params[key.strip()] = value.strip()
    return params


__all__ = [
    "Renderer",
    "camelize_up",
    "format_comment_line",
    "format_comment_text",
    "format_tags",
    "parse_params",
]
