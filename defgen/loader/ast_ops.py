"""Small helpers for reading declarations out of Python syntax trees."""

from __future__ import annotations

import ast
import inspect
from typing import List, Optional, Sequence, Union

from .declarations import Position

DefinitionNode = Union[ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef]


def position_of(node: ast.AST, filename: str) -> Position:
    return Position(
        filename=filename,
        line=getattr(node, "lineno", 0),
        column=getattr(node, "col_offset", 0) + 1,
    )


def dotted_name(node: ast.expr) -> Optional[str]:
    """Return ``a.b.c`` for a chain of attribute lookups, None otherwise."""
    parts: List[str] = []
    current = node
    while isinstance(current, ast.Attribute):
        parts.append(current.attr)
        current = current.value
    if not isinstance(current, ast.Name):
        return None
    parts.append(current.id)
    return ".".join(reversed(parts))


def is_dunder(name: str) -> bool:
    return name.startswith("__") and name.endswith("__") and len(name) > 4


def base_names(node: ast.ClassDef) -> List[str]:
    """Last dotted component of every base class, subscripts stripped."""
    names: List[str] = []
    for base in node.bases:
        expr = base.value if isinstance(base, ast.Subscript) else base
        dotted = dotted_name(expr)
        if dotted:
            names.append(dotted.rsplit(".", 1)[-1])
    return names


def decorator_names(node: DefinitionNode) -> List[str]:
    names: List[str] = []
    for decorator in node.decorator_list:
        expr = decorator.func if isinstance(decorator, ast.Call) else decorator
        dotted = dotted_name(expr)
        if dotted:
            names.append(dotted.rsplit(".", 1)[-1])
    return names


def docstring(node: DefinitionNode, lines: Sequence[str]) -> str:
    """Docstring of a class or function, falling back to a leading comment block."""
    doc = ast.get_docstring(node, clean=True)
    if doc:
        return doc
    first_line = min([node.lineno] + [item.lineno for item in node.decorator_list])
    return leading_comment(lines, first_line)


def attribute_doc(body: Sequence[ast.stmt], index: int, lines: Sequence[str]) -> str:
    """Documentation for the class attribute at ``body[index]``.

    The attribute docstring (a string literal right after the assignment) wins;
    otherwise the block of ``#`` comments directly above the assignment is used.
    """
    if index + 1 < len(body):
        following = body[index + 1]
        if (
            isinstance(following, ast.Expr)
            and isinstance(following.value, ast.Constant)
            and isinstance(following.value.value, str)
        ):
            return inspect.cleandoc(following.value.value)
    return leading_comment(lines, body[index].lineno)


def leading_comment(lines: Sequence[str], lineno: int) -> str:
    """Contiguous ``#`` comment lines directly above the 1-based ``lineno``."""
    collected: List[str] = []
    index = lineno - 2
    while index >= 0:
        stripped = lines[index].strip()
        if not stripped.startswith("#"):
            break
        text = stripped[2:] if stripped.startswith("#:") else stripped[1:]
        collected.append(text[1:] if text.startswith(" ") else text)
        index -= 1
    return "\n".join(reversed(collected))


__all__ = [
    "attribute_doc",
    "base_names",
    "decorator_names",
    "docstring",
    "dotted_name",
    "is_dunder",
    "leading_comment",
    "position_of",
]
