"""Resolution of annotation expressions into type references."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set, Tuple

from ..errors import LoadError
from .ast_ops import dotted_name
from .declarations import (
    BasicType,
    GenericType,
    ModuleRef,
    NamedType,
    SequenceType,
    TypeRef,
    UnionType,
)

_TYPING_PREFIXES = ("typing.", "typing_extensions.", "collections.abc.")

_BUILTIN_ALIASES = {
    "List": "list",
    "Dict": "dict",
    "Set": "set",
    "FrozenSet": "frozenset",
    "Tuple": "tuple",
    "Type": "type",
    "Text": "str",
}

_SEQUENCE_ORIGINS = {"list", "Sequence"}
_NON_FIELD_ORIGINS = {"ClassVar", "InitVar"}


def normalize_name(name: str) -> str:
    """Drop typing module prefixes and map legacy aliases to builtins."""
    for prefix in _TYPING_PREFIXES:
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break
    return _BUILTIN_ALIASES.get(name, name)


@dataclass
class ImportTable:
    """Names bound by the import statements of one module."""

    # Local name bound to a module, e.g. ``import pkg.common as common``.
    modules: Dict[str, str] = field(default_factory=dict)
    # Local name bound to a module attribute, e.g. ``from pkg.common import Tag``.
    names: Dict[str, Tuple[str, str]] = field(default_factory=dict)


class TypeResolver:
    """Turns annotation expressions of one module into TypeRef values."""

    def __init__(
        self,
        module: ModuleRef,
        filename: str,
        imports: ImportTable,
        known: Mapping[str, Tuple[ModuleRef, Set[str]]],
    ) -> None:
        self.module = module
        self.filename = filename
        self.imports = imports
        self._known = known

    def resolve(self, node: ast.expr) -> TypeRef:
        node = self.unquote(node)
        if isinstance(node, ast.Constant):
            if node.value is None:
                return BasicType("None")
            if node.value is Ellipsis:
                return BasicType("...")
            return BasicType(repr(node.value))
        if isinstance(node, (ast.Name, ast.Attribute)):
            dotted = dotted_name(node)
            if dotted is not None:
                return self._resolve_dotted(dotted)
        if isinstance(node, ast.Subscript):
            origin = self.resolve(node.value)
            args = self._subscript_args(node)
            if _basic_name(origin) == "Literal":
                return GenericType(origin, tuple(_literal_value(arg) for arg in args))
            if _basic_name(origin) == "Annotated" and args:
                return self.resolve(args[0])
            if _basic_name(origin) in _SEQUENCE_ORIGINS and len(args) == 1:
                return SequenceType(self.resolve(args[0]))
            return GenericType(origin, tuple(self.resolve(arg) for arg in args))
        if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
            members: List[TypeRef] = []
            for side in (node.left, node.right):
                resolved = self.resolve(side)
                if isinstance(resolved, UnionType):
                    members.extend(resolved.members)
                else:
                    members.append(resolved)
            return UnionType(tuple(members))
        return BasicType(ast.unparse(node))

    def split_annotated(self, node: ast.expr) -> Tuple[ast.expr, str]:
        """Return the annotated type and the first string metadata of ``Annotated``."""
        node = self.unquote(node)
        if isinstance(node, ast.Subscript) and _basic_name(self.resolve(node.value)) == "Annotated":
            args = self._subscript_args(node)
            if args:
                tag = ""
                for meta in args[1:]:
                    if isinstance(meta, ast.Constant) and isinstance(meta.value, str):
                        tag = meta.value
                        break
                return args[0], tag
        return node, ""

    def is_class_variable(self, node: ast.expr) -> bool:
        node = self.unquote(node)
        origin = node.value if isinstance(node, ast.Subscript) else node
        name = _basic_name(self.resolve(origin))
        return name is not None and name.rsplit(".", 1)[-1] in _NON_FIELD_ORIGINS

    def results(self, node: Optional[ast.expr]) -> List[TypeRef]:
        """Result types of a function return annotation."""
        if node is None:
            return []
        node = self.unquote(node)
        if isinstance(node, ast.Constant) and node.value is None:
            return []
        if isinstance(node, ast.Subscript) and _basic_name(self.resolve(node.value)) == "tuple":
            args = self._subscript_args(node)
            if args and not any(
                isinstance(arg, ast.Constant) and arg.value is Ellipsis for arg in args
            ):
                return [self.resolve(arg) for arg in args]
        return [self.resolve(node)]

    def unquote(self, node: ast.expr) -> ast.expr:
        """Parse string forward references into expressions."""
        while isinstance(node, ast.Constant) and isinstance(node.value, str):
            try:
                node = ast.parse(node.value.strip(), mode="eval").body
            except SyntaxError as exc:
                raise LoadError(
                    f"{self.filename}:{getattr(node, 'lineno', 0)}: invalid forward reference {node.value!r}"
                ) from exc
        return node

    def _resolve_dotted(self, dotted: str) -> TypeRef:
        head, _, rest = dotted.partition(".")
        if not rest:
            if head in self._known.get(self.module.path, (self.module, set()))[1]:
                return NamedType(self.module, head)
            if head in self.imports.names:
                module_path, attr = self.imports.names[head]
                found = self._lookup(module_path, attr)
                if found is not None:
                    return found
                return BasicType(normalize_name(attr))
            return BasicType(normalize_name(head))

        module_path = self.imports.modules.get(head)
        full = f"{module_path}.{rest}" if module_path else dotted
        owner, _, attr = full.rpartition(".")
        found = self._lookup(owner, attr)
        if found is not None:
            return found
        return BasicType(normalize_name(full))

    def _lookup(self, module_path: str, name: str) -> Optional[NamedType]:
        entry = self._known.get(module_path)
        if entry is None or name not in entry[1]:
            return None
        return NamedType(entry[0], name)

    @staticmethod
    def _subscript_args(node: ast.Subscript) -> List[ast.expr]:
        if isinstance(node.slice, ast.Tuple):
            return list(node.slice.elts)
        return [node.slice]


def _basic_name(ref: TypeRef) -> Optional[str]:
    return ref.name if isinstance(ref, BasicType) else None


def _literal_value(node: ast.expr) -> TypeRef:
    # Literal arguments are values, never forward references.
    if isinstance(node, ast.Constant):
        return BasicType(repr(node.value))
    return BasicType(ast.unparse(node))


__all__ = ["ImportTable", "TypeResolver", "normalize_name"]
