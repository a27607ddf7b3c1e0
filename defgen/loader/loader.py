"""Loads definition modules from disk into a read-only Program snapshot."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

from ..errors import LoadError
from ..logging import get_logger
from .ast_ops import (
    attribute_doc,
    base_names,
    decorator_names,
    docstring,
    dotted_name,
    is_dunder,
    position_of,
)
from .declarations import (
    BasicType,
    Declaration,
    FieldDecl,
    MethodDecl,
    Module,
    ModuleRef,
    Param,
    Program,
    SequenceType,
    Shape,
)
from .resolver import ImportTable, TypeResolver

_RECURSIVE_SUFFIX = "/..."

_INTERFACE_BASES = {"Protocol"}

_OTHER_BASES = {
    "Enum",
    "IntEnum",
    "StrEnum",
    "Flag",
    "IntFlag",
    "Exception",
    "BaseException",
}

_SKIPPED_DIRS = {"__pycache__"}

# Subscripted origins that make a plain ``Name = origin[...]`` assignment a type alias.
_GENERIC_ORIGINS = {
    "list",
    "dict",
    "set",
    "frozenset",
    "tuple",
    "type",
    "List",
    "Dict",
    "Set",
    "FrozenSet",
    "Tuple",
    "Type",
    "Sequence",
    "MutableSequence",
    "Mapping",
    "MutableMapping",
    "Iterable",
    "Optional",
    "Union",
    "Annotated",
    "Literal",
}


@dataclass
class _Source:
    path: str
    filename: Path
    root: Path
    tree: ast.Module
    lines: List[str]
    target: bool
    class_names: Set[str] = field(default_factory=set)
    imports: ImportTable = field(default_factory=ImportTable)

    @property
    def name(self) -> str:
        return self.path.rsplit(".", 1)[-1]

    @property
    def is_package(self) -> bool:
        return self.filename.name == "__init__.py"

    @property
    def ref(self) -> ModuleRef:
        return ModuleRef(name=self.name, path=self.path)


class Loader:
    """Resolves load patterns into modules and their locally importable dependencies.

    A pattern is a ``.py`` file, a directory (its direct ``.py`` modules) or a
    directory followed by ``/...`` (every module below it). Matched modules are
    targets. Modules they import that live under the same import root are loaded
    as dependencies so that references into them can be resolved; imports that
    cannot be found on disk stay unresolved.
    """

    def __init__(self) -> None:
        self.logger = get_logger("loader")

    def load(self, *patterns: str) -> Program:
        if not patterns:
            raise LoadError("no patterns given")

        sources: Dict[str, _Source] = {}
        seen_files: Set[Path] = set()
        for pattern in patterns:
            for filename in self._expand(pattern):
                resolved = filename.resolve()
                if resolved in seen_files:
                    continue
                seen_files.add(resolved)
                path, root = _module_identity(filename)
                existing = sources.get(path)
                if existing is not None:
                    raise LoadError(f"{filename}: module {path} already loaded from {existing.filename}")
                sources[path] = self._read(filename, path, root, target=True)

        queue = list(sources.values())
        while queue:
            source = queue.pop(0)
            dependencies = self._collect_imports(source)
            for dependency in dependencies:
                if dependency in sources:
                    continue
                filename = _find_module(source.root, dependency)
                if filename is None:
                    continue
                self.logger.debug("Loading dependency %s from %s", dependency, filename)
                loaded = self._read(filename, dependency, source.root, target=False)
                sources[dependency] = loaded
                queue.append(loaded)

        known: Dict[str, Tuple[ModuleRef, Set[str]]] = {
            path: (source.ref, _declared_names(source)) for path, source in sources.items()
        }
        program = Program()
        for path, source in sources.items():
            program.modules[path] = self._build_module(source, known)
        self.logger.debug(
            "Loaded %d modules (%d targets)", len(program.modules), len(program.targets)
        )
        return program

    def _expand(self, pattern: str) -> List[Path]:
        recursive = pattern == "..." or pattern.endswith(_RECURSIVE_SUFFIX)
        if recursive:
            base = pattern[: -len(_RECURSIVE_SUFFIX)] if pattern != "..." else "."
            path = Path(base or "/").expanduser()
        else:
            path = Path(pattern).expanduser()

        if recursive and path.is_dir():
            files = sorted(
                candidate
                for candidate in path.rglob("*.py")
                if not _is_skipped(candidate.relative_to(path))
            )
        elif path.is_dir():
            files = sorted(path.glob("*.py"))
        elif path.is_file() and path.suffix == ".py" and not recursive:
            files = [path]
        else:
            files = []

        if not files:
            raise LoadError(f"no Python modules match pattern {pattern!r}")
        return files

    def _read(self, filename: Path, path: str, root: Path, *, target: bool) -> _Source:
        try:
            text = filename.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"{filename}: cannot read module: {exc}") from exc
        try:
            tree = ast.parse(text, filename=str(filename))
        except SyntaxError as exc:
            raise LoadError(f"{filename}:{exc.lineno}: {exc.msg}") from exc
        return _Source(
            path=path,
            filename=filename,
            root=root,
            tree=tree,
            lines=text.splitlines(),
            target=target,
            class_names=_class_names(tree),
        )

    def _collect_imports(self, source: _Source) -> List[str]:
        """Fill ``source.imports`` and return the module paths it depends on."""
        table = source.imports
        dependencies: List[str] = []
        for stmt in _top_level_statements(source.tree.body):
            if isinstance(stmt, ast.Import):
                for alias in stmt.names:
                    if alias.asname:
                        table.modules[alias.asname] = alias.name
                    else:
                        head = alias.name.split(".", 1)[0]
                        table.modules[head] = head
                    dependencies.append(alias.name)
            elif isinstance(stmt, ast.ImportFrom):
                base = _import_base(source, stmt)
                for alias in stmt.names:
                    if alias.name == "*":
                        self.logger.debug("%s: star import from %s is not resolved", source.filename, base)
                        continue
                    local = alias.asname or alias.name
                    candidate = f"{base}.{alias.name}" if base else alias.name
                    if _find_module(source.root, candidate) is not None:
                        table.modules[local] = candidate
                        dependencies.append(candidate)
                    else:
                        table.names[local] = (base, alias.name)
                        dependencies.append(base)
        return dependencies

    def _build_module(
        self, source: _Source, known: Dict[str, Tuple[ModuleRef, Set[str]]]
    ) -> Module:
        resolver = TypeResolver(source.ref, str(source.filename), source.imports, known)
        module = Module(
            name=source.name,
            path=source.path,
            filename=source.filename,
            target=source.target,
        )
        for stmt in _top_level_statements(source.tree.body):
            declaration = self._declaration(stmt, source, resolver)
            if declaration is not None:
                module.declarations[declaration.name] = declaration
        return module

    def _declaration(
        self, stmt: ast.stmt, source: _Source, resolver: TypeResolver
    ) -> Optional[Declaration]:
        if isinstance(stmt, ast.ClassDef):
            return self._class_declaration(stmt, source, resolver)
        alias = _alias_parts(stmt, source.class_names)
        if alias is None:
            return None
        name, value = alias
        target = resolver.resolve(value)
        return Declaration(
            name=name,
            module=source.ref,
            position=position_of(stmt, str(source.filename)),
            shape=Shape.SEQUENCE if isinstance(target, SequenceType) else Shape.NAMED,
            target=target,
        )

    def _class_declaration(
        self, node: ast.ClassDef, source: _Source, resolver: TypeResolver
    ) -> Declaration:
        bases = set(base_names(node))
        declaration = Declaration(
            name=node.name,
            module=source.ref,
            position=position_of(node, str(source.filename)),
            shape=Shape.RECORD,
            doc=docstring(node, source.lines),
        )
        if bases & _INTERFACE_BASES:
            declaration.shape = Shape.INTERFACE
            for item in node.body:
                if isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)) and not is_dunder(item.name):
                    declaration.methods.append(self._method(item, source, resolver))
        elif bases & _OTHER_BASES or any(base.endswith(("Error", "Exception")) for base in bases):
            declaration.shape = Shape.OTHER
        else:
            for index, item in enumerate(node.body):
                if not isinstance(item, ast.AnnAssign) or not isinstance(item.target, ast.Name):
                    continue
                if resolver.is_class_variable(item.annotation):
                    continue
                annotation, tag = resolver.split_annotated(item.annotation)
                declaration.fields.append(
                    FieldDecl(
                        name=item.target.id,
                        position=position_of(item, str(source.filename)),
                        type=resolver.resolve(annotation),
                        tag=tag,
                        doc=attribute_doc(node.body, index, source.lines),
                    )
                )
        return declaration

    def _method(
        self,
        node: ast.FunctionDef | ast.AsyncFunctionDef,
        source: _Source,
        resolver: TypeResolver,
    ) -> MethodDecl:
        args = node.args
        positional = list(args.posonlyargs) + list(args.args)
        if "staticmethod" not in decorator_names(node) and positional:
            positional = positional[1:]
        arguments = list(positional)
        if args.vararg is not None:
            arguments.append(args.vararg)
        arguments.extend(args.kwonlyargs)
        if args.kwarg is not None:
            arguments.append(args.kwarg)
        params = [
            Param(
                name=arg.arg,
                type=resolver.resolve(arg.annotation) if arg.annotation is not None else BasicType("Any"),
            )
            for arg in arguments
        ]
        return MethodDecl(
            name=node.name,
            position=position_of(node, str(source.filename)),
            params=params,
            results=resolver.results(node.returns),
            doc=docstring(node, source.lines),
        )


def _top_level_statements(body: Sequence[ast.stmt]) -> Iterator[ast.stmt]:
    """Module statements, descending into ``if`` and ``try`` blocks."""
    for stmt in body:
        if isinstance(stmt, ast.If):
            yield from _top_level_statements(stmt.body)
            yield from _top_level_statements(stmt.orelse)
        elif isinstance(stmt, ast.Try):
            yield from _top_level_statements(stmt.body)
            for handler in stmt.handlers:
                yield from _top_level_statements(handler.body)
            yield from _top_level_statements(stmt.orelse)
            yield from _top_level_statements(stmt.finalbody)
        else:
            yield stmt


def _alias_parts(stmt: ast.stmt, class_names: Set[str]) -> Optional[Tuple[str, ast.expr]]:
    """Name and value of a module-level type alias statement.

    A plain ``Name = origin[...]`` assignment only counts when ``origin`` is a
    generic from ``typing``/builtins or a class of the same module, so
    constants such as ``DEFAULT = SETTINGS["x"]`` are skipped.
    """
    type_alias = getattr(ast, "TypeAlias", None)
    if type_alias is not None and isinstance(stmt, type_alias):
        return stmt.name.id, stmt.value
    if isinstance(stmt, ast.AnnAssign) and isinstance(stmt.target, ast.Name) and stmt.value is not None:
        annotation = dotted_name(stmt.annotation)
        if annotation is not None and annotation.rsplit(".", 1)[-1] == "TypeAlias":
            return stmt.target.id, stmt.value
        return None
    if (
        isinstance(stmt, ast.Assign)
        and len(stmt.targets) == 1
        and isinstance(stmt.targets[0], ast.Name)
        and isinstance(stmt.value, ast.Subscript)
    ):
        origin = dotted_name(stmt.value.value)
        if origin is None:
            return None
        if origin.rsplit(".", 1)[-1] in _GENERIC_ORIGINS or origin in class_names:
            return stmt.targets[0].id, stmt.value
    return None


def _class_names(tree: ast.Module) -> Set[str]:
    return {stmt.name for stmt in _top_level_statements(tree.body) if isinstance(stmt, ast.ClassDef)}


def _declared_names(source: _Source) -> Set[str]:
    names = set(source.class_names)
    for stmt in _top_level_statements(source.tree.body):
        alias = _alias_parts(stmt, source.class_names)
        if alias is not None:
            names.add(alias[0])
    return names


def _module_identity(filename: Path) -> Tuple[str, Path]:
    """Dotted module path and import root of a source file."""
    directory = filename.resolve().parent
    parts = [] if filename.stem == "__init__" else [filename.stem]
    while (directory / "__init__.py").is_file():
        parts.insert(0, directory.name)
        directory = directory.parent
    if not parts:
        raise LoadError(f"{filename}: cannot determine module path")
    return ".".join(parts), directory


def _import_base(source: _Source, stmt: ast.ImportFrom) -> str:
    if not stmt.level:
        return stmt.module or ""
    package = source.path.split(".") if source.is_package else source.path.split(".")[:-1]
    if stmt.level - 1 > len(package):
        raise LoadError(
            f"{source.filename}:{stmt.lineno}: attempted relative import beyond top-level package"
        )
    package = package[: len(package) - (stmt.level - 1)]
    if stmt.module:
        package.append(stmt.module)
    return ".".join(package)


def _find_module(root: Path, dotted: str) -> Optional[Path]:
    if not dotted:
        return None
    parts = dotted.split(".")
    module_file = root.joinpath(*parts[:-1], f"{parts[-1]}.py")
    if module_file.is_file():
        return module_file
    package_file = root.joinpath(*parts, "__init__.py")
    if package_file.is_file():
        return package_file
    return None


def _is_skipped(relative: Path) -> bool:
    return any(part.startswith(".") or part in _SKIPPED_DIRS for part in relative.parts[:-1])


__all__ = ["Loader"]
