"""Declarations and type references produced by the loader."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Position:
    """Source position of a declaration, rendered as ``file:line:column``."""

    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"


class Shape(Enum):
    """Underlying shape of a top-level declaration."""

    INTERFACE = "interface"
    RECORD = "record"
    SEQUENCE = "sequence"
    NAMED = "named"
    OTHER = "other"


@dataclass(frozen=True)
class ModuleRef:
    """Identity of a loaded module: short name and dotted path."""

    name: str
    path: str


# A qualifier returns the prefix (``"alias."`` or ``""``) for names owned by a module.
Qualifier = Callable[[ModuleRef], str]


class TypeRef:
    """Base class for resolved type references."""

    def render(self, qualifier: Qualifier) -> str:
        raise NotImplementedError


@dataclass(frozen=True)
class BasicType(TypeRef):
    """A builtin, typing or otherwise unresolved name, rendered verbatim."""

    name: str

    def render(self, qualifier: Qualifier) -> str:
        return self.name


@dataclass(frozen=True)
class NamedType(TypeRef):
    """A reference to a declaration in one of the loaded modules."""

    module: ModuleRef
    name: str

    def render(self, qualifier: Qualifier) -> str:
        return qualifier(self.module) + self.name


@dataclass(frozen=True)
class SequenceType(TypeRef):
    """Zero or more values of ``elem``."""

    elem: TypeRef

    def render(self, qualifier: Qualifier) -> str:
        return f"list[{self.elem.render(qualifier)}]"


@dataclass(frozen=True)
class GenericType(TypeRef):
    """A subscripted type other than a sequence, such as ``dict[str, int]``."""

    origin: TypeRef
    args: Tuple[TypeRef, ...]

    def render(self, qualifier: Qualifier) -> str:
        rendered = ", ".join(arg.render(qualifier) for arg in self.args)
        return f"{self.origin.render(qualifier)}[{rendered}]"


@dataclass(frozen=True)
class UnionType(TypeRef):
    """A ``A | B`` union."""

    members: Tuple[TypeRef, ...]

    def render(self, qualifier: Qualifier) -> str:
        return " | ".join(member.render(qualifier) for member in self.members)


@dataclass
class Param:
    name: str
    type: TypeRef


@dataclass
class MethodDecl:
    """A function declared on an interface-shaped class."""

    name: str
    position: Position
    params: List[Param] = field(default_factory=list)
    results: List[TypeRef] = field(default_factory=list)
    doc: str = ""


@dataclass
class FieldDecl:
    """An annotated member of a record-shaped class."""

    name: str
    position: Position
    type: TypeRef
    tag: str = ""
    doc: str = ""

    @property
    def exported(self) -> bool:
        return not self.name.startswith("_")


@dataclass
class Declaration:
    """A top-level class or type alias of a loaded module."""

    name: str
    module: ModuleRef
    position: Position
    shape: Shape
    doc: str = ""
    methods: List[MethodDecl] = field(default_factory=list)
    fields: List[FieldDecl] = field(default_factory=list)
    # Aliased type for SEQUENCE and NAMED declarations.
    target: Optional[TypeRef] = None

    @property
    def exported(self) -> bool:
        return not self.name.startswith("_")


@dataclass
class Module:
    """A loaded definition module and its top-level declarations."""

    name: str
    path: str
    filename: Path
    declarations: Dict[str, Declaration] = field(default_factory=dict)
    # Targets were matched by a load pattern; others are dependencies.
    target: bool = False

    @property
    def ref(self) -> ModuleRef:
        return ModuleRef(name=self.name, path=self.path)

    def names(self) -> List[str]:
        """Declaration names in sorted order."""
        return sorted(self.declarations)


@dataclass
class Program:
    """Read-only snapshot of every module the loader resolved."""

    modules: Dict[str, Module] = field(default_factory=dict)

    @property
    def targets(self) -> List[Module]:
        return [module for module in self.modules.values() if module.target]

    def lookup(self, module_path: str, name: str) -> Optional[Declaration]:
        module = self.modules.get(module_path)
        if module is None:
            return None
        return module.declarations.get(name)


__all__ = [
    "BasicType",
    "Declaration",
    "FieldDecl",
    "GenericType",
    "MethodDecl",
    "Module",
    "ModuleRef",
    "NamedType",
    "Param",
    "Position",
    "Program",
    "Qualifier",
    "SequenceType",
    "Shape",
    "TypeRef",
    "UnionType",
]
