"""Static loading of definition modules into declarations and type references."""

from __future__ import annotations

from .declarations import (
    BasicType,
    Declaration,
    FieldDecl,
    GenericType,
    MethodDecl,
    Module,
    ModuleRef,
    NamedType,
    Param,
    Position,
    Program,
    Qualifier,
    SequenceType,
    Shape,
    TypeRef,
    UnionType,
)
from .loader import Loader

__all__ = [
    "BasicType",
    "Declaration",
    "FieldDecl",
    "GenericType",
    "Loader",
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
