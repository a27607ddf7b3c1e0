"""Core data models describing an extracted API definition."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ObjectNotFound(LookupError):
    """Raised when a Definition has no object with the requested type ID."""


class ValueKind(str, Enum):
    """Generalised kind of value a type holds, for cross-language rendering."""

    STRING = "string"
    BOOLEAN = "boolean"
    NUMBER = "number"
    OBJECT = "object"
    ANY = "any"


@dataclass
class FieldTag:
    """A parsed tag entry such as ``json:"name,omitempty"``."""

    # Value is the first comma-separated item of the tag value.
    value: str
    # Options are the remaining comma-separated items.
    options: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"value": self.value, "options": list(self.options)}


@dataclass
class FieldType:
    """Information about the type of data a field or method argument holds."""

    type_id: str = ""
    type_name: str = ""
    object_name: str = ""
    object_name_lower_camel: str = ""
    multiple: bool = False
    package: str = ""
    is_object: bool = False
    js_type: Optional[ValueKind] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "typeID": self.type_id,
            "typeName": self.type_name,
            "objectName": self.object_name,
            "objectNameLowerCamel": self.object_name_lower_camel,
            "multiple": self.multiple,
            "package": self.package,
            "isObject": self.is_object,
            "jsType": self.js_type.value if self.js_type is not None else None,
        }


@dataclass
class Field:
    """A named member of an Object."""

    name: str
    name_lower_camel: str = ""
    type: FieldType = field(default_factory=FieldType)
    omit_empty: bool = False
    comment: str = ""
    tag: str = ""
    parsed_tags: Dict[str, FieldTag] = field(default_factory=dict)
    example: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "nameLowerCamel": self.name_lower_camel,
            "type": self.type.to_dict(),
            "omitEmpty": self.omit_empty,
            "comment": self.comment,
            "tag": self.tag,
            "parsedTags": {key: self.parsed_tags[key].to_dict() for key in sorted(self.parsed_tags)},
            "example": self.example,
        }


@dataclass
class Object:
    """A record type used somewhere in the definition."""

    type_id: str
    name: str
    imported: bool = False
    fields: List[Field] = field(default_factory=list)
    comment: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "typeID": self.type_id,
            "name": self.name,
            "imported": self.imported,
            "fields": [item.to_dict() for item in self.fields],
            "comment": self.comment,
        }


@dataclass
class Method:
    """A callable operation of a Service."""

    name: str
    name_lower_camel: str = ""
    input_object: FieldType = field(default_factory=FieldType)
    output_object: FieldType = field(default_factory=FieldType)
    comment: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "nameLowerCamel": self.name_lower_camel,
            "inputObject": self.input_object.to_dict(),
            "outputObject": self.output_object.to_dict(),
            "comment": self.comment,
        }


@dataclass
class Service:
    """A named group of methods, extracted from a Protocol class."""

    name: str
    methods: List[Method] = field(default_factory=list)
    comment: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "methods": [method.to_dict() for method in self.methods],
            "comment": self.comment,
        }


@dataclass
class Definition:
    """Root artifact handed to code generators."""

    package_name: str = ""
    services: List[Service] = field(default_factory=list)
    objects: List[Object] = field(default_factory=list)
    # Imports maps foreign module paths to the alias used in type names.
    imports: Dict[str, str] = field(default_factory=dict)

    def object(self, type_id: str) -> Object:
        """Return the object with ``type_id`` or raise ObjectNotFound."""
        for obj in self.objects:
            if obj.type_id == type_id:
                return obj
        raise ObjectNotFound(type_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "packageName": self.package_name,
            "services": [service.to_dict() for service in self.services],
            "objects": [obj.to_dict() for obj in self.objects],
            "imports": {path: self.imports[path] for path in sorted(self.imports)},
        }


def dump_definition(definition: Definition, *, indent: int = 2) -> str:
    """Serialise a Definition to JSON."""
    return json.dumps(definition.to_dict(), indent=indent, ensure_ascii=False) + "\n"


__all__ = [
    "Definition",
    "Field",
    "FieldTag",
    "FieldType",
    "Method",
    "Object",
    "ObjectNotFound",
    "Service",
    "ValueKind",
    "dump_definition",
]
