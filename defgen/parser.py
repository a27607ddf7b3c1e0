"""Builds a Definition from the services and objects of loaded modules."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Set

from .docs import DocIndex, extract_example
from .errors import (
    ExampleDecodeError,
    FieldDecodeError,
    InvalidSignatureError,
    NotARecordError,
    TagSyntaxError,
    UnexportedFieldError,
)
from .loader import (
    Declaration,
    FieldDecl,
    Loader,
    MethodDecl,
    Module,
    ModuleRef,
    NamedType,
    Program,
    SequenceType,
    Shape,
    TypeRef,
)
from .logging import get_logger
from .models import (
    Definition,
    Field,
    FieldType,
    Method,
    Object,
    ObjectNotFound,
    Service,
    ValueKind,
)
from .tags import parse_tags

PRIMITIVE_KINDS: Mapping[str, ValueKind] = {
    "Any": ValueKind.ANY,
    "object": ValueKind.ANY,
    "dict[str, Any]": ValueKind.OBJECT,
    "str": ValueKind.STRING,
    "bool": ValueKind.BOOLEAN,
    "int": ValueKind.NUMBER,
    "float": ValueKind.NUMBER,
    "Decimal": ValueKind.NUMBER,
    "decimal.Decimal": ValueKind.NUMBER,
}

_SIGNATURE_MESSAGE = "invalid method signature: expected Method(MethodRequest) -> MethodResponse"

ERROR_FIELD_NAME = "Error"
ERROR_FIELD_COMMENT = "Error is string explaining what went wrong. Empty if everything was fine."


class Parser:
    """Walks the target modules of a Program and assembles a Definition.

    Protocol classes become services and record classes become objects. Objects
    are deduplicated by type ID; an object is registered before its fields are
    resolved so self-referencing and mutually referencing records terminate.
    Services named in ``exclude`` are left out, together with the objects their
    methods take and return. Every response object receives an ``Error`` field.
    """

    def __init__(
        self,
        program: Program,
        *,
        exclude: Iterable[str] = (),
        docs: DocIndex | None = None,
        primitives: Mapping[str, ValueKind] | None = None,
    ) -> None:
        self.program = program
        self.exclude = list(exclude)
        self.docs = docs or DocIndex(program)
        self.primitives = dict(primitives if primitives is not None else PRIMITIVE_KINDS)
        self.logger = get_logger("parser")
        self._reset()

    def parse(self) -> Definition:
        """Return the Definition for the program's target modules."""
        self._reset()
        excluded: Set[str] = set()
        for module in self.program.targets:
            self.definition.package_name = module.name
            for name in module.names():
                declaration = module.declarations[name]
                if not declaration.exported:
                    continue
                if declaration.shape is Shape.INTERFACE:
                    service = self.parse_service(module, declaration)
                    if name in self.exclude:
                        self.logger.debug("Excluding service %s", name)
                        for method in service.methods:
                            excluded.add(method.input_object.type_id)
                            excluded.add(method.output_object.type_id)
                        continue
                    self.definition.services.append(service)
                elif declaration.shape is Shape.RECORD:
                    self.parse_object(module, declaration)
                # sequence, named and other declarations are not part of the schema

        self.definition.objects = [
            obj for obj in self.definition.objects if obj.type_id not in excluded
        ]
        self.definition.services.sort(key=lambda service: service.name)
        self.add_output_fields()
        return self.definition

    def parse_service(self, module: Module, declaration: Declaration) -> Service:
        service = Service(
            name=declaration.name,
            comment=self.docs.comment_for_type(declaration.module.path, declaration.name),
        )
        self.logger.debug("Discovered service %s", service.name)
        for method in declaration.methods:
            service.methods.append(self.parse_method(module, declaration, method))
        return service

    def parse_method(self, module: Module, service: Declaration, decl: MethodDecl) -> Method:
        method = Method(
            name=decl.name,
            name_lower_camel=camelize_down(decl.name),
            comment=self.docs.comment_for_method(service.module.path, service.name, decl.name),
        )
        if len(decl.params) != 1 or len(decl.results) != 1:
            raise InvalidSignatureError(_SIGNATURE_MESSAGE, decl.position)
        try:
            method.input_object = self.parse_field_type(module, decl.params[0].type)
        except Exception as exc:
            exc.add_note(f"parse input object type of {service.name}.{decl.name}")
            raise
        try:
            method.output_object = self.parse_field_type(module, decl.results[0])
        except Exception as exc:
            exc.add_note(f"parse output object type of {service.name}.{decl.name}")
            raise
        self._output_objects[method.output_object.type_id] = None
        return method

    def parse_object(self, module: Module, declaration: Declaration) -> None:
        """Add the record ``declaration`` to the Definition unless already present."""
        type_id = f"{declaration.module.path}.{declaration.name}"
        if type_id in self._objects:
            return
        if declaration.shape is not Shape.RECORD:
            raise NotARecordError(f"{declaration.name} must be a record", declaration.position)
        obj = Object(
            type_id=type_id,
            name=declaration.name,
            imported=declaration.module.path != module.path,
            comment=self.docs.comment_for_type(declaration.module.path, declaration.name),
        )
        # Registered before the fields are parsed so cycles stop here.
        self._objects.add(type_id)
        self.definition.objects.append(obj)
        for member in declaration.fields:
            obj.fields.append(self.parse_field(module, declaration, member))

    def parse_field(self, module: Module, owner: Declaration, member: FieldDecl) -> Field:
        if not member.exported:
            raise UnexportedFieldError(f"{member.name} must be exported", member.position)
        field = Field(name=member.name, name_lower_camel=camelize_down(member.name), tag=member.tag)
        comment = self.docs.comment_for_field(owner.module.path, owner.name, member.name)
        try:
            field.example, field.comment = extract_example(comment)
        except ExampleDecodeError as exc:
            raise FieldDecodeError(
                f"{owner.name}.{member.name}: extract comment example: {exc}", member.position
            ) from exc
        field.type = self.parse_field_type(module, member.type)
        try:
            field.parsed_tags = parse_tags(member.tag)
        except TagSyntaxError as exc:
            raise FieldDecodeError(
                f"{owner.name}.{member.name}: parse field tag: {exc}", member.position
            ) from exc
        json_tag = field.parsed_tags.get("json")
        field.omit_empty = json_tag is not None and "omitempty" in json_tag.options
        return field

    def parse_field_type(self, module: Module, ref: TypeRef) -> FieldType:
        """Summarise ``ref`` as seen from ``module``, parsing any record it names."""
        ftype = FieldType()
        module_path = module.path

        def qualifier(other: ModuleRef) -> str:
            nonlocal module_path
            if other.path == module.path:
                return ""
            ftype.package = other.path
            module_path = other.path
            return self._register_import(other) + "."

        typ = ref
        if isinstance(typ, SequenceType):
            typ = typ.elem
            ftype.multiple = True
        if isinstance(typ, NamedType):
            declaration = self.program.lookup(typ.module.path, typ.name)
            if declaration is not None and declaration.shape is Shape.RECORD:
                self.parse_object(module, declaration)
                ftype.is_object = True

        ftype.type_name = typ.render(qualifier)
        ftype.object_name = typ.render(lambda other: "")
        ftype.object_name_lower_camel = camelize_down(ftype.object_name)
        ftype.type_id = f"{module_path}.{ftype.object_name}"
        if ftype.is_object:
            ftype.js_type = ValueKind.OBJECT
        else:
            ftype.js_type = self.primitives.get(ftype.type_name)
        return ftype

    def add_output_fields(self) -> None:
        """Append the built-in Error field to every surviving response object."""
        for type_id in self._output_objects:
            try:
                obj = self.definition.object(type_id)
            except ObjectNotFound:
                # excluded along with its service
                continue
            if any(item.name == ERROR_FIELD_NAME for item in obj.fields):
                self.logger.debug("%s already declares an %s field", obj.name, ERROR_FIELD_NAME)
                continue
            obj.fields.append(_error_field())

    def _register_import(self, other: ModuleRef) -> str:
        imports = self.definition.imports
        alias = imports.get(other.path)
        if alias is not None:
            return alias
        alias = other.name
        if alias in imports.values():
            alias = other.path.replace(".", "_")
        imports[other.path] = alias
        return alias

    def _reset(self) -> None:
        self.definition = Definition()
        self._objects: Set[str] = set()
        # Ordered set of response object type IDs.
        self._output_objects: Dict[str, None] = {}


def _error_field() -> Field:
    return Field(
        name=ERROR_FIELD_NAME,
        name_lower_camel="error",
        omit_empty=True,
        comment=ERROR_FIELD_COMMENT,
        type=FieldType(
            type_name="str",
            object_name="str",
            object_name_lower_camel="str",
            js_type=ValueKind.STRING,
        ),
    )


def camelize_down(name: str) -> str:
    """Lower-case the first character of ``name``."""
    return name[:1].lower() + name[1:]


def extract_definition(
    *patterns: str,
    exclude: Iterable[str] = (),
    loader: Optional[Loader] = None,
) -> Definition:
    """Load ``patterns`` and return their Definition."""
    program = (loader or Loader()).load(*patterns)
    return Parser(program, exclude=exclude).parse()


__all__ = [
    "ERROR_FIELD_COMMENT",
    "ERROR_FIELD_NAME",
    "PRIMITIVE_KINDS",
    "Parser",
    "camelize_down",
    "extract_definition",
]
