"""Tests for defgen.models."""

from __future__ import annotations

import json

import pytest

from defgen.models import (
    Definition,
    Field,
    FieldTag,
    FieldType,
    Method,
    Object,
    ObjectNotFound,
    Service,
    ValueKind,
    dump_definition,
)


def _definition() -> Definition:
    request = FieldType(
        type_id="api.GreetRequest",
        type_name="GreetRequest",
        object_name="GreetRequest",
        object_name_lower_camel="greetRequest",
        is_object=True,
        js_type=ValueKind.OBJECT,
    )
    response = FieldType(
        type_id="api.GreetResponse",
        type_name="GreetResponse",
        object_name="GreetResponse",
        object_name_lower_camel="greetResponse",
        is_object=True,
        js_type=ValueKind.OBJECT,
    )
    name = Field(
        name="Name",
        name_lower_camel="name",
        type=FieldType(type_id="api.str", type_name="str", object_name="str", js_type=ValueKind.STRING),
        tag='json:"name,omitempty"',
        parsed_tags={
            "validate": FieldTag(value="required"),
            "json": FieldTag(value="name", options=["omitempty"]),
        },
        omit_empty=True,
        example="Mat",
    )
    return Definition(
        package_name="api",
        services=[
            Service(
                name="Greeter",
                methods=[Method(name="Greet", name_lower_camel="greet", input_object=request, output_object=response)],
            )
        ],
        objects=[
            Object(type_id="api.GreetRequest", name="GreetRequest", fields=[name]),
            Object(type_id="api.GreetResponse", name="GreetResponse"),
        ],
        imports={"zeta.common": "common", "alpha.shared": "shared"},
    )


def test_definition_object_lookup_by_type_id() -> None:
    definition = _definition()

    assert definition.object("api.GreetResponse").name == "GreetResponse"
    with pytest.raises(ObjectNotFound):
        definition.object("other.GreetResponse")
    with pytest.raises(ObjectNotFound):
        definition.object("GreetResponse")


def test_to_dict_uses_camel_case_keys() -> None:
    data = _definition().to_dict()

    assert set(data) == {"packageName", "services", "objects", "imports"}
    method = data["services"][0]["methods"][0]
    assert method["nameLowerCamel"] == "greet"
    assert method["inputObject"]["typeID"] == "api.GreetRequest"
    assert method["inputObject"]["isObject"] is True
    assert method["inputObject"]["jsType"] == "object"

    field = data["objects"][0]["fields"][0]
    assert field["omitEmpty"] is True
    assert field["example"] == "Mat"
    assert list(field["parsedTags"]) == ["json", "validate"]
    assert field["parsedTags"]["json"] == {"value": "name", "options": ["omitempty"]}


def test_unmapped_js_type_serialises_as_null() -> None:
    assert FieldType(type_name="datetime").to_dict()["jsType"] is None


def test_dump_definition_is_stable_json() -> None:
    text = dump_definition(_definition())

    assert text.endswith("\n")
    assert text == dump_definition(_definition())
    loaded = json.loads(text)
    assert list(loaded["imports"]) == ["alpha.shared", "zeta.common"]
    assert loaded["objects"][1]["fields"] == []
