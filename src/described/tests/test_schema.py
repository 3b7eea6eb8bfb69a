"""Tests for the schema adapter (portable and native schemas)."""

import pytest
from pydantic import BaseModel

from described.foundation.errors import ConfigurationError
from described.foundation.schema import ROOT_PATH, compile_schema, is_native, to_native

PERSON = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "description": "Full name"},
        "age": {"type": "number"},
    },
    "required": ["name"],
}


def test_portable_schema_accepts_valid_input() -> None:
    compiled = compile_schema(PERSON)
    assert compiled.portable
    assert compiled.check({"name": "Alice", "age": 30}) == []
    assert compiled.check({"name": "Bob"}) == []
    assert compiled.is_valid({"name": "Bob"})


def test_missing_required_property() -> None:
    violations = compile_schema(PERSON).check({})
    assert [v.path for v in violations] == ["name"]
    assert violations[0].kind == "missing"


def test_every_violation_is_reported() -> None:
    """Three independent problems yield three violations, not just the first."""
    closed = {**PERSON, "additionalProperties": False}
    violations = compile_schema(closed).check({"age": "old", "extra": 1})
    assert len(violations) == 3
    assert {v.path for v in violations} == {"name", "age", "extra"}


def test_unknown_properties_tolerated_without_additional_properties_false() -> None:
    assert compile_schema(PERSON).check({"name": "Alice", "nickname": "Al"}) == []


def test_scalars_are_strict() -> None:
    """JSON Schema never coerces, so "30" is not a number and 5 is not a string."""
    violations = compile_schema(PERSON).check({"name": 5, "age": "30"})
    assert {v.path for v in violations} == {"name", "age"}


def test_whole_floats_are_integers() -> None:
    """JSON has one number type, so 2.0 satisfies "integer" while 2.5 does not."""
    compiled = compile_schema({"type": "integer", "minimum": 1})
    assert compiled.check(2.0) == []
    assert compiled.check(7) == []
    assert [v.kind for v in compiled.check(2.5)] == ["int_type"]
    assert compiled.check(0.0)
    assert compiled.check(True)


def test_required_without_properties() -> None:
    compiled = compile_schema({"type": "object", "required": ["id"]})
    violations = compiled.check({})
    assert [(v.path, v.kind) for v in violations] == [("id", "missing")]
    assert compiled.check({"id": 3, "other": "x"}) == []


def test_required_name_missing_from_properties() -> None:
    compiled = compile_schema({
        "type": "object",
        "properties": {"a": {"type": "string"}},
        "required": ["a", "b"],
    })
    violations = compiled.check({"a": "x"})
    assert [v.path for v in violations] == ["b"]
    assert compiled.check({"a": "x", "b": None}) == []


def test_untagged_union_reports_one_violation() -> None:
    """Each violated constraint counts once, however many variants were tried."""
    compiled = compile_schema({
        "type": "object",
        "properties": {
            "x": {"type": ["string", "integer"]},
            "y": {"type": "string"},
            "z": {"anyOf": [{"type": "boolean"}, {"type": "array", "items": {"type": "string"}}]},
        },
    })
    assert compiled.check({"x": 3, "y": "ok", "z": ["a"]}) == []

    violations = compiled.check({"x": [], "y": 1, "z": 5})
    assert len(violations) == 3
    assert {v.path for v in violations} == {"x", "y", "z"}
    assert next(v for v in violations if v.path == "x").kind == "union_type"


def test_nested_paths_are_dotted() -> None:
    schema = {
        "type": "object",
        "properties": {
            "address": {
                "type": "object",
                "properties": {"zip": {"type": "string"}},
                "required": ["zip"],
            },
            "tags": {"type": "array", "items": {"type": "integer"}},
        },
        "required": ["address"],
    }
    violations = compile_schema(schema).check({"address": {}, "tags": [1, "x"]})
    assert {v.path for v in violations} == {"address.zip", "tags.1"}


def test_root_violation_uses_root_path() -> None:
    violations = compile_schema({"type": "string"}).check(5)
    assert [v.path for v in violations] == [ROOT_PATH]


def test_enum_and_constraints() -> None:
    schema = {
        "type": "object",
        "properties": {
            "unit": {"enum": ["metric", "imperial"]},
            "city": {"type": "string", "minLength": 2},
            "days": {"type": "integer", "minimum": 1, "maximum": 14},
        },
    }
    compiled = compile_schema(schema)
    assert compiled.check({"unit": "metric", "city": "Oslo", "days": 3}) == []
    violations = compiled.check({"unit": "kelvin", "city": "O", "days": 30})
    assert {v.path for v in violations} == {"unit", "city", "days"}


def test_discriminated_union() -> None:
    shape = {
        "oneOf": [
            {
                "type": "object",
                "properties": {"kind": {"const": "circle"}, "radius": {"type": "number"}},
                "required": ["kind", "radius"],
            },
            {
                "type": "object",
                "properties": {"kind": {"const": "square"}, "side": {"type": "number"}},
                "required": ["kind", "side"],
            },
        ],
    }
    compiled = compile_schema(shape)
    assert compiled.check({"kind": "circle", "radius": 1.5}) == []
    assert compiled.check({"kind": "square", "side": 2}) == []
    assert compiled.check({"kind": "square", "radius": 2})
    assert compiled.check({"kind": "triangle"})


def test_non_identifier_property_names() -> None:
    schema = {
        "type": "object",
        "properties": {"first-name": {"type": "string"}, "class": {"type": "string"}},
        "required": ["first-name"],
    }
    compiled = compile_schema(schema)
    assert compiled.check({"first-name": "Ada", "class": "x"}) == []
    assert [v.path for v in compiled.check({"class": "x"})] == ["first-name"]


def test_native_model() -> None:
    class Person(BaseModel):
        name: str
        age: int | None = None

    assert is_native(Person)
    compiled = compile_schema(Person)
    assert not compiled.portable
    assert compiled.check({"name": "Ada", "age": 36}) == []
    assert [v.path for v in compiled.check({"age": 36})] == ["name"]
    assert compiled.json_schema["title"] == "Person"


def test_bare_annotation_is_native() -> None:
    compiled = compile_schema(list[int])
    assert compiled.check([1, 2]) == []
    assert compiled.check("nope")


def test_json_schema_returns_portable_source() -> None:
    assert compile_schema(PERSON).json_schema == PERSON


def test_to_native_builds_model() -> None:
    Person = to_native({**PERSON, "additionalProperties": False}, name="Person")
    person = Person.model_validate({"name": "Ada"})
    assert person.name == "Ada"
    assert person.age is None


def test_recursive_ref_is_a_configuration_error() -> None:
    schema = {
        "$defs": {"Node": {"type": "object", "properties": {"next": {"$ref": "#/$defs/Node"}}}},
        "$ref": "#/$defs/Node",
    }
    with pytest.raises(ConfigurationError):
        compile_schema(schema, owner="linked")


def test_local_ref_resolves() -> None:
    schema = {
        "definitions": {"City": {"type": "string", "minLength": 1}},
        "type": "object",
        "properties": {"city": {"$ref": "#/definitions/City"}},
        "required": ["city"],
    }
    compiled = compile_schema(schema)
    assert compiled.check({"city": "Oslo"}) == []
    assert compiled.check({"city": ""})


def test_unknown_type_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError) as exc:
        compile_schema({"type": "widget"}, owner="broken")
    assert exc.value.tool_name == "broken"
