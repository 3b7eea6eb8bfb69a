"""Structural conversion of portable JSON-Schema documents into pydantic types.

Builds Pydantic annotations with ``create_model`` so that a JSON-Schema
mapping and a native model class compile into the same validator form.
Scalars map to strict types: JSON Schema never coerces ``"30"`` into a
number, so neither does the generated model. Whole floats such as ``2.0``
still validate as integers, matching JSON number semantics. Untagged unions
report a single violation when no variant matches.

Supported keywords:
    type (single or list), properties, required, additionalProperties,
    items, const, enum, anyOf, oneOf, description, default, title,
    minLength, maxLength, pattern, minimum, maximum, exclusiveMinimum,
    exclusiveMaximum, minItems, maxItems, and local ``$ref`` into
    ``$defs``/``definitions``.

Example:
    >>> Person = to_native({
    ...     "type": "object",
    ...     "properties": {"name": {"type": "string"}},
    ...     "required": ["name"],
    ...     "additionalProperties": False,
    ... }, name="Person")
    >>> Person.model_validate({"name": "Ada"})
    Person(name='Ada')
"""

from __future__ import annotations

import keyword
import re
from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    ValidationError,
    ValidatorFunctionWrapHandler,
    WrapValidator,
    create_model,
)
from pydantic_core import PydanticCustomError

from described.foundation.errors import JsonDict


def _whole_number(value: object) -> object:
    """JSON integers may arrive as whole floats (``2.0``)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


StrictInteger = Annotated[StrictInt, BeforeValidator(_whole_number)]

_SCALARS: dict[str, object] = {
    "string": StrictStr,
    "integer": StrictInteger,
    "number": StrictFloat,
    "boolean": StrictBool,
    "null": None,
}

# JSON-Schema keyword -> pydantic Field kwarg
_CONSTRAINTS: dict[str, str] = {
    "minLength": "min_length",
    "maxLength": "max_length",
    "pattern": "pattern",
    "minimum": "ge",
    "maximum": "le",
    "exclusiveMinimum": "gt",
    "exclusiveMaximum": "lt",
    "minItems": "min_length",
    "maxItems": "max_length",
}

_NAME_CLEANUP = re.compile(r"[^0-9A-Za-z_]+")


class SchemaConversionError(ValueError):
    """Portable schema uses a construct that has no native equivalent."""


def to_native(schema: Mapping[str, Any] | bool, name: str = "Schema") -> Any:
    """Convert a portable JSON-Schema document into a pydantic annotation.

    Object schemas become generated ``BaseModel`` subclasses; everything else
    becomes a typing annotation usable with ``TypeAdapter``.

    Raises:
        SchemaConversionError: For recursive or unresolvable ``$ref`` pointers
            and non-primitive ``enum``/``const`` values.
    """
    if isinstance(schema, bool):
        return Any
    return _Converter(schema).convert(schema, _model_name(schema.get("title") or name))


class _Converter:
    """Single-use converter carrying the root document for ``$ref`` lookups."""

    __slots__ = ("_root", "_resolving")

    def __init__(self, root: Mapping[str, Any]) -> None:
        self._root = root
        self._resolving: set[str] = set()

    def convert(self, schema: Mapping[str, Any] | bool, name: str) -> Any:
        if isinstance(schema, bool):
            return Any
        annotation = self._annotation(schema, name)
        field_kwargs = _field_kwargs(schema)
        return Annotated[annotation, Field(**field_kwargs)] if field_kwargs else annotation

    def _annotation(self, schema: Mapping[str, Any], name: str) -> Any:
        if "$ref" in schema:
            return self._ref(schema["$ref"], name)
        if "const" in schema:
            return _literal([schema["const"]])
        if "enum" in schema:
            return _literal(schema["enum"])
        for combinator in ("oneOf", "anyOf"):
            if combinator in schema:
                return self._union(schema[combinator], name)

        kind = schema.get("type")
        if isinstance(kind, list):
            variants = [self._typed({**schema, "type": t}, t, f"{name}_{t}") for t in kind]
            return _any_of(variants) if len(variants) > 1 else variants[0]
        if kind is None:
            if "properties" in schema:
                kind = "object"
            elif "items" in schema:
                kind = "array"
            else:
                return Any
        return self._typed(schema, kind, name)

    def _typed(self, schema: Mapping[str, Any], kind: str, name: str) -> Any:
        if kind == "object":
            return self._object(schema, name)
        if kind == "array":
            items = schema.get("items")
            return list[self.convert(items, f"{name}Item")] if items is not None else list[Any]
        if kind in _SCALARS:
            return _SCALARS[kind]
        raise SchemaConversionError(f"Unknown JSON-Schema type '{kind}' in {name}")

    def _object(self, schema: Mapping[str, Any], name: str) -> Any:
        properties: Mapping[str, Any] = schema.get("properties") or {}
        required = list(dict.fromkeys(schema.get("required") or ()))
        extra = schema.get("additionalProperties", True)

        # A map: no declared or required properties, typed values
        if not properties and not required:
            if isinstance(extra, Mapping):
                return dict[str, self.convert(extra, f"{name}Value")]
            if extra is False:
                return create_model(name, __config__=ConfigDict(extra="forbid"))
            return dict[str, Any]

        fields: dict[str, tuple[object, object]] = {}
        for index, (prop, sub) in enumerate(properties.items()):
            annotation = self.convert(sub, f"{name}{_model_name(prop)}")
            field_name = _field_name(prop, index)
            alias = None if field_name == prop else prop
            if prop in required:
                fields[field_name] = (annotation, Field(..., alias=alias))
            else:
                default = sub.get("default") if isinstance(sub, Mapping) else None
                fields[field_name] = (annotation, Field(default=default, alias=alias))

        # Required names without a property schema accept any value
        undeclared = [prop for prop in required if prop not in properties]
        for index, prop in enumerate(undeclared, start=len(properties)):
            field_name = _field_name(prop, index)
            fields[field_name] = (Any, Field(..., alias=None if field_name == prop else prop))

        # Unknown properties are tolerated unless explicitly closed
        config = ConfigDict(extra="forbid" if extra is False else "ignore", populate_by_name=False)
        model: type[BaseModel] = create_model(name, __config__=config, **fields)  # type: ignore[call-overload]
        if description := schema.get("description"):
            model.__doc__ = description
        return model

    def _union(self, variants: Sequence[Mapping[str, Any]], name: str) -> Any:
        if len(variants) == 1:
            return self.convert(variants[0], name)
        if tag := _discriminator(variants):
            tagged = tuple(self._annotation(v, f"{name}Option{i}") for i, v in enumerate(variants))
            return Annotated[Union[tagged], Field(discriminator=tag)]
        return _any_of([self.convert(v, f"{name}Option{i}") for i, v in enumerate(variants)])

    def _ref(self, pointer: str, name: str) -> Any:
        if not pointer.startswith("#/"):
            raise SchemaConversionError(f"Only local $ref pointers are supported, got '{pointer}'")
        if pointer in self._resolving:
            raise SchemaConversionError(f"Recursive $ref '{pointer}' cannot be converted")
        node: Any = self._root
        for part in pointer[2:].split("/"):
            part = part.replace("~1", "/").replace("~0", "~")
            if not isinstance(node, Mapping) or part not in node:
                raise SchemaConversionError(f"Unresolvable $ref '{pointer}'")
            node = node[part]
        self._resolving.add(pointer)
        try:
            return self.convert(node, _model_name(pointer.rsplit("/", 1)[-1]))
        finally:
            self._resolving.discard(pointer)


def _field_kwargs(schema: Mapping[str, Any]) -> JsonDict:
    """Collect pydantic Field constraints declared on a schema node."""
    kwargs: JsonDict = {k: schema[key] for key, k in _CONSTRAINTS.items() if key in schema}
    if description := schema.get("description"):
        kwargs["description"] = description
    return kwargs


def _literal(values: Sequence[object]) -> Any:
    if not values or any(isinstance(v, (dict, list)) for v in values):
        raise SchemaConversionError(f"enum/const values must be primitives, got {values!r}")
    return Literal[tuple(values)]  # type: ignore[valid-type]


def _any_of(variants: Sequence[object]) -> Any:
    """Untagged union reporting one violation when no variant matches."""
    return Annotated[Union[tuple(variants)], WrapValidator(_first_match)]


def _first_match(value: object, handler: ValidatorFunctionWrapHandler) -> object:
    try:
        return handler(value)
    except ValidationError as e:
        expected = "; ".join(dict.fromkeys(err["msg"] for err in e.errors(include_url=False)))
        raise PydanticCustomError(
            "union_type", "Input should match one of the allowed variants ({expected})", {"expected": expected},
        ) from e


def _discriminator(variants: Sequence[Mapping[str, Any]]) -> str | None:
    """Find a required property holding a distinct const in every object variant."""
    common: set[str] | None = None
    for variant in variants:
        if not isinstance(variant, Mapping) or "properties" not in variant:
            return None
        required = set(variant.get("required") or ())
        tagged = {
            prop for prop, sub in variant["properties"].items()
            if prop in required and isinstance(sub, Mapping) and "const" in sub and _field_name(prop, 0) == prop
        }
        common = tagged if common is None else common & tagged
    if not common:
        return None
    for prop in sorted(common):
        tags = [v["properties"][prop]["const"] for v in variants]
        if len(set(map(repr, tags))) == len(tags):
            return prop
    return None


def _field_name(prop: str, index: int) -> str:
    """Python-safe field name for a JSON property (aliased when it differs)."""
    if (
        prop.isidentifier()
        and not keyword.iskeyword(prop)
        and not prop.startswith(("_", "model_"))
        and not hasattr(BaseModel, prop)
    ):
        return prop
    return f"field_{index}"


def _model_name(raw: str) -> str:
    cleaned = _NAME_CLEANUP.sub("_", str(raw)).strip("_") or "Schema"
    cleaned = cleaned[0].upper() + cleaned[1:]
    return cleaned if cleaned[0].isalpha() else f"S{cleaned}"
