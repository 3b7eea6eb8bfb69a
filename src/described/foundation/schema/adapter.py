"""Schema adapter: one compiled validator form for portable and native schemas.

A schema arrives either as a portable JSON-Schema mapping or as a native
Pydantic type (anything carrying ``__pydantic_core_schema__``, or a ready
``TypeAdapter``). Portable schemas are converted once with ``to_native``;
both forms are then compiled into a ``TypeAdapter`` wrapped by
``CompiledSchema``. Downstream code never branches on the supplied form.

Validation never raises: ``CompiledSchema.check`` returns every violated
constraint as a ``SchemaViolation`` (empty list = valid).

Example:
    >>> compiled = compile_schema({
    ...     "type": "object",
    ...     "properties": {"name": {"type": "string"}, "age": {"type": "number"}},
    ...     "required": ["name"],
    ...     "additionalProperties": False,
    ... })
    >>> compiled.check({"name": "Alice", "age": 30})
    []
    >>> [v.path for v in compiled.check({"age": "old", "extra": 1})]
    ['name', 'age', 'extra']
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, PydanticSchemaGenerationError, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from described.foundation.errors import ConfigurationError, JsonDict

from .convert import SchemaConversionError, to_native

# Path rendered for violations on the value itself rather than a member
ROOT_PATH = "$"


@dataclass(slots=True, frozen=True)
class SchemaViolation:
    """A single violated constraint, located by a dotted path."""
    path: str
    message: str
    kind: str = "invalid"

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


@dataclass(slots=True, frozen=True)
class CompiledSchema:
    """Validator compiled once from a portable or native schema.

    Attributes:
        adapter: Pydantic TypeAdapter doing the actual validation
        source: The schema value as originally supplied
        portable: Whether the source was a JSON-Schema mapping
    """
    adapter: TypeAdapter[Any]
    source: object = field(repr=False)
    portable: bool = False

    def check(self, value: object) -> list[SchemaViolation]:
        """Validate value, returning every violation in document order."""
        if self.portable and isinstance(value, BaseModel):
            value = value.model_dump(mode="json", by_alias=True)
        try:
            self.adapter.validate_python(value)
        except PydanticValidationError as e:
            return [
                SchemaViolation(path=_path(err["loc"]), message=err["msg"], kind=err["type"])
                for err in e.errors(include_url=False)
            ]
        return []

    def is_valid(self, value: object) -> bool:
        return not self.check(value)

    @property
    def json_schema(self) -> JsonDict:
        """JSON-Schema view of this schema (the supplied document for portable sources)."""
        if isinstance(self.source, Mapping):
            return dict(self.source)
        if isinstance(self.source, bool):
            return {} if self.source else {"not": {}}
        return self.adapter.json_schema()


def is_native(schema: object) -> bool:
    """Whether schema is already a native pydantic form (no conversion needed)."""
    return isinstance(schema, TypeAdapter) or hasattr(schema, "__pydantic_core_schema__")


def compile_schema(schema: object, *, name: str = "Schema", owner: str = "") -> CompiledSchema:
    """Compile a schema into a ``CompiledSchema``.

    Args:
        schema: JSON-Schema mapping, pydantic model class, TypeAdapter or annotation
        name: Model name used for types generated from portable schemas
        owner: Tool name reported on configuration errors

    Raises:
        ConfigurationError: When the schema cannot be converted or compiled.
    """
    if isinstance(schema, TypeAdapter):
        return CompiledSchema(adapter=schema, source=schema)
    try:
        if is_native(schema):
            return CompiledSchema(adapter=TypeAdapter(schema), source=schema)
        if isinstance(schema, (Mapping, bool)):
            return CompiledSchema(adapter=TypeAdapter(to_native(schema, name)), source=schema, portable=True)
        # Bare annotations (str, list[int], ...) are native forms too
        return CompiledSchema(adapter=TypeAdapter(schema), source=schema)
    except (SchemaConversionError, PydanticSchemaGenerationError, TypeError, ValueError) as e:
        raise ConfigurationError(owner, f"Cannot compile {name} schema: {e}") from e


def _path(loc: tuple[int | str, ...]) -> str:
    return ".".join(str(part) for part in loc) if loc else ROOT_PATH
