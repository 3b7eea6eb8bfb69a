"""Schema adapter: compile portable (JSON-Schema) or native (pydantic) schemas.

- compile_schema: one-time compilation into a CompiledSchema
- CompiledSchema.check: every violation as SchemaViolation(path, message)
- to_native: lossless structural conversion from JSON-Schema to pydantic types
"""

from .adapter import ROOT_PATH, CompiledSchema, SchemaViolation, compile_schema, is_native
from .convert import SchemaConversionError, to_native

__all__ = [
    "CompiledSchema",
    "SchemaViolation",
    "SchemaConversionError",
    "ROOT_PATH",
    "compile_schema",
    "is_native",
    "to_native",
]
