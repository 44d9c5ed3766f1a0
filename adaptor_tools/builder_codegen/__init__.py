"""Builder Code Generator - Generates resource builders from FHIR definitions."""

from .main import (
    BuilderField,
    BuildResult,
    GeneratorContext,
    build,
    generate_code,
    generate_dts,
    resolve_fields,
    PRIMITIVE_TS_TYPES,
)
from .mappings import FieldRule, ResourceMapping, load_mappings, parse_mappings
from .schema import Field, Schema, Variant, generate_schema

__all__ = [
    "BuilderField",
    "BuildResult",
    "GeneratorContext",
    "build",
    "generate_code",
    "generate_dts",
    "resolve_fields",
    "PRIMITIVE_TS_TYPES",
    "FieldRule",
    "ResourceMapping",
    "load_mappings",
    "parse_mappings",
    "Field",
    "Schema",
    "Variant",
    "generate_schema",
]
