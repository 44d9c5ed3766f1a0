"""Shared utilities for adaptor build tools."""

from .schema_loader import (
    DocumentCache,
    collect_definition_paths,
    fetch_document,
    is_url,
    iter_structure_definitions,
    load_document,
)
from .naming import (
    capitalize_first,
    to_camel_case,
    to_identifier,
    to_pascal_case,
    JS_KEYWORDS,
)
from .errors import (
    MappingError,
    SchemaError,
    SchemaValidationError,
    TypeMappingError,
)

__all__ = [
    # Document loading
    "DocumentCache",
    "collect_definition_paths",
    "fetch_document",
    "is_url",
    "iter_structure_definitions",
    "load_document",
    # Naming utilities
    "capitalize_first",
    "to_camel_case",
    "to_identifier",
    "to_pascal_case",
    "JS_KEYWORDS",
    # Errors
    "MappingError",
    "SchemaError",
    "SchemaValidationError",
    "TypeMappingError",
]
