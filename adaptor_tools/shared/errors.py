"""Custom exceptions for adaptor build tools."""

from __future__ import annotations


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    def __init__(self, message: str, schema_path: str | None = None) -> None:
        self.schema_path = schema_path
        full_message = f"{message}" if not schema_path else f"[{schema_path}] {message}"
        super().__init__(full_message)


class SchemaValidationError(SchemaError):
    """Raised when a definition document fails validation."""

    def __init__(
        self,
        message: str,
        schema_path: str | None = None,
        field: str | None = None,
    ) -> None:
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        super().__init__(message, schema_path)


class TypeMappingError(SchemaError):
    """Raised when an element type has no declaration mapping."""

    def __init__(
        self,
        type_name: str,
        context: str,
        schema_path: str | None = None,
    ) -> None:
        self.type_name = type_name
        super().__init__(f"No type mapping for '{type_name}' ({context})", schema_path)


class MappingError(SchemaError):
    """Raised when a mapping rule is invalid or does not fit the schema."""

    def __init__(
        self,
        message: str,
        resource_type: str | None = None,
        field: str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.field = field
        if field:
            message = f"Field '{field}': {message}"
        if resource_type:
            message = f"Resource '{resource_type}': {message}"
        super().__init__(message)
