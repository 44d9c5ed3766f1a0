"""Naming utilities for code generation."""

from __future__ import annotations

import re
from functools import lru_cache

JS_KEYWORDS: frozenset[str] = frozenset({
    "await",
    "break",
    "case",
    "catch",
    "class",
    "const",
    "continue",
    "debugger",
    "default",
    "delete",
    "do",
    "else",
    "enum",
    "export",
    "extends",
    "false",
    "finally",
    "for",
    "function",
    "if",
    "implements",
    "import",
    "in",
    "instanceof",
    "interface",
    "let",
    "new",
    "null",
    "package",
    "private",
    "protected",
    "public",
    "return",
    "static",
    "super",
    "switch",
    "this",
    "throw",
    "true",
    "try",
    "typeof",
    "var",
    "void",
    "while",
    "with",
    "yield",
})


@lru_cache(maxsize=1024)
def capitalize_first(value: str) -> str:
    """Upper-case the first character only, leaving the rest untouched."""
    if not value:
        return value
    return value[0].upper() + value[1:]


@lru_cache(maxsize=1024)
def to_pascal_case(value: str) -> str:
    """Convert a string to PascalCase.

    Uses caching for repeated calls with the same input.

    Examples:
        >>> to_pascal_case("entry-from-outside-target-facility-encounter")
        'EntryFromOutsideTargetFacilityEncounter'
        >>> to_pascal_case("hello_world")
        'HelloWorld'
        >>> to_pascal_case("helloWorld")
        'HelloWorld'
    """
    # Handle already camelCase/PascalCase by inserting underscores before caps
    value = re.sub(r'([a-z0-9])([A-Z])', r'\1_\2', value)

    parts = [part for part in re.split(r'[^a-zA-Z0-9]+', value) if part]
    return "".join(part.capitalize() for part in parts)


@lru_cache(maxsize=1024)
def to_camel_case(value: str) -> str:
    """Convert a string to camelCase.

    Examples:
        >>> to_camel_case("Encounter")
        'encounter'
        >>> to_camel_case("MedicationRequest")
        'medicationRequest'
        >>> to_camel_case("lab-result")
        'labResult'
    """
    pascal = to_pascal_case(value)
    if not pascal:
        return pascal
    return pascal[0].lower() + pascal[1:]


@lru_cache(maxsize=1024)
def to_identifier(value: str) -> str:
    """Sanitize a value for use as a JavaScript identifier.

    Anything outside ``[A-Za-z0-9_$]`` becomes an underscore, a leading
    digit is prefixed with an underscore and reserved words get a trailing
    underscore.
    """
    sanitized = re.sub(r'[^A-Za-z0-9_$]', "_", value)
    if not sanitized:
        return "_"
    if sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    if sanitized in JS_KEYWORDS:
        return f"{sanitized}_"
    return sanitized
