"""
Builder Code Generator - Generates resource builders from FHIR definitions.

Reads the StructureDefinitions of an implementation guide, applies the
per-resource mapping rules and writes, into an adaptor package:
- src/builders.d.ts: one props type per resource variant plus the builder
  declarations
- src/builders.js: one builder function per resource type, dispatching on
  the variant id
"""

from __future__ import annotations

import argparse
import json
import shutil
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Final, Iterable, Mapping, Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..shared import (
    DocumentCache,
    MappingError,
    SchemaError,
    TypeMappingError,
    to_camel_case,
    to_identifier,
    to_pascal_case,
)
from .mappings import FieldRule, ResourceMapping, load_mappings
from .schema import Field, Schema, Variant, generate_schema

TEMPLATE_DIR: Final[Path] = Path(__file__).parent / "templates"

GENERATED_HEADER: Final[str] = (
    "Generated by adaptor_tools.builder_codegen. Do not edit manually."
)

# FHIR primitive types to TypeScript types
PRIMITIVE_TS_TYPES: Final[dict[str, str]] = {
    "boolean": "boolean",
    "integer": "number",
    "decimal": "number",
    "positiveInt": "number",
    "unsignedInt": "number",
    "integer64": "string",
    "string": "string",
    "code": "string",
    "id": "string",
    "markdown": "string",
    "uri": "string",
    "url": "string",
    "canonical": "string",
    "oid": "string",
    "uuid": "string",
    "base64Binary": "string",
    "date": "string",
    "dateTime": "string",
    "instant": "string",
    "time": "string",
    "xhtml": "string",
}

# (forced input type, FHIR type) -> (JS expression, target property)
COERCIONS: Final[dict[tuple[str, str], tuple[str, str]]] = {
    ("string", "Identifier"): ("{ value: %s }", "value"),
    ("string", "Reference"): ("{ reference: %s }", "reference"),
    ("string", "CodeableConcept"): ("{ text: %s }", "text"),
    ("string", "Coding"): ("{ code: %s }", "code"),
}

INDENT: Final[str] = "    "


@dataclass(frozen=True, slots=True)
class BuilderField:
    """A field as seen by a builder: caller key on one side, resource field on the other."""

    key: str
    target: str
    fhir_type: str
    ts_type: str
    is_array: bool
    optional: bool
    has_default: bool
    default_literal: str | None
    coercion: str | None
    doc_lines: tuple[str, ...] = ()

    @property
    def declared_key(self) -> str:
        return self.key if _is_identifier(self.key) else _quote(self.key)

    @property
    def accessor(self) -> str:
        if _is_identifier(self.key):
            return f"props.{self.key}"
        return f"props[{_quote(self.key)}]"

    @property
    def value_expression(self) -> str:
        """JS expression converting the caller's value for the resource."""
        if self.is_array:
            if self.coercion:
                return f"asArray({self.accessor}).map((item) => ({self.coercion % 'item'}))"
            return f"asArray({self.accessor})"
        if self.coercion:
            return self.coercion % self.accessor
        return self.accessor


@dataclass(slots=True)
class VariantBuilder:
    """Render model for a single variant."""

    id: str
    url: str
    name: str
    description: str
    function_name: str
    props_type: str
    fields: list[BuilderField]

    @property
    def id_literal(self) -> str:
        return _quote(self.id)

    @property
    def url_literal(self) -> str:
        return _quote(self.url)

    @property
    def props_optional(self) -> bool:
        return all(f.optional for f in self.fields)


@dataclass(slots=True)
class ResourceBuilder:
    """Render model for a resource type and its variants."""

    resource_type: str
    function_name: str
    variants: list[VariantBuilder]

    @property
    def resource_type_literal(self) -> str:
        return _quote(self.resource_type)


@dataclass
class GeneratorContext:
    """Context for code generation with cached resources."""

    template_env: Environment = field(init=False)

    def __post_init__(self) -> None:
        self.template_env = Environment(
            loader=FileSystemLoader(TEMPLATE_DIR),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
            auto_reload=False,
        )
        # Pre-compile templates
        self._dts_template = self.template_env.get_template("builders.d.ts.j2")
        self._code_template = self.template_env.get_template("builders.js.j2")

    @property
    def dts_template(self):
        return self._dts_template

    @property
    def code_template(self):
        return self._code_template


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Summary of a generator run."""

    resource_count: int
    variant_count: int
    written: tuple[Path, ...]


@lru_cache(maxsize=256)
def _quote(value: str) -> str:
    """Quote a string for JS/TS literal embedding. Cached for performance."""
    return json.dumps(value)


def _is_identifier(value: str) -> bool:
    return bool(value) and to_identifier(value) == value


def _escape_doc(text: str) -> str:
    return text.replace("*/", "*\\/")


def _ensure_unique(base: str, used: dict[str, int]) -> str:
    """Ensure a function name is unique by appending a suffix if needed."""
    if base not in used:
        used[base] = 1
        return base
    used[base] += 1
    return f"{base}_{used[base]}"


def ts_type_for_field(item: Field, depth: int = 1) -> str:
    """Resolve the TypeScript type of a schema field.

    Nested structures render as inline object types indented for ``depth``.

    Raises:
        TypeMappingError: If the field's type has no mapping.
    """
    if item.children:
        inner = INDENT * (depth + 1)
        lines = ["{"]
        for child in item.children.values():
            optional = "" if child.is_required else "?"
            child_type = ts_type_for_field(child, depth + 1)
            if child.is_array:
                child_type = f"Array<{child_type}>"
            lines.append(f"{inner}{child.name}{optional}: {child_type};")
        lines.append(f"{INDENT * depth}}}")
        return "\n".join(lines)

    fhir_type = item.type
    mapped = PRIMITIVE_TS_TYPES.get(fhir_type)
    if mapped:
        return mapped
    if fhir_type[:1].isupper():
        return f"FHIR.{fhir_type}"
    raise TypeMappingError(fhir_type, f"field '{item.path}'")


def _doc_lines(
    item: Field,
    rule: FieldRule,
    coercion_target: str | None,
    default: Any,
) -> tuple[str, ...]:
    lines: list[str] = []
    if item.description:
        lines.append(item.description)
    if coercion_target:
        lines.append(f"Mapped onto {item.type}.{coercion_target}")
    if item.targets:
        lines.append(f"References: {' | '.join(item.targets)}")
    if item.binding:
        lines.append(f"Binding: {item.binding}")
    if rule.has_defaults:
        lines.append(f"Default: {json.dumps(default)}")
    return tuple(_escape_doc(line) for line in lines)


def _builder_field(item: Field, rule: FieldRule) -> BuilderField:
    coercion: str | None = None
    coercion_target: str | None = None
    if rule.type:
        found = COERCIONS.get((rule.type, item.type))
        if found:
            coercion, coercion_target = found
        ts_type = rule.type
    else:
        ts_type = ts_type_for_field(item)

    if item.is_array:
        ts_type = f"{ts_type} | Array<{ts_type}>"

    default: Any = rule.defaults
    if rule.has_defaults and item.is_array and not isinstance(default, list):
        default = [default]

    return BuilderField(
        key=rule.rename or item.name,
        target=item.name,
        fhir_type=item.type,
        ts_type=ts_type,
        is_array=item.is_array,
        optional=not item.is_required or rule.has_defaults,
        has_default=rule.has_defaults,
        default_literal=json.dumps(default) if rule.has_defaults else None,
        coercion=coercion,
        doc_lines=_doc_lines(item, rule, coercion_target, default),
    )


def resolve_fields(variant: Variant, mapping: ResourceMapping) -> list[BuilderField]:
    """Apply the mapping rules of a resource type to one of its variants.

    Raises:
        MappingError: If two fields end up with the same caller key.
    """
    result: list[BuilderField] = []
    keys: dict[str, str] = {}

    for item in variant.fields.values():
        rule = mapping.rule_for(item.name, item.choice_name)
        if rule.exclude:
            continue

        builder_field = _builder_field(item, rule)
        previous = keys.get(builder_field.key)
        if previous is not None:
            raise MappingError(
                f"key '{builder_field.key}' is already used by '{previous}' in variant '{variant.id}'",
                mapping.resource_type,
                item.name,
            )
        keys[builder_field.key] = item.name
        result.append(builder_field)

    return result


def _check_rules(variants: Sequence[Variant], mapping: ResourceMapping) -> None:
    """Reject rules naming fields no variant of the resource has."""
    known: set[str] = set()
    for variant in variants:
        for item in variant.fields.values():
            known.add(item.name)
            if item.choice_name:
                known.add(item.choice_name)

    for name in mapping.rules:
        if name not in known:
            raise MappingError("no such field in any variant", mapping.resource_type, name)


def build_resources(
    schema: Schema,
    mappings: Mapping[str, ResourceMapping],
) -> list[ResourceBuilder]:
    """Build the render model shared by both emitters."""
    resources: list[ResourceBuilder] = []
    used_functions: dict[str, int] = {}
    used_types: dict[str, int] = {}

    for resource_type, mapping in mappings.items():
        variants = schema.variants_for(resource_type)
        if not variants:
            raise SchemaError(f"Schema has no variants for '{resource_type}'")
        _check_rules(variants, mapping)

        resource_function = _ensure_unique(
            to_identifier(to_camel_case(resource_type)), used_functions
        )
        builders = [
            VariantBuilder(
                id=variant.id,
                url=variant.url,
                name=variant.name,
                description=_escape_doc(variant.description),
                function_name=_ensure_unique(
                    to_identifier(f"{resource_function}_{to_camel_case(variant.id)}"),
                    used_functions,
                ),
                props_type=_ensure_unique(
                    f"{to_pascal_case(resource_type)}_{to_pascal_case(variant.id)}",
                    used_types,
                )
                + "_Props",
                fields=resolve_fields(variant, mapping),
            )
            for variant in variants
        ]
        resources.append(
            ResourceBuilder(
                resource_type=resource_type,
                function_name=resource_function,
                variants=builders,
            )
        )

    return resources


def generate_dts(
    schema: Schema,
    mappings: Mapping[str, ResourceMapping],
    ctx: GeneratorContext | None = None,
) -> str:
    """Render the type declarations for every builder."""
    ctx = ctx or GeneratorContext()
    return ctx.dts_template.render(
        header=GENERATED_HEADER,
        resources=build_resources(schema, mappings),
    )


def generate_code(
    schema: Schema,
    mappings: Mapping[str, ResourceMapping],
    ctx: GeneratorContext | None = None,
) -> str:
    """Render the builder functions."""
    ctx = ctx or GeneratorContext()
    return ctx.code_template.render(
        header=GENERATED_HEADER,
        resources=build_resources(schema, mappings),
    )


def build(
    package_dir: Path,
    sources: Sequence[str | Path],
    mappings_path: Path | None = None,
    schema_out: Path | None = None,
    cache: DocumentCache | None = None,
) -> BuildResult:
    """Generate the builders of an adaptor package.

    Args:
        package_dir: Adaptor package root (contains ``src/``).
        sources: Definition files, directories or URLs.
        mappings_path: Mapping table, defaults to the packaged table.
        schema_out: Optional path to dump the intermediate schema as JSON.
        cache: Optional document cache.

    Returns:
        Counts and the paths written.
    """
    mappings = load_mappings(mappings_path)
    if not mappings:
        raise MappingError("mapping table is empty")

    schema = generate_schema(mappings.keys(), sources, cache)

    ctx = GeneratorContext()
    dts = generate_dts(schema, mappings, ctx)
    src = generate_code(schema, mappings, ctx)

    src_dir = package_dir / "src"
    types_dir = package_dir / "types"
    src_dir.mkdir(parents=True, exist_ok=True)
    (package_dir / "dist").mkdir(parents=True, exist_ok=True)
    types_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    dts_path = src_dir / "builders.d.ts"
    dts_path.write_text(dts, encoding="utf-8")
    written.append(dts_path)

    code_path = src_dir / "builders.js"
    code_path.write_text(src, encoding="utf-8")
    written.append(code_path)

    globals_path = src_dir / "globals.d.ts"
    if globals_path.exists():
        target = types_dir / "globals.d.ts"
        shutil.copyfile(globals_path, target)
        written.append(target)
    else:
        print(f"Warning: {globals_path} not found, types/globals.d.ts not written")

    if schema_out is not None:
        schema_out.parent.mkdir(parents=True, exist_ok=True)
        schema_out.write_text(json.dumps(schema.to_dict(), indent=2) + "\n", encoding="utf-8")
        written.append(schema_out)

    return BuildResult(
        resource_count=len(schema.resource_types),
        variant_count=sum(len(v) for v in schema.variants.values()),
        written=tuple(written),
    )


def main(argv: Iterable[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generate resource builders from FHIR StructureDefinitions",
    )
    parser.add_argument(
        "sources",
        nargs="+",
        help="Definition file(s), directories or http(s) URLs",
    )
    parser.add_argument(
        "--package-dir",
        type=Path,
        default=Path("."),
        help="Adaptor package root to write builders into",
    )
    parser.add_argument(
        "--mappings",
        type=Path,
        default=None,
        help="Mapping table (YAML); defaults to the packaged table",
    )
    parser.add_argument(
        "--schema-out",
        type=Path,
        default=None,
        help="Also write the extracted schema as JSON",
    )

    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        result = build(
            args.package_dir.resolve(),
            args.sources,
            mappings_path=args.mappings,
            schema_out=args.schema_out,
        )
    except (SchemaError, FileNotFoundError) as e:
        raise SystemExit(f"Error: {e}") from e

    print(
        f"Generated builders for {result.resource_count} resource type(s) "
        f"({result.variant_count} variant(s)) into {args.package_dir.resolve() / 'src'}"
    )
    for path in result.written:
        print(f"  wrote {path}")


if __name__ == "__main__":
    main()
