"""
Schema extraction from FHIR StructureDefinitions.

Walks the element tree of every requested resource type and produces a
compact, ordered description of the fields of each resource variant. The
result drives both the declaration and the builder emitters.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final, Iterable, Sequence

from ..shared import (
    DocumentCache,
    SchemaError,
    SchemaValidationError,
    capitalize_first,
    collect_definition_paths,
    fetch_document,
    is_url,
    iter_structure_definitions,
)

FHIRPATH_SYSTEM_PREFIX: Final[str] = "http://hl7.org/fhirpath/System."

# FHIRPath system types used by the `id` and `value` elements of primitives
SYSTEM_TYPES: Final[dict[str, str]] = {
    "String": "string",
    "Boolean": "boolean",
    "Integer": "integer",
    "Decimal": "decimal",
    "Date": "date",
    "DateTime": "dateTime",
    "Time": "time",
}

# Never exposed to builders
ALWAYS_EXCLUDED: Final[frozenset[str]] = frozenset({"meta"})

# Element plumbing that is noise inside nested structures
NESTED_EXCLUDED: Final[frozenset[str]] = frozenset({"id", "extension", "modifierExtension"})

NESTED_TYPES: Final[frozenset[str]] = frozenset({"BackboneElement", "Element"})


@dataclass(slots=True)
class Field:
    """A single field of a resource variant."""

    name: str
    path: str
    types: list[str]
    is_array: bool = False
    is_required: bool = False
    description: str = ""
    binding: str | None = None
    targets: list[str] = field(default_factory=list)
    children: dict[str, Field] = field(default_factory=dict)

    @property
    def type(self) -> str:
        """The single type of this field (choice fields are already expanded)."""
        return self.types[0] if self.types else "Element"

    @property
    def is_nested(self) -> bool:
        return bool(self.children)

    @property
    def choice_name(self) -> str | None:
        """The element name (`value[x]`) this field was expanded from, if any."""
        name = self.path.rsplit(".", 1)[-1]
        return name if name.endswith("[x]") else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "path": self.path,
            "types": list(self.types),
            "array": self.is_array,
            "required": self.is_required,
        }
        if self.description:
            data["description"] = self.description
        if self.binding:
            data["binding"] = self.binding
        if self.targets:
            data["targets"] = list(self.targets)
        if self.children:
            data["children"] = {name: child.to_dict() for name, child in self.children.items()}
        return data


@dataclass(slots=True)
class Variant:
    """A named specialization of a resource type with its own input shape."""

    id: str
    url: str
    resource_type: str
    name: str
    description: str = ""
    fields: dict[str, Field] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "name": self.name,
            "description": self.description,
            "fields": {name: f.to_dict() for name, f in self.fields.items()},
        }


@dataclass(slots=True)
class Schema:
    """All variants found for the requested resource types."""

    variants: dict[str, list[Variant]] = field(default_factory=dict)

    @property
    def resource_types(self) -> list[str]:
        return list(self.variants.keys())

    def variants_for(self, resource_type: str) -> list[Variant]:
        return self.variants.get(resource_type, [])

    def to_dict(self) -> dict[str, Any]:
        return {
            resource_type: [variant.to_dict() for variant in variants]
            for resource_type, variants in self.variants.items()
        }


def normalize_type_code(code: str) -> str:
    """Normalize an element type code to a plain FHIR type name."""
    if code.startswith(FHIRPATH_SYSTEM_PREFIX):
        system_name = code[len(FHIRPATH_SYSTEM_PREFIX):]
        return SYSTEM_TYPES.get(system_name, "string")
    if "/" in code:
        return code.rsplit("/", 1)[-1]
    return code


def _target_names(type_entry: dict[str, Any]) -> list[str]:
    profiles = type_entry.get("targetProfile") or []
    if isinstance(profiles, str):
        profiles = [profiles]
    return [str(p).rsplit("/", 1)[-1] for p in profiles]


def _element_types(element: dict[str, Any]) -> tuple[list[str], list[str]]:
    """Return the element's type codes and any reference targets."""
    codes: list[str] = []
    targets: list[str] = []
    for entry in element.get("type") or []:
        if not isinstance(entry, dict) or "code" not in entry:
            continue
        code = normalize_type_code(str(entry["code"]))
        if code not in codes:
            codes.append(code)
        for target in _target_names(entry):
            if target not in targets:
                targets.append(target)
    if not codes and element.get("contentReference"):
        codes.append("BackboneElement")
    return codes, targets


def _is_slice(element: dict[str, Any]) -> bool:
    return "sliceName" in element or ":" in str(element.get("id", ""))


def _is_removed(element: dict[str, Any]) -> bool:
    return str(element.get("max", "*")) == "0"


def _make_fields(
    name: str,
    path: str,
    element: dict[str, Any],
) -> list[Field]:
    """Build one field, or one per type for a choice element."""
    codes, targets = _element_types(element)
    is_array = str(element.get("max", "1")) != "1"
    is_required = int(element.get("min", 0) or 0) > 0
    description = str(element.get("short") or "").strip()
    binding = None
    raw_binding = element.get("binding")
    if isinstance(raw_binding, dict) and raw_binding.get("valueSet"):
        binding = str(raw_binding["valueSet"])

    if name.endswith("[x]"):
        base = name[:-3]
        return [
            Field(
                name=f"{base}{capitalize_first(code)}",
                path=path,
                types=[code],
                is_array=is_array,
                # A required choice can be met by any one of its types
                is_required=is_required and len(codes) == 1,
                description=description,
                binding=binding,
                targets=targets if code == "Reference" else [],
            )
            for code in codes
        ]

    return [
        Field(
            name=name,
            path=path,
            types=codes or ["BackboneElement"],
            is_array=is_array,
            is_required=is_required,
            description=description,
            binding=binding,
            targets=targets,
        )
    ]


def extract_fields(
    definition: dict[str, Any],
    source: str | None = None,
) -> dict[str, Field]:
    """Walk the elements of a StructureDefinition into a field tree.

    Args:
        definition: The StructureDefinition resource.
        source: Where the definition came from, for error messages.

    Returns:
        Top-level fields keyed by name, nested structures in ``children``.

    Raises:
        SchemaValidationError: If the definition carries no elements.
    """
    resource_type = str(definition.get("type", ""))
    snapshot = definition.get("snapshot") or {}
    elements = snapshot.get("element")
    if not elements:
        differential = definition.get("differential") or {}
        elements = differential.get("element")
    if not elements:
        raise SchemaValidationError(
            "definition has no snapshot or differential elements",
            source,
            field=str(definition.get("id", resource_type)),
        )

    root: dict[str, Field] = {}
    # Maps an element path to the children dict of the field at that path
    containers: dict[str, dict[str, Field]] = {resource_type: root}
    removed: list[str] = []

    for element in elements:
        path = str(element.get("path", ""))
        if not path or path == resource_type or _is_slice(element):
            continue
        if any(path == r or path.startswith(f"{r}.") for r in removed):
            continue
        if _is_removed(element):
            removed.append(path)
            continue

        parent_path, _, name = path.rpartition(".")
        container = containers.get(parent_path)
        if container is None:
            # Parent was excluded or is not a nested structure
            continue

        is_top_level = parent_path == resource_type
        if is_top_level and name in ALWAYS_EXCLUDED:
            continue
        if not is_top_level and name in NESTED_EXCLUDED:
            continue

        for item in _make_fields(name, path, element):
            container[item.name] = item
            if item.type in NESTED_TYPES and not name.endswith("[x]"):
                containers[path] = item.children

    return root


def _variant_from_definition(
    definition: dict[str, Any],
    source: str | None = None,
) -> Variant:
    variant_id = str(definition.get("id") or definition.get("name") or "")
    if not variant_id:
        raise SchemaValidationError("StructureDefinition is missing an 'id'", source)
    return Variant(
        id=variant_id,
        url=str(definition.get("url") or ""),
        resource_type=str(definition["type"]),
        name=str(definition.get("name") or variant_id),
        description=str(definition.get("title") or definition.get("description") or "").strip(),
        fields=extract_fields(definition, source),
    )


def _iter_sources(
    sources: Sequence[str | Path],
    cache: DocumentCache,
) -> Iterable[tuple[dict[str, Any], str]]:
    """Yield (StructureDefinition, source) pairs from paths and URLs."""
    paths: list[Path] = []
    for source in sources:
        if is_url(source):
            document = fetch_document(str(source))
            for definition in iter_structure_definitions(document):
                yield definition, str(source)
        else:
            paths.append(Path(source))

    for path in collect_definition_paths(paths):
        document = cache.get(path)
        for definition in iter_structure_definitions(document):
            yield definition, str(path)


def generate_schema(
    resource_types: Iterable[str],
    sources: Sequence[str | Path],
    cache: DocumentCache | None = None,
) -> Schema:
    """Build the schema for the given resource types.

    Profiles (``derivation: constraint``) of a type are its variants. The
    base definition is only used when no profile of that type was found.

    Args:
        resource_types: Resource type names, usually the mapping table keys.
        sources: Definition files, directories or http(s) URLs.
        cache: Optional document cache.

    Returns:
        The schema, with variants sorted by id.

    Raises:
        SchemaError: If a requested resource type has no definition.
        SchemaValidationError: If two variants of a type share an id.
    """
    wanted = list(dict.fromkeys(resource_types))
    cache = cache or DocumentCache()

    profiles: dict[str, dict[str, Variant]] = {name: {} for name in wanted}
    bases: dict[str, Variant] = {}

    for definition, source in _iter_sources(sources, cache):
        if definition.get("kind") != "resource":
            continue
        resource_type = definition.get("type")
        if resource_type not in profiles:
            continue

        variant = _variant_from_definition(definition, source)
        if definition.get("derivation") == "constraint":
            existing = profiles[resource_type]
            if variant.id in existing:
                raise SchemaValidationError(
                    f"duplicate variant id for {resource_type}",
                    source,
                    field=variant.id,
                )
            existing[variant.id] = variant
        else:
            bases.setdefault(resource_type, variant)

    missing = [name for name in wanted if not profiles[name] and name not in bases]
    if missing:
        raise SchemaError(f"No definitions found for: {', '.join(missing)}")

    schema = Schema()
    for name in wanted:
        found = profiles[name] or {bases[name].id: bases[name]}
        schema.variants[name] = sorted(found.values(), key=lambda v: v.id)
    return schema
