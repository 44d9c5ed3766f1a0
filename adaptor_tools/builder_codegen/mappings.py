"""
Mapping rules for each resource type.

Only resource types with a key in the mapping table get a builder. Every
field of a variant is mapped onto the resource automatically; rules only
configure how a field is mapped:

    Encounter:
      identifier:
        type: string          # force the accepted input type
      serviceProvider:
        defaults:             # applied when the input omits the key
          reference: Organization/Patient.managingOrganization
      period: false           # never mapped
      subject:
        rename: patient       # caller passes `patient`, resource gets `subject`

    Observation:
      value[x]: false         # applies to valueQuantity, valueString, ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

import yaml

from ..shared import MappingError

DEFAULT_MAPPINGS: Final[Path] = Path(__file__).parent / "mappings.yaml"

RULE_KEYS: Final[frozenset[str]] = frozenset({"type", "defaults", "rename"})


@dataclass(frozen=True, slots=True)
class FieldRule:
    """How a single field is exposed by a builder."""

    exclude: bool = False
    type: str | None = None
    defaults: Any = None
    has_defaults: bool = False
    rename: str | None = None


NO_RULE: Final[FieldRule] = FieldRule()


@dataclass(slots=True)
class ResourceMapping:
    """Field rules for one resource type."""

    resource_type: str
    rules: dict[str, FieldRule] = field(default_factory=dict)

    def rule_for(self, field_name: str, choice_name: str | None = None) -> FieldRule:
        """Rule for a field. A rule on the field itself wins over one on its choice element."""
        rule = self.rules.get(field_name)
        if rule is None and choice_name is not None:
            rule = self.rules.get(choice_name)
        return rule or NO_RULE


def _parse_rule(resource_type: str, name: str, raw: Any) -> FieldRule:
    if raw is False:
        return FieldRule(exclude=True)
    if raw is True or raw is None:
        return NO_RULE
    if not isinstance(raw, dict):
        raise MappingError(
            f"rule must be true, false or a mapping, got {type(raw).__name__}",
            resource_type,
            name,
        )

    unknown = sorted(set(raw) - RULE_KEYS)
    if unknown:
        raise MappingError(f"unknown rule key(s): {', '.join(unknown)}", resource_type, name)

    forced_type = raw.get("type")
    if forced_type is not None and not isinstance(forced_type, str):
        raise MappingError("'type' must be a string", resource_type, name)

    rename = raw.get("rename")
    if rename is not None and (not isinstance(rename, str) or not rename):
        raise MappingError("'rename' must be a non-empty string", resource_type, name)

    return FieldRule(
        type=forced_type,
        defaults=raw.get("defaults"),
        has_defaults="defaults" in raw,
        rename=rename,
    )


def parse_mappings(raw: Any) -> dict[str, ResourceMapping]:
    """Parse a raw mapping table into resource mappings.

    Args:
        raw: Mapping of resource type to per-field rules.

    Returns:
        Resource mappings keyed by resource type, in table order.

    Raises:
        MappingError: If the table or any rule is malformed.
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise MappingError("mapping table must be a mapping of resource types")

    result: dict[str, ResourceMapping] = {}
    for resource_type, fields in raw.items():
        resource_type = str(resource_type)
        if fields is None or fields is True:
            fields = {}
        if not isinstance(fields, dict):
            raise MappingError("field rules must be a mapping", resource_type)

        result[resource_type] = ResourceMapping(
            resource_type=resource_type,
            rules={
                str(name): _parse_rule(resource_type, str(name), rule)
                for name, rule in fields.items()
            },
        )
    return result


def load_mappings(path: Path | None = None) -> dict[str, ResourceMapping]:
    """Load the mapping table from YAML, defaulting to the packaged table."""
    path = path or DEFAULT_MAPPINGS
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise MappingError(f"Failed to read mapping table {path}: {e}") from e
    except yaml.YAMLError as e:
        raise MappingError(f"Invalid YAML in mapping table {path}: {e}") from e
    return parse_mappings(raw)
