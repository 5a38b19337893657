"""Structural schema descriptions produced by pydantic.

The builder never validates data itself. It only asks pydantic to describe a
type as a JSON schema and to tell whether a type is an object with named
fields, which is what drives parameter extraction.
"""

import copy
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, TypeAdapter
from pydantic.errors import PydanticUserError
from pydantic.fields import FieldInfo

REF_PREFIX = "#/components/schemas/"
REF_TEMPLATE = REF_PREFIX + "{model}"

JsonSchemaMode = Literal["validation", "serialization"]


class Omission(str, Enum):
    """Why a schema produced no documentation."""

    MISSING = "missing"
    CONVERSION_FAILED = "conversion_failed"
    NOT_STRUCTURED = "not_structured"
    NOT_OBJECT = "not_object"


class Description(BaseModel):
    """Result of describing a type: a structure plus the definitions it references."""

    structure: dict[str, Any] | None = None
    definitions: dict[str, dict[str, Any]] = {}
    reason: Omission | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.structure is not None


def schema_ref(name: str) -> dict[str, str]:
    """Build a ``$ref`` object pointing at a named component schema."""
    return {"$ref": REF_PREFIX + name}


def is_object_shaped(structure: dict[str, Any]) -> bool:
    return structure.get("type") == "object" or "properties" in structure


def is_structured(structure: dict[str, Any]) -> bool:
    return is_object_shaped(structure) or structure.get("type") == "array"


def describe(schema: Any, mode: JsonSchemaMode = "validation") -> Description:
    """Describe a type as a JSON schema using component references for nested models."""
    if schema is None:
        return Description(reason=Omission.MISSING)

    try:
        raw = TypeAdapter(schema).json_schema(ref_template=REF_TEMPLATE, mode=mode)
    except (PydanticUserError, TypeError) as e:
        return Description(reason=Omission.CONVERSION_FAILED, detail=str(e))

    definitions = raw.pop("$defs", {})
    structure = _resolve_root(raw, definitions)
    if not is_structured(structure):
        return Description(
            reason=Omission.NOT_STRUCTURED,
            detail=f"schema type {structure.get('type', 'unknown')!r} is neither object nor array",
        )
    return Description(structure=structure, definitions=definitions)


def _resolve_root(raw: dict[str, Any], definitions: dict[str, dict[str, Any]]) -> dict[str, Any]:
    # Self-referencing models come back as a bare $ref into their own $defs.
    ref = raw.get("$ref", "")
    if ref.startswith(REF_PREFIX) and ref[len(REF_PREFIX):] in definitions:
        return copy.deepcopy(definitions[ref[len(REF_PREFIX):]])
    return raw


def is_object_schema(schema: Any) -> bool:
    """Return True when the type is an object with named fields (a pydantic model)."""
    return isinstance(schema, type) and issubclass(schema, BaseModel)


def object_fields(schema: type[BaseModel]) -> list[tuple[str, FieldInfo]]:
    """List the fields of a model as (documented name, field info), in declaration order."""
    return [(field.alias or name, field) for name, field in schema.model_fields.items()]
