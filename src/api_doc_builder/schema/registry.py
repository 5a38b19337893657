"""Named schema store backing the ``components.schemas`` section of a document.

Registering a name twice replaces the earlier entry. Injecting file fields is
the one operation that mutates an existing entry in place, which is how
multipart upload fields get attached to an otherwise ordinary body model.
"""

import copy
from enum import Enum
from typing import Any, Iterable

import structlog
from pydantic import BaseModel

from api_doc_builder.exceptions import SchemaInjectionError
from api_doc_builder.schema.describe import REF_PREFIX, JsonSchemaMode, Omission, describe, is_object_shaped

logger = structlog.get_logger(__name__)

SCHEMA_NAME_SEPARATOR = "."


class FileKind(str, Enum):
    """Kinds of file field that can be injected into an object schema."""

    BINARY = "binary"
    ARRAY = "array"


class FileField(BaseModel):
    """A multipart file field added to a body schema."""

    name: str
    required: bool = False
    description: str | None = None
    kind: FileKind = FileKind.BINARY

    def to_property(self) -> dict[str, Any]:
        binary = {"type": "string", "format": "binary"}
        prop: dict[str, Any] = binary if self.kind is FileKind.BINARY else {"type": "array", "items": binary}
        if self.description:
            prop["description"] = self.description
        return prop


class SchemaEntry(BaseModel):
    """One named schema: its JSON structure and the file fields injected into it."""

    name: str
    structure: dict[str, Any]
    extra_fields: list[FileField] = []

    def extend(self, fields: Iterable[FileField]) -> None:
        """Add file fields to this object schema, merging into its properties."""
        fields = list(fields)
        if not fields:
            return
        if not is_object_shaped(self.structure):
            raise SchemaInjectionError(f"schema {self.name!r} is not an object, cannot add file fields")

        properties = self.structure.setdefault("properties", {})
        for field in fields:
            properties[field.name] = field.to_property()
            required = self.structure.get("required", [])
            if field.required and field.name not in required:
                self.structure["required"] = [*required, field.name]
            elif not field.required and field.name in required:
                self.structure["required"] = [r for r in required if r != field.name]
            self.extra_fields.append(field)


class Registration(BaseModel):
    """Outcome of a registration: ok, or the reason the schema was omitted."""

    name: str
    ok: bool
    reason: Omission | None = None
    detail: str = ""
    namespaced: dict[str, str] = {}  # nested definition name -> name it was stored under

    def __bool__(self) -> bool:
        return self.ok


class SchemaRegistry:
    """Mapping from schema name to entry, owned by a single document build."""

    def __init__(self):
        self._entries: dict[str, SchemaEntry] = {}

    def register(
        self,
        name: str,
        schema: Any,
        extra_fields: Iterable[FileField] = (),
        mode: JsonSchemaMode = "validation",
    ) -> Registration:
        """Describe ``schema`` and store it under ``name``, replacing any earlier entry.

        Nested models are stored under their own names so that every
        reference in the stored structure resolves. Nothing is stored when the
        schema cannot be described.
        """
        description = describe(schema, mode=mode)
        if not description.ok:
            logger.debug("schema_omitted", name=name, reason=description.reason.value, detail=description.detail)
            return Registration(name=name, ok=False, reason=description.reason, detail=description.detail)

        entry = SchemaEntry(name=name, structure=description.structure)
        extra_fields = list(extra_fields)
        if extra_fields and not is_object_shaped(entry.structure):
            logger.debug("schema_omitted", name=name, reason=Omission.NOT_OBJECT.value)
            return Registration(
                name=name,
                ok=False,
                reason=Omission.NOT_OBJECT,
                detail="file fields require an object schema",
            )
        entry.extend(extra_fields)

        definitions = {def_name: s for def_name, s in description.definitions.items() if def_name != name}
        renames = self._conflicting_definitions(name, definitions)
        if renames:
            logger.warning("schema_definitions_namespaced", name=name, renamed=renames)
            entry.structure = _rewrite_refs(entry.structure, renames)
        for def_name, structure in definitions.items():
            stored_name = renames.get(def_name, def_name)
            self._entries[stored_name] = SchemaEntry(name=stored_name, structure=_rewrite_refs(structure, renames))
        if name in self._entries:
            logger.debug("schema_replaced", name=name)
        self._entries[name] = entry
        return Registration(name=name, ok=True, namespaced=renames)

    def _conflicting_definitions(self, name: str, definitions: dict[str, dict[str, Any]]) -> dict[str, str]:
        """Map each nested definition whose name is taken by a different shape to ``<name>.<definition>``.

        Renaming one definition changes the references of the definitions
        that point at it, so the check repeats until nothing new conflicts.
        """
        renames: dict[str, str] = {}
        changed = True
        while changed:
            changed = False
            for def_name, structure in definitions.items():
                existing = self._entries.get(def_name)
                if def_name in renames or existing is None:
                    continue
                if existing.structure != _rewrite_refs(structure, renames):
                    renames[def_name] = f"{name}{SCHEMA_NAME_SEPARATOR}{def_name}"
                    changed = True
        return renames

    def inject_fields(self, name: str, fields: Iterable[FileField]) -> SchemaEntry:
        """Merge file fields into an existing entry."""
        entry = self._entries[name]
        entry.extend(fields)
        return entry

    def get(self, name: str) -> SchemaEntry | None:
        return self._entries.get(name)

    def names(self) -> list[str]:
        return list(self._entries)

    def components(self) -> dict[str, dict[str, Any]]:
        """Return a copy of every stored structure keyed by name."""
        return {name: copy.deepcopy(entry.structure) for name, entry in self._entries.items()}

    def __contains__(self, name: str) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def _rewrite_refs(node: Any, renames: dict[str, str]) -> Any:
    """Return a copy of ``node`` with component references renamed."""
    if not renames:
        return node
    if isinstance(node, dict):
        rewritten = {key: _rewrite_refs(value, renames) for key, value in node.items()}
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith(REF_PREFIX) and ref[len(REF_PREFIX):] in renames:
            rewritten["$ref"] = REF_PREFIX + renames[ref[len(REF_PREFIX):]]
        return rewritten
    if isinstance(node, list):
        return [_rewrite_refs(item, renames) for item in node]
    return node
