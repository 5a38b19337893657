"""Assemble compiled operations into one OpenAPI document.

A :class:`DocumentBuilder` owns the schema registry and the path table for a
single build pass: routes are added one at a time, then :meth:`build`
registers the shared schemas and returns the document.
"""

import copy
import json
from pathlib import Path
from typing import Any, Iterable, Literal

import structlog
import yaml
from pydantic import BaseModel

from api_doc_builder.compiler.base import CompiledRoute, RouteDescriptor
from api_doc_builder.compiler.operation import compile_operation
from api_doc_builder.config import Settings, get_settings
from api_doc_builder.errors import ErrorName, error_status
from api_doc_builder.exceptions import DuplicateRouteError
from api_doc_builder.logging import configure_logging
from api_doc_builder.paths import translate_path
from api_doc_builder.schema.base import BASE_SCHEMAS, error_schema
from api_doc_builder.schema.describe import REF_PREFIX
from api_doc_builder.schema.registry import SchemaRegistry

logger = structlog.get_logger(__name__)

SECURITY_SCHEMES = {
    "bearerAuth": {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    },
}


class DocumentBuilder:
    """Collects route documentation and builds the OpenAPI document."""

    def __init__(
        self,
        settings: Settings | None = None,
        base_schemas: Iterable[tuple[str, type[BaseModel]]] = BASE_SCHEMAS,
        on_duplicate: Literal["warn", "error"] = "warn",
    ):
        self.settings = settings or get_settings()
        self.base_schemas = list(base_schemas)
        self.on_duplicate = on_duplicate
        self.registry = SchemaRegistry()
        self.paths: dict[str, dict[str, dict[str, Any]]] = {}
        configure_logging(debug=self.settings.debug)
        # Shared names are taken before any route so nested models cannot claim them.
        self._register_shared_schemas()

    def add_route(self, route: RouteDescriptor) -> CompiledRoute:
        """Compile a route and store its operation under its path and method.

        Registering the same path and method again replaces the earlier
        operation with a warning, or raises :class:`DuplicateRouteError` when
        the builder was created with ``on_duplicate="error"``.
        """
        path, method = translate_path(route.path), route.method.value
        if self.on_duplicate == "error" and method in self.paths.get(path, {}):
            raise DuplicateRouteError(path, method)

        compiled = compile_operation(self.registry, route)
        operations = self.paths.setdefault(compiled.path, {})
        if method in operations:
            logger.warning("route_replaced", path=compiled.path, method=method, route=route.name)
        operations[method] = compiled.operation.to_openapi()
        logger.debug("route_added", path=compiled.path, method=method, route=route.name)
        return compiled

    def add_routes(self, routes: Iterable[RouteDescriptor]) -> list[CompiledRoute]:
        return [self.add_route(route) for route in routes]

    def _register_shared_schemas(self) -> None:
        for name, schema in self.base_schemas:
            self.registry.register(name, schema)
        for kind in ErrorName:
            self.registry.register(kind.value, error_schema(kind))
            logger.debug("error_schema_registered", kind=kind.value, status=error_status(kind))

    def build(self) -> dict[str, Any]:
        """Register shared and error schemas and return the complete document.

        Calling this again without adding routes returns an equal document.
        In development the document is also written to ``settings.resolved_output_path``.
        """
        self._register_shared_schemas()

        info: dict[str, Any] = {"title": self.settings.title, "version": self.settings.version}
        if self.settings.description:
            info["description"] = self.settings.description

        document: dict[str, Any] = {"openapi": self.settings.openapi_version, "info": info}
        if self.settings.server_urls:
            document["servers"] = [{"url": url} for url in self.settings.server_urls]
        document["paths"] = copy.deepcopy(self.paths)
        document["components"] = {
            "schemas": self.registry.components(),
            "securitySchemes": copy.deepcopy(SECURITY_SCHEMES),
        }

        for ref in find_dangling_refs(document):
            logger.error("dangling_schema_reference", ref=ref)

        logger.info(
            "document_built",
            paths=len(self.paths),
            operations=sum(len(ops) for ops in self.paths.values()),
            schemas=len(self.registry),
        )
        if self.settings.persist_on_build:
            write_document(document, self.settings.resolved_output_path, self.settings.output_format)
        return document


def find_dangling_refs(document: dict[str, Any]) -> list[str]:
    """Return every component schema reference that has no matching component."""
    schemas = document.get("components", {}).get("schemas", {})
    return sorted(
        ref for ref in _collect_refs(document) if ref.startswith(REF_PREFIX) and ref[len(REF_PREFIX):] not in schemas
    )


def _collect_refs(node: Any) -> set[str]:
    refs: set[str] = set()
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str):
            refs.add(ref)
        for value in node.values():
            refs |= _collect_refs(value)
    elif isinstance(node, list):
        for item in node:
            refs |= _collect_refs(item)
    return refs


def resolve_format(path: Path, fmt: str | None = None) -> str:
    """Pick ``json`` or ``yaml``, from *fmt* unless it is ``auto``, else from the suffix."""
    if fmt and fmt != "auto":
        return fmt
    return "yaml" if path.suffix.lower() in (".yaml", ".yml") else "json"


class _NoAliasDumper(yaml.SafeDumper):
    def ignore_aliases(self, data: Any) -> bool:
        return True


def render_document(document: dict[str, Any], fmt: str) -> str:
    if fmt == "yaml":
        return yaml.dump(document, Dumper=_NoAliasDumper, sort_keys=False, allow_unicode=True)
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def write_document(document: dict[str, Any], path: Path, fmt: str | None = None) -> Path:
    """Write the document as pretty JSON or YAML. I/O errors propagate."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_document(document, resolve_format(path, fmt)), encoding="utf-8")
    logger.info("document_written", path=str(path.resolve()))
    return path
