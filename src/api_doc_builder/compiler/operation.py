"""Compile a route descriptor into an OpenAPI operation.

Compilation is best effort: a schema that cannot be described is left out of
the operation and recorded as an omission, it never aborts the route.
"""

from typing import Any

import structlog

from api_doc_builder.compiler.base import (
    AuthenticatedUser,
    CompiledRoute,
    OperationRecord,
    RouteDescriptor,
)
from api_doc_builder.compiler.params import extract_parameters
from api_doc_builder.errors import ErrorName, error_status
from api_doc_builder.paths import path_parameters, translate_path
from api_doc_builder.schema.describe import schema_ref
from api_doc_builder.schema.registry import SCHEMA_NAME_SEPARATOR, Registration, SchemaRegistry

logger = structlog.get_logger(__name__)


def compile_operation(registry: SchemaRegistry, route: RouteDescriptor) -> CompiledRoute:
    """Build the operation for ``route``, registering its schemas in ``registry``."""
    path = translate_path(route.path)
    errors: list[ErrorName] = list(route.errors)
    omissions: list[Registration] = []
    op = OperationRecord(
        summary=route.summary,
        description=route.description,
        operation_id=route.operation_id,
        tags=route.tags,
        deprecated=route.deprecated or None,
    )

    if route.authenticated_user is not AuthenticatedUser.NONE:
        _add_error(errors, ErrorName.UNAUTHORIZED)
        op.security = [{"bearerAuth": []}]

    request = route.request
    if request is not None:
        for key, location in (("params", "path"), ("query", "query"), ("cookies", "cookie")):
            schema = getattr(request, key)
            if schema is None:
                continue
            extraction = extract_parameters(
                registry,
                _schema_name(route.name, key),
                schema,
                location,
                request.optional_params,
            )
            if not extraction.registration:
                omissions.append(extraction.registration)
            if extraction.parameters:
                _add_error(errors, ErrorName.VALIDATION_ERROR)
                op.parameters.extend(extraction.parameters)

        if request.body is not None:
            body_name = _schema_name(route.name, "body")
            registration = registry.register(body_name, request.body, request.file_fields)
            if registration:
                _add_error(errors, ErrorName.VALIDATION_ERROR)
                op.request_body = {
                    "required": True,
                    "content": {request.content_type: {"schema": schema_ref(body_name)}},
                }
            else:
                omissions.append(registration)

    for status, response in route.responses.items():
        if response.schema_ is None:
            op.responses[str(status)] = {"description": response.description}
            continue
        response_name = _schema_name(route.name, f"response{status}")
        registration = registry.register(response_name, response.schema_, mode="serialization")
        if not registration:
            omissions.append(registration)
            continue
        entry: dict[str, Any] = {"description": response.description}
        if response.cookies:
            entry["headers"] = {
                "Set-Cookie": {"description": response.cookies, "schema": {"type": "string"}},
            }
        entry["content"] = {response.content_type: {"schema": schema_ref(response_name)}}
        op.responses[str(status)] = entry

    for kind in errors:
        op.responses[str(error_status(kind))] = {
            "description": kind.value,
            "content": {"application/json": {"schema": schema_ref(kind.value)}},
        }

    documented = {p.name for p in op.parameters if p.location == "path"}
    missing = [name for name in path_parameters(path) if name not in documented]
    if missing:
        logger.debug("path_parameters_undocumented", route=route.name, path=path, parameters=missing)
    for omission in omissions:
        logger.info(
            "schema_omitted_from_operation",
            route=route.name,
            schema=omission.name,
            reason=omission.reason.value,
        )

    return CompiledRoute(
        path=path,
        method=route.method,
        operation=op,
        error_kinds=errors,
        omissions=omissions,
    )


def _schema_name(route_name: str, part: str) -> str:
    return f"{route_name}{SCHEMA_NAME_SEPARATOR}{part}"


def _add_error(errors: list[ErrorName], kind: ErrorName) -> None:
    if kind not in errors:
        errors.append(kind)
