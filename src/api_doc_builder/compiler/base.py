"""Data models for route descriptors and the operations compiled from them.

Route descriptors are what application code declares once per route.
Operation records are what ends up under ``paths`` in the document, so they
serialize with OpenAPI field names.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from api_doc_builder.errors import ErrorName
from api_doc_builder.schema.registry import FileField, Registration

ContentType = Literal["application/json", "multipart/form-data"]
ParamLocation = Literal["path", "query", "cookie"]


class HttpMethod(str, Enum):
    GET = "get"
    POST = "post"
    PUT = "put"
    PATCH = "patch"
    DELETE = "delete"


class AuthenticatedUser(str, Enum):
    NONE = "none"
    USER = "user"
    ADMIN = "admin"


class RequestSchemas(BaseModel):
    """Schemas describing what a route accepts, keyed by location."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    params: Any = None
    query: Any = None
    body: Any = None
    cookies: Any = None
    content_type: ContentType = "application/json"
    optional_params: list[str] = []  # parameter names documented as not required
    file_fields: list[FileField] = []


class ResponseSpec(BaseModel):
    """One documented response of a route."""

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    description: str
    schema_: Any = Field(default=None, alias="schema")
    cookies: str | None = None  # Set-Cookie header description
    content_type: ContentType = "application/json"


class RouteDescriptor(BaseModel):
    """Everything needed to document a single route."""

    name: str  # namespace for the route's schema names
    path: str  # /items/:id
    method: HttpMethod
    summary: str
    description: str | None = None
    request: RequestSchemas | None = None
    responses: dict[int, ResponseSpec]
    errors: list[ErrorName] = []
    authenticated_user: AuthenticatedUser = AuthenticatedUser.NONE
    tags: list[str] | None = None
    deprecated: bool = False
    operation_id: str | None = None

    @field_validator("method", mode="before")
    @classmethod
    def _lowercase_method(cls, v: Any) -> Any:
        return v.lower() if isinstance(v, str) else v


class Parameter(BaseModel):
    """A single path, query or cookie parameter of an operation."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: ParamLocation = Field(alias="in")
    required: bool
    description: str | None = None
    schema_: dict[str, Any] = Field(alias="schema")


class OperationRecord(BaseModel):
    """Compiled documentation of one operation, as it appears under ``paths``."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str
    description: str | None = None
    operation_id: str | None = Field(default=None, alias="operationId")
    tags: list[str] | None = None
    parameters: list[Parameter] = []
    request_body: dict[str, Any] | None = Field(default=None, alias="requestBody")
    responses: dict[str, dict[str, Any]] = {}
    security: list[dict[str, list[str]]] | None = None
    deprecated: bool | None = None

    def to_openapi(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CompiledRoute(BaseModel):
    """An operation together with where it lives and what was left out of it."""

    path: str
    method: HttpMethod
    operation: OperationRecord
    error_kinds: list[ErrorName]
    omissions: list[Registration] = []
