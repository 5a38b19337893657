"""Schemas shared by every API document: the common error shape and base responses."""

from pydantic import BaseModel, Field, create_model

from api_doc_builder.errors import ErrorName, error_status


class ErrorDetail(BaseModel):
    """A single field-level problem attached to an error response."""

    field: str = Field(description="Dotted path of the offending field.")
    message: str = Field(description="What is wrong with the field.")


class ErrorBody(BaseModel):
    """Common shape of every error response."""

    status: int = Field(description="HTTP status code.")
    message: str = Field(description="Human readable error message.")
    name: str = Field(description="Error class name.")
    details: list[ErrorDetail] | None = Field(default=None, description="Field-level problems, if any.")


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by endpoints without a payload."""

    message: str


class PageMeta(BaseModel):
    """Pagination block attached to list responses."""

    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total: int = Field(ge=0)


BASE_SCHEMAS: list[tuple[str, type[BaseModel]]] = [
    ("ErrorBody", ErrorBody),
    ("MessageResponse", MessageResponse),
    ("PageMeta", PageMeta),
]


def error_schema(kind: ErrorName) -> type[ErrorBody]:
    """Build the documentation model for one error kind, with the kind as example name."""
    kind = ErrorName(kind)
    return create_model(
        kind.value,
        __base__=ErrorBody,
        __doc__=f"{kind.value} response",
        status=(int, Field(description="HTTP status code.", examples=[error_status(kind)])),
        name=(str, Field(description="Error class name.", examples=[kind.value])),
    )
