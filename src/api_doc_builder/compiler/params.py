"""Parameter extraction from object schemas.

Path, query and cookie schemas are assumed to be flat models: each field
becomes one parameter. Anything that is not a model yields no parameters.
"""

from typing import Any, Iterable

from pydantic import BaseModel

from api_doc_builder.compiler.base import Parameter, ParamLocation
from api_doc_builder.schema.describe import Omission, is_object_schema, object_fields
from api_doc_builder.schema.registry import Registration, SchemaRegistry


class ParameterExtraction(BaseModel):
    """Parameters extracted from one schema and the registration that backed them."""

    parameters: list[Parameter] = []
    registration: Registration


def extract_parameters(
    registry: SchemaRegistry,
    name: str,
    schema: Any,
    location: ParamLocation,
    optional: Iterable[str] = (),
) -> ParameterExtraction:
    """Register ``schema`` under ``name`` and emit one parameter per field."""
    if not name or schema is None:
        return ParameterExtraction(registration=Registration(name=name, ok=False, reason=Omission.MISSING))

    registration = registry.register(name, schema)
    if not registration or not is_object_schema(schema):
        return ParameterExtraction(registration=registration)

    optional = set(optional)
    properties = registry.get(name).structure.get("properties", {})
    parameters = [
        Parameter(
            name=field_name,
            location=location,
            required=field_name not in optional,
            description=field.description,
            schema=properties.get(field_name, {}),
        )
        for field_name, field in object_fields(schema)
    ]
    return ParameterExtraction(parameters=parameters, registration=registration)
