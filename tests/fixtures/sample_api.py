"""A small documented API used by the CLI tests."""

from pydantic import BaseModel, Field

from api_doc_builder.compiler.base import RequestSchemas, ResponseSpec, RouteDescriptor
from api_doc_builder.config import Settings
from api_doc_builder.document import DocumentBuilder
from api_doc_builder.errors import ErrorName


class ItemParams(BaseModel):
    id: str


class Item(BaseModel):
    id: str
    name: str
    price: float = Field(ge=0)


class ItemList(BaseModel):
    items: list[Item]


class ListQuery(BaseModel):
    page: int = 1
    search: str | None = None


def create_builder() -> DocumentBuilder:
    builder = DocumentBuilder(settings=Settings(environment="test", title="Sample API"))
    builder.add_route(
        RouteDescriptor(
            name="listItems",
            path="/items",
            method="GET",
            summary="List items",
            request=RequestSchemas(query=ListQuery, optional_params=["page", "search"]),
            responses={200: ResponseSpec(description="Items", schema=ItemList)},
            authenticated_user="none",
            tags=["items"],
        )
    )
    builder.add_route(
        RouteDescriptor(
            name="getItem",
            path="/items/:id",
            method="GET",
            summary="Get an item",
            request=RequestSchemas(params=ItemParams),
            responses={200: ResponseSpec(description="The item", schema=Item)},
            errors=[ErrorName.NOT_FOUND],
            authenticated_user="user",
            tags=["items"],
        )
    )
    return builder


builder = create_builder()
not_a_builder = 42
