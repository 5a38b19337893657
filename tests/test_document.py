import json

import pytest
import yaml
from pydantic import BaseModel, create_model

from api_doc_builder.compiler.base import RequestSchemas, ResponseSpec, RouteDescriptor
from api_doc_builder.config import Settings
from api_doc_builder.document import DocumentBuilder, find_dangling_refs, render_document, resolve_format
from api_doc_builder.errors import ErrorName
from api_doc_builder.exceptions import DuplicateRouteError


class ItemParams(BaseModel):
    id: str


class Item(BaseModel):
    id: str
    name: str


class Order(BaseModel):
    items: list[Item]


class FirstBody(BaseModel):
    a: str


class SecondBody(BaseModel):
    zzz: int


class PageMeta(BaseModel):
    cursor: str


class CursorPage(BaseModel):
    meta: PageMeta
    items: list[Item]


def _builder(**kwargs) -> DocumentBuilder:
    settings = kwargs.pop("settings", None) or Settings(environment="test")
    return DocumentBuilder(settings=settings, **kwargs)


def _create(summary: str, body: type[BaseModel]) -> RouteDescriptor:
    return RouteDescriptor(
        name="create",
        path="/things",
        method="post",
        summary=summary,
        request=RequestSchemas(body=body),
        responses={201: ResponseSpec(description="Created", schema=body)},
    )


def _get_item(summary: str = "Get an item") -> RouteDescriptor:
    return RouteDescriptor(
        name="getItem",
        path="/items/:id",
        method="get",
        summary=summary,
        request=RequestSchemas(params=ItemParams),
        responses={200: ResponseSpec(description="The item", schema=Item)},
        authenticated_user="user",
    )


class TestBuild:
    def test_empty_document(self):
        doc = _builder(settings=Settings(environment="test", title="Shop", version="2.0.0")).build()
        assert doc["openapi"] == "3.1.0"
        assert doc["info"] == {"title": "Shop", "version": "2.0.0"}
        assert doc["paths"] == {}
        assert doc["components"]["securitySchemes"] == {
            "bearerAuth": {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"},
        }
        assert "servers" not in doc

    def test_registers_base_and_error_schemas(self):
        schemas = _builder().build()["components"]["schemas"]
        for name in ("ErrorBody", "ErrorDetail", "MessageResponse", "PageMeta"):
            assert name in schemas
        for kind in ErrorName:
            assert kind.value in schemas

    def test_error_schema_shape(self):
        schema = _builder().build()["components"]["schemas"]["NOT_FOUND"]
        assert schema["description"] == "NOT_FOUND response"
        assert schema["properties"]["name"]["examples"] == ["NOT_FOUND"]
        assert schema["properties"]["status"]["examples"] == [404]
        assert set(schema["required"]) == {"status", "message", "name"}

    def test_info_description_and_servers(self):
        settings = Settings(environment="test", description="Shop API", server_urls=["https://api.example.com"])
        doc = _builder(settings=settings).build()
        assert doc["info"]["description"] == "Shop API"
        assert doc["servers"] == [{"url": "https://api.example.com"}]

    def test_routes_grouped_by_path_then_method(self):
        builder = _builder()
        builder.add_route(_get_item())
        builder.add_route(
            RouteDescriptor(
                name="deleteItem",
                path="/items/:id",
                method="delete",
                summary="Delete an item",
                responses={204: ResponseSpec(description="Deleted")},
                authenticated_user="admin",
            )
        )
        doc = builder.build()
        assert list(doc["paths"]) == ["/items/{id}"]
        assert set(doc["paths"]["/items/{id}"]) == {"get", "delete"}
        op = doc["paths"]["/items/{id}"]["get"]
        assert op["parameters"] == [
            {"name": "id", "in": "path", "required": True, "schema": {"title": "Id", "type": "string"}},
        ]
        assert op["security"] == [{"bearerAuth": []}]

    def test_no_dangling_references(self):
        builder = _builder()
        builder.add_route(_get_item())
        builder.add_route(
            RouteDescriptor(
                name="createOrder",
                path="/orders",
                method="post",
                summary="Create an order",
                request=RequestSchemas(body=Order),
                responses={201: ResponseSpec(description="Created", schema=Order)},
                errors=[ErrorName.CONFLICT, ErrorName.DATABASE_ERROR],
                authenticated_user="user",
            )
        )
        doc = builder.build()
        assert find_dangling_refs(doc) == []
        assert "Item" in doc["components"]["schemas"]

    def test_rebuild_is_idempotent(self):
        builder = _builder()
        builder.add_route(_get_item())
        assert builder.build() == builder.build()

    def test_build_reflects_latest_routes(self):
        builder = _builder()
        first = builder.build()
        builder.add_route(_get_item())
        second = builder.build()
        assert first["paths"] == {}
        assert "/items/{id}" in second["paths"]

    def test_returned_document_is_detached(self):
        builder = _builder()
        builder.add_route(_get_item())
        doc = builder.build()
        doc["paths"]["/items/{id}"]["get"]["summary"] = "changed"
        doc["components"]["schemas"].clear()
        again = builder.build()
        assert again["paths"]["/items/{id}"]["get"]["summary"] == "Get an item"
        assert again["components"]["schemas"]

    def test_builders_are_independent(self):
        first = _builder()
        first.add_route(_get_item())
        second = _builder()
        assert second.build()["paths"] == {}
        assert "getItem.params" not in second.registry

    def test_custom_base_schemas(self):
        doc = _builder(base_schemas=[("Item", Item)]).build()
        assert "Item" in doc["components"]["schemas"]
        assert "PageMeta" not in doc["components"]["schemas"]


class TestDuplicateRoutes:
    def test_duplicate_overwrites_by_default(self):
        builder = _builder()
        builder.add_route(_get_item("first"))
        builder.add_route(_get_item("second"))
        assert builder.build()["paths"]["/items/{id}"]["get"]["summary"] == "second"

    def test_duplicate_rejected_in_strict_mode(self):
        builder = _builder(on_duplicate="error")
        builder.add_route(_get_item("first"))
        with pytest.raises(DuplicateRouteError) as exc:
            builder.add_route(_get_item("second"))
        assert exc.value.path == "/items/{id}"
        assert exc.value.method == "get"
        assert builder.paths["/items/{id}"]["get"]["summary"] == "first"

    def test_rejected_duplicate_leaves_schemas_untouched(self):
        builder = _builder(on_duplicate="error")
        builder.add_route(_create("first", FirstBody))
        with pytest.raises(DuplicateRouteError):
            builder.add_route(_create("second", SecondBody))

        schemas = builder.build()["components"]["schemas"]
        assert set(schemas["create.body"]["properties"]) == {"a"}
        assert set(schemas["create.response201"]["properties"]) == {"a"}


class TestPersistence:
    def test_development_writes_json(self, tmp_path):
        output = tmp_path / "docs" / "openapi.json"
        builder = _builder(settings=Settings(environment="development", output_path=output))
        builder.add_route(_get_item())
        doc = builder.build()
        assert output.exists()
        assert json.loads(output.read_text(encoding="utf-8")) == doc

    def test_development_writes_yaml(self, tmp_path):
        output = tmp_path / "openapi.yaml"
        doc = _builder(settings=Settings(environment="development", output_path=output)).build()
        assert yaml.safe_load(output.read_text(encoding="utf-8")) == doc

    def test_other_environments_do_not_write(self, tmp_path):
        output = tmp_path / "openapi.json"
        _builder(settings=Settings(environment="production", output_path=output)).build()
        assert not output.exists()

    def test_write_failure_propagates(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        builder = _builder(settings=Settings(environment="development", output_path=blocker / "openapi.json"))
        with pytest.raises(OSError):
            builder.build()


class TestHelpers:
    def test_find_dangling_refs(self):
        doc = {
            "paths": {
                "/x": {
                    "get": {
                        "responses": {
                            "200": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Missing"}}}},
                            "201": {"content": {"application/json": {"schema": {"$ref": "#/components/schemas/Known"}}}},
                        }
                    }
                }
            },
            "components": {"schemas": {"Known": {"type": "object"}}},
        }
        assert find_dangling_refs(doc) == ["#/components/schemas/Missing"]

    def test_resolve_format(self, tmp_path):
        assert resolve_format(tmp_path / "a.yaml") == "yaml"
        assert resolve_format(tmp_path / "a.YML") == "yaml"
        assert resolve_format(tmp_path / "a.json") == "json"
        assert resolve_format(tmp_path / "a.json", "yaml") == "yaml"
        assert resolve_format(tmp_path / "a.yaml", "auto") == "yaml"

    def test_render_json_is_pretty(self):
        text = render_document({"openapi": "3.1.0"}, "json")
        assert text == '{\n  "openapi": "3.1.0"\n}\n'


class TestNestedNameConflicts:
    def test_same_class_name_on_two_routes(self):
        sku_item = create_model("Item", sku=(str, ...))
        price_item = create_model("Item", price=(float, ...))
        builder = _builder()
        for name, item in (("a", sku_item), ("b", price_item)):
            listing = create_model("Listing", items=(list[item], ...))
            builder.add_route(
                RouteDescriptor(
                    name=name,
                    path=f"/{name}",
                    method="get",
                    summary=f"List {name}",
                    responses={200: ResponseSpec(description="Items", schema=listing)},
                )
            )
        schemas = builder.build()["components"]["schemas"]

        a_ref = schemas["a.response200"]["properties"]["items"]["items"]["$ref"]
        b_ref = schemas["b.response200"]["properties"]["items"]["items"]["$ref"]
        assert a_ref != b_ref
        assert set(schemas[a_ref.rsplit("/", 1)[1]]["properties"]) == {"sku"}
        assert set(schemas[b_ref.rsplit("/", 1)[1]]["properties"]) == {"price"}

    def test_nested_model_named_like_base_schema(self):
        builder = _builder()
        builder.add_route(
            RouteDescriptor(
                name="listItems",
                path="/items",
                method="get",
                summary="List items",
                responses={200: ResponseSpec(description="Items", schema=CursorPage)},
            )
        )
        doc = builder.build()
        schemas = doc["components"]["schemas"]

        assert set(schemas["PageMeta"]["properties"]) == {"page", "page_size", "total"}
        meta_ref = schemas["listItems.response200"]["properties"]["meta"]["$ref"]
        assert meta_ref == "#/components/schemas/listItems.response200.PageMeta"
        assert set(schemas["listItems.response200.PageMeta"]["properties"]) == {"cursor"}
        assert find_dangling_refs(doc) == []


class TestLogging:
    def test_builder_configures_logging_from_settings(self, monkeypatch):
        calls = []
        monkeypatch.setattr("api_doc_builder.document.configure_logging", lambda debug: calls.append(debug))
        _builder(settings=Settings(environment="test", debug=True))
        assert calls == [True]
