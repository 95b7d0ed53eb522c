from __future__ import annotations

import json
from pathlib import Path

import allure
import httpx
import pytest
from graphql import build_schema, introspection_from_schema, print_ast

from schema_inspector import loaders
from schema_inspector.loaders import (
    DocumentLoadError,
    SchemaLoadError,
    github_raw_url,
    load_documents,
    load_schema,
)

from conftest import OLD_SCHEMA_SDL, SCHEMA_SDL, USER_QUERY

pytestmark = [
    allure.epic("Command Pipeline"),
    allure.feature("Schema & Document Loaders"),
]


@pytest.mark.asyncio
async def test_load_schema_from_sdl_file(tmp_path: Path) -> None:
    (tmp_path / "schema.graphql").write_text(SCHEMA_SDL, "utf-8")

    schema = await load_schema("schema.graphql", root_dir=tmp_path)

    assert schema.get_type("User") is not None


@pytest.mark.asyncio
async def test_load_schema_merges_glob_matches(tmp_path: Path) -> None:
    parts = tmp_path / "schema"
    parts.mkdir()
    (parts / "a.graphql").write_text("type Query { user: User }", "utf-8")
    (parts / "b.graphql").write_text("type User { id: ID! }", "utf-8")
    (parts / "notes.txt").write_text("not a schema", "utf-8")

    schema = await load_schema("schema/*.graphql", root_dir=tmp_path)

    assert set(schema.query_type.fields) == {"user"}
    assert schema.get_type("User") is not None


@pytest.mark.asyncio
async def test_load_schema_from_introspection_json(tmp_path: Path) -> None:
    introspection = introspection_from_schema(build_schema(OLD_SCHEMA_SDL))
    (tmp_path / "schema.json").write_text(json.dumps({"data": introspection}), "utf-8")

    schema = await load_schema("schema.json", root_dir=tmp_path)

    assert "legacy" in schema.query_type.fields


@pytest.mark.asyncio
async def test_load_schema_wraps_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SchemaLoadError, match="Failed to load schema from missing.graphql"):
        await load_schema("missing.graphql", root_dir=tmp_path)


@pytest.mark.asyncio
async def test_load_schema_rejects_invalid_sdl(tmp_path: Path) -> None:
    (tmp_path / "schema.graphql").write_text("type Query { user: Missing }", "utf-8")

    with pytest.raises(SchemaLoadError, match="Invalid schema"):
        await load_schema("schema.graphql", root_dir=tmp_path)


@pytest.mark.asyncio
async def test_load_schema_introspects_remote_endpoint(monkeypatch) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={"data": introspection_from_schema(build_schema(SCHEMA_SDL))},
        )

    original = httpx.AsyncClient
    monkeypatch.setattr(
        loaders.httpx,
        "AsyncClient",
        lambda **kwargs: original(transport=httpx.MockTransport(handler), **kwargs),
    )

    schema = await load_schema(
        "https://api.example.com/graphql",
        root_dir=Path.cwd(),
        headers={"Authorization": "Bearer token"},
    )

    assert schema.get_type("Author") is not None
    assert seen[0].method == "POST"
    assert seen[0].headers["authorization"] == "Bearer token"
    assert "__schema" in json.loads(seen[0].content)["query"]


@pytest.mark.asyncio
async def test_load_schema_wraps_http_errors(monkeypatch) -> None:
    original = httpx.AsyncClient
    monkeypatch.setattr(
        loaders.httpx,
        "AsyncClient",
        lambda **kwargs: original(
            transport=httpx.MockTransport(lambda request: httpx.Response(502)),
            **kwargs,
        ),
    )

    with pytest.raises(SchemaLoadError, match="https://api.example.com/graphql"):
        await load_schema("https://api.example.com/graphql", root_dir=Path.cwd())


def test_github_raw_url() -> None:
    assert (
        github_raw_url("github:acme/api#main:schema/schema.graphql")
        == "https://raw.githubusercontent.com/acme/api/main/schema/schema.graphql"
    )
    with pytest.raises(ValueError, match="expected github:"):
        github_raw_url("github:acme#main")


@pytest.mark.asyncio
async def test_load_documents_keeps_relative_locations(tmp_path: Path) -> None:
    operations = tmp_path / "operations"
    operations.mkdir()
    (operations / "b.graphql").write_text(USER_QUERY, "utf-8")
    (operations / "a.graphql").write_text("query Posts { posts { id } }", "utf-8")
    (operations / "empty.graphql").write_text("\n", "utf-8")

    documents = await load_documents(
        ("operations/*.graphql", "operations/a.graphql"),
        root_dir=tmp_path,
    )

    assert [document.location for document in documents] == [
        "operations/a.graphql",
        "operations/b.graphql",
    ]
    assert "GetUser" in print_ast(documents[1].document)


@pytest.mark.asyncio
async def test_load_documents_reports_empty_match(tmp_path: Path) -> None:
    with pytest.raises(DocumentLoadError, match="No documents found for: src/\\*\\*/\\*.graphql"):
        await load_documents("src/**/*.graphql", root_dir=tmp_path)


@pytest.mark.asyncio
async def test_load_documents_reports_missing_file(tmp_path: Path) -> None:
    with pytest.raises(DocumentLoadError, match="Failed to load documents from query.graphql"):
        await load_documents("query.graphql", root_dir=tmp_path)


@pytest.mark.asyncio
async def test_load_documents_reports_syntax_errors(tmp_path: Path) -> None:
    (tmp_path / "broken.graphql").write_text("query {", "utf-8")

    with pytest.raises(DocumentLoadError, match="Unable to parse broken.graphql"):
        await load_documents("broken.graphql", root_dir=tmp_path)
