"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest
import yaml
from graphql import GraphQLSchema, Source, build_schema, parse

from schema_inspector.commands import Pointer
from schema_inspector.inspect import ValidateOptions
from schema_inspector.loaders import DocumentSource
from schema_inspector.project import GraphQLConfig, ProjectConfig, parse_config
from schema_inspector.render import Renderer

SCHEMA_SDL = """
type Query {
  user(id: ID!): User
  posts: [Post!]!
}

type User {
  id: ID!
  name: String!
  email: String @deprecated(reason: "Use contact")
  contact: String
}

type Post {
  id: ID!
  title: String!
  author: User!
}

type Author {
  id: ID!
  name: String!
  email: String
}
"""

OLD_SCHEMA_SDL = """
type Query {
  user(id: ID!): User
  posts: [Post!]!
  legacy: String
}

type User {
  id: ID!
  name: String!
}

type Post {
  id: ID!
  title: String!
  author: User!
}
"""

USER_QUERY = """
query GetUser($id: ID!) {
  user(id: $id) {
    id
    name
  }
}
"""


@pytest.fixture()
def schema() -> GraphQLSchema:
    return build_schema(SCHEMA_SDL)


@pytest.fixture()
def write_config(tmp_path: Path) -> Callable[[Mapping[str, Any]], Path]:
    """Write a `.graphqlrc.yml` into tmp_path next to the fixture schema files."""

    (tmp_path / "schema.graphql").write_text(SCHEMA_SDL, "utf-8")
    (tmp_path / "old.graphql").write_text(OLD_SCHEMA_SDL, "utf-8")
    operations = tmp_path / "operations"
    operations.mkdir()
    (operations / "user.graphql").write_text(USER_QUERY, "utf-8")

    def _write(body: Mapping[str, Any]) -> Path:
        path = tmp_path / ".graphqlrc.yml"
        path.write_text(yaml.safe_dump(dict(body), sort_keys=False), "utf-8")
        return path

    return _write


class FakeToolkit:
    """Toolkit double that records calls and finishes operations out of order.

    `delays` and `failures` are keyed by operation name (diff, coverage,
    validate, similar); a failure is raised after the delay.
    """

    def __init__(
        self,
        *,
        config: GraphQLConfig,
        delays: Mapping[str, float] | None = None,
        failures: Mapping[str, Exception] | None = None,
        documents: Sequence[DocumentSource] | None = None,
    ) -> None:
        self.config = config
        self.delays = dict(delays or {})
        self.failures = dict(failures or {})
        self.documents = list(documents) if documents is not None else [
            DocumentSource(location="operations/user.graphql", document=parse(USER_QUERY)),
        ]
        self.calls: list[tuple[str, Any]] = []
        self.completed: list[str] = []

    async def load_config(self, filepath: Path | None) -> GraphQLConfig:
        self.calls.append(("load_config", filepath))
        return self.config

    async def load_schema(
        self,
        project: ProjectConfig,
        pointer: Pointer | None = None,
    ) -> GraphQLSchema:
        self.calls.append(("load_schema", pointer))
        return build_schema(OLD_SCHEMA_SDL if pointer is not None else SCHEMA_SDL)

    async def load_documents(
        self,
        project: ProjectConfig,
        pointer: Pointer | None = None,
    ) -> list[DocumentSource]:
        self.calls.append(("load_documents", pointer))
        return list(self.documents)

    async def diff(self, *, old_schema, new_schema, rules, renderer: Renderer) -> None:
        await self._operation("diff", renderer, rules=tuple(rules))

    async def coverage(self, *, schema, documents, renderer: Renderer, write_path, silent) -> None:
        await self._operation(
            "coverage",
            renderer,
            documents=[document.name for document in documents],
            write_path=write_path,
            silent=silent,
        )

    async def validate(
        self,
        *,
        schema,
        documents: Sequence[Source],
        renderer: Renderer,
        options: ValidateOptions,
    ) -> None:
        await self._operation(
            "validate",
            renderer,
            documents=[document.name for document in documents],
            options=options,
        )

    async def similar(self, *, schema, renderer: Renderer, name, threshold, write) -> None:
        await self._operation("similar", renderer, name=name, threshold=threshold, write=write)

    async def _operation(self, operation: str, renderer: Renderer, **details: Any) -> None:
        self.calls.append((operation, details))
        renderer.emit(f"{operation} started")
        await asyncio.sleep(self.delays.get(operation, 0))
        self.completed.append(operation)
        if operation in self.failures:
            raise self.failures[operation]
        renderer.success(f"{operation} finished")

    def called(self, name: str) -> list[Any]:
        return [details for call, details in self.calls if call == name]


@pytest.fixture()
def make_config(tmp_path: Path) -> Callable[[Mapping[str, Any]], GraphQLConfig]:
    """Parse a config mapping without touching the schema loaders."""

    def _make(body: Mapping[str, Any]) -> GraphQLConfig:
        text = yaml.safe_dump(dict(body), sort_keys=False)
        return parse_config(tmp_path / ".graphqlrc.yml", text)

    return _make


@pytest.fixture()
def fake_toolkit(
    make_config: Callable[[Mapping[str, Any]], GraphQLConfig],
) -> Callable[..., FakeToolkit]:
    def _make(body: Mapping[str, Any], **kwargs: Any) -> FakeToolkit:
        return FakeToolkit(config=make_config(body), **kwargs)

    return _make
