"""Operations the pipeline delegates to: loading and inspecting schemas."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from graphql import GraphQLSchema, Source

from schema_inspector.commands import Pointer
from schema_inspector.config import InspectorSettings
from schema_inspector.inspect import (
    ValidateOptions,
    run_coverage,
    run_diff,
    run_similar,
    run_validate,
)
from schema_inspector.loaders import (
    DEFAULT_TIMEOUT_SECONDS,
    DocumentLoadError,
    DocumentSource,
    load_documents,
    load_schema,
)
from schema_inspector.project import GraphQLConfig, ProjectConfig, find_and_load_config
from schema_inspector.render import Renderer


class InspectorToolkit(Protocol):
    """Collaborators used by the pipeline; every call may suspend."""

    async def load_config(self, filepath: Path | None) -> GraphQLConfig:
        """Find and parse the GraphQL config."""

    async def load_schema(
        self,
        project: ProjectConfig,
        pointer: Pointer | None = None,
    ) -> GraphQLSchema:
        """Load the project schema, or another schema relative to the project."""

    async def load_documents(
        self,
        project: ProjectConfig,
        pointer: Pointer | None = None,
    ) -> list[DocumentSource]:
        """Load the project documents, or documents named by `pointer`."""

    async def diff(
        self,
        *,
        old_schema: GraphQLSchema,
        new_schema: GraphQLSchema,
        rules: Sequence[str],
        renderer: Renderer,
    ) -> None:
        """Report changes; raise when the changes are not acceptable."""

    async def coverage(
        self,
        *,
        schema: GraphQLSchema,
        documents: Sequence[Source],
        renderer: Renderer,
        write_path: str | None,
        silent: bool,
    ) -> None:
        """Report how documents cover the schema."""

    async def validate(
        self,
        *,
        schema: GraphQLSchema,
        documents: Sequence[Source],
        renderer: Renderer,
        options: ValidateOptions,
    ) -> None:
        """Report invalid documents; raise when any are invalid."""

    async def similar(
        self,
        *,
        schema: GraphQLSchema,
        renderer: Renderer,
        name: str | None,
        threshold: float | None,
        write: str | None,
    ) -> None:
        """Report similar types."""


@dataclass(slots=True)
class GraphQLToolkit:
    """Default toolkit backed by graphql-core and the built-in loaders."""

    root_dir: Path | None = None
    headers: dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_settings(
        cls,
        settings: InspectorSettings,
        root_dir: Path | None = None,
    ) -> GraphQLToolkit:
        return cls(
            root_dir=root_dir,
            headers=dict(settings.headers),
            timeout_seconds=settings.http_timeout_seconds,
        )

    async def load_config(self, filepath: Path | None) -> GraphQLConfig:
        return await find_and_load_config(filepath, self.root_dir)

    async def load_schema(
        self,
        project: ProjectConfig,
        pointer: Pointer | None = None,
    ) -> GraphQLSchema:
        return await load_schema(
            pointer if pointer is not None else project.schema,
            root_dir=project.dirpath,
            headers=self.headers,
            timeout_seconds=self.timeout_seconds,
        )

    async def load_documents(
        self,
        project: ProjectConfig,
        pointer: Pointer | None = None,
    ) -> list[DocumentSource]:
        pointer = pointer if pointer is not None else project.documents
        if pointer is None:
            raise DocumentLoadError(f"Project {project.name!r} declares no documents")
        return await load_documents(pointer, root_dir=project.dirpath)

    async def diff(
        self,
        *,
        old_schema: GraphQLSchema,
        new_schema: GraphQLSchema,
        rules: Sequence[str],
        renderer: Renderer,
    ) -> None:
        await run_diff(old_schema=old_schema, new_schema=new_schema, renderer=renderer, rules=rules)

    async def coverage(
        self,
        *,
        schema: GraphQLSchema,
        documents: Sequence[Source],
        renderer: Renderer,
        write_path: str | None,
        silent: bool,
    ) -> None:
        await run_coverage(
            schema=schema,
            documents=documents,
            renderer=renderer,
            write_path=write_path,
            silent=silent,
        )

    async def validate(
        self,
        *,
        schema: GraphQLSchema,
        documents: Sequence[Source],
        renderer: Renderer,
        options: ValidateOptions,
    ) -> None:
        await run_validate(schema=schema, documents=documents, renderer=renderer, options=options)

    async def similar(
        self,
        *,
        schema: GraphQLSchema,
        renderer: Renderer,
        name: str | None,
        threshold: float | None,
        write: str | None,
    ) -> None:
        await run_similar(
            schema=schema,
            renderer=renderer,
            name=name,
            threshold=threshold,
            write=write,
        )
