"""Controllers for inspector CLI commands."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from graphql import GraphQLSchema

from schema_inspector.config import InspectorSettings
from schema_inspector.inspect import (
    ValidateOptions,
    run_coverage,
    run_diff,
    run_similar,
    run_validate,
)
from schema_inspector.loaders import load_documents, load_schema
from schema_inspector.orchestrator import GraphQLToolkit, RunOptions, RunOutcome
from schema_inspector.orchestrator.dispatch import reprint_documents
from schema_inspector.orchestrator.pipeline import error_message
from schema_inspector.orchestrator.runner import run as run_pipeline
from schema_inspector.render import ConsoleRenderer, Renderer, render_banner

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RunCommand:
    """CLI inputs for running every configured command."""

    config: Path | None
    project: str | None


@dataclass(slots=True)
class DiffCliCommand:
    """CLI inputs for a one-off schema diff."""

    old_schema: str
    new_schema: str
    rules: tuple[str, ...] = ()
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class CoverageCliCommand:
    """CLI inputs for a one-off coverage report."""

    documents: str
    schema: str
    write: str | None = None
    silent: bool = False
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class ValidateCliCommand:
    """CLI inputs for a one-off document validation."""

    documents: str
    schema: str
    options: ValidateOptions = field(default_factory=ValidateOptions)
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SimilarCliCommand:
    """CLI inputs for a one-off similar types search."""

    schema: str
    name: str | None = None
    threshold: float | None = None
    write: str | None = None
    headers: dict[str, str] = field(default_factory=dict)


class InspectorCliController:
    """Coordinates inspector command execution."""

    def __init__(
        self,
        *,
        settings: InspectorSettings | None = None,
        renderer: Renderer | None = None,
        root_dir: Path | None = None,
    ) -> None:
        self.settings = settings or InspectorSettings()
        self.renderer = renderer or ConsoleRenderer()
        self.root_dir = root_dir

    def run(self, command: RunCommand) -> RunOutcome:
        options = RunOptions(
            config=command.config or self.settings.config_path,
            project=command.project or self.settings.project,
        )
        toolkit = GraphQLToolkit.from_settings(self.settings, root_dir=self.root_dir)
        return run_pipeline(options, renderer=self.renderer, toolkit=toolkit)

    def diff(self, command: DiffCliCommand) -> RunOutcome:
        async def operation() -> None:
            old_schema = await self._load_schema(command.old_schema, command.headers)
            new_schema = await self._load_schema(command.new_schema, command.headers)
            await run_diff(
                old_schema=old_schema,
                new_schema=new_schema,
                renderer=self.renderer,
                rules=command.rules,
            )

        return self._execute("diff", operation)

    def coverage(self, command: CoverageCliCommand) -> RunOutcome:
        async def operation() -> None:
            schema = await self._load_schema(command.schema, command.headers)
            documents = await load_documents(command.documents, root_dir=self._root())
            await run_coverage(
                schema=schema,
                documents=reprint_documents(documents),
                renderer=self.renderer,
                write_path=command.write,
                silent=command.silent,
            )

        return self._execute("coverage", operation)

    def validate(self, command: ValidateCliCommand) -> RunOutcome:
        async def operation() -> None:
            schema = await self._load_schema(command.schema, command.headers)
            documents = await load_documents(command.documents, root_dir=self._root())
            await run_validate(
                schema=schema,
                documents=reprint_documents(documents),
                renderer=self.renderer,
                options=command.options,
            )

        return self._execute("validate", operation)

    def similar(self, command: SimilarCliCommand) -> RunOutcome:
        async def operation() -> None:
            schema = await self._load_schema(command.schema, command.headers)
            await run_similar(
                schema=schema,
                renderer=self.renderer,
                name=command.name,
                threshold=command.threshold,
                write=command.write,
            )

        return self._execute("similar", operation)

    def _execute(
        self,
        label: str,
        operation: Callable[[], Coroutine[Any, Any, None]],
    ) -> RunOutcome:
        self.renderer.emit(*render_banner(label))
        try:
            asyncio.run(operation())
        except Exception as error:  # noqa: BLE001
            logger.debug("%s failed", label, exc_info=True)
            self.renderer.error(error_message(error))
            return RunOutcome(success=False, exit_code=1)
        return RunOutcome(success=True)

    async def _load_schema(self, pointer: str, headers: dict[str, str]) -> GraphQLSchema:
        return await load_schema(
            pointer,
            root_dir=self._root(),
            headers={**self.settings.headers, **headers},
            timeout_seconds=self.settings.http_timeout_seconds,
        )

    def _root(self) -> Path:
        return self.root_dir or Path.cwd()
