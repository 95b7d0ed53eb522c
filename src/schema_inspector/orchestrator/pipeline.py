"""Setup stages followed by a concurrent fan-out of configured commands."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import TypeVar

from schema_inspector.commands import CommandConfigError, CommandSpec, normalize_commands
from schema_inspector.orchestrator.context import (
    CommandInputs,
    PipelineResult,
    RunContext,
    RunOptions,
    TaskOutcome,
)
from schema_inspector.orchestrator.dispatch import dispatch_command
from schema_inspector.orchestrator.toolkit import InspectorToolkit
from schema_inspector.project import GraphQLConfig

logger = logging.getLogger(__name__)

INSPECTOR_EXTENSION = "inspector"

T = TypeVar("T")


class MissingExtensionError(RuntimeError):
    """Selected project carries no inspector extension."""

    def __init__(self, config: GraphQLConfig) -> None:
        super().__init__(
            f"Your GraphQL Config has no '{INSPECTOR_EXTENSION}' extension: {config.filepath}",
        )


@dataclass(frozen=True, slots=True)
class SetupStage:
    """One sequential setup step; `skip` is checked right before it runs."""

    title: str
    run: Callable[[RunContext], Awaitable[None]]
    skip: Callable[[RunContext], bool] | None = None


class CommandPipeline:
    """Runs setup stages in order, then every configured command concurrently."""

    def __init__(self, *, toolkit: InspectorToolkit) -> None:
        self.toolkit = toolkit
        self.stages = (
            SetupStage("Loading config", self._load_config),
            SetupStage("Picking project", self._pick_project),
            SetupStage("Checking for extension", self._check_extension),
            SetupStage("Loading schema", self._load_schema),
            SetupStage(
                "Loading documents",
                self._load_documents,
                skip=lambda ctx: ctx.project is not None and ctx.project.documents is None,
            ),
        )

    async def run(self, options: RunOptions) -> PipelineResult:
        """Run setup, then fan out; setup errors propagate unchanged."""

        ctx = RunContext(options=options)
        for stage in self.stages:
            if stage.skip is not None and stage.skip(ctx):
                logger.info("%s [skipped]", stage.title)
                continue
            logger.info("%s", stage.title)
            await stage.run(ctx)

        await self._run_commands(ctx)
        return PipelineResult(outcomes=list(ctx.outcomes), ok=ctx.ok)

    async def _load_config(self, ctx: RunContext) -> None:
        ctx.config = await self.toolkit.load_config(ctx.options.config)
        logger.debug("Loaded config from %s", ctx.config.filepath)

    async def _pick_project(self, ctx: RunContext) -> None:
        config = _require(ctx.config, "config")
        if ctx.options.project:
            ctx.project = config.get_project(ctx.options.project)
        else:
            ctx.project = config.get_default()
        logger.debug("Using project %s", ctx.project.name)

    async def _check_extension(self, ctx: RunContext) -> None:
        project = _require(ctx.project, "project")
        if not project.has_extension(INSPECTOR_EXTENSION):
            raise MissingExtensionError(_require(ctx.config, "config"))

    async def _load_schema(self, ctx: RunContext) -> None:
        ctx.schema = await self.toolkit.load_schema(_require(ctx.project, "project"))

    async def _load_documents(self, ctx: RunContext) -> None:
        ctx.documents = await self.toolkit.load_documents(_require(ctx.project, "project"))
        logger.debug("Loaded %d document(s)", len(ctx.documents))

    async def _run_commands(self, ctx: RunContext) -> None:
        project = _require(ctx.project, "project")
        extension = project.extension(INSPECTOR_EXTENSION)
        if extension is None:
            extension = {}
        if not isinstance(extension, Mapping):
            raise CommandConfigError(
                f"'{INSPECTOR_EXTENSION}' extension must be a mapping, "
                f"got {type(extension).__name__}",
            )

        commands = normalize_commands(extension.get("commands"))
        if not commands:
            logger.info("No commands configured")
            return

        inputs = ctx.inputs()
        tasks = []
        for label, command in commands.items():
            outcome = TaskOutcome(label=label, kind=command.kind)
            ctx.outcomes.append(outcome)
            tasks.append(self._run_command(ctx, outcome, command, inputs))

        logger.info("Running %d command(s)", len(tasks))
        await asyncio.gather(*tasks)

    async def _run_command(
        self,
        ctx: RunContext,
        outcome: TaskOutcome,
        command: CommandSpec,
        inputs: CommandInputs,
    ) -> None:
        try:
            await dispatch_command(
                outcome.label,
                command,
                inputs=inputs,
                toolkit=self.toolkit,
                renderer=outcome.renderer,
            )
        except Exception as error:  # noqa: BLE001
            logger.debug("Command %s failed", outcome.label, exc_info=True)
            ctx.record_failure(outcome)
            outcome.renderer.error(error_message(error))


def error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


def _require(value: T | None, name: str) -> T:
    if value is None:
        raise RuntimeError(f"Pipeline stage ran before {name} was loaded")
    return value
