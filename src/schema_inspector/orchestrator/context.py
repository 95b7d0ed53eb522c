"""State threaded through one pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from graphql import GraphQLSchema

from schema_inspector.loaders import DocumentSource
from schema_inspector.project import GraphQLConfig, ProjectConfig
from schema_inspector.render import BufferedRenderer


@dataclass(slots=True)
class RunOptions:
    """Caller overrides for config discovery and project selection."""

    config: Path | None = None
    project: str | None = None


@dataclass(slots=True)
class TaskOutcome:
    """Report buffer and verdict of one command task."""

    label: str
    kind: str
    renderer: BufferedRenderer = field(default_factory=BufferedRenderer)
    failed: bool = False


@dataclass(frozen=True, slots=True)
class CommandInputs:
    """Read-only setup results shared by all command tasks."""

    project: ProjectConfig
    schema: GraphQLSchema
    documents: tuple[DocumentSource, ...] | None = None


@dataclass(slots=True)
class RunContext:
    """Filled stage by stage; owned by a single run."""

    options: RunOptions
    config: GraphQLConfig | None = None
    project: ProjectConfig | None = None
    schema: GraphQLSchema | None = None
    documents: list[DocumentSource] | None = None
    outcomes: list[TaskOutcome] = field(default_factory=list)
    ok: bool = True

    def inputs(self) -> CommandInputs:
        if self.project is None or self.schema is None:
            raise RuntimeError("Command inputs requested before project and schema were loaded")
        return CommandInputs(
            project=self.project,
            schema=self.schema,
            documents=tuple(self.documents) if self.documents is not None else None,
        )

    def record_failure(self, outcome: TaskOutcome) -> None:
        # One-way flip; concurrent tasks only ever write False.
        outcome.failed = True
        self.ok = False


@dataclass(slots=True)
class PipelineResult:
    """Task outcomes in creation order plus the aggregate verdict."""

    outcomes: list[TaskOutcome]
    ok: bool


@dataclass(slots=True)
class RunOutcome:
    """What the entry point reports back; the CLI maps it to an exit status."""

    success: bool
    exit_code: int = 0
