"""Command pipeline: setup stages, concurrent fan-out and result aggregation."""

from schema_inspector.orchestrator.context import PipelineResult, RunOptions, RunOutcome
from schema_inspector.orchestrator.dispatch import (
    DocumentsMissingError,
    UnsupportedCommandError,
    dispatch_command,
)
from schema_inspector.orchestrator.pipeline import (
    INSPECTOR_EXTENSION,
    CommandPipeline,
    MissingExtensionError,
)
from schema_inspector.orchestrator.runner import (
    AGGREGATE_FAILURE_MESSAGE,
    flush_outcomes,
    run,
    run_async,
)
from schema_inspector.orchestrator.toolkit import GraphQLToolkit, InspectorToolkit

__all__ = [
    "AGGREGATE_FAILURE_MESSAGE",
    "INSPECTOR_EXTENSION",
    "CommandPipeline",
    "DocumentsMissingError",
    "GraphQLToolkit",
    "InspectorToolkit",
    "MissingExtensionError",
    "PipelineResult",
    "RunOptions",
    "RunOutcome",
    "UnsupportedCommandError",
    "dispatch_command",
    "flush_outcomes",
    "run",
    "run_async",
]
