"""Entry point: run the pipeline, flush task reports, compute the verdict."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from schema_inspector.orchestrator.context import RunOptions, RunOutcome, TaskOutcome
from schema_inspector.orchestrator.pipeline import CommandPipeline, error_message
from schema_inspector.orchestrator.toolkit import GraphQLToolkit, InspectorToolkit
from schema_inspector.render import ConsoleRenderer, Renderer

logger = logging.getLogger(__name__)

AGGREGATE_FAILURE_MESSAGE = "Something went wrong - check the above report"


def flush_outcomes(outcomes: Sequence[TaskOutcome], renderer: Renderer) -> None:
    """Replay every task buffer in creation order, regardless of completion order."""

    for outcome in outcomes:
        outcome.renderer.flush(renderer)


async def run_async(
    options: RunOptions | None = None,
    *,
    renderer: Renderer | None = None,
    toolkit: InspectorToolkit | None = None,
) -> RunOutcome:
    renderer = renderer or ConsoleRenderer()
    toolkit = toolkit or GraphQLToolkit()
    pipeline = CommandPipeline(toolkit=toolkit)

    try:
        result = await pipeline.run(options or RunOptions())
    except Exception as error:  # noqa: BLE001
        logger.debug("Setup failed", exc_info=True)
        renderer.error(error_message(error))
        renderer.emit("")
        return RunOutcome(success=False, exit_code=1)

    flush_outcomes(result.outcomes, renderer)
    if not result.ok:
        failed = [outcome.label for outcome in result.outcomes if outcome.failed]
        logger.info("Failed commands: %s", ", ".join(failed))
        renderer.error(AGGREGATE_FAILURE_MESSAGE)
        return RunOutcome(success=False, exit_code=1)
    return RunOutcome(success=True)


def run(
    options: RunOptions | None = None,
    *,
    renderer: Renderer | None = None,
    toolkit: InspectorToolkit | None = None,
) -> RunOutcome:
    """Synchronous wrapper used by the CLI."""

    return asyncio.run(run_async(options, renderer=renderer, toolkit=toolkit))
