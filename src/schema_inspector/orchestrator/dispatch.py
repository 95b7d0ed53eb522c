"""Routes one normalized command to the toolkit operation it names."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

from graphql import Source, print_ast

from schema_inspector.commands import (
    CommandConfigError,
    CommandSpec,
    CoverageCommand,
    DiffCommand,
    InvalidCommand,
    Pointer,
    SimilarCommand,
    ValidateCommand,
)
from schema_inspector.inspect import ValidateOptions
from schema_inspector.loaders import DocumentSource
from schema_inspector.orchestrator.context import CommandInputs
from schema_inspector.orchestrator.toolkit import InspectorToolkit
from schema_inspector.render import Renderer, render_banner

logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnsupportedCommandError(RuntimeError):
    """Command kind has no operation behind it."""

    def __init__(self, kind: object) -> None:
        super().__init__(f"Command {kind} not supported")
        self.kind = kind


class DocumentsMissingError(RuntimeError):
    """Neither the project nor the command names any documents."""


async def dispatch_command(
    label: str,
    command: CommandSpec,
    *,
    inputs: CommandInputs,
    toolkit: InspectorToolkit,
    renderer: Renderer,
) -> None:
    """Write the banner, then run exactly one toolkit operation."""

    renderer.emit(*render_banner(label))
    logger.debug("Dispatching %s (%s)", label, getattr(command, "kind", "?"))

    match command:
        case DiffCommand():
            old_schema = await toolkit.load_schema(inputs.project, command.schema)
            await toolkit.diff(
                old_schema=old_schema,
                new_schema=inputs.schema,
                rules=command.rule,
                renderer=renderer,
            )
        case CoverageCommand():
            documents = await _resolve_documents(command.documents, inputs, toolkit)
            await toolkit.coverage(
                schema=inputs.schema,
                documents=reprint_documents(documents),
                renderer=renderer,
                write_path=command.write,
                silent=pick(command.silent, False),
            )
        case ValidateCommand():
            documents = await _resolve_documents(command.documents, inputs, toolkit)
            await toolkit.validate(
                schema=inputs.schema,
                documents=reprint_documents(documents),
                renderer=renderer,
                options=ValidateOptions(
                    deprecated=pick(command.deprecated, False),
                    strict_fragments=not pick(command.no_strict_fragments, False),
                    max_depth=command.max_depth,
                    apollo=pick(command.apollo, False),
                    keep_client_fields=pick(command.keep_client_fields, False),
                ),
            )
        case SimilarCommand():
            await toolkit.similar(
                schema=inputs.schema,
                renderer=renderer,
                name=command.name,
                threshold=command.threshold,
                write=command.write,
            )
        case InvalidCommand():
            raise CommandConfigError(command.message)
        case _:
            raise UnsupportedCommandError(getattr(command, "kind", command))


def reprint_documents(documents: Sequence[DocumentSource]) -> list[Source]:
    """Print each parsed document back to text, keeping its location."""

    return [Source(print_ast(document.document), document.location) for document in documents]


def pick(value: T | None, default: T) -> T:
    return default if value is None else value


async def _resolve_documents(
    pointer: Pointer | None,
    inputs: CommandInputs,
    toolkit: InspectorToolkit,
) -> Sequence[DocumentSource]:
    if inputs.documents is not None:
        return inputs.documents
    if pointer is None:
        raise DocumentsMissingError("Documents are missing")
    return await toolkit.load_documents(inputs.project, pointer)
