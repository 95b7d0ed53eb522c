"""Operation document validation against a schema.

Fragments are shared across the whole document set: a document may spread a
fragment defined in another file, and with strict fragments a fragment name
may be defined only once in the set.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import click
from graphql import (
    REMOVE,
    DirectiveNode,
    DocumentNode,
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLError,
    GraphQLSchema,
    InlineFragmentNode,
    NoUnusedFragmentsRule,
    OperationDefinitionNode,
    SelectionSetNode,
    Source,
    Visitor,
    parse,
    specified_rules,
    validate,
    visit,
)
from graphql.validation import NoDeprecatedCustomRule

from schema_inspector.render import ERROR_MARK, WARNING_MARK, Renderer, pluralize

APOLLO_DIRECTIVES = frozenset({"client", "connection", "export"})


class ValidationFailedError(RuntimeError):
    """Some documents are invalid."""


@dataclass(slots=True)
class ValidateOptions:
    deprecated: bool = False
    strict_fragments: bool = True
    max_depth: int | None = None
    apollo: bool = False
    keep_client_fields: bool = False


@dataclass(slots=True)
class InvalidDocument:
    source: Source
    errors: list[GraphQLError] = field(default_factory=list)
    deprecated: list[GraphQLError] = field(default_factory=list)


class _ClientFieldRemover(Visitor):
    def enter_field(self, node: FieldNode, *_args: Any) -> Any:
        if any(directive.name.value == "client" for directive in node.directives or ()):
            return REMOVE
        return None


class _DirectiveRemover(Visitor):
    def __init__(self, names: frozenset[str]) -> None:
        super().__init__()
        self.names = names

    def enter_directive(self, node: DirectiveNode, *_args: Any) -> Any:
        return REMOVE if node.name.value in self.names else None


def validate_documents(
    schema: GraphQLSchema,
    sources: Sequence[Source],
    options: ValidateOptions | None = None,
) -> list[InvalidDocument]:
    options = options or ValidateOptions()
    parsed: list[tuple[InvalidDocument, DocumentNode | None]] = []
    for source in sources:
        report = InvalidDocument(source=source)
        try:
            parsed.append((report, parse(source)))
        except GraphQLError as error:
            report.errors.append(error)
            parsed.append((report, None))

    fragments: dict[str, FragmentDefinitionNode] = {}
    for report, document in parsed:
        if document is None:
            continue
        seen_here: set[str] = set()
        for definition in document.definitions:
            if not isinstance(definition, FragmentDefinitionNode):
                continue
            name = definition.name.value
            if name in fragments and name not in seen_here:
                if options.strict_fragments:
                    report.errors.append(
                        GraphQLError(f"Name of '{name}' fragment is not unique", definition),
                    )
                continue
            fragments.setdefault(name, definition)
            seen_here.add(name)

    invalid: list[InvalidDocument] = []
    for report, document in parsed:
        if document is not None:
            prepared = _with_shared_fragments(_prepare(document, options), fragments)
            rules = specified_rules
            if not any(isinstance(d, OperationDefinitionNode) for d in prepared.definitions):
                rules = [rule for rule in specified_rules if rule is not NoUnusedFragmentsRule]
            report.errors.extend(validate(schema, prepared, rules))
            if options.max_depth is not None:
                report.errors.extend(_depth_errors(prepared, options.max_depth))
            report.deprecated.extend(validate(schema, prepared, [NoDeprecatedCustomRule]))
        if report.errors or report.deprecated:
            invalid.append(report)
    return invalid


async def run_validate(
    *,
    schema: GraphQLSchema,
    documents: Sequence[Source],
    renderer: Renderer,
    options: ValidateOptions,
) -> None:
    invalid = validate_documents(schema, documents, options)

    if not invalid:
        renderer.success("All documents are valid")
        return

    errors_count = sum(1 for report in invalid if report.errors)
    deprecated_count = sum(1 for report in invalid if report.deprecated)

    if errors_count:
        renderer.emit(f"\nDetected {pluralize(errors_count, 'invalid document')}:\n")
        for report in invalid:
            if report.errors:
                renderer.emit(render_invalid_document(report))
    elif not options.deprecated:
        renderer.success("All documents are valid")

    if deprecated_count:
        renderer.emit(
            f"\nDetected {pluralize(deprecated_count, 'document')} with deprecated fields:\n",
        )
        for report in invalid:
            if report.deprecated:
                renderer.emit(render_deprecated_usage(report, as_error=options.deprecated))

    if errors_count or (deprecated_count and options.deprecated):
        raise ValidationFailedError("Some documents are invalid")


def render_invalid_document(report: InvalidDocument) -> str:
    lines = [f"  {click.style(ERROR_MARK, fg='red')} {report.source.name}:"]
    lines.extend(f"    - {_describe(error)}" for error in report.errors)
    return "\n".join(lines) + "\n"


def render_deprecated_usage(report: InvalidDocument, *, as_error: bool) -> str:
    mark = click.style(ERROR_MARK, fg="red") if as_error else click.style(WARNING_MARK, fg="yellow")
    lines = [f"  {mark} {report.source.name}:"]
    lines.extend(f"    - {_describe(error)}" for error in report.deprecated)
    return "\n".join(lines) + "\n"


def _describe(error: GraphQLError) -> str:
    if not error.locations:
        return error.message
    location = error.locations[0]
    return f"{error.message} ({location.line}:{location.column})"


def _prepare(document: DocumentNode, options: ValidateOptions) -> DocumentNode:
    if not options.keep_client_fields:
        document = visit(document, _ClientFieldRemover())
    if options.apollo:
        document = visit(document, _DirectiveRemover(APOLLO_DIRECTIVES))
    return document


def _with_shared_fragments(
    document: DocumentNode,
    fragments: dict[str, FragmentDefinitionNode],
) -> DocumentNode:
    """Append fragments this document spreads but defines elsewhere."""

    local = {
        definition.name.value
        for definition in document.definitions
        if isinstance(definition, FragmentDefinitionNode)
    }
    pending = list(_spread_names(document))
    missing: list[FragmentDefinitionNode] = []
    while pending:
        name = pending.pop()
        if name in local or name not in fragments:
            continue
        local.add(name)
        missing.append(fragments[name])
        pending.extend(_spread_names(fragments[name]))
    if not missing:
        return document
    return DocumentNode(definitions=(*document.definitions, *missing), loc=document.loc)


def _spread_names(node: Any) -> list[str]:
    names: list[str] = []

    class _SpreadCollector(Visitor):
        def enter_fragment_spread(self, spread: FragmentSpreadNode, *_args: Any) -> None:
            names.append(spread.name.value)

    visit(node, _SpreadCollector())
    return names


def _depth_errors(document: DocumentNode, max_depth: int) -> list[GraphQLError]:
    fragments = {
        definition.name.value: definition
        for definition in document.definitions
        if isinstance(definition, FragmentDefinitionNode)
    }
    errors: list[GraphQLError] = []
    for definition in document.definitions:
        if not isinstance(definition, OperationDefinitionNode):
            continue
        depth = _selection_depth(definition.selection_set, fragments, frozenset())
        if depth > max_depth:
            name = definition.name.value if definition.name else "anonymous"
            errors.append(
                GraphQLError(
                    f"Operation '{name}' has depth {depth}, exceeding maximum depth of {max_depth}",
                    definition,
                ),
            )
    return errors


def _selection_depth(
    selection_set: SelectionSetNode | None,
    fragments: dict[str, FragmentDefinitionNode],
    visited: frozenset[str],
) -> int:
    if selection_set is None:
        return 0
    depth = 0
    for selection in selection_set.selections:
        if isinstance(selection, FieldNode):
            depth = max(depth, 1 + _selection_depth(selection.selection_set, fragments, visited))
        elif isinstance(selection, InlineFragmentNode):
            depth = max(depth, _selection_depth(selection.selection_set, fragments, visited))
        elif isinstance(selection, FragmentSpreadNode):
            name = selection.name.value
            if name in visited or name not in fragments:
                continue
            depth = max(
                depth,
                _selection_depth(fragments[name].selection_set, fragments, visited | {name}),
            )
    return depth
