"""Schema change detection between two schema versions."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from enum import Enum

import click
from graphql import (
    GraphQLSchema,
    find_breaking_changes,
    find_dangerous_changes,
    is_input_object_type,
    is_interface_type,
    is_object_type,
)

from schema_inspector.render import ERROR_MARK, SUCCESS_MARK, WARNING_MARK, Renderer, pluralize


class Criticality(str, Enum):
    BREAKING = "breaking"
    DANGEROUS = "dangerous"
    NON_BREAKING = "non_breaking"


class DiffError(RuntimeError):
    """Breaking changes were detected or a rule name is unknown."""


@dataclass(frozen=True, slots=True)
class Change:
    type: str
    message: str
    criticality: Criticality


DiffRule = Callable[[list[Change], GraphQLSchema, GraphQLSchema], list[Change]]

_REMOVED_FIELD = re.compile(r"^(?P<type>\w+)\.(?P<field>\w+) (?:\(deprecated\) )?was removed\.$")


def diff_schemas(old_schema: GraphQLSchema, new_schema: GraphQLSchema) -> list[Change]:
    """Breaking, dangerous and additive changes, in that order."""

    changes = [
        Change(type=change.type.name, message=change.description, criticality=Criticality.BREAKING)
        for change in find_breaking_changes(old_schema, new_schema)
    ]
    changes.extend(
        Change(type=change.type.name, message=change.description, criticality=Criticality.DANGEROUS)
        for change in find_dangerous_changes(old_schema, new_schema)
    )
    changes.extend(_additions(old_schema, new_schema))
    return changes


def suppress_removal_of_deprecated_field(
    changes: list[Change],
    old_schema: GraphQLSchema,
    new_schema: GraphQLSchema,  # noqa: ARG001
) -> list[Change]:
    """Removing a field that was already deprecated is dangerous, not breaking."""

    result: list[Change] = []
    for change in changes:
        matched = _REMOVED_FIELD.match(change.message)
        if change.type == "FIELD_REMOVED" and matched is not None:
            old_type = old_schema.get_type(matched["type"])
            old_field = getattr(old_type, "fields", {}).get(matched["field"])
            if old_field is not None and getattr(old_field, "deprecation_reason", None) is not None:
                change = replace(change, criticality=Criticality.DANGEROUS)
        result.append(change)
    return result


DIFF_RULES: dict[str, DiffRule] = {
    "suppressRemovalOfDeprecatedField": suppress_removal_of_deprecated_field,
}


def apply_rules(
    changes: list[Change],
    rules: Sequence[str],
    old_schema: GraphQLSchema,
    new_schema: GraphQLSchema,
) -> list[Change]:
    for name in rules:
        rule = DIFF_RULES.get(name)
        if rule is None:
            raise DiffError(f"Rule '{name}' does not exist (available: {', '.join(DIFF_RULES)})")
        changes = rule(changes, old_schema, new_schema)
    return changes


async def run_diff(
    *,
    old_schema: GraphQLSchema,
    new_schema: GraphQLSchema,
    renderer: Renderer,
    rules: Sequence[str] = (),
) -> None:
    changes = apply_rules(diff_schemas(old_schema, new_schema), rules, old_schema, new_schema)

    if not changes:
        renderer.success("No changes detected")
        return

    renderer.emit(f"\nDetected the following changes ({len(changes)}) between schemas:\n")
    for change in changes:
        renderer.emit(render_change(change))

    breaking = sum(1 for change in changes if change.criticality is Criticality.BREAKING)
    if breaking:
        raise DiffError(f"Detected {pluralize(breaking, 'breaking change')}")
    renderer.success("No breaking changes detected")


def render_change(change: Change) -> str:
    if change.criticality is Criticality.BREAKING:
        mark = click.style(ERROR_MARK, fg="red")
    elif change.criticality is Criticality.DANGEROUS:
        mark = click.style(WARNING_MARK, fg="yellow")
    else:
        mark = click.style(SUCCESS_MARK, fg="green")
    return f"{mark}  {change.message}"


def _additions(old_schema: GraphQLSchema, new_schema: GraphQLSchema) -> list[Change]:
    additions: list[Change] = []
    for name, new_type in new_schema.type_map.items():
        if name.startswith("__"):
            continue
        old_type = old_schema.type_map.get(name)
        if old_type is None:
            additions.append(
                Change(
                    type="TYPE_ADDED",
                    message=f"{name} was added.",
                    criticality=Criticality.NON_BREAKING,
                ),
            )
            continue
        if not (is_object_type(new_type) or is_interface_type(new_type)):
            continue
        if is_input_object_type(old_type) or not hasattr(old_type, "fields"):
            continue
        for field_name in new_type.fields:
            if field_name not in old_type.fields:
                additions.append(
                    Change(
                        type="FIELD_ADDED",
                        message=f"{name}.{field_name} was added.",
                        criticality=Criticality.NON_BREAKING,
                    ),
                )
    return additions
