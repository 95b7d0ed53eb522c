"""Command model: normalizes `inspector.commands` into tagged variants.

Two surface forms are accepted in config files::

    commands:
      diff:                 # shorthand, the label is the kind
        schema: old.graphql
      lintDiff:             # explicit, the body carries the kind
        command: diff
        schema: old.graphql

Both normalize to the same `DiffCommand`. An explicit kind outside the known
set is kept as `UnsupportedCommand` so that dispatch can report it by name.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeGuard

Pointer = str | tuple[str, ...]


class CommandKind(str, Enum):
    """Closed set of command kinds the runner can dispatch."""

    DIFF = "diff"
    COVERAGE = "coverage"
    VALIDATE = "validate"
    SIMILAR = "similar"


SUPPORTED_COMMANDS = tuple(kind.value for kind in CommandKind)


class CommandConfigError(ValueError):
    """Raised when a command entry or the commands section is malformed."""


@dataclass(frozen=True, slots=True)
class DiffCommand:
    schema: Pointer
    rule: tuple[str, ...] = ()
    kind: str = field(default=CommandKind.DIFF.value, init=False)


@dataclass(frozen=True, slots=True)
class CoverageCommand:
    documents: Pointer | None = None
    write: str | None = None
    silent: bool | None = None
    kind: str = field(default=CommandKind.COVERAGE.value, init=False)


@dataclass(frozen=True, slots=True)
class ValidateCommand:
    documents: Pointer | None = None
    deprecated: bool | None = None
    no_strict_fragments: bool | None = None
    max_depth: int | None = None
    apollo: bool | None = None
    keep_client_fields: bool | None = None
    kind: str = field(default=CommandKind.VALIDATE.value, init=False)


@dataclass(frozen=True, slots=True)
class SimilarCommand:
    name: str | None = None
    threshold: float | None = None
    write: str | None = None
    kind: str = field(default=CommandKind.SIMILAR.value, init=False)


@dataclass(frozen=True, slots=True)
class UnsupportedCommand:
    """Entry with a kind this version does not know, kept verbatim."""

    kind: str
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class InvalidCommand:
    """Entry whose options could not be normalized; fails only its own task."""

    kind: str
    message: str


CommandSpec = (
    DiffCommand
    | CoverageCommand
    | ValidateCommand
    | SimilarCommand
    | UnsupportedCommand
    | InvalidCommand
)


def normalize_commands(raw: Mapping[str, Any] | None) -> dict[str, CommandSpec]:
    """Normalize a raw label -> body mapping, preserving insertion order.

    Only a non-mapping section is rejected here. A bad entry becomes an
    `InvalidCommand` so that its siblings still run.
    """

    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise CommandConfigError(
            f"'commands' must be a mapping of task label to options, got {type(raw).__name__}",
        )

    commands: dict[str, CommandSpec] = {}
    for label, body in raw.items():
        try:
            commands[str(label)] = parse_command(str(label), body)
        except CommandConfigError as error:
            commands[str(label)] = InvalidCommand(
                kind=_entry_kind(label, body),
                message=str(error),
            )
    return commands


def parse_command(label: str, body: Any) -> CommandSpec:
    """Build one tagged command from its label and option body."""

    if body is None:
        body = {}
    if not isinstance(body, Mapping):
        raise CommandConfigError(f"Options of command {label!r} must be a mapping")

    kind = body.get("command", label if label in SUPPORTED_COMMANDS else None)
    if kind is None:
        raise CommandConfigError(
            f"Command {label!r} has no 'command' kind "
            f"(expected one of: {', '.join(SUPPORTED_COMMANDS)})",
        )
    kind = str(kind)
    options = {key: value for key, value in body.items() if key != "command"}

    if kind == CommandKind.DIFF:
        schema = _pointer(options, label, "schema")
        if schema is None:
            raise CommandConfigError(f"Diff command {label!r} requires a 'schema' pointer")
        return DiffCommand(schema=schema, rule=_rules(options, label))
    if kind == CommandKind.COVERAGE:
        return CoverageCommand(
            documents=_pointer(options, label, "documents"),
            write=_string(options, label, "write"),
            silent=_flag(options, label, "silent"),
        )
    if kind == CommandKind.VALIDATE:
        return ValidateCommand(
            documents=_pointer(options, label, "documents"),
            deprecated=_flag(options, label, "deprecated"),
            no_strict_fragments=_flag(options, label, "noStrictFragments"),
            max_depth=_positive_int(options, label, "maxDepth"),
            apollo=_flag(options, label, "apollo"),
            keep_client_fields=_flag(options, label, "keepClientFields"),
        )
    if kind == CommandKind.SIMILAR:
        return SimilarCommand(
            name=_string(options, label, "name"),
            threshold=_threshold(options, label),
            write=_string(options, label, "write"),
        )
    return UnsupportedCommand(kind=kind, options=options)


def is_diff_command(command: CommandSpec) -> TypeGuard[DiffCommand]:
    return isinstance(command, DiffCommand)


def is_coverage_command(command: CommandSpec) -> TypeGuard[CoverageCommand]:
    return isinstance(command, CoverageCommand)


def is_validate_command(command: CommandSpec) -> TypeGuard[ValidateCommand]:
    return isinstance(command, ValidateCommand)


def is_similar_command(command: CommandSpec) -> TypeGuard[SimilarCommand]:
    return isinstance(command, SimilarCommand)


def _lookup(options: Mapping[str, Any], name: str) -> Any:
    if name in options:
        return options[name]
    return options.get(_snake_case(name))


def _snake_case(name: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in name)


def _pointer(options: Mapping[str, Any], label: str, name: str) -> Pointer | None:
    value = _lookup(options, name)
    if value is None:
        return None
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, list | tuple) and value and all(isinstance(item, str) for item in value):
        return tuple(item.strip() for item in value)
    raise CommandConfigError(
        f"Option {name!r} of command {label!r} must be a path, glob or list of them",
    )


def _rules(options: Mapping[str, Any], label: str) -> tuple[str, ...]:
    value = _lookup(options, "rule")
    if value is None:
        value = _lookup(options, "rules")
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, list | tuple) and all(isinstance(item, str) for item in value):
        return tuple(value)
    raise CommandConfigError(f"Option 'rule' of command {label!r} must be a list of rule names")


def _string(options: Mapping[str, Any], label: str, name: str) -> str | None:
    value = _lookup(options, name)
    if value is None or isinstance(value, str):
        return value
    raise CommandConfigError(f"Option {name!r} of command {label!r} must be a string")


def _flag(options: Mapping[str, Any], label: str, name: str) -> bool | None:
    value = _lookup(options, name)
    if value is None or isinstance(value, bool):
        return value
    raise CommandConfigError(f"Option {name!r} of command {label!r} must be true or false")


def _positive_int(options: Mapping[str, Any], label: str, name: str) -> int | None:
    value = _lookup(options, name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise CommandConfigError(f"Option {name!r} of command {label!r} must be a positive integer")
    return value


def _threshold(options: Mapping[str, Any], label: str) -> float | None:
    value = _lookup(options, "threshold")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float) or not 0 <= value <= 1:
        raise CommandConfigError(
            f"Option 'threshold' of command {label!r} must be a number between 0 and 1",
        )
    return float(value)


def _entry_kind(label: object, body: Any) -> str:
    if isinstance(body, Mapping) and body.get("command") is not None:
        return str(body["command"])
    return str(label) if label in SUPPORTED_COMMANDS else "unknown"
