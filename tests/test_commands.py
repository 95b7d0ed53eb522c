from __future__ import annotations

import allure
import pytest

from schema_inspector.commands import (
    CommandConfigError,
    CoverageCommand,
    DiffCommand,
    InvalidCommand,
    SimilarCommand,
    UnsupportedCommand,
    ValidateCommand,
    is_coverage_command,
    is_diff_command,
    normalize_commands,
    parse_command,
)

pytestmark = [
    allure.epic("Command Pipeline"),
    allure.feature("Command Model"),
]


def test_shorthand_and_explicit_forms_normalize_to_same_command() -> None:
    commands = normalize_commands(
        {
            "diff": {"schema": "old.graphql", "rule": ["suppressRemovalOfDeprecatedField"]},
            "lintDiff": {
                "command": "diff",
                "schema": "old.graphql",
                "rule": ["suppressRemovalOfDeprecatedField"],
            },
        },
    )

    assert commands["diff"] == commands["lintDiff"]
    assert commands["diff"] == DiffCommand(
        schema="old.graphql",
        rule=("suppressRemovalOfDeprecatedField",),
    )


def test_normalize_preserves_declaration_order() -> None:
    commands = normalize_commands(
        {
            "validate": {},
            "cov": {"command": "coverage"},
            "similar": None,
        },
    )

    assert list(commands) == ["validate", "cov", "similar"]
    assert [command.kind for command in commands.values()] == ["validate", "coverage", "similar"]


def test_normalize_empty_commands() -> None:
    assert normalize_commands(None) == {}
    assert normalize_commands({}) == {}


def test_normalize_rejects_non_mapping() -> None:
    with pytest.raises(CommandConfigError, match="must be a mapping"):
        normalize_commands(["diff"])  # type: ignore[arg-type]


def test_normalize_keeps_bad_entries_as_invalid_commands() -> None:
    commands = normalize_commands(
        {
            "lintDiff": {"schema": "old.graphql"},
            "similar": {"threshold": "0.8"},
            "validate": {},
            "diff": {},
            "broken": "diff",
        },
    )

    assert list(commands) == ["lintDiff", "similar", "validate", "diff", "broken"]
    lint_diff = commands["lintDiff"]
    assert isinstance(lint_diff, InvalidCommand)
    assert lint_diff.kind == "unknown"
    assert "has no 'command' kind" in lint_diff.message
    assert commands["similar"] == InvalidCommand(
        kind="similar",
        message="Option 'threshold' of command 'similar' must be a number between 0 and 1",
    )
    assert commands["validate"] == ValidateCommand()
    assert commands["diff"] == InvalidCommand(
        kind="diff",
        message="Diff command 'diff' requires a 'schema' pointer",
    )
    assert commands["broken"] == InvalidCommand(
        kind="unknown",
        message="Options of command 'broken' must be a mapping",
    )


def test_invalid_entry_keeps_its_explicit_kind() -> None:
    commands = normalize_commands({"lintDiff": {"command": "diff", "rule": 1}})

    assert commands["lintDiff"].kind == "diff"
    assert isinstance(commands["lintDiff"], InvalidCommand)


def test_unknown_explicit_kind_is_kept_for_dispatch() -> None:
    command = parse_command("lint", {"command": "lint", "strict": True})

    assert command == UnsupportedCommand(kind="lint", options={"strict": True})
    assert not is_diff_command(command)


def test_label_without_kind_is_rejected() -> None:
    with pytest.raises(CommandConfigError, match="has no 'command' kind"):
        parse_command("lintDiff", {"schema": "old.graphql"})


def test_diff_requires_schema() -> None:
    with pytest.raises(CommandConfigError, match="requires a 'schema' pointer"):
        parse_command("diff", {})


def test_unset_options_stay_unset() -> None:
    assert parse_command("coverage", None) == CoverageCommand()
    assert parse_command("validate", {}) == ValidateCommand()
    assert parse_command("similar", {}) == SimilarCommand()


def test_options_accept_camel_and_snake_case() -> None:
    camel = parse_command(
        "validate",
        {"noStrictFragments": True, "maxDepth": 4, "keepClientFields": True},
    )
    snake = parse_command(
        "validate",
        {"no_strict_fragments": True, "max_depth": 4, "keep_client_fields": True},
    )

    assert camel == snake
    assert camel == ValidateCommand(no_strict_fragments=True, max_depth=4, keep_client_fields=True)


def test_document_pointer_list_becomes_tuple() -> None:
    command = parse_command("cov", {"command": "coverage", "documents": ["a/*.graphql", "b.gql"]})

    assert is_coverage_command(command)
    assert command.documents == ("a/*.graphql", "b.gql")


@pytest.mark.parametrize(
    ("body", "message"),
    [
        ({"command": "validate", "maxDepth": 0}, "positive integer"),
        ({"command": "validate", "apollo": "yes"}, "true or false"),
        ({"command": "similar", "threshold": 1.5}, "between 0 and 1"),
        ({"command": "similar", "name": 3}, "must be a string"),
        ({"command": "diff", "schema": "old.graphql", "rule": 1}, "list of rule names"),
        ({"command": "coverage", "documents": 42}, "path, glob or list"),
    ],
)
def test_invalid_option_values_are_rejected(body: dict, message: str) -> None:
    with pytest.raises(CommandConfigError, match=message):
        parse_command("task", body)
