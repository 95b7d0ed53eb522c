"""CLI entrypoint for schema-inspector."""

from pathlib import Path

import rich_click as click

from schema_inspector import __version__
from schema_inspector.config import LOG_LEVELS, InspectorSettings, configure_logging, parse_header
from schema_inspector.controllers import (
    CoverageCliCommand,
    DiffCliCommand,
    InspectorCliController,
    RunCommand,
    SimilarCliCommand,
    ValidateCliCommand,
)
from schema_inspector.inspect import ValidateOptions
from schema_inspector.orchestrator import RunOutcome

click.rich_click.USE_MARKDOWN = True

header_option = click.option(
    "--header",
    "-H",
    "headers",
    multiple=True,
    help="Request header for remote schemas, as `Name: value`. Can be repeated.",
)


@click.group()
@click.version_option(version=__version__, prog_name="schema-inspector")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level; defaults to SCHEMA_INSPECTOR_LOG_LEVEL or WARNING.",
)
@click.pass_context
def schema_inspector(ctx: click.Context, log_level: str | None) -> None:
    """Inspect GraphQL schemas and operations."""

    try:
        settings = InspectorSettings.from_env()
    except ValueError as error:
        raise click.ClickException(str(error)) from error
    if log_level:
        settings.log_level = log_level.upper()
    configure_logging(settings.log_level)
    ctx.obj = InspectorCliController(settings=settings)


@schema_inspector.command("run")
@click.option(
    "--config",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="GraphQL config file. Searched upwards from the working directory if omitted.",
)
@click.option("--project", default=None, help="Project name; the default project if omitted.")
@click.pass_obj
def run_commands(
    controller: InspectorCliController,
    config: Path | None,
    project: str | None,
) -> None:
    """Run every command configured in the `inspector` extension."""

    _exit_on_failure(controller.run(RunCommand(config=config, project=project)))


@schema_inspector.command("diff")
@click.argument("old_schema")
@click.argument("new_schema")
@click.option("--rule", "rules", multiple=True, help="Diff rule to apply. Can be repeated.")
@header_option
@click.pass_obj
def diff(
    controller: InspectorCliController,
    old_schema: str,
    new_schema: str,
    rules: tuple[str, ...],
    headers: tuple[str, ...],
) -> None:
    """Compare two schemas and fail on breaking changes."""

    _exit_on_failure(
        controller.diff(
            DiffCliCommand(
                old_schema=old_schema,
                new_schema=new_schema,
                rules=rules,
                headers=_headers(headers),
            ),
        ),
    )


@schema_inspector.command("coverage")
@click.argument("documents")
@click.argument("schema")
@click.option("--write", default=None, help="Write the coverage report to a JSON file.")
@click.option("--silent", is_flag=True, default=False, help="Do not print the coverage report.")
@header_option
@click.pass_obj
def coverage(  # noqa: PLR0913
    controller: InspectorCliController,
    documents: str,
    schema: str,
    write: str | None,
    silent: bool,
    headers: tuple[str, ...],
) -> None:
    """Show how documents cover the schema."""

    _exit_on_failure(
        controller.coverage(
            CoverageCliCommand(
                documents=documents,
                schema=schema,
                write=write,
                silent=silent,
                headers=_headers(headers),
            ),
        ),
    )


@schema_inspector.command("validate")
@click.argument("documents")
@click.argument("schema")
@click.option("--deprecated", is_flag=True, default=False, help="Fail on deprecated usage.")
@click.option(
    "--no-strict-fragments",
    is_flag=True,
    default=False,
    help="Allow fragment names to repeat across documents.",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=1),
    default=None,
    help="Fail on operations nested deeper than this.",
)
@click.option("--apollo", is_flag=True, default=False, help="Support Apollo client directives.")
@click.option(
    "--keep-client-fields",
    is_flag=True,
    default=False,
    help="Keep fields marked with @client.",
)
@header_option
@click.pass_obj
def validate(  # noqa: PLR0913
    controller: InspectorCliController,
    documents: str,
    schema: str,
    deprecated: bool,
    no_strict_fragments: bool,
    max_depth: int | None,
    apollo: bool,
    keep_client_fields: bool,
    headers: tuple[str, ...],
) -> None:
    """Validate documents against the schema."""

    _exit_on_failure(
        controller.validate(
            ValidateCliCommand(
                documents=documents,
                schema=schema,
                options=ValidateOptions(
                    deprecated=deprecated,
                    strict_fragments=not no_strict_fragments,
                    max_depth=max_depth,
                    apollo=apollo,
                    keep_client_fields=keep_client_fields,
                ),
                headers=_headers(headers),
            ),
        ),
    )


@schema_inspector.command("similar")
@click.argument("schema")
@click.option("--name", default=None, help="Only compare this type against the others.")
@click.option(
    "--threshold",
    type=click.FloatRange(min=0.0, max=1.0),
    default=None,
    help="Minimum similarity rating, 0..1.",
)
@click.option("--write", default=None, help="Write matches to a JSON file.")
@header_option
@click.pass_obj
def similar(  # noqa: PLR0913
    controller: InspectorCliController,
    schema: str,
    name: str | None,
    threshold: float | None,
    write: str | None,
    headers: tuple[str, ...],
) -> None:
    """Find similar types in the schema."""

    _exit_on_failure(
        controller.similar(
            SimilarCliCommand(
                schema=schema,
                name=name,
                threshold=threshold,
                write=write,
                headers=_headers(headers),
            ),
        ),
    )


def _headers(values: tuple[str, ...]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        try:
            name, header_value = parse_header(value)
        except ValueError as error:
            raise click.BadParameter(str(error), param_hint="--header") from error
        headers[name] = header_value
    return headers


def _exit_on_failure(outcome: RunOutcome) -> None:
    if not outcome.success:
        click.get_current_context().exit(outcome.exit_code or 1)


if __name__ == "__main__":  # pragma: no cover
    schema_inspector()
