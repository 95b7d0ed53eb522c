"""Schema coverage: how often operation documents select each field."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import click
from graphql import (
    FieldNode,
    GraphQLSchema,
    Source,
    TypeInfo,
    TypeInfoVisitor,
    Visitor,
    get_named_type,
    is_input_object_type,
    is_interface_type,
    is_object_type,
    parse,
    visit,
)

from schema_inspector.inspect.output import resolve_write_path, write_json_report
from schema_inspector.render import Renderer, pluralize

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FieldCoverage:
    hits: int = 0
    locations: list[str] = field(default_factory=list)


@dataclass(slots=True)
class TypeCoverage:
    type_name: str
    hits: int = 0
    children: dict[str, FieldCoverage] = field(default_factory=dict)


@dataclass(slots=True)
class SchemaCoverage:
    """Hit counts per type and field, keyed in schema order."""

    sources: list[str] = field(default_factory=list)
    types: dict[str, TypeCoverage] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sources": list(self.sources),
            "types": {
                name: {
                    "hits": coverage.hits,
                    "children": {
                        child: {"hits": stats.hits, "locations": list(stats.locations)}
                        for child, stats in coverage.children.items()
                    },
                }
                for name, coverage in self.types.items()
            },
        }

    def stats(self) -> tuple[int, int, int, int]:
        """Covered types, total types, covered fields, total fields."""

        types_covered = sum(1 for coverage in self.types.values() if coverage.hits)
        fields_total = sum(len(coverage.children) for coverage in self.types.values())
        fields_covered = sum(
            1
            for coverage in self.types.values()
            for stats in coverage.children.values()
            if stats.hits
        )
        return types_covered, len(self.types), fields_covered, fields_total


class _FieldUsageVisitor(Visitor):
    def __init__(self, type_info: TypeInfo, coverage: SchemaCoverage, location: str) -> None:
        super().__init__()
        self.type_info = type_info
        self.coverage = coverage
        self.location = location

    def enter_field(self, node: FieldNode, *_args: Any) -> None:
        parent = self.type_info.get_parent_type()
        if parent is None or self.type_info.get_field_def() is None:
            return
        type_coverage = self.coverage.types.get(get_named_type(parent).name)
        if type_coverage is None:
            return
        field_coverage = type_coverage.children.get(node.name.value)
        if field_coverage is None:
            return
        type_coverage.hits += 1
        field_coverage.hits += 1
        if self.location not in field_coverage.locations:
            field_coverage.locations.append(self.location)


def calculate_coverage(schema: GraphQLSchema, sources: Sequence[Source]) -> SchemaCoverage:
    coverage = SchemaCoverage(sources=[source.name for source in sources])
    for name, named in schema.type_map.items():
        if name.startswith("__"):
            continue
        if is_object_type(named) or is_interface_type(named) or is_input_object_type(named):
            coverage.types[name] = TypeCoverage(
                type_name=name,
                children={field_name: FieldCoverage() for field_name in named.fields},
            )

    for source in sources:
        type_info = TypeInfo(schema)
        visit(
            parse(source),
            TypeInfoVisitor(type_info, _FieldUsageVisitor(type_info, coverage, source.name)),
        )
    return coverage


async def run_coverage(
    *,
    schema: GraphQLSchema,
    documents: Sequence[Source],
    renderer: Renderer,
    write_path: str | None = None,
    silent: bool = False,
) -> None:
    output_path = resolve_write_path(write_path) if write_path is not None else None
    coverage = calculate_coverage(schema, documents)

    if not silent:
        renderer.emit(f"\nSchema coverage based on {pluralize(len(documents), 'document')}:\n")
        for type_coverage in coverage.types.values():
            renderer.emit(_render_type(type_coverage))

        types_covered, types_total, fields_covered, fields_total = coverage.stats()
        renderer.emit(
            f"Types covered: {types_covered} / {types_total} "
            f"({_percent(types_covered, types_total)})",
        )
        renderer.emit(
            f"Fields covered: {fields_covered} / {fields_total} "
            f"({_percent(fields_covered, fields_total)})",
        )

    if output_path is not None:
        await write_json_report(output_path, coverage.to_dict())
        logger.info("Coverage written to %s", output_path)
        renderer.success("Available at", str(output_path), "\n")


def _render_type(coverage: TypeCoverage) -> str:
    lines = [f"{click.style(coverage.type_name, bold=True)} {_render_hits(coverage.hits)} {{"]
    lines.extend(
        f"  {field_name} {_render_hits(stats.hits)}"
        for field_name, stats in coverage.children.items()
    )
    lines.append("}\n")
    return "\n".join(lines)


def _render_hits(hits: int) -> str:
    return click.style(str(hits), fg="green" if hits else "red")


def _percent(part: int, total: int) -> str:
    if not total:
        return "0%"
    return f"{part * 100 // total}%"
