"""Similar type detection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from difflib import SequenceMatcher

import click
from graphql import (
    GraphQLInputObjectType,
    GraphQLInterfaceType,
    GraphQLNamedType,
    GraphQLObjectType,
    GraphQLSchema,
    is_input_object_type,
    is_interface_type,
    is_object_type,
)

from schema_inspector.inspect.output import resolve_write_path, write_json_report
from schema_inspector.render import Renderer, render_scale

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.4

FieldedType = GraphQLObjectType | GraphQLInterfaceType | GraphQLInputObjectType


@dataclass(frozen=True, slots=True)
class Rating:
    type_name: str
    rating: float


@dataclass(slots=True)
class SimilarMatch:
    """Best candidate for one type followed by the other candidates."""

    best_match: Rating
    ratings: list[Rating] = field(default_factory=list)


SimilarMap = dict[str, SimilarMatch]


def find_similar(
    schema: GraphQLSchema,
    name: str | None = None,
    threshold: float | None = None,
) -> SimilarMap:
    """Rate every object-like type against the others of the same category.

    The rating compares sorted `field:Type` fingerprints, so two types with
    the same fields under different names rate 1.0.
    """

    threshold = DEFAULT_THRESHOLD if threshold is None else threshold
    candidates = [
        named
        for named in schema.type_map.values()
        if not named.name.startswith("__") and _has_fields(named)
    ]

    if name is not None:
        source = schema.get_type(name)
        if source is None or not _has_fields(source):
            raise ValueError(f"Type '{name}' not found")
        sources = [source]
    else:
        sources = candidates

    fingerprints = {named.name: _fingerprint(named) for named in candidates}
    similar: SimilarMap = {}
    for source in sources:
        ratings = sorted(
            (
                Rating(
                    type_name=target.name,
                    rating=SequenceMatcher(
                        None,
                        fingerprints[source.name],
                        fingerprints[target.name],
                    ).ratio(),
                )
                for target in candidates
                if target.name != source.name and _category(target) == _category(source)
            ),
            key=lambda item: (-item.rating, item.type_name),
        )
        matches = [rating for rating in ratings if rating.rating >= threshold]
        if matches:
            similar[source.name] = SimilarMatch(best_match=matches[0], ratings=matches[1:])
    return similar


def similar_map_to_dict(similar: SimilarMap) -> dict[str, list[dict[str, object]]]:
    """JSON-ready shape: type name -> ranked `{typename, rating}` records."""

    return {
        type_name: [
            {"typename": rating.type_name, "rating": rating.rating}
            for rating in (match.best_match, *match.ratings)
        ]
        for type_name, match in similar.items()
    }


async def run_similar(
    *,
    schema: GraphQLSchema,
    renderer: Renderer,
    name: str | None = None,
    threshold: float | None = None,
    write: str | None = None,
) -> None:
    output_path = resolve_write_path(write) if write is not None else None
    similar = find_similar(schema, name, threshold)

    if not similar:
        renderer.emit("\nNo similar types found")
        return

    for type_name, match in similar.items():
        prefix = type_prefix(schema.get_type(type_name))
        renderer.emit()
        renderer.emit(f"{prefix} {click.style(type_name, bold=True)}")
        renderer.emit(_render_rating(match.best_match))
        for rating in match.ratings:
            renderer.emit(_render_rating(rating))

    if output_path is not None:
        await write_json_report(output_path, similar_map_to_dict(similar))
        logger.info("Similar types written to %s", output_path)
        renderer.success("Available at", str(output_path), "\n")

    renderer.emit()


def type_prefix(named: GraphQLNamedType | None) -> str:
    if is_input_object_type(named):
        return "input"
    if is_interface_type(named):
        return "interface"
    return "type"


def _render_rating(rating: Rating) -> str:
    percentage = click.style(f"({int(rating.rating * 100)}%)", fg="bright_black")
    return f"{render_scale(rating.rating)} {percentage} {rating.type_name}"


def _has_fields(named: GraphQLNamedType) -> bool:
    return is_object_type(named) or is_interface_type(named) or is_input_object_type(named)


def _category(named: GraphQLNamedType) -> str:
    return "input" if is_input_object_type(named) else "output"


def _fingerprint(named: FieldedType) -> str:
    return "\n".join(
        sorted(f"{field_name}:{field_def.type}" for field_name, field_def in named.fields.items()),
    )
