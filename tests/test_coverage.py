from __future__ import annotations

import json
from pathlib import Path

import allure
import pytest
from graphql import Source

from schema_inspector.inspect.coverage import calculate_coverage, run_coverage
from schema_inspector.inspect.output import WritePathError
from schema_inspector.render import BufferedRenderer

from conftest import USER_QUERY

pytestmark = [
    allure.epic("Inspections"),
    allure.feature("Schema Coverage"),
]

POSTS_QUERY = """
query Posts {
  posts {
    title
    author {
      ...AuthorName
    }
  }
}

fragment AuthorName on User {
  name
}
"""


def _sources() -> list[Source]:
    return [
        Source(USER_QUERY, "operations/user.graphql"),
        Source(POSTS_QUERY, "operations/posts.graphql"),
    ]


def test_calculate_coverage_counts_hits_and_locations(schema) -> None:
    coverage = calculate_coverage(schema, _sources())

    user = coverage.types["User"]
    assert user.hits == 3
    assert user.children["name"].hits == 2
    assert user.children["name"].locations == [
        "operations/user.graphql",
        "operations/posts.graphql",
    ]
    assert user.children["email"].hits == 0
    assert coverage.types["Author"].hits == 0
    assert coverage.stats() == (3, 4, 6, 12)


@pytest.mark.asyncio
async def test_run_coverage_prints_summary(schema) -> None:
    renderer = BufferedRenderer()

    await run_coverage(schema=schema, documents=[_sources()[0]], renderer=renderer)

    lines = renderer.lines()
    assert lines[0] == "\nSchema coverage based on 1 document:\n"
    assert "User 2 {\n  id 1\n  name 1\n  email 0\n  contact 0\n}\n" in lines
    assert lines[-2:] == ["Types covered: 2 / 4 (50%)", "Fields covered: 3 / 12 (25%)"]


@pytest.mark.asyncio
async def test_run_coverage_silent_writes_json_only(schema, tmp_path: Path) -> None:
    renderer = BufferedRenderer()
    target = tmp_path / "coverage.json"

    await run_coverage(
        schema=schema,
        documents=_sources(),
        renderer=renderer,
        write_path=str(target),
        silent=True,
    )

    written = json.loads(target.read_text("utf-8"))
    assert written["sources"] == ["operations/user.graphql", "operations/posts.graphql"]
    assert written["types"]["Post"]["children"]["title"] == {
        "hits": 1,
        "locations": ["operations/posts.graphql"],
    }
    assert [entry.kind for entry in renderer.entries] == ["success"]


@pytest.mark.asyncio
async def test_run_coverage_rejects_write_path_before_output(schema, tmp_path: Path) -> None:
    renderer = BufferedRenderer()

    with pytest.raises(WritePathError):
        await run_coverage(
            schema=schema,
            documents=_sources(),
            renderer=renderer,
            write_path=str(tmp_path / "coverage.yaml"),
        )

    assert renderer.entries == []
