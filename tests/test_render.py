from __future__ import annotations

import allure
import click
from click.testing import CliRunner

from schema_inspector.render import (
    BufferedRenderer,
    ConsoleRenderer,
    pluralize,
    render_banner,
    render_scale,
)

pytestmark = [
    allure.epic("Reporting"),
    allure.feature("Renderers"),
]


def test_buffered_renderer_replays_entries_in_order() -> None:
    source = BufferedRenderer()
    source.emit("first")
    source.error("broken", "twice")
    source.success("done")

    target = BufferedRenderer()
    source.flush(target)

    assert [(entry.kind, entry.text) for entry in target.entries] == [
        ("emit", "first"),
        ("error", "broken twice"),
        ("success", "done"),
    ]


def test_buffered_renderer_lines_strip_styles_by_default() -> None:
    renderer = BufferedRenderer()
    renderer.emit(*render_banner("lintDiff"))

    assert renderer.lines() == ["\n command  lintDiff"]
    assert renderer.lines(plain=False)[0] != renderer.lines()[0]


def test_empty_emit_records_blank_line() -> None:
    renderer = BufferedRenderer()
    renderer.emit()

    assert renderer.lines() == [""]


def test_console_renderer_marks_success_and_error() -> None:
    @click.command()
    def report() -> None:
        renderer = ConsoleRenderer()
        renderer.emit("plain")
        renderer.success("ok")
        renderer.error("failed")

    result = CliRunner().invoke(report)

    assert result.exit_code == 0
    assert "plain" in result.output
    assert "✔ ok" in result.output
    assert "✖ failed" in result.output


def test_render_scale_dims_unreached_levels() -> None:
    assert click.unstyle(render_scale(0.95)) == "•••••"
    assert render_scale(0.95) == "•••••"
    assert render_scale(0.35).startswith("••")
    assert render_scale(0.35) != "•••••"


def test_pluralize() -> None:
    assert pluralize(1, "document") == "1 document"
    assert pluralize(3, "document") == "3 documents"
    assert pluralize(0, "change") == "0 changes"
