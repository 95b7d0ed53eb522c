"""Report sinks: immediate console output and per-task buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol

import click

RenderKind = Literal["emit", "success", "error"]

SUCCESS_MARK = "✔"
ERROR_MARK = "✖"
WARNING_MARK = "⚠"
BULLET = "•"


class Renderer(Protocol):
    """Sink for human-readable report lines."""

    def emit(self, *parts: object) -> None:
        """Write a plain report line."""

    def success(self, *parts: object) -> None:
        """Write a line marked as successful."""

    def error(self, *parts: object) -> None:
        """Write a line marked as failed."""


class ConsoleRenderer:
    """Writes every line to the terminal as soon as it is produced."""

    def emit(self, *parts: object) -> None:
        click.echo(_join(parts))

    def success(self, *parts: object) -> None:
        click.echo(f"{click.style(SUCCESS_MARK, fg='green')} {_join(parts)}")

    def error(self, *parts: object) -> None:
        click.echo(f"{click.style(ERROR_MARK, fg='red')} {_join(parts)}", err=True)


@dataclass(slots=True)
class RenderedEntry:
    """One recorded renderer call."""

    kind: RenderKind
    text: str


class BufferedRenderer:
    """Records lines in emission order and replays them on `flush`."""

    def __init__(self) -> None:
        self.entries: list[RenderedEntry] = []

    def emit(self, *parts: object) -> None:
        self.entries.append(RenderedEntry(kind="emit", text=_join(parts)))

    def success(self, *parts: object) -> None:
        self.entries.append(RenderedEntry(kind="success", text=_join(parts)))

    def error(self, *parts: object) -> None:
        self.entries.append(RenderedEntry(kind="error", text=_join(parts)))

    def flush(self, target: Renderer) -> None:
        """Replay recorded lines into `target`, oldest first."""

        for entry in self.entries:
            getattr(target, entry.kind)(entry.text)

    def lines(self, *, plain: bool = True) -> list[str]:
        """Return the recorded text, without ANSI styling by default."""

        if plain:
            return [click.unstyle(entry.text) for entry in self.entries]
        return [entry.text for entry in self.entries]


def render_banner(label: str) -> tuple[str, str]:
    """Header printed at the top of every command report."""

    return f"\n{click.style(' command ', bg='blue', fg='white')}", click.style(label, bold=True)


def render_scale(ratio: float) -> str:
    """Five bullets, dimmed above the reached similarity level."""

    percentage = int(ratio * 100)
    return "".join(
        BULLET if percentage >= level else click.style(BULLET, fg="bright_black")
        for level in (0, 30, 50, 70, 90)
    )


def pluralize(count: int, word: str) -> str:
    return f"{count} {word}{'' if count == 1 else 's'}"


def _join(parts: tuple[object, ...]) -> str:
    return " ".join(str(part) for part in parts)
