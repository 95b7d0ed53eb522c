"""Writing machine-readable reports next to the console output."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

_FORBIDDEN_PATH_CHARS = frozenset('<>"|?*\0')


class WritePathError(ValueError):
    """Write target is not a usable path or has an unsupported extension."""


def resolve_write_path(write: object, *, supported: tuple[str, ...] = ("json",)) -> Path:
    """Validate a `--write` target and return it as an absolute path.

    Nothing touches the filesystem here, so callers can reject a bad target
    before doing any work.
    """

    if (
        not isinstance(write, str)
        or not write.strip()
        or _FORBIDDEN_PATH_CHARS.intersection(write)
    ):
        raise WritePathError(f"--write is not valid file path: {write}")

    path = Path(write.strip()).expanduser()
    if not path.is_absolute():
        path = Path.cwd() / path
    extension = path.suffix.removeprefix(".").lower()
    if extension not in supported:
        raise WritePathError(f"Extension {extension} is not supported")
    return path


async def write_json_report(path: Path, payload: Any) -> Path:
    """Serialize `payload` to `path` in a worker thread."""

    text = json.dumps(payload, indent=2, ensure_ascii=False)
    await asyncio.to_thread(path.write_text, text + "\n", "utf-8")
    return path
