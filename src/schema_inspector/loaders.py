"""Schema and document loaders.

Every loader is a coroutine: file reads and `git` calls run in a worker
thread, remote pointers go through `httpx.AsyncClient`.
"""

from __future__ import annotations

import asyncio
import glob
import json
import logging
import subprocess
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx
from graphql import (
    DocumentNode,
    GraphQLError,
    GraphQLSchema,
    Source,
    build_client_schema,
    build_schema,
    get_introspection_query,
    parse,
    print_schema,
)

from schema_inspector.commands import Pointer

logger = logging.getLogger(__name__)

SDL_EXTENSIONS = (".graphql", ".graphqls", ".gql")
DOCUMENT_EXTENSIONS = (".graphql", ".gql")
DEFAULT_TIMEOUT_SECONDS = 30.0
_GLOB_CHARS = frozenset("*?[")


class SchemaLoadError(RuntimeError):
    """Schema pointer could not be turned into a schema."""


class DocumentLoadError(RuntimeError):
    """Document pointer matched nothing or contained invalid GraphQL."""


@dataclass(frozen=True, slots=True)
class DocumentSource:
    """Parsed operation document and where it came from."""

    location: str
    document: DocumentNode


async def load_schema(
    pointer: Pointer,
    *,
    root_dir: Path,
    headers: Mapping[str, str] | None = None,
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
) -> GraphQLSchema:
    """Load and merge every schema source the pointer names."""

    parts: list[str] = []
    for item in _as_tuple(pointer):
        try:
            parts.extend(
                await _load_sdl(
                    item,
                    root_dir=root_dir,
                    headers=headers or {},
                    timeout_seconds=timeout_seconds,
                ),
            )
        except (OSError, ValueError, KeyError, TypeError, httpx.HTTPError, GraphQLError) as error:
            raise SchemaLoadError(f"Failed to load schema from {item}: {error}") from error

    if not parts:
        raise SchemaLoadError(
            f"Unable to find any GraphQL type definitions for: {_describe(pointer)}",
        )
    try:
        return build_schema("\n\n".join(parts))
    except (GraphQLError, TypeError) as error:
        raise SchemaLoadError(f"Invalid schema from {_describe(pointer)}: {error}") from error


async def load_documents(pointer: Pointer, *, root_dir: Path) -> list[DocumentSource]:
    """Parse every operation file matched by the pointer, in path order."""

    paths: list[Path] = []
    for item in _as_tuple(pointer):
        try:
            matched = await asyncio.to_thread(_expand, item, root_dir, DOCUMENT_EXTENSIONS)
        except OSError as error:
            raise DocumentLoadError(f"Failed to load documents from {item}: {error}") from error
        for path in matched:
            if path not in paths:
                paths.append(path)
    if not paths:
        raise DocumentLoadError(f"No documents found for: {_describe(pointer)}")

    documents: list[DocumentSource] = []
    for path in paths:
        location = _location(path, root_dir)
        text = await asyncio.to_thread(path.read_text, "utf-8")
        if not text.strip():
            logger.debug("Skipping empty document %s", location)
            continue
        try:
            documents.append(
                DocumentSource(location=location, document=parse(Source(text, location))),
            )
        except GraphQLError as error:
            raise DocumentLoadError(f"Unable to parse {location}: {error.message}") from error
    logger.info("Loaded %d documents", len(documents))
    return documents


async def _load_sdl(
    item: str,
    *,
    root_dir: Path,
    headers: Mapping[str, str],
    timeout_seconds: float,
) -> list[str]:
    if item.startswith(("http://", "https://")):
        return [await _introspect_endpoint(item, headers=headers, timeout_seconds=timeout_seconds)]
    if item.startswith("github:"):
        url = github_raw_url(item)
        text = await _fetch_text(url, headers=headers, timeout_seconds=timeout_seconds)
        return [_sdl_from_text(text, item)]
    if item.startswith("git:"):
        text = await asyncio.to_thread(_git_show, item, root_dir)
        return [_sdl_from_text(text, item)]

    paths = await asyncio.to_thread(_expand, item, root_dir, (*SDL_EXTENSIONS, ".json"))
    sdl: list[str] = []
    for path in paths:
        text = await asyncio.to_thread(path.read_text, "utf-8")
        sdl.append(_sdl_from_text(text, str(path)))
    return sdl


async def _introspect_endpoint(
    url: str,
    *,
    headers: Mapping[str, str],
    timeout_seconds: float,
) -> str:
    logger.info("Introspecting %s", url)
    async with httpx.AsyncClient(timeout=timeout_seconds, headers=dict(headers)) as client:
        response = await client.post(url, json={"query": get_introspection_query()})
        response.raise_for_status()
        payload = response.json()
    if not isinstance(payload, dict) or not isinstance(payload.get("data"), dict):
        raise ValueError(f"introspection query returned no data: {payload!r:.200}")
    if payload.get("errors"):
        raise ValueError(f"introspection query failed: {payload['errors']!r:.200}")
    return print_schema(build_client_schema(payload["data"]))


async def _fetch_text(url: str, *, headers: Mapping[str, str], timeout_seconds: float) -> str:
    async with httpx.AsyncClient(timeout=timeout_seconds, headers=dict(headers)) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response.text


def github_raw_url(pointer: str) -> str:
    """Translate `github:owner/repo#ref:path` into a raw content URL."""

    body = pointer.removeprefix("github:")
    repository, _, rest = body.partition("#")
    ref, _, path = rest.partition(":")
    if repository.count("/") != 1 or not ref or not path:
        raise ValueError(f"expected github:<owner>/<repo>#<ref>:<path>, got {pointer!r}")
    return f"https://raw.githubusercontent.com/{repository}/{ref}/{path.lstrip('/')}"


def _git_show(pointer: str, root_dir: Path) -> str:
    revision = pointer.removeprefix("git:")
    if ":" not in revision:
        raise ValueError(f"expected git:<ref>:<path>, got {pointer!r}")
    completed = subprocess.run(  # noqa: S603
        ["git", "show", revision],  # noqa: S607
        cwd=root_dir,
        check=False,
        capture_output=True,
        text=True,
    )
    if completed.returncode != 0:
        raise ValueError(completed.stderr.strip() or f"git show exit code={completed.returncode}")
    return completed.stdout


def _sdl_from_text(text: str, location: str) -> str:
    stripped = text.lstrip()
    if not stripped.startswith("{"):
        return text
    payload: Any = json.loads(text)
    if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
        payload = payload["data"]
    if not isinstance(payload, dict) or "__schema" not in payload:
        raise ValueError(f"{location} is not an introspection result")
    return print_schema(build_client_schema(payload))


def _expand(item: str, root_dir: Path, extensions: tuple[str, ...]) -> list[Path]:
    candidate = Path(item)
    if not candidate.is_absolute():
        candidate = root_dir / candidate
    if not _GLOB_CHARS.intersection(item):
        if not candidate.is_file():
            raise FileNotFoundError(f"No such file: {candidate}")
        return [candidate]
    return sorted(
        Path(match)
        for match in glob.glob(str(candidate), recursive=True)
        if Path(match).is_file() and Path(match).suffix.lower() in extensions
    )


def _location(path: Path, root_dir: Path) -> str:
    try:
        return path.relative_to(root_dir).as_posix()
    except ValueError:
        return str(path)


def _as_tuple(pointer: Pointer) -> tuple[str, ...]:
    return (pointer,) if isinstance(pointer, str) else tuple(pointer)


def _describe(pointer: Pointer) -> str:
    return ", ".join(_as_tuple(pointer))
