"""GraphQL config discovery and project selection."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from schema_inspector.commands import Pointer

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = (
    ".graphqlrc",
    ".graphqlrc.yml",
    ".graphqlrc.yaml",
    ".graphqlrc.json",
    "graphql.config.yml",
    "graphql.config.yaml",
    "graphql.config.json",
)
DEFAULT_PROJECT = "default"


class ConfigError(ValueError):
    """Config file exists but cannot be used."""


class ConfigNotFoundError(ConfigError):
    """No config file could be located."""


class UnknownProjectError(ConfigError):
    """Requested project is not declared in the config."""


@dataclass(slots=True)
class ProjectConfig:
    """One named project: schema and document pointers plus extensions."""

    name: str
    dirpath: Path
    schema: Pointer
    documents: Pointer | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def has_extension(self, name: str) -> bool:
        return name in self.extensions

    def extension(self, name: str) -> Any:
        if name not in self.extensions:
            raise ConfigError(f"Project {self.name!r} has no {name!r} extension")
        return self.extensions[name]


@dataclass(slots=True)
class GraphQLConfig:
    """Parsed config file with its projects in declaration order."""

    filepath: Path
    projects: dict[str, ProjectConfig]

    @property
    def dirpath(self) -> Path:
        return self.filepath.parent

    def get_project(self, name: str) -> ProjectConfig:
        try:
            return self.projects[name]
        except KeyError:
            known = ", ".join(self.projects) or "none"
            raise UnknownProjectError(
                f"Project {name!r} not found in {self.filepath} (known projects: {known})",
            ) from None

    def get_default(self) -> ProjectConfig:
        if DEFAULT_PROJECT in self.projects:
            return self.projects[DEFAULT_PROJECT]
        if len(self.projects) == 1:
            return next(iter(self.projects.values()))
        raise UnknownProjectError(
            f"{self.filepath} declares several projects and none is named "
            f"{DEFAULT_PROJECT!r}; pass a project name",
        )


async def find_and_load_config(
    filepath: Path | None = None,
    root_dir: Path | None = None,
) -> GraphQLConfig:
    """Locate and parse the config file off the event loop."""

    return await asyncio.to_thread(load_config, filepath, root_dir)


def load_config(filepath: Path | None = None, root_dir: Path | None = None) -> GraphQLConfig:
    root = (root_dir or Path.cwd()).resolve()
    if filepath is not None:
        path = filepath if filepath.is_absolute() else root / filepath
        if not path.is_file():
            raise ConfigNotFoundError(f"GraphQL Config file not found: {path}")
    else:
        found = find_config_file(root)
        if found is None:
            raise ConfigNotFoundError(
                f"GraphQL Config file not found in {root} or any parent directory "
                f"(looked for: {', '.join(CONFIG_FILENAMES)})",
            )
        path = found

    logger.debug("Loading GraphQL config from %s", path)
    return parse_config(path, path.read_text("utf-8"))


def find_config_file(root_dir: Path) -> Path | None:
    for directory in (root_dir, *root_dir.parents):
        for filename in CONFIG_FILENAMES:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
    return None


def parse_config(path: Path, text: str) -> GraphQLConfig:
    """Parse YAML or JSON config text; JSON is read as a YAML subset."""

    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as error:
        raise ConfigError(f"Invalid GraphQL Config file {path}: {error}") from error
    if raw is None:
        raise ConfigError(f"GraphQL Config file is empty: {path}")
    if not isinstance(raw, Mapping):
        raise ConfigError(f"GraphQL Config file {path} must contain a mapping")

    dirpath = path.parent
    projects: dict[str, ProjectConfig] = {}
    if "schema" in raw:
        projects[DEFAULT_PROJECT] = _project(DEFAULT_PROJECT, raw, dirpath, path)

    declared = raw.get("projects") or {}
    if not isinstance(declared, Mapping):
        raise ConfigError(f"'projects' in {path} must be a mapping")
    for name, body in declared.items():
        if not isinstance(body, Mapping):
            raise ConfigError(f"Project {name!r} in {path} must be a mapping")
        projects[str(name)] = _project(str(name), body, dirpath, path)

    if not projects:
        raise ConfigError(f"GraphQL Config file {path} declares no schema and no projects")
    return GraphQLConfig(filepath=path, projects=projects)


def _project(name: str, body: Mapping[str, Any], dirpath: Path, path: Path) -> ProjectConfig:
    schema = _pointer(body.get("schema"))
    if schema is None:
        raise ConfigError(f"Project {name!r} in {path} has no 'schema' pointer")
    extensions = body.get("extensions") or {}
    if not isinstance(extensions, Mapping):
        raise ConfigError(f"'extensions' of project {name!r} in {path} must be a mapping")
    return ProjectConfig(
        name=name,
        dirpath=dirpath,
        schema=schema,
        documents=_pointer(body.get("documents")),
        extensions=dict(extensions),
    )


def _pointer(value: Any) -> Pointer | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    if isinstance(value, list | tuple):
        items = tuple(item.strip() for item in value if isinstance(item, str) and item.strip())
        return items or None
    return None
