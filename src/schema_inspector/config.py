"""Runtime settings for the inspector CLI."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(slots=True)
class InspectorSettings:
    """Defaults for CLI options, overridable from the environment."""

    config_path: Path | None = None
    project: str | None = None
    log_level: str = "WARNING"
    http_timeout_seconds: float = 30.0
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_env(cls) -> InspectorSettings:
        """Load settings from environment; unset variables keep the defaults."""

        config_path = os.getenv("SCHEMA_INSPECTOR_CONFIG", "").strip()
        project = os.getenv("SCHEMA_INSPECTOR_PROJECT", "").strip()
        timeout_raw = os.getenv("SCHEMA_INSPECTOR_HTTP_TIMEOUT_SECONDS", "30.0")
        try:
            http_timeout_seconds = float(timeout_raw)
        except ValueError as error:
            raise ValueError(
                f"Invalid SCHEMA_INSPECTOR_HTTP_TIMEOUT_SECONDS value: {timeout_raw!r}",
            ) from error
        settings = cls(
            config_path=Path(config_path) if config_path else None,
            project=project or None,
            log_level=os.getenv("SCHEMA_INSPECTOR_LOG_LEVEL", "WARNING").strip().upper(),
            http_timeout_seconds=http_timeout_seconds,
            headers=_collect_headers(os.getenv("SCHEMA_INSPECTOR_HEADERS", "")),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"SCHEMA_INSPECTOR_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, "
                f"got {self.log_level!r}.",
            )
        if self.http_timeout_seconds <= 0:
            raise ValueError("SCHEMA_INSPECTOR_HTTP_TIMEOUT_SECONDS must be > 0.")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def parse_header(value: str) -> tuple[str, str]:
    """Split a `Name: value` header definition."""

    name, separator, header_value = value.partition(":")
    name = name.strip()
    if not separator or not name:
        raise ValueError(f"Invalid header {value!r}. Expected format 'Name: value'.")
    return name, header_value.strip()


def _collect_headers(raw: str) -> dict[str, str]:
    headers: dict[str, str] = {}
    for part in raw.split(","):
        token = part.strip()
        if not token:
            continue
        name, value = parse_header(token)
        headers[name] = value
    return headers
