"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``EXTHOST_*`` prefix
  3. TOML file    — ``exthost.toml`` discovered via walk-up
  4. Code defaults

Uses Pydantic Settings v2 with a custom :class:`TomlSettingsSource`.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import tomllib
from collections.abc import Collection
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

CONFIG_FILENAME = "exthost.toml"
CONFIG_ENV_VAR = "EXTHOST_CONFIG"
CONFIG_SECTION = "exthost"
DIAGNOSTICS_LOG_NAME = "codex_extensions.log"

logger = logging.getLogger(__name__)


def find_config(start: Path | None = None) -> Path | None:
    """Locate exthost.toml in *start* (default: cwd) or any parent.

    ``EXTHOST_CONFIG`` wins when set; a value that is not a file means
    "no config" rather than falling back to the walk-up.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        explicit = Path(env_path)
        return explicit if explicit.is_file() else None

    here = (start or Path.cwd()).resolve()
    for directory in (here, *here.parents):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _default_home() -> Path | None:
    try:
        return Path.home() / ".codex"
    except RuntimeError:
        return None


def load_toml_table(path: Path, known: Collection[str]) -> dict[str, Any]:
    """Settings keys from *path*: top-level keys, overlaid by an ``[exthost]`` table.

    Keys not in *known* are logged and dropped.

    Raises:
        click.ClickException: the file is not valid TOML.
    """
    try:
        document = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        import click

        msg = f"Invalid TOML in {path}: {exc}"
        raise click.ClickException(msg) from exc

    section = document.pop(CONFIG_SECTION, {})
    merged = {**document, **(section if isinstance(section, dict) else {})}
    for key in sorted(set(merged) - set(known)):
        logger.warning("Ignoring unknown setting %r in %s", key, path)
    return {k: v for k, v in merged.items() if k in known}


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by one ``exthost.toml`` file (or none)."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._values: dict[str, Any] = (
            load_toml_table(toml_path, settings_cls.model_fields)
            if toml_path is not None and toml_path.is_file()
            else {}
        )

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, field_name in self._values

    def __call__(self) -> dict[str, Any]:
        return dict(self._values)


# TOML path for the HostSettings currently under construction on this thread.
_tls = threading.local()


class HostSettings(BaseSettings):
    """Settings for the extension host and its CLI.

    Attributes:
        extension_dir: Override directory searched before all others.
        extensions_log: Enable the append-only diagnostics log.
        home: Application home holding ``sessions/`` and ``log/``.
        interpreter: Program used to run each script; empty runs it directly.
        script_suffix: File extension discovery filters on (case-insensitive).
        timeout: Per-call bound in seconds; None waits indefinitely.
        strip_env: Variables removed from every script's environment.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "EXTHOST_",
    }

    config_path: Path | None = None

    # --- Host ---
    extension_dir: Path | None = None
    extensions_log: bool = False
    home: Path | None = Field(default_factory=_default_home)
    interpreter: str = "node"
    script_suffix: str = ".js"
    timeout: float | None = 30.0
    debounce_ms: int = 1000
    page_size: int = 10
    strip_env: list[str] = Field(default_factory=list)

    # --- CLI flags ---
    json_output: bool = False
    verbose: bool = False
    log_json: bool = False

    @property
    def sessions_root(self) -> Path:
        if self.home is None:
            return Path(".")
        return self.home / "sessions"

    @property
    def diagnostics_log_path(self) -> Path:
        if self.home is None:
            return Path(tempfile.gettempdir()) / DIAGNOSTICS_LOG_NAME
        return self.home / "log" / DIAGNOSTICS_LOG_NAME

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        cwd: Path | None = None,
        **cli_flags: Any,
    ) -> HostSettings:
        """Construct settings from a CLI invocation.

        Flags left as None are dropped so they do not mask env or TOML values.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(cwd)

        overrides = {k: v for k, v in cli_flags.items() if v is not None}
        _tls.toml_path = toml_path
        try:
            return cls(config_path=toml_path, **overrides)
        finally:
            _tls.toml_path = None
