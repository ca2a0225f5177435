"""Store configuration.

A store is configured by a YAML file, usually ``config.yaml`` at the root of
the store::

    path: /home/me/notes          # defaults to the folder holding this file
    date_format: "%Y-%m-%d %H:%M"
    builtin_tag_prefix: "@!"
    custom_tag_prefix: "@?"
    workers: 3

Environment variables (all optional; direct kwargs take precedence):
    NOTESTORE_PATH                root folder of the store
    NOTESTORE_DATE_FORMAT         ``strptime`` layout for front-matter dates
    NOTESTORE_BUILTIN_TAG_PREFIX  prefix for builtin tags
    NOTESTORE_CUSTOM_TAG_PREFIX   prefix for custom tags
    NOTESTORE_WORKERS             loader worker thread count
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from notestore.errors import ConfigError
from notestore.parser import (
    DEFAULT_BUILTIN_TAG_PREFIX,
    DEFAULT_CUSTOM_TAG_PREFIX,
    DEFAULT_DATE_FORMAT,
)

DEFAULT_WORKERS = 3

_ENV = {
    "path": "NOTESTORE_PATH",
    "date_format": "NOTESTORE_DATE_FORMAT",
    "builtin_tag_prefix": "NOTESTORE_BUILTIN_TAG_PREFIX",
    "custom_tag_prefix": "NOTESTORE_CUSTOM_TAG_PREFIX",
    "workers": "NOTESTORE_WORKERS",
}


@dataclass(frozen=True)
class StoreConfig:
    path: Path | None = None
    date_format: str = DEFAULT_DATE_FORMAT
    builtin_tag_prefix: str = DEFAULT_BUILTIN_TAG_PREFIX
    custom_tag_prefix: str = DEFAULT_CUSTOM_TAG_PREFIX
    workers: int = DEFAULT_WORKERS

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "<dict>") -> "StoreConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(source, f"unknown keys: {', '.join(sorted(unknown))}")
        values = dict(data)
        if values.get("path") is not None:
            values["path"] = Path(values["path"]).expanduser()
        if "workers" in values:
            values["workers"] = _workers(values["workers"], source)
        for key in ("date_format", "builtin_tag_prefix", "custom_tag_prefix"):
            if key in values and not isinstance(values[key], str):
                raise ConfigError(source, f"{key!r} must be a string")
        return cls(**values)

    def with_env(self, environ: Mapping[str, str] | None = None) -> "StoreConfig":
        """Return a copy with any ``NOTESTORE_*`` environment overrides applied."""
        environ = os.environ if environ is None else environ
        overrides: dict[str, Any] = {}
        for key, var in _ENV.items():
            value = environ.get(var)
            if value:
                overrides[key] = value
        if "path" in overrides:
            overrides["path"] = Path(overrides["path"]).expanduser()
        if "workers" in overrides:
            overrides["workers"] = _workers(overrides["workers"], _ENV["workers"])
        return replace(self, **overrides)


def _workers(value: Any, source: str) -> int:
    try:
        workers = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(source, f"'workers' must be an integer, got {value!r}") from exc
    if workers < 1:
        raise ConfigError(source, "'workers' must be at least 1")
    return workers


def load_config(
    config_path: Path | str | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    **overrides: Any,
) -> StoreConfig:
    """Load a :class:`StoreConfig` from YAML, the environment and *overrides*.

    Precedence, lowest first: defaults, the YAML file, ``NOTESTORE_*``
    environment variables, keyword *overrides*. When the resulting ``path``
    is unset it defaults to the folder containing *config_path*.
    """
    config = StoreConfig()
    if config_path is not None:
        config_path = Path(config_path)
        try:
            raw = config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(str(config_path), f"couldn't read config file: {exc}") from exc
        try:
            data = yaml.safe_load(raw) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(str(config_path), f"couldn't decode YAML: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(str(config_path), "config must be a mapping")
        config = StoreConfig.from_dict(data, source=str(config_path))

    config = config.with_env(environ)
    if overrides:
        checked = StoreConfig.from_dict(overrides, source="<overrides>")
        config = replace(config, **{key: getattr(checked, key) for key in overrides})

    if config.path is None and config_path is not None:
        config = replace(config, path=config_path.parent)
    return config
