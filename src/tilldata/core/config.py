# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Hierarchical configuration with YAML/TOML files, env vars, and dataclass binding."""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PROPERTIES_ATTR = "__tilldata_config_prefix__"

_ENV_PREFIX = "TILLDATA_"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a dataclass as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="tilldata.data.relational")
        @dataclass
        class RelationalProperties:
            url: str = "sqlite+aiosqlite:///./tilldata.db"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


_MAX_PLACEHOLDER_DEPTH = 10

_MISSING = object()


class Config:
    """Layered settings for the data layer.

    Lookups use dot-notation keys (``tilldata.data.backend``). A value is
    taken from, in order:

    1. the ``TILLDATA_*`` environment variable named by :meth:`env_key`
    2. the merged configuration files
    3. the caller's default, or the dataclass default when binding
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Config file paths that were loaded, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    # -- loading -------------------------------------------------------------

    @classmethod
    def from_sources(
        cls,
        base_dir: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Merge the library defaults with every config file found under *base_dir*.

        ``config/tilldata.{yaml,toml}`` is read before ``tilldata.{yaml,toml}``
        in *base_dir*, and each active profile's ``tilldata-<profile>`` files
        are layered on top. Later files win key by key.
        """
        base_dir = Path(base_dir)
        stems = ["tilldata"] + [f"tilldata-{profile}" for profile in active_profiles or []]
        return cls._assemble(cls._candidate_files(base_dir, stems), load_defaults)

    @classmethod
    def from_file(cls, path: str | Path, load_defaults: bool = True) -> Config:
        """Read a single YAML or TOML file over the library defaults; a missing file is skipped."""
        path = Path(path)
        return cls._assemble([path] if path.is_file() else [], load_defaults)

    @staticmethod
    def _candidate_files(base_dir: Path, stems: list[str]) -> list[Path]:
        found: list[Path] = []
        for stem in stems:
            for directory in (base_dir / "config", base_dir):
                found.extend(
                    candidate
                    for candidate in (directory / f"{stem}.yaml", directory / f"{stem}.toml")
                    if candidate.is_file()
                )
        return found

    @classmethod
    def _assemble(cls, files: list[Path], load_defaults: bool) -> Config:
        merged: dict[str, Any] = {}
        sources: list[str] = []
        if load_defaults:
            merged = cls._read_library_defaults()
            sources.append("tilldata-defaults.yaml (library defaults)")
        for path in files:
            merged = cls._merge(merged, cls._read_file(path))
            sources.append(str(path))

        instance = cls(merged)
        instance._loaded_sources = sources
        return instance

    @staticmethod
    def _read_file(path: Path) -> dict[str, Any]:
        if path.suffix == ".toml":
            with path.open("rb") as fh:
                return tomllib.load(fh) or {}
        with path.open(encoding="utf-8") as fh:
            return yaml.safe_load(fh) or {}

    @staticmethod
    def _read_library_defaults() -> dict[str, Any]:
        resource = importlib.resources.files("tilldata.resources") / "tilldata-defaults.yaml"
        return yaml.safe_load(resource.read_text(encoding="utf-8")) or {}

    @staticmethod
    def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        result = dict(base)
        for key, value in overlay.items():
            current = result.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                result[key] = Config._merge(current, value)
            else:
                result[key] = value
        return result

    # -- lookup --------------------------------------------------------------

    @staticmethod
    def env_key(key: str) -> str:
        """Environment variable that overrides *key*: ``tilldata.data.backend`` -> ``TILLDATA_DATA_BACKEND``."""
        base = key.removeprefix("tilldata.")
        return _ENV_PREFIX + base.upper().replace(".", "_").replace("-", "_")

    def _walk(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or node.get(part) is None:
                return _MISSING
            node = node[part]
        return node

    def get(self, key: str, default: Any = None) -> Any:
        """Value for *key*, with ``${...}`` placeholders resolved in strings."""
        override = os.environ.get(self.env_key(key))
        if override is not None:
            return override
        value = self._walk(key)
        if value is _MISSING:
            return default
        if isinstance(value, str) and "${" in value:
            return self._resolve_placeholders(value)
        return value

    def _resolve_placeholders(self, value: str, _depth: int = 0) -> str:
        """Expand ``${NAME}`` / ``${key:default}`` from the environment, then from config keys."""
        if _depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(f"Max recursion depth exceeded resolving '{value}'; check for circular placeholders")

        def _substitute(match: re.Match[str]) -> str:
            name, sep, fallback = match.group(1).partition(":")
            from_env = os.environ.get(name)
            if from_env is not None:
                return from_env
            found = self._walk(name)
            if found is not _MISSING:
                text = str(found)
                return self._resolve_placeholders(text, _depth + 1) if "${" in text else text
            if sep:
                return cast(str, fallback)
            raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}': not in environment or config")

        return _PLACEHOLDER_RE.sub(_substitute, value)

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Raw mapping stored under *prefix*, or ``{}``."""
        section = self._walk(prefix)
        return section if isinstance(section, dict) else {}

    # -- binding -------------------------------------------------------------

    def bind(self, config_cls: type[T]) -> T:
        """Instantiate a ``@config_properties`` dataclass from its prefix.

        A field ``ddl_auto`` is read from ``ddl_auto`` or ``ddl-auto`` and can
        be overridden by ``TILLDATA_..._DDL_AUTO``. Strings are coerced to
        the field's ``int``, ``float`` or ``bool`` annotation.
        """
        prefix = getattr(config_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = self.get_section(prefix)
        hints = get_type_hints(config_cls)
        values: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            raw = os.environ.get(self.env_key(f"{prefix}.{field.name}"))
            if raw is None:
                raw = section.get(field.name, section.get(field.name.replace("_", "-")))
            if raw is not None:
                values[field.name] = self._coerce(raw, hints.get(field.name))
        return config_cls(**values)

    @staticmethod
    def _coerce(raw: Any, annotation: Any) -> Any:
        if annotation is bool and isinstance(raw, str):
            return raw.strip().lower() in ("true", "1", "yes", "on")
        if annotation is int and isinstance(raw, str):
            return int(raw)
        if annotation is float and isinstance(raw, (str, int)):
            return float(raw)
        return raw
