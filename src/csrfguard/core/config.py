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
"""Layered configuration: packaged defaults, YAML/TOML files, profiles, environment.

Keys are dotted paths under ``csrfguard.`` (``csrfguard.csrf.cookie-name``).
Any key can be overridden by an environment variable derived from it
(``CSRFGUARD_CSRF_COOKIE_NAME``), and string values may embed ``${...}``
placeholders that resolve against the environment or other keys.
"""

from __future__ import annotations

import dataclasses
import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_PREFIX_ATTR = "__csrfguard_config_prefix__"
_ENV_PREFIX = "CSRFGUARD_"
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_DEPTH = 10
_DEFAULTS_FILE = "csrfguard-defaults.yaml"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Bind a dataclass to the config section at *prefix*.

    Usage::

        @config_properties(prefix="csrfguard.csrf")
        @dataclass
        class CsrfProperties:
            cookie_name: str = "_csrf"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Read-only view over merged configuration data.

    Lookup order for a key: environment variable, then the merged data,
    then the caller's default (or the dataclass default when binding).
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """Files merged into this config, in the order they were applied."""
        return list(self._sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Build a config from *path* plus ``{stem}-{profile}{suffix}`` overlays.

        The packaged defaults sit underneath unless *load_defaults* is
        false.  A missing *path* is not an error; profiles are only looked
        up next to an existing base file.
        """
        path = Path(path)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls.load_defaults()
            sources.append(f"{_DEFAULTS_FILE} (library defaults)")

        if path.is_file():
            layers = [(path, str(path))]
            for profile in active_profiles or []:
                overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
                if overlay.is_file():
                    layers.append((overlay, f"{overlay} (profile: {profile})"))
            for layer, label in layers:
                data = _deep_merge(data, _read(layer))
                sources.append(label)

        config = cls(data)
        config._sources = sources
        return config

    @staticmethod
    def load_defaults() -> dict[str, Any]:
        """The library defaults shipped in ``csrfguard.resources``."""
        text = importlib.resources.files("csrfguard.resources").joinpath(_DEFAULTS_FILE).read_text(encoding="utf-8")
        return yaml.safe_load(text) or {}

    @staticmethod
    def env_key(key: str) -> str:
        """``csrfguard.csrf.auth-key`` -> ``CSRFGUARD_CSRF_AUTH_KEY``."""
        name = key.removeprefix("csrfguard.")
        return _ENV_PREFIX + re.sub(r"[.\-]", "_", name).upper()

    def get(self, key: str, default: Any = None) -> Any:
        """Value at dotted *key*, with env override and placeholder expansion."""
        env_value = os.environ.get(self.env_key(key))
        if env_value is not None:
            return env_value

        value = self._lookup(key)
        if value is None:
            return default
        if isinstance(value, str):
            return self._expand(value)
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        section = self._lookup(prefix)
        return section if isinstance(section, dict) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Instantiate a ``@config_properties`` dataclass from its section.

        Section keys may be kebab-case.  Each field can be overridden from
        the environment; string values are coerced to the field type, with
        comma-separated text accepted for ``list[str]`` fields.
        """
        prefix = getattr(config_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        section = {str(key).replace("-", "_"): value for key, value in self.get_section(prefix).items()}
        hints = get_type_hints(config_cls)

        values: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            raw = os.environ.get(self.env_key(f"{prefix}.{field.name}"), section.get(field.name))
            if raw is None:
                continue
            if isinstance(raw, str):
                raw = self._expand(raw)
            values[field.name] = _coerce(raw, hints.get(field.name))
        return config_cls(**values)

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
            if node is None:
                return None
        return node

    def _expand(self, value: str, depth: int = 0) -> str:
        """Resolve ``${ENV}``, ``${dotted.key}`` and ``${name:default}`` placeholders."""
        if "${" not in value:
            return value
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(f"Max recursion depth exceeded expanding '{value}'; check for circular placeholders")

        def substitute(match: re.Match[str]) -> str:
            name, _, fallback = match.group(1).partition(":")
            has_fallback = ":" in match.group(1)

            env_value = os.environ.get(name)
            if env_value is not None:
                return env_value
            found = self._lookup(name)
            if found is not None:
                return self._expand(str(found), depth + 1)
            if has_fallback:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}'")

        return _PLACEHOLDER.sub(substitute, value)


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        with path.open("rb") as f:
            return tomllib.load(f)
    with path.open(encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _coerce(value: Any, expected: Any) -> Any:
    if not isinstance(value, str):
        return value
    if expected is bool:
        return value.strip().lower() in ("true", "1", "yes", "on")
    if expected is int:
        return int(value)
    if expected is float:
        return float(value)
    if expected == list[str]:
        return [item.strip() for item in value.split(",") if item.strip()]
    return value
