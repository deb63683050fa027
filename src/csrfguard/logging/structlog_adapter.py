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
"""structlog wiring for csrfguard.

Library modules log through :func:`get_logger`; applications call
``StructlogAdapter().configure(config)`` once at startup to pick the
renderer and levels from the ``csrfguard.logging`` section.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

from csrfguard.config.properties.logging import LoggingProperties
from csrfguard.core.config import Config

REDACTED = "[redacted]"

SECRET_FIELDS: frozenset[str] = frozenset({"token", "secret", "cookie_value", "auth_key", "encryption_key"})
"""Event keys whose values never reach the log output."""


def get_logger(name: str) -> Any:
    return structlog.get_logger(name)


def redact_secrets(logger: Any, method_name: str, event_dict: MutableMapping[str, Any]) -> MutableMapping[str, Any]:
    """structlog processor masking :data:`SECRET_FIELDS`."""
    for key in SECRET_FIELDS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


class StructlogAdapter:
    """:class:`~csrfguard.logging.port.LoggingPort` backed by structlog and stdlib logging.

    ``csrfguard.logging.format`` selects ``console`` or ``json`` output;
    ``csrfguard.logging.level`` maps ``root`` and logger names to levels.
    """

    def __init__(self) -> None:
        self._format = "console"
        self._root_level = "INFO"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        props = config.bind(LoggingProperties)
        levels = dict(props.level) if isinstance(props.level, dict) else {"root": props.level}

        self._format = str(props.format).lower()
        self._root_level = str(levels.pop("root", "INFO")).upper()
        self._module_levels = {name: str(level).upper() for name, level in levels.items()}

        structlog.configure(
            processors=self._processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(format="%(message)s", stream=sys.stdout, level=_level(self._root_level), force=True)
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        logging.getLogger(name).setLevel(_level(level))

    def _processors(self) -> list[structlog.types.Processor]:
        renderer: structlog.types.Processor
        if self._format == "json":
            renderer = structlog.processors.JSONRenderer()
        else:
            renderer = structlog.dev.ConsoleRenderer()
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            redact_secrets,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            renderer,
        ]


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)
