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
"""Origin/Referer validator — decides whether an unsafe request's Referer is trusted.

Decision order:

1. No Referer -> untrusted (fail closed).
2. Unparsable Referer, or one without scheme and host -> untrusted.
3. Referer ``scheme://host[:port]`` equal to the request's own origin ->
   trusted.  Default ports (80, 443) are dropped before comparing.  An
   ``https`` request needs an ``https`` Referer; an ``http`` request also
   accepts an ``https`` Referer for the same host, as seen behind a
   TLS-terminating proxy.
4. A configured callback decides with full discretion.
5. Otherwise the Referer *host* must equal one of the configured trusted
   hosts.  Trusted entries are bare hosts; an entry carrying a scheme
   (``https://example.com``) never matches anything.
6. Otherwise untrusted.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any
from urllib.parse import SplitResult, urlsplit

from csrfguard.kernel.exceptions import ConfigurationException
from csrfguard.logging.structlog_adapter import get_logger

logger = get_logger("csrfguard.security.origin")

TrustedOriginsCallback = Callable[[SplitResult, Any], bool]
"""``callback(referer_url, request) -> bool`` — custom trust policy."""


class OriginValidator:
    """Validates the Referer of unsafe requests against the request origin
    and the configured trust policy."""

    def __init__(
        self,
        trusted_origins: Iterable[str] = (),
        callback: TrustedOriginsCallback | None = None,
    ) -> None:
        origins: list[str] = []
        for entry in trusted_origins:
            if not isinstance(entry, str) or not entry:
                raise ConfigurationException(
                    f"Trusted origins must be non-empty host strings, got {entry!r}",
                    code="CSRF_CONFIG",
                )
            if "://" in entry:
                logger.warning("csrf_trusted_origin_has_scheme", origin=entry)
            origins.append(entry.lower())

        if callback is not None and not callable(callback):
            raise ConfigurationException("Trusted origins callback must be callable", code="CSRF_CONFIG")
        if callback is not None and origins:
            logger.warning("csrf_trusted_origins_ignored", reason="callback takes precedence")

        self._trusted_hosts: frozenset[str] = frozenset(o for o in origins if "://" not in o)
        self._callback = callback

    @property
    def trusted_hosts(self) -> frozenset[str]:
        """The static trusted hosts that can actually match."""
        return self._trusted_hosts

    def is_trusted(self, request_origin: tuple[str, str], referer: str | None, request: Any = None) -> bool:
        """Return ``True`` if *referer* is trusted for a request whose own
        origin is ``(scheme, host)``."""
        parsed = parse_referer(referer)
        if parsed is None:
            return False

        scheme, host = request_origin
        if _same_origin(parsed, scheme.lower(), host.lower()):
            return True

        if self._callback is not None:
            return bool(self._callback(parsed, request))

        return _host(parsed) in self._trusted_hosts


def parse_referer(referer: str | None) -> SplitResult | None:
    """Parse a Referer header; ``None`` when absent or not an absolute URL."""
    if not referer:
        return None
    try:
        parsed = urlsplit(referer.strip())
    except ValueError:
        return None
    if not parsed.scheme or not _host(parsed):
        return None
    return parsed


_DEFAULT_PORTS = {"http": "80", "https": "443"}


def _same_origin(referer: SplitResult, scheme: str, host: str) -> bool:
    referer_scheme = referer.scheme.lower()
    if referer_scheme != scheme and not (scheme == "http" and referer_scheme == "https"):
        return False
    return _strip_default_port(_host(referer), referer_scheme) == _strip_default_port(host, scheme)


def _strip_default_port(host: str, scheme: str) -> str:
    name, sep, port = host.rpartition(":")
    if sep and port == _DEFAULT_PORTS.get(scheme):
        return name
    return host


def _host(url: SplitResult) -> str:
    """``host[:port]`` of *url* without userinfo, lowercased."""
    return url.netloc.rpartition("@")[2].lower()
