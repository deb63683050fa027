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
"""CSRF validation pipeline — double-submit cookie with masked tokens.

:class:`CsrfProtection` decides, per request, whether an unsafe request
carries proof that it originated from a page this server rendered:

* the sealed secret cookie (:class:`~csrfguard.security.cookie_store.CookieStore`),
* a trusted Referer (:class:`~csrfguard.security.origin.OriginValidator`),
* a masked token in the request header or form field that unmasks to the
  cookie's secret (:class:`~csrfguard.security.masking.TokenMasker`).

The pipeline is framework-agnostic and synchronous: adapters turn their
request into a :class:`RequestView` and act on the returned
:class:`CsrfContext`.
"""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from csrfguard.config.properties.csrf import CsrfProperties
from csrfguard.kernel.exceptions import (
    BadCookieError,
    BadRefererError,
    BadTokenError,
    ConfigurationException,
    CsrfError,
    NoCookieError,
    NoRefererError,
    NoTokenError,
)
from csrfguard.logging.structlog_adapter import get_logger
from csrfguard.security.cookie_store import KEY_LENGTH, SECRET_LENGTH, CookieOptions, CookieStore, IssuedCookie
from csrfguard.security.entropy import RandomSource, SystemRandomSource
from csrfguard.security.masking import TokenMasker
from csrfguard.security.origin import OriginValidator, TrustedOriginsCallback, parse_referer

logger = get_logger("csrfguard.security")

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
"""HTTP methods that do not require CSRF validation."""

DEFAULT_HEADER_NAME: str = "X-CSRF-Token"
DEFAULT_FIELD_NAME: str = "csrf_token"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CsrfOptions:
    """Immutable, validated configuration of the CSRF filter.

    ``trusted_origins`` holds bare hosts (``api.example.com``).  When
    ``trusted_origins_callback`` is set it takes precedence over the static
    list.  ``exclude_paths`` are path prefixes that skip validation.
    """

    auth_key: bytes
    encryption_key: bytes | None = None
    cookie: CookieOptions = field(default_factory=CookieOptions)
    request_header: str = DEFAULT_HEADER_NAME
    field_name: str = DEFAULT_FIELD_NAME
    safe_methods: frozenset[str] = SAFE_METHODS
    trusted_origins: frozenset[str] = frozenset()
    trusted_origins_callback: TrustedOriginsCallback | None = None
    exclude_paths: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.auth_key, bytes | bytearray) or len(self.auth_key) != KEY_LENGTH:
            raise ConfigurationException(
                f"auth_key must be exactly {KEY_LENGTH} bytes", code="CSRF_CONFIG", context={"key": "auth_key"}
            )
        if not self.request_header or not self.field_name:
            raise ConfigurationException("Token header and form field names must not be empty", code="CSRF_CONFIG")

        methods = frozenset(m.upper() for m in self.safe_methods)
        if not methods.isdisjoint({"POST", "PUT", "PATCH", "DELETE"}):
            raise ConfigurationException(
                "State-changing methods cannot be declared safe", code="CSRF_CONFIG", context={"methods": sorted(methods)}
            )
        object.__setattr__(self, "safe_methods", methods)

        for prefix in self.exclude_paths:
            if not prefix.startswith("/"):
                raise ConfigurationException(f"Excluded path {prefix!r} must start with '/'", code="CSRF_CONFIG")
        object.__setattr__(self, "exclude_paths", tuple(self.exclude_paths))
        object.__setattr__(self, "trusted_origins", frozenset(self.trusted_origins))

    @classmethod
    def from_properties(cls, props: CsrfProperties, **overrides: Any) -> CsrfOptions:
        """Build options from bound :class:`CsrfProperties`.

        Keys are decoded with :func:`decode_key`.  Keyword *overrides*
        (e.g. ``trusted_origins_callback``) are passed through unchanged.
        """
        if not props.auth_key:
            raise ConfigurationException("csrfguard.csrf.auth-key is required", code="CSRF_CONFIG")
        cookie = CookieOptions(
            name=props.cookie_name,
            domain=props.domain,
            path=props.path,
            max_age=props.max_age,
            secure=props.secure,
            http_only=props.http_only,
            same_site=props.same_site,
        )
        kwargs: dict[str, Any] = {
            "auth_key": decode_key(props.auth_key),
            "encryption_key": decode_key(props.encryption_key) if props.encryption_key else None,
            "cookie": cookie,
            "request_header": props.request_header,
            "field_name": props.field_name,
            "safe_methods": frozenset(props.safe_methods),
            "trusted_origins": frozenset(props.trusted_origins),
            "exclude_paths": tuple(props.exclude_paths),
        }
        kwargs.update(overrides)
        return cls(**kwargs)


def decode_key(text: str) -> bytes:
    """Decode a configured key: 64 hex digits, URL-safe base64, or 32 raw characters."""
    text = text.strip()
    if len(text) == 2 * KEY_LENGTH:
        try:
            return bytes.fromhex(text)
        except ValueError:
            pass
    try:
        decoded = base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))
    except (binascii.Error, ValueError):
        decoded = b""
    if len(decoded) == KEY_LENGTH:
        return decoded
    raw = text.encode("utf-8")
    if len(raw) == KEY_LENGTH:
        return raw
    raise ConfigurationException(
        f"Key must decode to exactly {KEY_LENGTH} bytes (hex, base64url or raw text)", code="CSRF_CONFIG"
    )


# ---------------------------------------------------------------------------
# Request / outcome
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class RequestView:
    """The parts of an HTTP request the pipeline inspects.

    ``headers`` must be case-insensitive (e.g. Starlette ``Headers``).
    ``form`` is ``None`` when the adapter did not parse a form body.
    ``request`` is the native request, handed to the trust callback.
    """

    method: str
    path: str
    scheme: str
    host: str
    headers: Mapping[str, str]
    cookies: Mapping[str, str]
    form: Mapping[str, Any] | None = None
    request: Any = None


@dataclass
class CsrfContext:
    """Request-scoped outcome of :meth:`CsrfProtection.process`.

    Attributes:
        token: Fresh masked token for templates and response headers.
        failure: ``None`` when the request is allowed, otherwise the denial reason.
        cookie: Cookie to set on the response, or ``None`` if the current one stays.
        field_name: Form field name templates should use for the token.
    """

    token: str
    failure: CsrfError | None = None
    cookie: IssuedCookie | None = None
    field_name: str = DEFAULT_FIELD_NAME

    @property
    def allowed(self) -> bool:
        return self.failure is None


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------
class CsrfProtection:
    """Per-request CSRF decision pipeline.

    Holds no per-request state; a single instance serves concurrent
    requests.
    """

    def __init__(self, options: CsrfOptions, random_source: RandomSource | None = None) -> None:
        self._options = options
        self._random = random_source or SystemRandomSource()
        self._masker = TokenMasker(self._random)
        self._store = CookieStore(options.auth_key, options.cookie, encryption_key=options.encryption_key)
        self._validator = OriginValidator(options.trusted_origins, options.trusted_origins_callback)

    @property
    def options(self) -> CsrfOptions:
        return self._options

    @property
    def masker(self) -> TokenMasker:
        return self._masker

    @property
    def store(self) -> CookieStore:
        return self._store

    @property
    def validator(self) -> OriginValidator:
        return self._validator

    def is_safe(self, method: str) -> bool:
        return method.upper() in self._options.safe_methods

    def is_excluded(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self._options.exclude_paths)

    def needs_validation(self, method: str, path: str) -> bool:
        """``True`` if a request must present a token (unsafe, not excluded)."""
        return not self.is_safe(method) and not self.is_excluded(path)

    def extract_token(self, view: RequestView) -> str | None:
        """Token from the request header, falling back to the form field."""
        token = view.headers.get(self._options.request_header)
        if token:
            return token
        if view.form is not None:
            value = view.form.get(self._options.field_name)
            if isinstance(value, str) and value:
                return value
        return None

    def process(self, view: RequestView) -> CsrfContext:
        """Run the pipeline for one request and return its outcome."""
        cookie_failure: CsrfError | None = None
        try:
            stored = self._store.load(view.cookies)
        except BadCookieError as exc:
            stored, cookie_failure = None, exc

        if stored is None:
            cookie_failure = cookie_failure or NoCookieError()
            secret = self._random.generate(SECRET_LENGTH)
            cookie: IssuedCookie | None = self._store.issue(secret)
        else:
            secret = stored.secret
            cookie = self._store.issue(secret) if stored.needs_refresh else None

        context = CsrfContext(
            token=self._masker.mask(secret), cookie=cookie, field_name=self._options.field_name
        )

        if not self.needs_validation(view.method, view.path):
            return context

        context.failure = cookie_failure or self._check_referer(view) or self._check_token(view, secret)
        return context

    def _check_referer(self, view: RequestView) -> CsrfError | None:
        referer = view.headers.get("referer")
        if not referer:
            return NoRefererError()
        if not self._validator.is_trusted((view.scheme, view.host), referer, view.request):
            return BadRefererError(context={"referer_host": _safe_host(referer)})
        return None

    def _check_token(self, view: RequestView, secret: bytes) -> CsrfError | None:
        token = self.extract_token(view)
        if token is None:
            return NoTokenError()
        if not self._masker.unmask(token, secret):
            return BadTokenError()
        return None


def _safe_host(referer: str) -> str:
    parsed = parse_referer(referer)
    return parsed.netloc.rpartition("@")[2] if parsed is not None else ""

