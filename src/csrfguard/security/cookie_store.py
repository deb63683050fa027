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
"""Authenticated cookie store — seals the CSRF secret into a cookie value.

The secret (optionally Fernet-encrypted first) is signed with an
``itsdangerous`` :class:`~itsdangerous.TimestampSigner`.  The signer salt
binds the cookie name, so a value sealed for one cookie is rejected under
another, and the embedded timestamp enforces the cookie's max age
server-side.  HMAC-SHA384 yields a 48-byte tag whose base64 form has no
spare bits, so every single-bit change of the sealed value is rejected.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from cryptography.fernet import Fernet, InvalidToken
from itsdangerous import BadData, TimestampSigner

from csrfguard.kernel.exceptions import BadCookieError, ConfigurationException

SECRET_LENGTH = 32
KEY_LENGTH = 32

_SAME_SITE_VALUES = frozenset({"lax", "strict", "none"})


@dataclass(frozen=True)
class CookieOptions:
    """Attributes of the secret cookie."""

    name: str = "_csrf"
    domain: str | None = None
    path: str = "/"
    max_age: int = 12 * 60 * 60  # seconds; <= 0 means a session cookie
    secure: bool = True
    http_only: bool = True
    same_site: str | None = "lax"

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationException("Cookie name must not be empty", code="CSRF_CONFIG")
        if self.same_site is not None and self.same_site.lower() not in _SAME_SITE_VALUES:
            raise ConfigurationException(
                f"Unsupported SameSite value {self.same_site!r}; expected one of lax, strict, none",
                code="CSRF_CONFIG",
            )
        if self.same_site is not None and self.same_site.lower() == "none" and not self.secure:
            raise ConfigurationException("SameSite=None requires a Secure cookie", code="CSRF_CONFIG")


@dataclass(frozen=True)
class IssuedCookie:
    """A response cookie carrying the sealed secret."""

    name: str
    value: str
    options: CookieOptions

    def apply(self, response: Any) -> None:
        """Set this cookie on a Starlette-compatible *response*."""
        opts = self.options
        response.set_cookie(
            key=self.name,
            value=self.value,
            max_age=opts.max_age if opts.max_age > 0 else None,
            path=opts.path,
            domain=opts.domain,
            secure=opts.secure,
            httponly=opts.http_only,
            samesite=opts.same_site.lower() if opts.same_site else None,
        )


@dataclass(frozen=True)
class StoredSecret:
    """A secret recovered from a request cookie."""

    secret: bytes
    needs_refresh: bool = False


class CookieStore:
    """Seals, unseals and issues the CSRF secret cookie.

    Args:
        auth_key: 32-byte signing key.  Any other length is a
            :class:`ConfigurationException`.
        options: Cookie attributes; ``options.name`` is bound into the tag.
        encryption_key: Optional 32-byte key.  When given, the secret is
            encrypted with Fernet before signing so it cannot be read from
            the browser.
    """

    def __init__(
        self,
        auth_key: bytes,
        options: CookieOptions | None = None,
        encryption_key: bytes | None = None,
    ) -> None:
        _require_key(auth_key, "auth_key")
        self._options = options or CookieOptions()
        self._signer = TimestampSigner(
            auth_key,
            salt=f"csrfguard.cookie.{self._options.name}",
            digest_method=hashlib.sha384,
        )
        self._fernet: Fernet | None = None
        if encryption_key is not None:
            _require_key(encryption_key, "encryption_key")
            self._fernet = Fernet(base64.urlsafe_b64encode(encryption_key))

    @property
    def options(self) -> CookieOptions:
        return self._options

    @property
    def encrypted(self) -> bool:
        return self._fernet is not None

    def seal(self, secret: bytes) -> str:
        """Return the authenticated (and optionally encrypted) cookie value."""
        if len(secret) != SECRET_LENGTH:
            raise ValueError(f"secret must be {SECRET_LENGTH} bytes, got {len(secret)}")
        if self._fernet is not None:
            payload = self._fernet.encrypt(secret).rstrip(b"=")
        else:
            payload = base64.urlsafe_b64encode(secret).rstrip(b"=")
        return self._signer.sign(payload).decode("ascii")

    def unseal(self, value: str) -> bytes:
        """Recover the secret from *value*.

        Raises:
            BadCookieError: the tag does not verify, the value is expired,
                structurally corrupt, or does not decode to a valid secret.
        """
        return self._unseal(value)[0]

    def load(self, cookies: Mapping[str, str]) -> StoredSecret | None:
        """Read the secret cookie from request *cookies*.

        Returns ``None`` when the cookie is absent.  A present but invalid
        cookie raises :class:`BadCookieError`.
        """
        value = cookies.get(self._options.name)
        if not value:
            return None

        secret, issued_at = self._unseal(value)
        max_age = self._options.max_age
        needs_refresh = max_age > 0 and time.time() - issued_at > max_age / 2
        return StoredSecret(secret=secret, needs_refresh=needs_refresh)

    def issue(self, secret: bytes) -> IssuedCookie:
        """Produce the response cookie carrying ``seal(secret)``."""
        return IssuedCookie(name=self._options.name, value=self.seal(secret), options=self._options)

    def _unseal(self, value: str) -> tuple[bytes, int]:
        max_age = self._options.max_age if self._options.max_age > 0 else None
        try:
            payload, issued_at = self._signer.unsign(
                value.encode("ascii"), max_age=max_age, return_timestamp=True
            )
        except (BadData, UnicodeEncodeError) as exc:
            raise BadCookieError(context={"cause": type(exc).__name__}) from exc

        padded = payload + b"=" * (-len(payload) % 4)
        try:
            if self._fernet is not None:
                secret = self._fernet.decrypt(padded)
            else:
                secret = base64.urlsafe_b64decode(padded)
        except (InvalidToken, binascii.Error, ValueError) as exc:
            raise BadCookieError(context={"cause": type(exc).__name__}) from exc

        if len(secret) != SECRET_LENGTH:
            raise BadCookieError(context={"cause": "length"})
        return secret, int(issued_at.timestamp())


def _require_key(key: bytes, label: str) -> None:
    if not isinstance(key, bytes | bytearray) or len(key) != KEY_LENGTH:
        length = len(key) if isinstance(key, bytes | bytearray) else type(key).__name__
        raise ConfigurationException(
            f"{label} must be exactly {KEY_LENGTH} bytes (got {length})",
            code="CSRF_CONFIG",
            context={"key": label},
        )
