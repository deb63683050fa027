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
"""Masking codec — one-time-pad masking of the CSRF secret.

A masked token is ``urlsafe_b64encode(otp || xor(otp, secret))``.  A fresh
pad per call makes every emitted token different (defeating
compression-oracle attacks such as BREACH) while each one still unmasks to
the same secret.
"""

from __future__ import annotations

import base64
import binascii
import hmac
import re

from csrfguard.security.entropy import RandomSource, SystemRandomSource

_URLSAFE_TOKEN = re.compile(r"[A-Za-z0-9_-]*={0,2}")


def xor_bytes(a: bytes, b: bytes) -> bytes:
    """XOR two equal-length byte strings."""
    if len(a) != len(b):
        raise ValueError("xor operands must have equal length")
    return bytes(x ^ y for x, y in zip(a, b))


class TokenMasker:
    """Masks a secret into a wire-safe token and verifies submitted tokens."""

    def __init__(self, random_source: RandomSource | None = None) -> None:
        self._random = random_source or SystemRandomSource()

    def mask(self, secret: bytes) -> str:
        """Return a freshly masked token for *secret*."""
        _require_secret(secret)
        return self.mask_with_pad(secret, self._random.generate(len(secret)))

    def mask_with_pad(self, secret: bytes, otp: bytes) -> str:
        """Deterministically mask *secret* with the given one-time pad."""
        _require_secret(secret)
        if len(otp) != len(secret):
            raise ValueError("one-time pad must have the same length as the secret")
        return base64.urlsafe_b64encode(otp + xor_bytes(otp, secret)).decode("ascii")

    def unmask(self, token: str, secret: bytes) -> bool:
        """Return ``True`` if *token* unmasks to *secret*.

        Malformed tokens (bad alphabet, truncation, wrong length) are a
        plain ``False``.  The final comparison runs in constant time.
        """
        _require_secret(secret)
        if not isinstance(token, str) or not _URLSAFE_TOKEN.fullmatch(token):
            return False
        try:
            raw = base64.urlsafe_b64decode(token)
        except (binascii.Error, ValueError, TypeError):
            return False

        if len(raw) != 2 * len(secret):
            return False

        otp, masked = raw[: len(secret)], raw[len(secret) :]
        return hmac.compare_digest(xor_bytes(otp, masked), secret)


def _require_secret(secret: bytes) -> None:
    if not secret:
        raise ValueError("secret must be a non-empty byte string")
