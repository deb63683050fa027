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
"""Random source — cryptographically secure fixed-length byte strings."""

from __future__ import annotations

import secrets
from typing import Protocol, runtime_checkable

from csrfguard.kernel.exceptions import EntropyException


@runtime_checkable
class RandomSource(Protocol):
    """Supplies *n* cryptographically secure random bytes."""

    def generate(self, n: int) -> bytes: ...


class SystemRandomSource:
    """RandomSource backed by the operating system CSPRNG (:mod:`secrets`).

    An exhausted or unavailable entropy source is fatal: the failure is
    raised as :class:`EntropyException` and is never turned into a
    CSRF denial.
    """

    def generate(self, n: int) -> bytes:
        if n <= 0:
            raise ValueError(f"random byte count must be positive, got {n}")
        try:
            return secrets.token_bytes(n)
        except (OSError, NotImplementedError) as exc:
            raise EntropyException(
                "Secure random source unavailable",
                code="ENTROPY_UNAVAILABLE",
                context={"requested_bytes": n},
            ) from exc
