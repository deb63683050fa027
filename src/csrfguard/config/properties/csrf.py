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
"""CSRF protection configuration properties."""

from __future__ import annotations

from dataclasses import dataclass, field

from csrfguard.core.config import config_properties


@config_properties(prefix="csrfguard.csrf")
@dataclass
class CsrfProperties:
    """Configuration for the CSRF filter (csrfguard.csrf.*).

    Keys are text: ``auth_key`` and ``encryption_key`` accept hex, URL-safe
    base64 or 32 raw characters and must decode to exactly 32 bytes.
    """

    auth_key: str | None = None
    encryption_key: str | None = None
    cookie_name: str = "_csrf"
    domain: str | None = None
    path: str = "/"
    max_age: int = 12 * 60 * 60
    secure: bool = True
    http_only: bool = True
    same_site: str | None = "lax"
    request_header: str = "X-CSRF-Token"
    field_name: str = "csrf_token"
    safe_methods: list[str] = field(default_factory=lambda: ["GET", "HEAD", "OPTIONS", "TRACE"])
    trusted_origins: list[str] = field(default_factory=list)
    exclude_paths: list[str] = field(default_factory=list)
