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
"""csrfguard security — masked tokens, sealed cookies and the CSRF pipeline."""

from csrfguard.security.cookie_store import CookieOptions, CookieStore, IssuedCookie, StoredSecret
from csrfguard.security.csrf import SAFE_METHODS, CsrfContext, CsrfOptions, CsrfProtection, RequestView, decode_key
from csrfguard.security.entropy import RandomSource, SystemRandomSource
from csrfguard.security.masking import TokenMasker
from csrfguard.security.origin import OriginValidator, TrustedOriginsCallback

__all__ = [
    "SAFE_METHODS",
    "CookieOptions",
    "CookieStore",
    "CsrfContext",
    "CsrfOptions",
    "CsrfProtection",
    "IssuedCookie",
    "OriginValidator",
    "RandomSource",
    "RequestView",
    "StoredSecret",
    "SystemRandomSource",
    "TokenMasker",
    "TrustedOriginsCallback",
    "decode_key",
]
