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
"""csrfguard — double-submit cookie CSRF protection for Starlette/ASGI applications.

Quick start::

    from csrfguard import CsrfOptions, protect

    app = protect(Starlette(routes=routes), CsrfOptions(auth_key=key_32_bytes))
"""

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
from csrfguard.security.cookie_store import CookieOptions
from csrfguard.security.csrf import SAFE_METHODS, CsrfContext, CsrfOptions, CsrfProtection
from csrfguard.web.adapters.starlette.app import csrf_filter_from_config, csrf_middleware, protect
from csrfguard.web.adapters.starlette.filters.csrf_filter import CsrfFilter
from csrfguard.web.templating import TEMPLATE_TAG, csrf_field, csrf_token, failure_reason

__version__ = "0.1.0"

__all__ = [
    "SAFE_METHODS",
    "TEMPLATE_TAG",
    "BadCookieError",
    "BadRefererError",
    "BadTokenError",
    "ConfigurationException",
    "CookieOptions",
    "CsrfContext",
    "CsrfError",
    "CsrfFilter",
    "CsrfOptions",
    "CsrfProtection",
    "NoCookieError",
    "NoRefererError",
    "NoTokenError",
    "csrf_field",
    "csrf_filter_from_config",
    "csrf_middleware",
    "csrf_token",
    "failure_reason",
    "protect",
]
