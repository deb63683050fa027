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
"""Application wiring — wrap an ASGI app with CSRF protection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from starlette.middleware import Middleware
from starlette.types import ASGIApp

from csrfguard.config.properties.csrf import CsrfProperties
from csrfguard.core.config import Config
from csrfguard.security.csrf import CsrfOptions, CsrfProtection
from csrfguard.web.adapters.starlette.filter_chain import WebFilterChainMiddleware
from csrfguard.web.adapters.starlette.filters.csrf_filter import CsrfFilter, ErrorHandler
from csrfguard.web.filters import WebFilter


def protect(
    app: ASGIApp,
    options: CsrfOptions | CsrfProtection,
    error_handler: ErrorHandler | None = None,
    filters: Sequence[WebFilter] = (),
) -> WebFilterChainMiddleware:
    """Wrap *app* so every HTTP request passes through a :class:`CsrfFilter`.

    Additional *filters* join the same chain, ordered by ``@order``.

    Usage::

        app = protect(Starlette(routes=routes), CsrfOptions(auth_key=key))
    """
    csrf_filter = CsrfFilter(options, error_handler=error_handler)
    return WebFilterChainMiddleware(app, filters=[csrf_filter, *filters])


def csrf_middleware(
    options: CsrfOptions | CsrfProtection,
    error_handler: ErrorHandler | None = None,
    filters: Sequence[WebFilter] = (),
) -> Middleware:
    """Starlette ``Middleware`` entry for ``Starlette(middleware=[...])``."""
    csrf_filter = CsrfFilter(options, error_handler=error_handler)
    return Middleware(WebFilterChainMiddleware, filters=[csrf_filter, *filters])


def csrf_filter_from_config(
    config: Config,
    error_handler: ErrorHandler | None = None,
    **overrides: Any,
) -> CsrfFilter:
    """Build a :class:`CsrfFilter` from the ``csrfguard.csrf`` config section.

    Keyword *overrides* are applied to :class:`CsrfOptions` (for values that
    cannot live in a file, such as ``trusted_origins_callback``).
    """
    props = config.bind(CsrfProperties)
    return CsrfFilter(CsrfOptions.from_properties(props, **overrides), error_handler=error_handler)
