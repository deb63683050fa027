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
"""CsrfFilter — double-submit cookie CSRF protection for Starlette.

For every request the filter runs :class:`~csrfguard.security.csrf.CsrfProtection`
and stores the resulting :class:`~csrfguard.security.csrf.CsrfContext` on
``request.state.csrf``:

* **Safe methods** (GET, HEAD, OPTIONS, TRACE) and excluded path prefixes
  pass through; a fresh masked token is available to the handler.
* **Unsafe methods** (POST, PUT, DELETE, PATCH) need the sealed secret
  cookie, a trusted Referer and a masked token in the ``X-CSRF-Token``
  header or the ``csrf_token`` form field.  Anything else short-circuits
  to the error handler (default: HTTP 403) without calling the route.

Every response gets ``Vary: Cookie``.  The secret cookie is (re)issued
whenever it was missing, invalid or close to expiry.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from starlette.datastructures import FormData
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from csrfguard.container.ordering import order
from csrfguard.logging.structlog_adapter import get_logger
from csrfguard.security.csrf import CsrfOptions, CsrfProtection, RequestView
from csrfguard.web.adapters.starlette.filter_chain import replay_body
from csrfguard.web.filters import CallNext, OncePerRequestFilter

logger = get_logger("csrfguard.web")

ErrorHandler = Callable[[Request], Response | Awaitable[Response]]
"""Called instead of the route on denial; reads ``failure_reason(request)``."""

FORM_CONTENT_TYPES: tuple[str, ...] = ("application/x-www-form-urlencoded", "multipart/form-data")

DEFAULT_ERROR_MESSAGE = "Forbidden - CSRF token invalid"


def default_error_handler(request: Request) -> Response:
    """Plain 403 that does not reveal which check failed."""
    return PlainTextResponse(DEFAULT_ERROR_MESSAGE, status_code=403)


@order(-50)
class CsrfFilter(OncePerRequestFilter):
    """Double-submit cookie CSRF filter with masked tokens.

    Args:
        protection: The pipeline, or :class:`CsrfOptions` to build one from.
        error_handler: Produces the response for denied requests.
        url_patterns: Glob patterns the filter applies to (default: all).
        exclude_patterns: Glob patterns that bypass the filter entirely.
            Unlike ``CsrfOptions.exclude_paths`` these get no cookie,
            token or ``Vary`` header.
    """

    def __init__(
        self,
        protection: CsrfProtection | CsrfOptions,
        error_handler: ErrorHandler | None = None,
        url_patterns: Sequence[str] = (),
        exclude_patterns: Sequence[str] = (),
    ) -> None:
        if isinstance(protection, CsrfOptions):
            protection = CsrfProtection(protection)
        self._protection = protection
        self._error_handler = error_handler or default_error_handler
        self.url_patterns = tuple(url_patterns)
        self.exclude_patterns = tuple(exclude_patterns)

    @property
    def protection(self) -> CsrfProtection:
        return self._protection

    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        form: dict[str, Any] | None = None
        downstream = request
        if self._wants_form(request):
            form, downstream = await self._read_form(request)

        view = RequestView(
            method=request.method,
            path=request.url.path,
            scheme=request.url.scheme,
            host=request.url.netloc,
            headers=request.headers,
            cookies=request.cookies,
            form=form,
            request=request,
        )
        context = self._protection.process(view)
        request.state.csrf = context

        if context.failure is not None:
            logger.warning(
                "csrf_request_denied",
                reason=context.failure.code,
                method=request.method,
                path=request.url.path,
            )
            response = await self._handle_failure(request)
        else:
            response = await call_next(downstream)

        response.headers.add_vary_header("Cookie")
        if context.cookie is not None:
            context.cookie.apply(response)
            logger.debug("csrf_cookie_issued", cookie=context.cookie.name, path=request.url.path)
        return response

    def _wants_form(self, request: Any) -> bool:
        """Parse the body only when the token can come from nowhere else."""
        if not self._protection.needs_validation(request.method, request.url.path):
            return False
        if request.headers.get(self._protection.options.request_header):
            return False
        content_type = request.headers.get("content-type", "").lower()
        return content_type.startswith(FORM_CONTENT_TYPES)

    async def _read_form(self, request: Request) -> tuple[dict[str, Any] | None, Request]:
        body = await request.body()
        downstream = replay_body(request, body)
        field_name = self._protection.options.field_name
        try:
            form: FormData = await request.form()
        except (HTTPException, MultiPartException) as exc:
            logger.debug("csrf_form_unreadable", error=str(exc))
            return None, downstream
        try:
            return {field_name: form.get(field_name)}, downstream
        finally:
            await form.close()

    async def _handle_failure(self, request: Request) -> Response:
        result = self._error_handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result
