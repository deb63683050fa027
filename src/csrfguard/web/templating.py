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
"""Template integration — expose the request's masked token to handlers and templates.

Handlers call :func:`csrf_token` to embed the token manually (e.g. in a
``<meta>`` tag for JavaScript clients) or :func:`csrf_field` for a ready
hidden input.  With Jinja2 templates, register
:func:`csrf_context_processor` and write ``{{ csrf_field }}`` inside forms::

    templates = Jinja2Templates(directory="templates", context_processors=[csrf_context_processor])
"""

from __future__ import annotations

from typing import Any

from markupsafe import Markup

from csrfguard.kernel.exceptions import ConfigurationException, CsrfError
from csrfguard.security.csrf import CsrfContext

TEMPLATE_TAG = "csrf_field"
"""Context key under which :func:`csrf_context_processor` publishes the hidden field."""

TOKEN_TAG = "csrf_token"
"""Context key under which :func:`csrf_context_processor` publishes the raw token."""


def csrf_context(request: Any) -> CsrfContext:
    """Return the CSRF outcome stored on *request* by the filter."""
    context = getattr(request.state, "csrf", None)
    if context is None:
        raise ConfigurationException(
            "No CSRF context on this request; is CsrfFilter installed for this path?",
            code="CSRF_NOT_INSTALLED",
        )
    return context


def csrf_token(request: Any) -> str:
    """The fresh masked token for this request."""
    return csrf_context(request).token


def csrf_field(request: Any) -> Markup:
    """A hidden ``<input>`` carrying the masked token, safe to render unescaped."""
    context = csrf_context(request)
    return Markup('<input type="hidden" name="{}" value="{}">').format(context.field_name, context.token)


def failure_reason(request: Any) -> CsrfError | None:
    """Why the request was denied, or ``None`` if it was allowed or never checked."""
    context = getattr(request.state, "csrf", None)
    return context.failure if context is not None else None


def csrf_context_processor(request: Any) -> dict[str, Any]:
    """Jinja2Templates context processor publishing ``csrf_field`` and ``csrf_token``."""
    return {TEMPLATE_TAG: csrf_field(request), TOKEN_TAG: csrf_token(request)}
