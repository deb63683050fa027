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
"""WebFilterChainMiddleware — runs the CSRF filter (and friends) as one ASGI middleware."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, cast

from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from csrfguard.container.ordering import sort_by_order
from csrfguard.web.filters import CallNext, WebFilter


class WebFilterChainMiddleware:
    """Pure ASGI middleware running :class:`WebFilter` instances in ``@order`` sequence.

    The wrapped app's response is buffered into a Starlette ``Response`` so
    filters can add headers and cookies after the route has run.  The app
    reads the body from whichever request reaches the end of the chain,
    which lets a filter that consumed the body pass on :func:`replay_body`.
    Non-HTTP scopes bypass the chain.
    """

    def __init__(self, app: ASGIApp, filters: Sequence[WebFilter] = ()) -> None:
        self.app = app
        self._filters = sort_by_order(filters)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def endpoint(request: Any) -> Response:
            downstream = request.receive if isinstance(request, Request) else receive
            return await _buffered_response(self.app, scope, downstream)

        chain: CallNext = endpoint
        for web_filter in reversed(self._filters):
            chain = _wrap(web_filter, chain)

        response = cast(Response, await chain(Request(scope, receive, send)))
        await response(scope, receive, send)


async def _buffered_response(app: ASGIApp, scope: Scope, receive: Receive) -> Response:
    """Run *app* and collect what it sends into a ``Response``."""
    status = 200
    headers: list[tuple[bytes, bytes]] = []
    chunks: list[bytes] = []

    async def capture(message: Message) -> None:
        nonlocal status, headers
        kind = message["type"]
        if kind == "http.response.start":
            status = message["status"]
            headers = list(message.get("headers", []))
        elif kind == "http.response.body":
            chunks.append(message.get("body", b""))
        elif kind == "http.response.pathsend":
            chunks.append(Path(message["path"]).read_bytes())

    await app(scope, receive, capture)

    response = Response(content=b"".join(chunks), status_code=status)
    response.raw_headers[:] = headers
    return response


def replay_body(request: Request, body: bytes) -> Request:
    """A request over the same scope whose ``receive`` yields *body* once.

    Later ``receive`` calls go to the original channel, so the app still
    sees ``http.disconnect``.
    """
    pending = True

    async def receive() -> Message:
        nonlocal pending
        if pending:
            pending = False
            return {"type": "http.request", "body": body, "more_body": False}
        return await request.receive()

    return Request(request.scope, receive)


def _wrap(web_filter: WebFilter, next_call: CallNext) -> CallNext:
    async def run(request: Any) -> Response:
        if web_filter.should_not_filter(request):
            return cast(Response, await next_call(request))
        return cast(Response, await web_filter.do_filter(request, next_call))

    return run
