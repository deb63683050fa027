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
"""Tests for WebFilterChainMiddleware — ordering, short-circuit, conditional skip, body replay."""

from __future__ import annotations

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from csrfguard.container.ordering import HIGHEST_PRECEDENCE, get_order, order, sort_by_order
from csrfguard.web.adapters.starlette.filter_chain import WebFilterChainMiddleware, replay_body
from csrfguard.web.filters import OncePerRequestFilter


# ---------------------------------------------------------------------------
# Test filters
# ---------------------------------------------------------------------------

@order(HIGHEST_PRECEDENCE + 10)
class OuterFilter(OncePerRequestFilter):
    """Records its position in X-Chain — runs first."""

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers.append("X-Chain", "outer")
        return response


@order(HIGHEST_PRECEDENCE + 20)
class InnerFilter(OncePerRequestFilter):
    """Records its position in X-Chain — runs after OuterFilter."""

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers.append("X-Chain", "inner")
        return response


@order(5)
class FormsOnlyFilter(OncePerRequestFilter):
    """Only applies to /forms/* paths."""

    url_patterns = ("/forms/*",)

    async def do_filter(self, request, call_next):
        response = await call_next(request)
        response.headers["X-Forms-Filter"] = "applied"
        return response


@order(10)
class DenyFilter(OncePerRequestFilter):
    """Returns 403 without calling next."""

    async def do_filter(self, request, call_next):
        return JSONResponse({"error": "denied"}, status_code=403)


class BodyPeekFilter(OncePerRequestFilter):
    """Consumes the body and hands a replaying request downstream."""

    async def do_filter(self, request, call_next):
        body = await request.body()
        response = await call_next(replay_body(request, body))
        response.headers["X-Body-Length"] = str(len(body))
        return response


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _ok_handler(request: Request) -> PlainTextResponse:
    return PlainTextResponse("OK")


async def _echo_handler(request: Request) -> PlainTextResponse:
    return PlainTextResponse(await request.body())


def _make_app(*filters) -> Starlette:
    return Starlette(
        routes=[
            Route("/test", _ok_handler),
            Route("/forms/contact", _ok_handler),
            Route("/health", _ok_handler),
            Route("/echo", _echo_handler, methods=["POST"]),
        ],
        middleware=[Middleware(WebFilterChainMiddleware, filters=list(filters))],
    )


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

class TestFilterChainOrdering:
    def test_filters_applied_in_order(self):
        """Inner filter finishes first, so its header is appended first."""
        app = _make_app(InnerFilter(), OuterFilter())
        resp = TestClient(app).get("/test")
        assert resp.status_code == 200
        assert resp.headers.get_list("X-Chain") == ["inner", "outer"]

    def test_order_decorator_determines_sequence(self):
        assert get_order(OuterFilter) < get_order(InnerFilter)
        assert get_order(InnerFilter) < get_order(FormsOnlyFilter)
        assert get_order(BodyPeekFilter) == 0

    def test_sort_by_order_is_stable(self):
        first, second = BodyPeekFilter(), BodyPeekFilter()
        assert sort_by_order([first, DenyFilter(), second])[:2] == [first, second]


class TestFilterChainConditionalSkip:
    def test_url_pattern_filter_applies_to_matching_path(self):
        resp = TestClient(_make_app(FormsOnlyFilter())).get("/forms/contact")
        assert resp.headers.get("X-Forms-Filter") == "applied"

    def test_url_pattern_filter_skipped_for_non_matching_path(self):
        resp = TestClient(_make_app(FormsOnlyFilter())).get("/health")
        assert "X-Forms-Filter" not in resp.headers

    def test_exclude_patterns(self):
        class Excluding(DenyFilter):
            exclude_patterns = ("/health",)

        client = TestClient(_make_app(Excluding()))
        assert client.get("/health").status_code == 200
        assert client.get("/test").status_code == 403


class TestFilterChainShortCircuit:
    def test_short_circuit_returns_early(self):
        resp = TestClient(_make_app(DenyFilter())).get("/test")
        assert resp.status_code == 403
        assert resp.json() == {"error": "denied"}


class TestFilterChainEmpty:
    def test_no_filters_passes_through(self):
        resp = TestClient(_make_app()).get("/test")
        assert resp.status_code == 200
        assert resp.text == "OK"

    @pytest.mark.asyncio
    async def test_non_http_scope_is_passed_through(self):
        seen: list[str] = []

        async def app(scope, receive, send):
            seen.append(scope["type"])

        middleware = WebFilterChainMiddleware(app, [DenyFilter()])

        async def _noop(*args):
            return None

        await middleware({"type": "lifespan"}, _noop, _noop)
        assert seen == ["lifespan"]


class TestReplayBody:
    def test_downstream_reads_consumed_body(self):
        resp = TestClient(_make_app(BodyPeekFilter())).post("/echo", content=b"payload")
        assert resp.status_code == 200
        assert resp.text == "payload"
        assert resp.headers["X-Body-Length"] == "7"

    @pytest.mark.asyncio
    async def test_replay_then_fall_through(self):
        messages = [{"type": "http.disconnect"}]

        async def receive():
            return messages.pop(0)

        request = Request({"type": "http", "method": "POST", "headers": []}, receive)
        replayed = replay_body(request, b"abc")
        assert await replayed.body() == b"abc"
        assert await replayed.receive() == {"type": "http.disconnect"}
