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
"""Filter contract for the CSRF chain and a path-scoped base class.

Request and response are typed as ``Any`` here; only the Starlette adapter
knows the concrete classes.
"""

from __future__ import annotations

import abc
from collections.abc import Callable, Coroutine
from fnmatch import fnmatch
from typing import Any, Protocol, runtime_checkable

CallNext = Callable[..., Coroutine[Any, Any, Any]]
"""Continues the chain with a (possibly replaced) request and returns its response."""


@runtime_checkable
class WebFilter(Protocol):
    """A step in :class:`~csrfguard.web.adapters.starlette.filter_chain.WebFilterChainMiddleware`.

    A filter either answers the request itself (as :class:`CsrfFilter`
    does on denial) or awaits ``call_next`` and amends what comes back.
    """

    async def do_filter(self, request: Any, call_next: CallNext) -> Any: ...

    def should_not_filter(self, request: Any) -> bool: ...


class OncePerRequestFilter(abc.ABC):
    """Base for filters scoped by glob patterns on ``request.url.path``.

    A path is filtered when it matches ``url_patterns`` (empty matches
    everything) and does not match ``exclude_patterns``.  Skipped requests
    reach the route untouched.
    """

    url_patterns: tuple[str, ...] = ()
    exclude_patterns: tuple[str, ...] = ()

    def applies_to(self, path: str) -> bool:
        if self.url_patterns and not _matches_any(path, self.url_patterns):
            return False
        return not _matches_any(path, self.exclude_patterns)

    def should_not_filter(self, request: Any) -> bool:
        return not self.applies_to(request.url.path)

    @abc.abstractmethod
    async def do_filter(self, request: Any, call_next: CallNext) -> Any:
        """Handle *request*; ``await call_next(request)`` to continue the chain."""


def _matches_any(path: str, patterns: tuple[str, ...]) -> bool:
    return any(fnmatch(path, pattern) for pattern in patterns)
