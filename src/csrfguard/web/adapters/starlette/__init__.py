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
"""Starlette adapter — filter chain middleware and CSRF filter."""

from csrfguard.web.adapters.starlette.app import csrf_filter_from_config, csrf_middleware, protect
from csrfguard.web.adapters.starlette.filter_chain import WebFilterChainMiddleware, replay_body
from csrfguard.web.adapters.starlette.filters.csrf_filter import CsrfFilter, default_error_handler

__all__ = [
    "CsrfFilter",
    "WebFilterChainMiddleware",
    "csrf_filter_from_config",
    "csrf_middleware",
    "default_error_handler",
    "protect",
    "replay_body",
]
