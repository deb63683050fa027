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
"""Tests for the @order decorator and sort helpers."""

from csrfguard.container.ordering import HIGHEST_PRECEDENCE, LOWEST_PRECEDENCE, get_order, order, sort_by_order
from csrfguard.web.adapters.starlette.filters import CsrfFilter


class TestOrderDecorator:
    def test_sets_order_attribute(self):
        @order(5)
        class AuditFilter:
            pass

        assert get_order(AuditFilter) == 5
        assert get_order(AuditFilter()) == 5

    def test_preserves_class(self):
        @order(1)
        class AuditFilter:
            """Audit doc."""

        assert AuditFilter.__name__ == "AuditFilter"
        assert AuditFilter.__doc__ == "Audit doc."

    def test_undecorated_defaults_to_zero(self):
        class PlainFilter:
            pass

        assert get_order(PlainFilter()) == 0

    def test_csrf_filter_runs_before_default_filters(self):
        assert get_order(CsrfFilter) < 0


class TestSortByOrder:
    def test_sorts_ascending(self):
        @order(LOWEST_PRECEDENCE)
        class Last:
            pass

        @order(HIGHEST_PRECEDENCE)
        class First:
            pass

        class Middle:
            pass

        items = [Last(), Middle(), First()]
        assert [type(i).__name__ for i in sort_by_order(items)] == ["First", "Middle", "Last"]


class TestOrderConstants:
    def test_precedence_bounds(self):
        assert HIGHEST_PRECEDENCE == -(2**31)
        assert LOWEST_PRECEDENCE == 2**31 - 1
