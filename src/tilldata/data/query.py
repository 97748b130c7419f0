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
"""QuerySpec: the backend-agnostic description of one read."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import cached_property
from typing import Any

from tilldata.data.query_parser import OrderByParser, ParsedWhere, WhereClauseParser
from tilldata.data.sort import Sort

_where_parser = WhereClauseParser()
_order_parser = OrderByParser()


@dataclass(frozen=True)
class QuerySpec:
    """Where/args/order/limit/offset for a query against one collection.

    ``offset`` is exact on the relational backend and best-effort on the
    document store: a positional skip over the current result set, not a
    cursor. Concurrent writes can shift which records a given offset lands on.
    """

    where: str | None = None
    args: Sequence[Any] = field(default_factory=tuple)
    order_by: str | None = None
    limit: int | None = None
    offset: int | None = None

    @cached_property
    def parsed(self) -> ParsedWhere:
        return _where_parser.parse(self.where, self.args)

    @cached_property
    def sort(self) -> Sort:
        return _order_parser.parse(self.order_by)

    @classmethod
    def by_id(cls, record_id: Any) -> QuerySpec:
        """Point lookup for a single record."""
        return cls(where="documentId = ?", args=(record_id,))
