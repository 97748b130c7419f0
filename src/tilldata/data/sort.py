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
"""Sort types and the in-memory record comparator.

``Sort`` is the ordering every backend receives. ``sort_records`` is the
client-side equivalent of a server-side ORDER BY, used wherever the document
store cannot order for us (membership chunks, index-precondition fallback).
"""

from __future__ import annotations

import functools
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal


@dataclass(frozen=True)
class Order:
    """A single sort order: property name + direction."""

    property: str
    direction: Literal["asc", "desc"] = "asc"

    @staticmethod
    def asc(property: str) -> Order:
        return Order(property=property, direction="asc")

    @staticmethod
    def desc(property: str) -> Order:
        return Order(property=property, direction="desc")

    @property
    def is_descending(self) -> bool:
        return self.direction == "desc"


@dataclass(frozen=True)
class Sort:
    """Ordered collection of sort orders; the first is the primary key."""

    orders: tuple[Order, ...] = ()

    @staticmethod
    def by(*properties: str) -> Sort:
        """Create ascending sort by properties."""
        return Sort(orders=tuple(Order.asc(p) for p in properties))

    @staticmethod
    def unsorted() -> Sort:
        return Sort()

    def and_then(self, other: Sort) -> Sort:
        """Combine sorts, appending *other*'s orders after this sort's orders."""
        return Sort(orders=self.orders + other.orders)

    @property
    def is_sorted(self) -> bool:
        return bool(self.orders)

    def __iter__(self):
        return iter(self.orders)

    def __len__(self) -> int:
        return len(self.orders)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare_values(a: Any, b: Any) -> int:
    """Three-way compare: ``None`` first, numbers numerically, else case-insensitive text."""
    if a is None and b is None:
        return 0
    if a is None:
        return -1
    if b is None:
        return 1
    if _is_number(a) and _is_number(b):
        return (a > b) - (a < b)
    sa, sb = str(a).lower(), str(b).lower()
    return (sa > sb) - (sa < sb)


def compare_records(sort: Sort, left: Mapping[str, Any], right: Mapping[str, Any]) -> int:
    """Compare two records by *sort*, breaking full ties on ``id`` ascending."""
    for order in sort.orders:
        result = compare_values(left.get(order.property), right.get(order.property))
        if result:
            return -result if order.is_descending else result
    return compare_values(left.get("id"), right.get("id"))


def sort_records(records: Iterable[Mapping[str, Any]], sort: Sort) -> list[Any]:
    """Return *records* ordered by *sort*; the ``id`` tie-break makes the order total."""
    return sorted(records, key=functools.cmp_to_key(functools.partial(compare_records, sort)))


def window(records: list[Any], limit: int | None = None, offset: int | None = None) -> list[Any]:
    """Apply offset then limit to an already ordered list."""
    start = offset if offset and offset > 0 else 0
    if limit is None:
        return records[start:]
    return records[start : start + max(limit, 0)]
