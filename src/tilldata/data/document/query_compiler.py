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
"""Compile parsed predicates and sorts into MongoDB filter and sort documents."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, TypeVar

import pymongo

from tilldata.data.query_parser import IDENTIFIER_FIELDS, InClause, Predicate
from tilldata.data.sort import Sort

T = TypeVar("T")

_OPERATORS: dict[str, str] = {
    "=": "$eq",
    "!=": "$ne",
    ">": "$gt",
    ">=": "$gte",
    "<": "$lt",
    "<=": "$lte",
}


def target_field(field_name: str) -> str:
    """Map the identifier aliases onto the native ``_id`` key."""
    return "_id" if field_name in IDENTIFIER_FIELDS else field_name


def build_clause(predicate: Predicate) -> dict[str, Any]:
    """Build a single MongoDB filter clause from a predicate."""
    return {target_field(predicate.field): {_OPERATORS[predicate.operator]: predicate.value}}


def build_filter(
    predicates: Sequence[Predicate],
    in_clause: InClause | None = None,
    in_values: Sequence[Any] | None = None,
) -> dict[str, Any]:
    """Combine *predicates* (and optionally one ``$in`` chunk) into one filter document.

    Ranges on the same field merge into one operator document
    (``{"total": {"$gte": 10, "$lt": 50}}``). A repeated operator on one
    field falls back to ``$and``.
    """
    clauses = [build_clause(p) for p in predicates]
    if in_clause is not None:
        values = in_clause.values if in_values is None else in_values
        clauses.append({target_field(in_clause.field): {"$in": list(values)}})
    return _merge(clauses)


def _merge(clauses: list[dict[str, Any]]) -> dict[str, Any]:
    merged: dict[str, dict[str, Any]] = {}
    for clause in clauses:
        ((field_name, ops),) = clause.items()
        current = merged.setdefault(field_name, {})
        if current.keys() & ops.keys():
            return {"$and": clauses}
        current.update(ops)
    return {name: ops["$eq"] if list(ops) == ["$eq"] else ops for name, ops in merged.items()}


def build_sort(sort: Sort) -> list[tuple[str, int]]:
    """Convert a :class:`Sort` into a pymongo sort specification.

    A non-empty sort ends with ``_id`` ascending, the same tie-break the
    in-memory comparator applies.
    """
    spec = [
        (target_field(order.property), pymongo.DESCENDING if order.is_descending else pymongo.ASCENDING)
        for order in sort
    ]
    if spec and all(name != "_id" for name, _ in spec):
        spec.append(("_id", pymongo.ASCENDING))
    return spec


def chunked(values: Iterable[T], size: int) -> list[list[T]]:
    """Split *values* into consecutive lists of at most *size* items."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    chunks: list[list[T]] = []
    current: list[T] = []
    for value in values:
        current.append(value)
        if len(current) == size:
            chunks.append(current)
            current = []
    if current:
        chunks.append(current)
    return chunks
