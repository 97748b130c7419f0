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
"""Where-clause and order-by parsers for the constrained SQL-like dialect.

Callers address every backend with the same small dialect::

    where="status = ? AND created_at >= ?", args=["paid", 1700000000000]
    where="id IN (?, ?, ?)", args=["a1", "b2", "c3"]
    order_by="created_at DESC, order_number"

Grammar
-------
**Clauses** are joined by the literal token ``AND`` (all conjunctive).

**Comparison clause:** ``field <op> ?`` with ``<op>`` one of
``=``, ``!=``, ``>=``, ``<=``, ``>``, ``<``.

**Membership clause:** ``field IN (?, ?, ...)``; at most one per query.

**Order by:** comma-separated ``field [ASC|DESC]`` segments; a missing or
unknown direction means ``ASC``.

Positional arguments are consumed one per ``?`` in declaration order. A
clause that matches neither form is dropped (it filters nothing) and logged
at WARNING, its placeholders still consume their arguments so later clauses
stay aligned.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

import structlog

from tilldata.data.sort import Order, Sort

logger = structlog.get_logger("tilldata.data.query")

# Field names that address a record's identifier rather than a stored field.
IDENTIFIER_FIELDS: tuple[str, ...] = ("documentId", "id")

COMPARISON_OPERATORS: tuple[str, ...] = ("=", "!=", ">=", "<=", ">", "<")

_AND_RE = re.compile(r"\s+AND\s+", re.IGNORECASE)
_COMPARISON_RE = re.compile(r"^([A-Za-z_][\w.]*)\s*(!=|>=|<=|=|>|<)\s*\?$")
_MEMBERSHIP_RE = re.compile(r"^([A-Za-z_][\w.]*)\s+IN\s*\(\s*\?(?:\s*,\s*\?)*\s*\)$", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_POINT_LOOKUP_RE = re.compile(r"^\s*(?:documentId|id)\s*=\s*\?\s*$")

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Predicate:
    """One ``field <op> value`` condition."""

    field: str
    operator: str
    value: Any

    @property
    def is_identifier(self) -> bool:
        return self.field in IDENTIFIER_FIELDS


@dataclass(frozen=True)
class InClause:
    """The single value-set membership condition of a query."""

    field: str
    values: tuple[Any, ...]

    @property
    def is_identifier(self) -> bool:
        return self.field in IDENTIFIER_FIELDS


@dataclass
class ParsedWhere:
    """Result of parsing a where clause against its positional arguments."""

    predicates: list[Predicate] = field(default_factory=list)
    in_clause: InClause | None = None
    dropped: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.predicates and self.in_clause is None


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


class WhereClauseParser:
    """Parse a where string plus positional args into predicates.

    Examples::

        parse("status = ?", ["paid"])
            -> [Predicate("status", "=", "paid")]
        parse("total > ? AND id IN (?, ?)", [100, "a", "b"])
            -> [Predicate("total", ">", 100)], InClause("id", ("a", "b"))
    """

    def parse(self, where: str | None, args: Sequence[Any] | None = None) -> ParsedWhere:
        parsed = ParsedWhere()
        if where is None or not where.strip():
            return parsed

        args = list(args or [])
        arg_idx = 0
        for raw in _AND_RE.split(where.strip()):
            clause = raw.strip()
            needed = clause.count("?")
            values = args[arg_idx : arg_idx + needed]
            arg_idx += needed

            if len(values) < needed:
                self._drop(parsed, clause, "missing_arguments")
                continue

            comparison = _COMPARISON_RE.match(clause)
            if comparison is not None:
                field_name, operator = comparison.groups()
                parsed.predicates.append(Predicate(field_name, operator, values[0]))
                continue

            membership = _MEMBERSHIP_RE.match(clause)
            if membership is not None:
                if parsed.in_clause is not None:
                    self._drop(parsed, clause, "multiple_in_clauses")
                    continue
                parsed.in_clause = InClause(membership.group(1), tuple(values))
                continue

            self._drop(parsed, clause, "unrecognized_clause")

        return parsed

    @staticmethod
    def _drop(parsed: ParsedWhere, clause: str, reason: str) -> None:
        parsed.dropped.append(clause)
        logger.warning("where_clause_dropped", clause=clause, reason=reason)


class OrderByParser:
    """Parse ``"created_at DESC, name"`` into a :class:`Sort`."""

    def parse(self, order_by: str | None) -> Sort:
        if order_by is None:
            return Sort()
        orders: list[Order] = []
        for segment in order_by.split(","):
            parts = _WHITESPACE_RE.split(segment.strip())
            if not parts or not parts[0]:
                continue
            direction = parts[1].upper() if len(parts) > 1 else "ASC"
            orders.append(Order.desc(parts[0]) if direction == "DESC" else Order.asc(parts[0]))
        return Sort(orders=tuple(orders))


def point_lookup_key(where: str | None, args: Sequence[Any] | None) -> str | None:
    """The key addressed by a bare ``documentId = ?`` / ``id = ?`` filter with one string argument.

    Checked on the raw where string, before any clause parsing.
    """
    if where is None or args is None or len(args) != 1 or not isinstance(args[0], str):
        return None
    return args[0] if _POINT_LOOKUP_RE.match(where) else None
